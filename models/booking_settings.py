"""
Venue booking settings and operating hours.

Settings are read with get-or-create semantics: the first access for a venue
materializes the defaults. Updates go through the owner-only administrative
functions at the bottom of each section.
"""

import logging
from typing import Optional

from database import get_db
from models.booking_state import NON_TERMINAL_STATUSES
from models.venue import get_venue_by_id, user_owns_venue
from utils.datetime_helpers import day_of_week, get_today, normalize_time, time_to_minutes
from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind, booking_action

logger = logging.getLogger(__name__)


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_BOOKING_SETTINGS = {
    'bookings_enabled': True,
    'buffer_minutes': 15,
    'default_duration_minutes': 120,
    'min_advance_hours': 1,
    'max_advance_days': 30,
    'no_show_grace_minutes': 15,
    'deposit_required': False,
    'deposit_amount_cents': 0,
    'send_confirmation_email': True,
    'send_reminder_sms': False,
    'reminder_hours_before': 2,
    'require_email': False,
    'require_phone': False,
    'booking_page_message': None,
    'timezone': 'America/Los_Angeles',
}

BOOLEAN_FIELDS = (
    'bookings_enabled', 'deposit_required', 'send_confirmation_email',
    'send_reminder_sms', 'require_email', 'require_phone',
)

# field: (minimum, maximum or None)
INTEGER_RANGES = {
    'buffer_minutes': (0, 120),
    'default_duration_minutes': (15, 480),
    'min_advance_hours': (0, 168),
    'max_advance_days': (1, 365),
    'no_show_grace_minutes': (0, 120),
    'deposit_amount_cents': (0, None),
    'reminder_hours_before': (0, 72),
}

FIELD_LABELS = {
    'buffer_minutes': 'Buffer minutes',
    'default_duration_minutes': 'Default duration',
    'min_advance_hours': 'Minimum advance hours',
    'max_advance_days': 'Maximum advance days',
    'no_show_grace_minutes': 'No-show grace period',
    'deposit_amount_cents': 'Deposit amount',
    'reminder_hours_before': 'Reminder hours',
}

FALLBACK_OPEN_TIME = '10:00'
FALLBACK_CLOSE_TIME = '22:00'


def _row_to_settings(row) -> dict:
    settings = dict(row)
    for field in BOOLEAN_FIELDS:
        settings[field] = bool(settings.get(field))
    return settings


# =============================================================================
# SETTINGS READ
# =============================================================================

def get_booking_settings(venue_id: int) -> Optional[dict]:
    """
    Get a venue's stored settings without creating them.

    Args:
        venue_id: Venue ID

    Returns:
        Settings dict or None if none stored yet
    """
    db = get_db()
    row = db.execute(
        'SELECT * FROM venue_booking_settings WHERE venue_id = ?', (venue_id,)
    ).fetchone()
    return _row_to_settings(row) if row else None


def get_or_create_booking_settings(venue_id: int) -> dict:
    """
    Get a venue's settings, inserting the defaults on first access.

    Args:
        venue_id: Venue ID

    Returns:
        Settings dict

    Raises:
        BookingError: NOT_FOUND if the venue does not exist
    """
    settings = get_booking_settings(venue_id)
    if settings:
        return settings

    if not get_venue_by_id(venue_id):
        raise BookingError(MESSAGES['venue_not_found'], ErrorKind.NOT_FOUND)

    db = get_db()
    columns = list(DEFAULT_BOOKING_SETTINGS.keys())
    values = [DEFAULT_BOOKING_SETTINGS[c] for c in columns]
    try:
        # OR IGNORE: a concurrent first access may have created the row already
        db.execute(f'''
            INSERT OR IGNORE INTO venue_booking_settings (venue_id, {", ".join(columns)})
            VALUES (?, {", ".join("?" for _ in columns)})
        ''', [venue_id] + values)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info('Created default booking settings for venue %s', venue_id)
    return get_booking_settings(venue_id)


@booking_action()
def load_booking_settings(venue_id: int) -> dict:
    """Tagged-result wrapper around get_or_create_booking_settings."""
    return get_or_create_booking_settings(venue_id)


# =============================================================================
# SETTINGS UPDATE (administrative)
# =============================================================================

def validate_settings_updates(updates: dict) -> list:
    """
    Validate a partial settings update.

    Args:
        updates: Field -> new value

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    for field, (minimum, maximum) in INTEGER_RANGES.items():
        if field not in updates:
            continue
        value = updates[field]
        label = FIELD_LABELS[field]
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f'{label} must be a whole number')
        elif value < minimum:
            errors.append(f'{label} must be at least {minimum}')
        elif maximum is not None and value > maximum:
            errors.append(f'{label} must be at most {maximum}')

    for field in BOOLEAN_FIELDS:
        if field in updates and not isinstance(updates[field], bool):
            errors.append(f'{field} must be true or false')

    if 'booking_page_message' in updates:
        message = updates['booking_page_message']
        if message is not None and (not isinstance(message, str) or len(message) > 1000):
            errors.append('Booking page message must be text of at most 1000 characters')

    if 'timezone' in updates:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            ZoneInfo(str(updates['timezone']))
        except (ZoneInfoNotFoundError, ValueError):
            errors.append('Unknown timezone')

    return errors


@booking_action()
def update_booking_settings(venue_id: int, updates: dict, user_id: int) -> dict:
    """
    Update a venue's booking policy.

    Args:
        venue_id: Venue ID
        updates: Partial settings; unknown keys are ignored
        user_id: Acting user (must own the venue)

    Returns:
        Tagged result with the updated settings
    """
    if not get_venue_by_id(venue_id):
        raise BookingError(MESSAGES['venue_not_found'], ErrorKind.NOT_FOUND)
    if not user_owns_venue(user_id, venue_id):
        raise BookingError(MESSAGES['venue_forbidden'], ErrorKind.UNAUTHORIZED)

    updates = {k: v for k, v in (updates or {}).items() if k in DEFAULT_BOOKING_SETTINGS}
    if not updates:
        raise BookingError(MESSAGES['no_updates'])

    errors = validate_settings_updates(updates)
    if errors:
        raise BookingError(errors[0])

    get_or_create_booking_settings(venue_id)

    db = get_db()
    set_clause = ', '.join(f'{field} = ?' for field in updates)
    values = [int(v) if isinstance(v, bool) else v for v in updates.values()]
    try:
        db.execute(f'''
            UPDATE venue_booking_settings
            SET {set_clause}, updated_at = CURRENT_TIMESTAMP
            WHERE venue_id = ?
        ''', values + [venue_id])
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info('Booking settings for venue %s updated by user %s: %s',
                venue_id, user_id, sorted(updates))
    return get_booking_settings(venue_id)


# =============================================================================
# OPERATING HOURS
# =============================================================================

def get_operating_hours(venue_id: int) -> list:
    """
    Get a venue's weekly hours ordered Sunday (0) to Saturday (6).

    Args:
        venue_id: Venue ID

    Returns:
        List of hour dicts (only configured days)
    """
    db = get_db()
    rows = db.execute('''
        SELECT day_of_week, open_time, close_time, is_closed
        FROM venue_operating_hours
        WHERE venue_id = ?
        ORDER BY day_of_week
    ''', (venue_id,)).fetchall()
    return [dict(row, is_closed=bool(row['is_closed'])) for row in rows]


def get_hours_for_date(venue_id: int, booking_date) -> dict:
    """
    Opening window for a given date.

    Falls back to 10:00-22:00 when the venue has no row for that weekday.

    Returns:
        Dict with open_time, close_time, is_closed
    """
    db = get_db()
    row = db.execute('''
        SELECT open_time, close_time, is_closed
        FROM venue_operating_hours
        WHERE venue_id = ? AND day_of_week = ?
    ''', (venue_id, day_of_week(booking_date))).fetchone()

    if not row:
        return {'open_time': FALLBACK_OPEN_TIME, 'close_time': FALLBACK_CLOSE_TIME, 'is_closed': False}
    return {'open_time': row['open_time'], 'close_time': row['close_time'],
            'is_closed': bool(row['is_closed'])}


def _validate_hours_entry(entry: dict) -> tuple:
    """
    Normalize one operating-hours entry.

    Returns:
        Tuple of (normalized dict or None, error message or None)
    """
    if not isinstance(entry, dict):
        return None, MESSAGES['hours_invalid_day']

    day = entry.get('day_of_week')
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        return None, MESSAGES['hours_invalid_day']

    is_closed = bool(entry.get('is_closed', False))
    open_time = normalize_time(entry.get('open_time') or '')
    close_time = normalize_time(entry.get('close_time') or '')

    if is_closed and not entry.get('open_time') and not entry.get('close_time'):
        open_time, close_time = FALLBACK_OPEN_TIME, FALLBACK_CLOSE_TIME
    if not open_time or not close_time:
        return None, MESSAGES['hours_invalid_time']
    if not is_closed and time_to_minutes(close_time) <= time_to_minutes(open_time):
        return None, MESSAGES['hours_close_before_open']

    return {'day_of_week': day, 'open_time': open_time,
            'close_time': close_time, 'is_closed': is_closed}, None


@booking_action()
def update_operating_hours(venue_id: int, hours: list, user_id: int) -> list:
    """
    Replace the hours for the given weekdays.

    Args:
        venue_id: Venue ID
        hours: List of {day_of_week, open_time, close_time, is_closed}
        user_id: Acting user (must own the venue)

    Returns:
        Tagged result with the full weekly hours
    """
    if not get_venue_by_id(venue_id):
        raise BookingError(MESSAGES['venue_not_found'], ErrorKind.NOT_FOUND)
    if not user_owns_venue(user_id, venue_id):
        raise BookingError(MESSAGES['venue_forbidden'], ErrorKind.UNAUTHORIZED)

    if hours is not None and not isinstance(hours, list):
        raise BookingError(MESSAGES['no_updates'])

    normalized = []
    for entry in hours or []:
        clean, error = _validate_hours_entry(entry)
        if error:
            raise BookingError(error)
        normalized.append(clean)

    if not normalized:
        raise BookingError(MESSAGES['no_updates'])

    db = get_db()
    try:
        for entry in normalized:
            db.execute('''
                INSERT INTO venue_operating_hours (venue_id, day_of_week, open_time, close_time, is_closed)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(venue_id, day_of_week) DO UPDATE SET
                    open_time = excluded.open_time,
                    close_time = excluded.close_time,
                    is_closed = excluded.is_closed
            ''', (venue_id, entry['day_of_week'], entry['open_time'],
                  entry['close_time'], int(entry['is_closed'])))
        db.commit()
    except Exception:
        db.rollback()
        raise

    return get_operating_hours(venue_id)


def check_bookings_outside_hours(venue_id: int, day: int, open_time: str,
                                 close_time: str, is_closed: bool = False,
                                 today=None) -> list:
    """
    Find upcoming live bookings that proposed hours would leave stranded.

    Args:
        venue_id: Venue ID
        day: Day of week (0 = Sunday)
        open_time: Proposed opening time (HH:MM)
        close_time: Proposed closing time (HH:MM)
        is_closed: Proposed closed flag for the whole day
        today: Reference date (defaults to the venue's today)

    Returns:
        List of booking dicts with an added 'reason'
    """
    if today is None:
        settings = get_booking_settings(venue_id) or DEFAULT_BOOKING_SETTINGS
        today = get_today(settings.get('timezone'))

    placeholders = ', '.join('?' for _ in NON_TERMINAL_STATUSES)
    db = get_db()
    rows = db.execute(f'''
        SELECT id, guest_name, booking_date, start_time, end_time, status, confirmation_code
        FROM bookings
        WHERE venue_id = ?
          AND booking_date >= ?
          AND CAST(strftime('%w', booking_date) AS INTEGER) = ?
          AND status IN ({placeholders})
        ORDER BY booking_date, start_time
    ''', [venue_id, today.isoformat(), day, *NON_TERMINAL_STATUSES]).fetchall()

    affected = []
    for row in rows:
        booking = dict(row)
        if is_closed:
            booking['reason'] = 'Venue would be closed on this day'
        elif time_to_minutes(booking['start_time']) < time_to_minutes(open_time):
            booking['reason'] = f'Starts before opening time ({open_time})'
        elif time_to_minutes(booking['end_time']) > time_to_minutes(close_time):
            booking['reason'] = f'Ends after closing time ({close_time})'
        else:
            continue
        affected.append(booking)

    return affected
