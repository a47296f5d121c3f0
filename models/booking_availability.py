"""
Booking availability.

Interval-overlap checks for tables and finite game copies, plus the slot grid
used by the guest booking page. Two intervals overlap when
existing.start < query.end AND existing.end > query.start, so back-to-back
bookings (one ends 19:00, the next starts 19:00) never conflict.

Only non-terminal bookings (pending, confirmed, arrived, seated) hold a table
or a game copy.
"""

from datetime import timedelta

from flask import current_app

from database import get_db
from models.booking_settings import get_hours_for_date, get_or_create_booking_settings
from models.booking_state import NON_TERMINAL_STATUSES
from models.venue import get_game_by_id, get_table_by_id, get_tables_for_venue
from utils.datetime_helpers import (
    get_now, minutes_to_time, normalize_time, parse_date, time_to_minutes
)
from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind, booking_action
from utils.validators import parse_positive_int

_STATUS_PLACEHOLDERS = ', '.join('?' for _ in NON_TERMINAL_STATUSES)


def _date_str(value) -> str:
    return value if isinstance(value, str) else value.isoformat()


# =============================================================================
# TABLES
# =============================================================================

def find_overlapping_bookings(table_id: int, booking_date, start_time: str, end_time: str,
                              exclude_id: int = None, before_id: int = None) -> list:
    """
    Live bookings on a table whose interval overlaps [start_time, end_time).

    Args:
        table_id: Table ID
        booking_date: Date (YYYY-MM-DD or date)
        start_time: Window start (HH:MM)
        end_time: Window end (HH:MM)
        exclude_id: Booking to ignore (the one being amended or just inserted)
        before_id: Only consider bookings with a lower ID (inserted earlier)

    Returns:
        List of booking dicts ordered by start time
    """
    query = f'''
        SELECT id, guest_name, start_time, end_time, status, game_id
        FROM bookings
        WHERE table_id = ?
          AND booking_date = ?
          AND status IN ({_STATUS_PLACEHOLDERS})
          AND start_time < ?
          AND end_time > ?
    '''
    params = [table_id, _date_str(booking_date), *NON_TERMINAL_STATUSES, end_time, start_time]

    if exclude_id is not None:
        query += ' AND id != ?'
        params.append(exclude_id)
    if before_id is not None:
        query += ' AND id < ?'
        params.append(before_id)

    query += ' ORDER BY start_time, id'

    db = get_db()
    return [dict(row) for row in db.execute(query, params).fetchall()]


def check_table_availability(table_id: int, booking_date, start_time: str, end_time: str,
                             exclude_id: int = None) -> dict:
    """
    Check whether a table is free for a time window.

    Args:
        table_id: Table ID
        booking_date: Date (YYYY-MM-DD or date)
        start_time: Window start (HH:MM)
        end_time: Window end (HH:MM)
        exclude_id: Booking to ignore (used when amending)

    Returns:
        Dict with 'available' and 'conflict' (guest_name, start_time,
        end_time of the first overlapping booking, or None)
    """
    overlapping = find_overlapping_bookings(
        table_id, booking_date, start_time, end_time, exclude_id=exclude_id
    )
    if not overlapping:
        return {'available': True, 'conflict': None}

    first = overlapping[0]
    return {
        'available': False,
        'conflict': {
            'id': first['id'],
            'guest_name': first['guest_name'],
            'start_time': first['start_time'],
            'end_time': first['end_time'],
        }
    }


def sort_tables_by_fit(tables: list, party_size: int) -> list:
    """
    Order tables for a party: exact capacity first, then one seat spare,
    then by ascending capacity.
    """
    def fit_key(table):
        capacity = table['capacity']
        return (
            0 if capacity == party_size else 1,
            0 if capacity == party_size + 1 else 1,
            capacity,
            table.get('label') or '',
        )
    return sorted(tables, key=fit_key)


@booking_action()
def get_available_tables(venue_id: int, booking_date, start_time: str, end_time: str,
                         party_size) -> list:
    """
    Active tables that seat the party and are free for the window.

    Args:
        venue_id: Venue ID
        booking_date: Date (YYYY-MM-DD)
        start_time: Window start (HH:MM)
        end_time: Window end (HH:MM)
        party_size: Number of guests

    Returns:
        Tagged result with table dicts sorted best fit first
    """
    day = parse_date(booking_date)
    if day is None:
        raise BookingError(MESSAGES['date_invalid'])
    start = normalize_time(start_time or '')
    end = normalize_time(end_time or '')
    if not start:
        raise BookingError(MESSAGES['start_time_invalid'])
    if not end:
        raise BookingError(MESSAGES['end_time_invalid'])
    if time_to_minutes(end) <= time_to_minutes(start):
        raise BookingError(MESSAGES['end_before_start'])
    party = parse_positive_int(party_size)
    if party is None:
        raise BookingError(MESSAGES['party_size_invalid'])

    candidates = [t for t in get_tables_for_venue(venue_id) if t['capacity'] >= party]
    free = [
        t for t in candidates
        if check_table_availability(t['id'], day, start, end)['available']
    ]
    return sort_tables_by_fit(free, party)


# =============================================================================
# GAME COPIES
# =============================================================================

def count_game_reservations(game_id: int, booking_date, start_time: str, end_time: str,
                            exclude_id: int = None, before_id: int = None) -> int:
    """
    Number of live bookings holding a copy of the game during the window.

    Args:
        game_id: Game ID
        booking_date: Date (YYYY-MM-DD or date)
        start_time: Window start (HH:MM)
        end_time: Window end (HH:MM)
        exclude_id: Booking to ignore
        before_id: Only count bookings with a lower ID

    Returns:
        Count of overlapping bookings
    """
    query = f'''
        SELECT COUNT(*)
        FROM bookings
        WHERE game_id = ?
          AND booking_date = ?
          AND status IN ({_STATUS_PLACEHOLDERS})
          AND start_time < ?
          AND end_time > ?
    '''
    params = [game_id, _date_str(booking_date), *NON_TERMINAL_STATUSES, end_time, start_time]

    if exclude_id is not None:
        query += ' AND id != ?'
        params.append(exclude_id)
    if before_id is not None:
        query += ' AND id < ?'
        params.append(before_id)

    db = get_db()
    return db.execute(query, params).fetchone()[0]


def game_copies(game: dict) -> int:
    """Copies in rotation; an unset count means a single copy."""
    copies = game.get('copies_in_rotation')
    return 1 if copies is None else copies


def check_game_availability(game_id: int, booking_date, start_time: str, end_time: str,
                            exclude_id: int = None) -> dict:
    """
    Check whether a copy of a game is free for a time window.

    Args:
        game_id: Game ID
        booking_date: Date (YYYY-MM-DD or date)
        start_time: Window start (HH:MM)
        end_time: Window end (HH:MM)
        exclude_id: Booking to ignore

    Returns:
        Dict with available, total_copies, reserved_count, title

    Raises:
        BookingError: NOT_FOUND if the game does not exist
    """
    game = get_game_by_id(game_id)
    if not game:
        raise BookingError(MESSAGES['game_not_found'], ErrorKind.NOT_FOUND)

    total = game_copies(game)
    reserved = count_game_reservations(game_id, booking_date, start_time, end_time, exclude_id)

    return {
        'available': reserved < total,
        'total_copies': total,
        'reserved_count': reserved,
        'title': game['title'],
    }


# =============================================================================
# SLOT GRID
# =============================================================================

def _bookings_by_table(table_ids: list, booking_date: str) -> dict:
    """Live bookings for the given tables on one date, grouped by table."""
    grouped = {table_id: [] for table_id in table_ids}
    if not table_ids:
        return grouped

    db = get_db()
    rows = db.execute(f'''
        SELECT table_id, start_time, end_time
        FROM bookings
        WHERE booking_date = ?
          AND table_id IN ({", ".join("?" for _ in table_ids)})
          AND status IN ({_STATUS_PLACEHOLDERS})
    ''', [booking_date, *table_ids, *NON_TERMINAL_STATUSES]).fetchall()

    for row in rows:
        grouped[row['table_id']].append(
            (time_to_minutes(row['start_time']), time_to_minutes(row['end_time']))
        )
    return grouped


def classify_slot(available_count: int, threshold: int) -> str:
    """available / limited / unavailable for a count of free tables."""
    if available_count == 0:
        return 'unavailable'
    if available_count <= threshold:
        return 'limited'
    return 'available'


@booking_action()
def get_time_slots(venue_id: int, booking_date, party_size, duration_minutes=None,
                   now=None, limited_threshold: int = None) -> list:
    """
    Bookable start times for a date and party size.

    Start times are spaced SLOT_INTERVAL_MINUTES apart across the venue's
    opening hours. A table counts as free for a slot when no live booking
    overlaps the slot widened by the venue's buffer on both sides.

    Args:
        venue_id: Venue ID
        booking_date: Date (YYYY-MM-DD)
        party_size: Number of guests
        duration_minutes: Visit length (defaults to the venue default)
        now: Current moment (defaults to now in the venue timezone)
        limited_threshold: Free-table count at or below which a slot is
            'limited' (defaults to LIMITED_SLOT_THRESHOLD)

    Returns:
        Tagged result with a list of slot dicts: time, end_time, status,
        available_count, total_tables, tables (IDs, best fit first)
    """
    settings = get_or_create_booking_settings(venue_id)
    if now is None:
        now = get_now(settings.get('timezone'))

    day = parse_date(booking_date)
    if day is None:
        raise BookingError(MESSAGES['date_invalid'])
    today = now.date()
    if day < today:
        raise BookingError(MESSAGES['date_past'])
    if day > today + timedelta(days=settings['max_advance_days']):
        raise BookingError(MESSAGES['date_too_far'].format(days=settings['max_advance_days']))

    party = parse_positive_int(party_size)
    if party is None:
        raise BookingError(MESSAGES['party_size_invalid'])

    if duration_minutes in (None, ''):
        duration = settings['default_duration_minutes']
    else:
        duration = parse_positive_int(duration_minutes)
        if duration is None:
            raise BookingError(MESSAGES['duration_invalid'])

    hours = get_hours_for_date(venue_id, day)
    if hours['is_closed']:
        return []

    interval = current_app.config.get('SLOT_INTERVAL_MINUTES', 30)
    if limited_threshold is None:
        limited_threshold = current_app.config.get('LIMITED_SLOT_THRESHOLD', 2)
    buffer = settings['buffer_minutes']

    tables = sort_tables_by_fit(
        [t for t in get_tables_for_venue(venue_id) if t['capacity'] >= party], party
    )
    occupied = _bookings_by_table([t['id'] for t in tables], day.isoformat())

    open_minutes = time_to_minutes(hours['open_time'])
    close_minutes = time_to_minutes(hours['close_time'])
    earliest = None
    if day == today:
        earliest = now.hour * 60 + now.minute + settings['min_advance_hours'] * 60

    slots = []
    for start in range(open_minutes, close_minutes, interval):
        end = start + duration
        if end > close_minutes:
            break
        if earliest is not None and start < earliest:
            continue

        free = [
            t['id'] for t in tables
            if not any(
                booked_start < end + buffer and booked_end > start - buffer
                for booked_start, booked_end in occupied[t['id']]
            )
        ]
        slots.append({
            'time': minutes_to_time(start),
            'end_time': minutes_to_time(end),
            'status': classify_slot(len(free), limited_threshold),
            'available_count': len(free),
            'total_tables': len(tables),
            'tables': free,
        })

    return slots


# =============================================================================
# ADMISSION GUARDS
# =============================================================================

def load_bookable_table(table_id, venue_id: int, party_size: int) -> dict:
    """
    Fetch a table and check it can take the party.

    Raises:
        BookingError: NOT_FOUND (missing or inactive), VALIDATION (other
            venue) or CAPACITY (too small)
    """
    table = get_table_by_id(parse_positive_int(table_id) or 0)
    if not table:
        raise BookingError(MESSAGES['table_not_found'], ErrorKind.NOT_FOUND)
    if not table['active']:
        raise BookingError(MESSAGES['table_unavailable_for_booking'], ErrorKind.NOT_FOUND)
    if str(table['venue_id']) != str(venue_id):
        raise BookingError(MESSAGES['table_wrong_venue'], ErrorKind.VALIDATION)
    if table['capacity'] < party_size:
        raise BookingError(
            MESSAGES['table_capacity'].format(capacity=table['capacity']), ErrorKind.CAPACITY
        )
    return table


def load_venue_game(game_id, venue_id: int) -> dict:
    """
    Fetch a game from the venue's library.

    Raises:
        BookingError: NOT_FOUND (missing) or VALIDATION (other venue)
    """
    game = get_game_by_id(parse_positive_int(game_id) or 0)
    if not game:
        raise BookingError(MESSAGES['game_not_found'], ErrorKind.NOT_FOUND)
    if str(game['venue_id']) != str(venue_id):
        raise BookingError(MESSAGES['game_wrong_venue'], ErrorKind.VALIDATION)
    return game


def table_conflict_message(conflict: dict) -> str:
    """Conflict message naming the booking that holds the table."""
    return MESSAGES['table_conflict'] + MESSAGES['table_conflict_detail'].format(**conflict)


def game_exhausted_message(availability: dict) -> str:
    """Conflict message with copy counts."""
    reserved = availability['reserved_count']
    return MESSAGES['game_exhausted'].format(
        total=availability['total_copies'],
        title=availability['title'],
        reserved=reserved,
        noun='copy' if reserved == 1 else 'copies',
    )


def ensure_table_available(table_id: int, booking_date, start_time: str, end_time: str,
                           exclude_id: int = None, message: str = None) -> None:
    """
    Raise CONFLICT if the table is taken for the window.

    Args:
        message: Replaces the default message naming the conflicting booking
    """
    availability = check_table_availability(table_id, booking_date, start_time, end_time, exclude_id)
    if not availability['available']:
        raise BookingError(
            message or table_conflict_message(availability['conflict']), ErrorKind.CONFLICT
        )


def ensure_game_available(game_id: int, booking_date, start_time: str, end_time: str,
                          exclude_id: int = None, message_key: str = None) -> None:
    """
    Raise CONFLICT if every copy of the game is taken for the window.

    Args:
        message_key: MESSAGES key formatted with the game title instead of
            the default message with copy counts
    """
    availability = check_game_availability(game_id, booking_date, start_time, end_time, exclude_id)
    if availability['available']:
        return
    if message_key:
        raise BookingError(MESSAGES[message_key].format(title=availability['title']), ErrorKind.CONFLICT)
    raise BookingError(game_exhausted_message(availability), ErrorKind.CONFLICT)
