"""
Waitlist model.
CRUD operations for guests waiting on a full date or time.
"""

from database import get_db
from typing import Optional, List

from utils.datetime_helpers import get_today, normalize_time, parse_date
from utils.messages import MESSAGES
from utils.validators import parse_positive_int, sanitize_input, validate_email, validate_phone


# =============================================================================
# STATUS CONSTANTS
# =============================================================================

WAITLIST_STATUSES = ('waiting', 'notified', 'converted', 'cancelled', 'expired')

# Entries in these statuses are closed and cannot change again
CLOSED_STATUSES = ('converted', 'cancelled', 'expired')


# =============================================================================
# CREATE
# =============================================================================

def add_to_waitlist(venue_id: int, data: dict, today=None) -> int:
    """
    Add a guest to a venue's waitlist.

    Args:
        venue_id: Venue ID
        data: Entry data with keys:
            - guest_name (required)
            - guest_email / guest_phone (at least one)
            - requested_date (required, YYYY-MM-DD, today or later)
            - party_size (required)
            - requested_time (optional, HH:MM)
            - game_id (optional)
            - notes (optional)
        today: Reference date (defaults to today)

    Returns:
        int: New entry ID

    Raises:
        ValueError: If validation fails
    """
    guest_name = sanitize_input(data.get('guest_name'), 200)
    if not guest_name:
        raise ValueError('Guest name is required')

    email = sanitize_input(data.get('guest_email'))
    phone = sanitize_input(data.get('guest_phone'))
    if not email and not phone:
        raise ValueError('At least one contact method (email or phone) is required')
    if email and not validate_email(email):
        raise ValueError('Invalid email address format')
    if phone and not validate_phone(phone):
        raise ValueError('Invalid phone number format')

    requested_date = parse_date(data.get('requested_date'))
    if requested_date is None:
        raise ValueError('Invalid date format. Use YYYY-MM-DD')
    if requested_date < (today or get_today()):
        raise ValueError('Requested date must be today or later')

    party_size = parse_positive_int(data.get('party_size'))
    if party_size is None:
        raise ValueError('Party size must be a positive whole number')

    requested_time = None
    if data.get('requested_time'):
        requested_time = normalize_time(data['requested_time'])
        if not requested_time:
            raise ValueError('Invalid time format. Use HH:MM')

    db = get_db()
    cursor = db.cursor()
    try:
        cursor.execute('''
            INSERT INTO waitlist (
                venue_id, guest_name, guest_email, guest_phone, party_size,
                requested_date, requested_time, game_id, notes, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'waiting')
        ''', (
            venue_id, guest_name, email, phone, party_size,
            requested_date.isoformat(), requested_time,
            parse_positive_int(data.get('game_id')),
            sanitize_input(data.get('notes'), 1000)
        ))
        db.commit()
        return cursor.lastrowid
    except Exception:
        db.rollback()
        raise


# =============================================================================
# READ OPERATIONS
# =============================================================================

def get_waitlist(venue_id: int, requested_date: str, include_all: bool = False) -> List[dict]:
    """
    Get waitlist entries for a venue and date, oldest first.

    Args:
        venue_id: Venue ID
        requested_date: Date string (YYYY-MM-DD)
        include_all: If True, include all statuses. If False, only open ones.

    Returns:
        list: Entry dicts with game title
    """
    status_filter = '' if include_all else "AND w.status IN ('waiting', 'notified')"

    db = get_db()
    rows = db.execute(f'''
        SELECT w.*, g.title AS game_title
        FROM waitlist w
        LEFT JOIN games g ON w.game_id = g.id
        WHERE w.venue_id = ? AND w.requested_date = ?
        {status_filter}
        ORDER BY w.created_at ASC, w.id ASC
    ''', (venue_id, requested_date)).fetchall()
    return [dict(row) for row in rows]


def get_waitlist_entry(entry_id: int) -> Optional[dict]:
    """Get a single waitlist entry by ID."""
    db = get_db()
    row = db.execute('SELECT * FROM waitlist WHERE id = ?', (entry_id,)).fetchone()
    return dict(row) if row else None


# =============================================================================
# UPDATE
# =============================================================================

def update_waitlist_status(entry_id: int, status: str, booking_id: int = None) -> bool:
    """
    Update the status of a waitlist entry.

    Args:
        entry_id: Entry ID
        status: New status
        booking_id: Booking created for the guest (when converting)

    Returns:
        bool: True if updated

    Raises:
        ValueError: If invalid status or the entry is already closed
    """
    if status not in WAITLIST_STATUSES:
        raise ValueError(MESSAGES['waitlist_invalid_status'])

    entry = get_waitlist_entry(entry_id)
    if not entry:
        raise ValueError(MESSAGES['waitlist_not_found'])
    if entry['status'] in CLOSED_STATUSES:
        raise ValueError('This waitlist entry has already been closed')

    db = get_db()
    try:
        db.execute('''
            UPDATE waitlist
            SET status = ?,
                notified_at = CASE WHEN ? = 'notified' THEN CURRENT_TIMESTAMP ELSE notified_at END,
                converted_booking_id = COALESCE(?, converted_booking_id),
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (status, status, booking_id, entry_id))
        db.commit()
    except Exception:
        db.rollback()
        raise
    return True


def expire_old_entries(venue_id: int, today=None) -> int:
    """
    Expire open entries whose requested date has passed.

    Returns:
        int: Number of entries expired
    """
    db = get_db()
    cursor = db.execute('''
        UPDATE waitlist
        SET status = 'expired', updated_at = CURRENT_TIMESTAMP
        WHERE venue_id = ?
          AND requested_date < ?
          AND status IN ('waiting', 'notified')
    ''', (venue_id, (today or get_today()).isoformat()))
    db.commit()
    return cursor.rowcount
