"""
Booking CRUD operations.
Row-level reads and writes for the bookings table. Business rules live in
booking_create, booking_lifecycle and session; these functions only talk to
the database.
"""

from typing import Iterable, Optional

from database import get_db

BOOKING_COLUMNS = (
    'venue_id', 'table_id', 'game_id', 'guest_name', 'guest_email', 'guest_phone',
    'party_size', 'booking_date', 'start_time', 'end_time', 'status', 'source',
    'confirmation_code', 'guest_notes', 'staff_notes', 'confirmed_at', 'arrived_at',
    'seated_at', 'completed_at', 'cancelled_at', 'no_show_at', 'cancellation_reason',
    'created_by', 'session_id',
)


# =============================================================================
# READ
# =============================================================================

def get_booking_by_id(booking_id: int) -> Optional[dict]:
    """
    Get booking by ID with table label and game title.

    Args:
        booking_id: Booking ID

    Returns:
        Booking dict or None if not found
    """
    db = get_db()
    row = db.execute('''
        SELECT b.*, t.label AS table_label, t.capacity AS table_capacity,
               g.title AS game_title
        FROM bookings b
        LEFT JOIN venue_tables t ON b.table_id = t.id
        LEFT JOIN games g ON b.game_id = g.id
        WHERE b.id = ?
    ''', (booking_id,)).fetchone()
    return dict(row) if row else None


def get_booking_by_code(confirmation_code: str) -> Optional[dict]:
    """Get booking by its confirmation code (exact match)."""
    db = get_db()
    row = db.execute(
        'SELECT * FROM bookings WHERE confirmation_code = ?', (confirmation_code,)
    ).fetchone()
    return dict(row) if row else None


def get_booking_by_session(session_id: int) -> Optional[dict]:
    """Get the booking linked to an occupancy session."""
    db = get_db()
    row = db.execute(
        'SELECT * FROM bookings WHERE session_id = ? ORDER BY id DESC LIMIT 1', (session_id,)
    ).fetchone()
    return dict(row) if row else None


# =============================================================================
# WRITE
# =============================================================================

def insert_booking(record: dict) -> int:
    """
    Insert a booking row.

    Args:
        record: Column -> value (keys outside BOOKING_COLUMNS are ignored)

    Returns:
        New booking ID

    Raises:
        sqlite3.IntegrityError: Confirmation code or table slot already taken
    """
    columns = [c for c in BOOKING_COLUMNS if c in record]
    db = get_db()
    cursor = db.cursor()
    try:
        cursor.execute(f'''
            INSERT INTO bookings ({", ".join(columns)})
            VALUES ({", ".join("?" for _ in columns)})
        ''', [record[c] for c in columns])
        db.commit()
        return cursor.lastrowid
    except Exception:
        db.rollback()
        raise


def update_booking_fields(booking_id: int, fields: dict,
                          expected_statuses: Iterable[str] = None) -> bool:
    """
    Update booking columns, optionally only while the status is unchanged.

    Args:
        booking_id: Booking ID
        fields: Column -> new value
        expected_statuses: If given, the row is only updated while its status
            is one of these (compare-and-set against concurrent transitions)

    Returns:
        True if a row was updated

    Raises:
        sqlite3.IntegrityError: Update collides with another live booking slot
    """
    columns = [c for c in BOOKING_COLUMNS if c in fields]
    if not columns:
        return False

    query = f'''
        UPDATE bookings
        SET {", ".join(f"{c} = ?" for c in columns)}, updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    '''
    values = [fields[c] for c in columns] + [booking_id]

    if expected_statuses:
        expected_statuses = tuple(expected_statuses)
        query += f' AND status IN ({", ".join("?" for _ in expected_statuses)})'
        values.extend(expected_statuses)

    db = get_db()
    try:
        cursor = db.execute(query, values)
        db.commit()
        return cursor.rowcount > 0
    except Exception:
        db.rollback()
        raise


def delete_booking(booking_id: int) -> bool:
    """
    Physically delete a booking.
    Only used to roll back a creation that lost a concurrent race.
    """
    db = get_db()
    try:
        cursor = db.execute('DELETE FROM bookings WHERE id = ?', (booking_id,))
        db.commit()
        return cursor.rowcount > 0
    except Exception:
        db.rollback()
        raise
