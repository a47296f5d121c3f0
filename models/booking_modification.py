"""
Booking modification history.
Records status changes and amendments for the staff audit trail. Logging is
best-effort: a failure here is logged and never fails the booking operation.
"""

import json
import logging

from database import get_db

logger = logging.getLogger(__name__)

MODIFICATION_TYPES = (
    'status_change',
    'reschedule',
    'table_change',
    'party_size',
    'game_change',
    'guest_info',
    'notes',
    'general',
)

# Checked in order; the first group touched by an update names it
_TYPE_FIELDS = (
    ('reschedule', ('booking_date', 'start_time', 'end_time')),
    ('table_change', ('table_id',)),
    ('party_size', ('party_size',)),
    ('game_change', ('game_id',)),
    ('guest_info', ('guest_name', 'guest_email', 'guest_phone')),
    ('notes', ('guest_notes', 'staff_notes')),
)


def determine_modification_type(changed_fields) -> str:
    """
    Classify an amendment by the most significant field it touches.

    Args:
        changed_fields: Iterable of changed column names

    Returns:
        One of MODIFICATION_TYPES
    """
    changed = set(changed_fields)
    for modification_type, fields in _TYPE_FIELDS:
        if changed.intersection(fields):
            return modification_type
    return 'general'


def diff_fields(before: dict, updates: dict) -> dict:
    """Field -> {'old', 'new'} for values that actually changed."""
    return {
        field: {'old': before.get(field), 'new': value}
        for field, value in updates.items()
        if before.get(field) != value
    }


def log_booking_modification(booking_id: int, modification_type: str, field_changes: dict = None,
                             modified_by: int = None, reason: str = None) -> None:
    """
    Append an entry to a booking's modification history.

    Args:
        booking_id: Booking ID
        modification_type: One of MODIFICATION_TYPES
        field_changes: Field -> {'old', 'new'}
        modified_by: Acting user ID (None for guests)
        reason: Free-text reason
    """
    db = get_db()
    try:
        db.execute('''
            INSERT INTO booking_modifications (booking_id, modified_by, modification_type, field_changes, reason)
            VALUES (?, ?, ?, ?, ?)
        ''', (booking_id, modified_by, modification_type,
              json.dumps(field_changes or {}), reason))
        db.commit()
    except Exception:
        db.rollback()
        logger.warning('Failed to log %s for booking %s', modification_type, booking_id, exc_info=True)


def get_booking_modifications(booking_id: int) -> list:
    """
    Get a booking's modification history, oldest first.

    Returns:
        List of dicts with field_changes decoded
    """
    db = get_db()
    rows = db.execute('''
        SELECT m.*, u.username AS modified_by_username
        FROM booking_modifications m
        LEFT JOIN users u ON m.modified_by = u.id
        WHERE m.booking_id = ?
        ORDER BY m.id
    ''', (booking_id,)).fetchall()

    history = []
    for row in rows:
        entry = dict(row)
        entry['field_changes'] = json.loads(entry['field_changes'] or '{}')
        history.append(entry)
    return history
