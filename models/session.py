"""
Session model.
Data access for live table occupancy. A session is open while ended_at is
NULL; walk-ins create sessions without any booking.
"""

import logging
from typing import Optional

from database import get_db

logger = logging.getLogger(__name__)


def get_session_by_id(session_id: int) -> Optional[dict]:
    """Get a session by ID."""
    db = get_db()
    row = db.execute('SELECT * FROM sessions WHERE id = ?', (session_id,)).fetchone()
    return dict(row) if row else None


def get_active_sessions(venue_id: int) -> list:
    """
    Open sessions in a venue with table and game details.

    Args:
        venue_id: Venue ID

    Returns:
        List of session dicts ordered by start
    """
    db = get_db()
    rows = db.execute('''
        SELECT s.*, t.label AS table_label, g.title AS game_title,
               g.max_time_minutes AS game_max_time_minutes,
               b.id AS booking_id, b.guest_name, b.party_size
        FROM sessions s
        JOIN venue_tables t ON s.table_id = t.id
        LEFT JOIN games g ON s.game_id = g.id
        LEFT JOIN bookings b ON b.session_id = s.id
        WHERE s.venue_id = ? AND s.ended_at IS NULL
        ORDER BY s.started_at
    ''', (venue_id,)).fetchall()
    return [dict(row) for row in rows]


def create_session(venue_id: int, table_id: int, game_id: int = None,
                   started_at: str = None) -> int:
    """
    Open a session on a table.

    Args:
        venue_id: Venue ID
        table_id: Table ID
        game_id: Game being played, if any
        started_at: ISO timestamp

    Returns:
        New session ID
    """
    db = get_db()
    cursor = db.cursor()
    try:
        cursor.execute('''
            INSERT INTO sessions (venue_id, table_id, game_id, started_at)
            VALUES (?, ?, ?, COALESCE(?, CURRENT_TIMESTAMP))
        ''', (venue_id, table_id, game_id, started_at))
        db.commit()
        return cursor.lastrowid
    except Exception:
        db.rollback()
        raise


def end_session(session_id: int, ended_at: str = None) -> bool:
    """
    Close a session if it is still open.

    Returns:
        True if the session was open and is now ended
    """
    db = get_db()
    try:
        cursor = db.execute('''
            UPDATE sessions SET ended_at = COALESCE(?, CURRENT_TIMESTAMP)
            WHERE id = ? AND ended_at IS NULL
        ''', (ended_at, session_id))
        db.commit()
        return cursor.rowcount > 0
    except Exception:
        db.rollback()
        raise


def end_all_active_sessions_for_table(table_id: int, ended_at: str = None) -> int:
    """
    Close every open session on a table.

    Returns:
        Number of sessions ended
    """
    db = get_db()
    try:
        cursor = db.execute('''
            UPDATE sessions SET ended_at = COALESCE(?, CURRENT_TIMESTAMP)
            WHERE table_id = ? AND ended_at IS NULL
        ''', (ended_at, table_id))
        db.commit()
    except Exception:
        db.rollback()
        raise

    if cursor.rowcount:
        logger.info('Ended %d stale session(s) on table %s', cursor.rowcount, table_id)
    return cursor.rowcount
