"""
Venue model.
Data access for venues and their bookable resources (tables and games).
"""

from database import get_db
from typing import Optional


# =============================================================================
# VENUES
# =============================================================================

def get_venue_by_id(venue_id: int) -> Optional[dict]:
    """
    Get venue by ID.

    Args:
        venue_id: Venue ID

    Returns:
        Venue dict or None if not found
    """
    db = get_db()
    row = db.execute('SELECT * FROM venues WHERE id = ?', (venue_id,)).fetchone()
    return dict(row) if row else None


def get_venue_by_slug(slug: str) -> Optional[dict]:
    """Get an active venue by its public slug."""
    db = get_db()
    row = db.execute(
        'SELECT * FROM venues WHERE slug = ? AND active = 1', (slug,)
    ).fetchone()
    return dict(row) if row else None


def user_owns_venue(user_id: int, venue_id: int) -> bool:
    """True if the user is the venue's owner."""
    venue = get_venue_by_id(venue_id)
    return bool(venue and user_id is not None and venue['owner_id'] == int(user_id))


def create_venue(name: str, slug: str, owner_id: int) -> int:
    """
    Create a venue.

    Args:
        name: Display name
        slug: Unique URL slug for the public booking page
        owner_id: Owning user ID

    Returns:
        New venue ID
    """
    db = get_db()
    cursor = db.cursor()
    try:
        cursor.execute('''
            INSERT INTO venues (name, slug, owner_id) VALUES (?, ?, ?)
        ''', (name, slug, owner_id))
        db.commit()
        return cursor.lastrowid
    except Exception:
        db.rollback()
        raise


# =============================================================================
# TABLES
# =============================================================================

def get_table_by_id(table_id: int) -> Optional[dict]:
    """Get a venue table by ID."""
    db = get_db()
    row = db.execute('SELECT * FROM venue_tables WHERE id = ?', (table_id,)).fetchone()
    return dict(row) if row else None


def get_tables_for_venue(venue_id: int, active_only: bool = True) -> list:
    """
    Get a venue's tables ordered by label.

    Args:
        venue_id: Venue ID
        active_only: Only return active tables

    Returns:
        List of table dicts
    """
    db = get_db()
    query = 'SELECT * FROM venue_tables WHERE venue_id = ?'
    if active_only:
        query += ' AND active = 1'
    query += ' ORDER BY label'
    return [dict(row) for row in db.execute(query, (venue_id,)).fetchall()]


def create_table(venue_id: int, label: str, capacity: int, active: bool = True) -> int:
    """Create a table in a venue and return its ID."""
    db = get_db()
    cursor = db.cursor()
    try:
        cursor.execute('''
            INSERT INTO venue_tables (venue_id, label, capacity, active)
            VALUES (?, ?, ?, ?)
        ''', (venue_id, label, capacity, 1 if active else 0))
        db.commit()
        return cursor.lastrowid
    except Exception:
        db.rollback()
        raise


def set_table_active(table_id: int, active: bool) -> bool:
    """Activate or deactivate a table."""
    db = get_db()
    cursor = db.execute(
        'UPDATE venue_tables SET active = ? WHERE id = ?', (1 if active else 0, table_id)
    )
    db.commit()
    return cursor.rowcount > 0


# =============================================================================
# GAMES
# =============================================================================

def get_game_by_id(game_id: int) -> Optional[dict]:
    """Get a game by ID."""
    db = get_db()
    row = db.execute('SELECT * FROM games WHERE id = ?', (game_id,)).fetchone()
    return dict(row) if row else None


def get_games_for_venue(venue_id: int) -> list:
    """Get a venue's game library ordered by title."""
    db = get_db()
    rows = db.execute(
        'SELECT * FROM games WHERE venue_id = ? ORDER BY title', (venue_id,)
    ).fetchall()
    return [dict(row) for row in rows]