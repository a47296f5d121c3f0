"""
Database connection management.
Handles per-context connections, initialization, and teardown.
"""

import logging
import os
import sqlite3
from flask import g, current_app

logger = logging.getLogger(__name__)


def get_db():
    """
    Get the database connection for the current application context.

    Each application context (request, CLI command, worker thread) gets its
    own connection, so concurrent requests never share a cursor.

    Returns:
        sqlite3.Connection: Database connection object
    """
    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/meeple_tables.db')
        g.db = sqlite3.connect(db_path, timeout=10)
        g.db.row_factory = sqlite3.Row
        # Enable foreign key constraints
        g.db.execute('PRAGMA foreign_keys = ON')
        # Enable WAL mode for better concurrency
        g.db.execute('PRAGMA journal_mode = WAL')
    return g.db


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    db = g.pop('db', None)
    if db is not None:
        db.close()


def init_db(seed: bool = True):
    """
    Initialize database: drop existing tables, create new schema, insert seed data.
    WARNING: This will delete all existing data!

    Args:
        seed: Insert the demo venue, tables, games and admin user
    """
    from database.schema import drop_tables, create_tables, create_indexes
    from database.seed import seed_database

    db_dir = os.path.dirname(current_app.config.get('DATABASE_PATH') or '')
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    db = get_db()

    drop_tables(db)
    create_tables(db)
    create_indexes(db)

    if seed:
        seed_database(db)

    db.commit()
    logger.info('Database initialized at %s', current_app.config.get('DATABASE_PATH'))
