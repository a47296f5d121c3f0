"""
Database seed data.
Demo venue population for fresh database installations.
"""

from werkzeug.security import generate_password_hash

# Sunday = 0 ... Saturday = 6
DEFAULT_OPERATING_HOURS = [
    (0, '11:00', '21:00'),
    (1, '10:00', '22:00'),
    (2, '10:00', '22:00'),
    (3, '10:00', '22:00'),
    (4, '10:00', '22:00'),
    (5, '10:00', '23:00'),
    (6, '11:00', '23:00'),
]


def seed_database(db):
    """Insert initial seed data."""

    # 1. Owner account
    cursor = db.execute('''
        INSERT INTO users (username, email, password_hash, full_name, active)
        VALUES (?, ?, ?, ?, 1)
    ''', ('admin', 'admin@meepletables.local', generate_password_hash('admin123'), 'Venue Owner'))
    owner_id = cursor.lastrowid

    # 2. Demo venue
    cursor = db.execute('''
        INSERT INTO venues (name, slug, owner_id)
        VALUES (?, ?, ?)
    ''', ('Meeple Corner', 'meeple-corner', owner_id))
    venue_id = cursor.lastrowid

    # 3. Tables (label, capacity, active)
    tables_data = [
        ('T1', 2, 1),
        ('T2', 4, 1),
        ('T3', 4, 1),
        ('T4', 6, 1),
        ('T5', 8, 0),
    ]

    for label, capacity, active in tables_data:
        db.execute('''
            INSERT INTO venue_tables (venue_id, label, capacity, active)
            VALUES (?, ?, ?, ?)
        ''', (venue_id, label, capacity, active))

    # 4. Game library (title, copies, min players, max players, longest play time)
    games_data = [
        ('Catan', 2, 3, 4, 120),
        ('Azul', 1, 2, 4, 45),
        ('Gloomhaven', None, 1, 4, None),
    ]

    for title, copies, min_players, max_players, max_time in games_data:
        db.execute('''
            INSERT INTO games (venue_id, title, copies_in_rotation, min_players, max_players,
                               max_time_minutes)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (venue_id, title, copies, min_players, max_players, max_time))

    # 5. Operating hours
    for day_of_week, open_time, close_time in DEFAULT_OPERATING_HOURS:
        db.execute('''
            INSERT INTO venue_operating_hours (venue_id, day_of_week, open_time, close_time, is_closed)
            VALUES (?, ?, ?, ?, 0)
        ''', (venue_id, day_of_week, open_time, close_time))
