"""
Database schema definitions.
Table creation, indexes, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'booking_modifications',
        'waitlist',
        'bookings',
        'sessions',
        'venue_operating_hours',
        'venue_booking_settings',
        'games',
        'venue_tables',
        'venues',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            last_login TEXT
        )
    ''')

    # 2. Venues and their physical resources
    db.execute('''
        CREATE TABLE venues (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            owner_id INTEGER REFERENCES users(id),
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE venue_tables (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue_id INTEGER NOT NULL REFERENCES venues(id) ON DELETE CASCADE,
            label TEXT NOT NULL,
            capacity INTEGER NOT NULL DEFAULT 4,
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(venue_id, label)
        )
    ''')

    db.execute('''
        CREATE TABLE games (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue_id INTEGER NOT NULL REFERENCES venues(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            copies_in_rotation INTEGER,
            min_players INTEGER,
            max_players INTEGER,
            max_time_minutes INTEGER,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 3. Venue policy
    db.execute('''
        CREATE TABLE venue_booking_settings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue_id INTEGER UNIQUE NOT NULL REFERENCES venues(id) ON DELETE CASCADE,
            bookings_enabled INTEGER DEFAULT 1,
            buffer_minutes INTEGER DEFAULT 15,
            default_duration_minutes INTEGER DEFAULT 120,
            min_advance_hours INTEGER DEFAULT 1,
            max_advance_days INTEGER DEFAULT 30,
            no_show_grace_minutes INTEGER DEFAULT 15,
            deposit_required INTEGER DEFAULT 0,
            deposit_amount_cents INTEGER DEFAULT 0,
            send_confirmation_email INTEGER DEFAULT 1,
            send_reminder_sms INTEGER DEFAULT 0,
            reminder_hours_before INTEGER DEFAULT 2,
            require_email INTEGER DEFAULT 0,
            require_phone INTEGER DEFAULT 0,
            booking_page_message TEXT,
            timezone TEXT DEFAULT 'America/Los_Angeles',
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE venue_operating_hours (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue_id INTEGER NOT NULL REFERENCES venues(id) ON DELETE CASCADE,
            day_of_week INTEGER NOT NULL CHECK(day_of_week BETWEEN 0 AND 6),
            open_time TEXT NOT NULL,
            close_time TEXT NOT NULL,
            is_closed INTEGER DEFAULT 0,
            UNIQUE(venue_id, day_of_week)
        )
    ''')

    # 4. Live occupancy
    db.execute('''
        CREATE TABLE sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue_id INTEGER NOT NULL REFERENCES venues(id),
            table_id INTEGER NOT NULL REFERENCES venue_tables(id),
            game_id INTEGER REFERENCES games(id),
            started_at TEXT NOT NULL,
            ended_at TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 5. Reservations
    db.execute('''
        CREATE TABLE bookings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue_id INTEGER NOT NULL REFERENCES venues(id),
            table_id INTEGER REFERENCES venue_tables(id),
            game_id INTEGER REFERENCES games(id),
            guest_name TEXT NOT NULL,
            guest_email TEXT,
            guest_phone TEXT,
            party_size INTEGER NOT NULL CHECK(party_size > 0),
            booking_date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            source TEXT DEFAULT 'online',
            confirmation_code TEXT UNIQUE NOT NULL,
            guest_notes TEXT,
            staff_notes TEXT,
            confirmed_at TEXT,
            arrived_at TEXT,
            seated_at TEXT,
            completed_at TEXT,
            cancelled_at TEXT,
            no_show_at TEXT,
            cancellation_reason TEXT,
            created_by INTEGER REFERENCES users(id),
            session_id INTEGER REFERENCES sessions(id),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE booking_modifications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id INTEGER NOT NULL REFERENCES bookings(id) ON DELETE CASCADE,
            modified_by INTEGER REFERENCES users(id),
            modification_type TEXT NOT NULL,
            field_changes TEXT,
            reason TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 6. Waitlist
    db.execute('''
        CREATE TABLE waitlist (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue_id INTEGER NOT NULL REFERENCES venues(id),
            guest_name TEXT NOT NULL,
            guest_email TEXT,
            guest_phone TEXT,
            party_size INTEGER NOT NULL DEFAULT 2,
            requested_date TEXT NOT NULL,
            requested_time TEXT,
            game_id INTEGER REFERENCES games(id),
            notes TEXT,
            status TEXT DEFAULT 'waiting' CHECK(status IN ('waiting', 'notified', 'converted', 'cancelled', 'expired')),
            notified_at TEXT,
            converted_booking_id INTEGER REFERENCES bookings(id),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')


def create_indexes(db):
    """Create performance and integrity indexes."""

    # Resources
    db.execute('CREATE INDEX idx_tables_venue ON venue_tables(venue_id, active)')
    db.execute('CREATE INDEX idx_games_venue ON games(venue_id)')

    # Bookings
    db.execute('CREATE INDEX idx_bookings_table_date ON bookings(table_id, booking_date)')
    db.execute('CREATE INDEX idx_bookings_game_date ON bookings(game_id, booking_date)')
    db.execute('CREATE INDEX idx_bookings_venue_date ON bookings(venue_id, booking_date, status)')
    db.execute('CREATE INDEX idx_bookings_session ON bookings(session_id)')

    # Two live bookings may never start on the same table at the same minute.
    # Concurrent inserts for that case surface as IntegrityError.
    db.execute('''
        CREATE UNIQUE INDEX idx_bookings_table_slot
        ON bookings(table_id, booking_date, start_time)
        WHERE status NOT IN ('completed', 'no_show', 'cancelled_by_guest', 'cancelled_by_venue')
    ''')

    # Sessions
    db.execute('CREATE INDEX idx_sessions_table_open ON sessions(table_id) WHERE ended_at IS NULL')
    db.execute('CREATE INDEX idx_sessions_venue ON sessions(venue_id, started_at)')

    # Modifications
    db.execute('CREATE INDEX idx_modifications_booking ON booking_modifications(booking_id)')

    # Waitlist
    db.execute('CREATE INDEX idx_waitlist_date_status ON waitlist(venue_id, requested_date, status)')
