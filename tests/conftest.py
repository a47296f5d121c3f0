"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.
"""

import os
import pytest
import tempfile
from datetime import datetime

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'meeple_tables_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH

# Seed data IDs (see database/seed.py)
ADMIN_ID = 1
VENUE_ID = 1
TABLE_T1, TABLE_T2, TABLE_T3, TABLE_T4, TABLE_T5 = 1, 2, 3, 4, 5
GAME_CATAN, GAME_AZUL, GAME_GLOOMHAVEN = 1, 2, 3

# Fixed clock for model tests: Monday noon, booking the next day
NOW = datetime(2030, 6, 3, 12, 0)
BOOKING_DATE = '2030-06-04'

NOT_FOUND_MESSAGE = 'Reservation not found. Please check your confirmation code and email address.'


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    # Ensure test database path is set
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for suffix in ('', '-wal', '-shm'):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def app():
    """Create test application with isolated database."""
    from app import create_app
    from database import init_db

    # Ensure test database path
    os.environ['DATABASE_PATH'] = TEST_DB_PATH

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = TEST_DB_PATH

    with app.app_context():
        init_db()
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def authenticated_client(app, client):
    """Create authenticated test client."""
    with app.app_context():
        # Login as admin
        client.post('/login', data={
            'username': 'admin',
            'password': 'admin123'
        })
    return client


@pytest.fixture
def booking_params():
    """Factory for valid creation params on the seeded venue."""
    def make(**overrides):
        params = {
            'venue_id': VENUE_ID,
            'table_id': TABLE_T2,
            'guest_name': 'Ada Lovelace',
            'guest_email': 'ada@example.com',
            'guest_phone': '555-123-4567',
            'booking_date': BOOKING_DATE,
            'start_time': '18:00',
            'duration_minutes': 120,
            'party_size': 4,
        }
        params.update(overrides)
        return params
    return make


@pytest.fixture
def make_booking(app, booking_params):
    """Create a booking at the fixed clock and return its row."""
    from models.booking import create_booking

    def make(**overrides):
        result = create_booking(booking_params(**overrides), now=NOW)
        assert result['success'], result
        return result['data']
    return make
