"""
Tests for venue booking settings and operating hours.
"""

from datetime import date

from conftest import VENUE_ID, ADMIN_ID, NOW, BOOKING_DATE


class TestBookingSettings:
    """Tests for settings read and update."""

    def test_defaults_created_on_first_access(self, app):
        from models.booking_settings import get_booking_settings, load_booking_settings

        with app.app_context():
            assert get_booking_settings(VENUE_ID) is None

            result = load_booking_settings(VENUE_ID)

            assert result['success']
            settings = result['data']
            assert settings['bookings_enabled'] is True
            assert settings['buffer_minutes'] == 15
            assert settings['default_duration_minutes'] == 120
            assert settings['min_advance_hours'] == 1
            assert settings['max_advance_days'] == 30
            assert settings['no_show_grace_minutes'] == 15
            assert settings['require_email'] is False
            assert get_booking_settings(VENUE_ID) is not None

    def test_missing_venue(self, app):
        from models.booking_settings import load_booking_settings

        with app.app_context():
            result = load_booking_settings(999)
            assert result == {'success': False, 'error': 'Venue not found.', 'code': 'NOT_FOUND'}

    def test_update_by_owner(self, app):
        from models.booking_settings import update_booking_settings

        with app.app_context():
            result = update_booking_settings(
                VENUE_ID, {'buffer_minutes': 30, 'require_phone': True, 'unknown': 1}, ADMIN_ID
            )

            assert result['success']
            assert result['data']['buffer_minutes'] == 30
            assert result['data']['require_phone'] is True

    def test_update_by_non_owner(self, app):
        from models.booking_settings import update_booking_settings
        from models.user import create_user

        with app.app_context():
            other = create_user('staff', 'staff@example.com', 'secret123')
            result = update_booking_settings(VENUE_ID, {'buffer_minutes': 30}, other)

            assert result['code'] == 'UNAUTHORIZED'

    def test_update_validation(self, app):
        from models.booking_settings import update_booking_settings

        with app.app_context():
            assert update_booking_settings(VENUE_ID, {'buffer_minutes': -5}, ADMIN_ID)['error'] == (
                'Buffer minutes must be at least 0'
            )
            assert update_booking_settings(VENUE_ID, {'max_advance_days': '30'}, ADMIN_ID)['error'] == (
                'Maximum advance days must be a whole number'
            )
            assert update_booking_settings(VENUE_ID, {'timezone': 'Mars/Olympus'}, ADMIN_ID)['error'] == (
                'Unknown timezone'
            )
            assert update_booking_settings(VENUE_ID, {'nothing': True}, ADMIN_ID)['error'] == (
                'No valid updates provided.'
            )


class TestOperatingHours:
    """Tests for weekly hours."""

    def test_seeded_week(self, app):
        from models.booking_settings import get_operating_hours

        with app.app_context():
            hours = get_operating_hours(VENUE_ID)

            assert [h['day_of_week'] for h in hours] == list(range(7))
            assert hours[0]['open_time'] == '11:00'
            assert hours[5]['close_time'] == '23:00'

    def test_hours_for_date(self, app):
        from models.booking_settings import get_hours_for_date

        with app.app_context():
            assert get_hours_for_date(VENUE_ID, date(2030, 6, 8)) == {
                'open_time': '11:00', 'close_time': '23:00', 'is_closed': False
            }

    def test_fallback_when_day_missing(self, app):
        from models.booking_settings import get_hours_for_date
        from database import get_db

        with app.app_context():
            db = get_db()
            db.execute('DELETE FROM venue_operating_hours WHERE venue_id = ?', (VENUE_ID,))
            db.commit()

            assert get_hours_for_date(VENUE_ID, BOOKING_DATE) == {
                'open_time': '10:00', 'close_time': '22:00', 'is_closed': False
            }

    def test_update_hours(self, app):
        from models.booking_settings import update_operating_hours, get_hours_for_date

        with app.app_context():
            result = update_operating_hours(VENUE_ID, [
                {'day_of_week': 2, 'open_time': '12:00', 'close_time': '20:00'},
            ], ADMIN_ID)

            assert result['success']
            assert get_hours_for_date(VENUE_ID, BOOKING_DATE)['open_time'] == '12:00'

    def test_update_hours_validation(self, app):
        from models.booking_settings import update_operating_hours

        with app.app_context():
            bad_day = update_operating_hours(VENUE_ID, [{'day_of_week': 7}], ADMIN_ID)
            backwards = update_operating_hours(VENUE_ID, [
                {'day_of_week': 1, 'open_time': '20:00', 'close_time': '10:00'},
            ], ADMIN_ID)

            assert bad_day['error'] == 'Day of week must be between 0 (Sunday) and 6 (Saturday).'
            assert backwards['error'] == 'Closing time must be after opening time.'

    def test_bookings_outside_proposed_hours(self, app, make_booking):
        from models.booking_settings import check_bookings_outside_hours

        with app.app_context():
            early = make_booking(start_time='10:30', table_id=2)
            late = make_booking(start_time='20:00', table_id=3)
            make_booking(start_time='14:00', table_id=4)

            affected = check_bookings_outside_hours(
                VENUE_ID, 2, '12:00', '21:00', today=NOW.date()
            )

            reasons = {b['id']: b['reason'] for b in affected}
            assert reasons == {
                early['id']: 'Starts before opening time (12:00)',
                late['id']: 'Ends after closing time (21:00)',
            }

    def test_closing_the_day_affects_everything(self, app, make_booking):
        from models.booking_settings import check_bookings_outside_hours

        with app.app_context():
            booking = make_booking()
            affected = check_bookings_outside_hours(
                VENUE_ID, 2, '10:00', '22:00', is_closed=True, today=NOW.date()
            )

            assert [b['id'] for b in affected] == [booking['id']]
            assert affected[0]['reason'] == 'Venue would be closed on this day'
