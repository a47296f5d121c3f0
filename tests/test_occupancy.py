"""
Tests for seating, session close and walk-ins.
"""

from datetime import datetime

from conftest import VENUE_ID, TABLE_T1, TABLE_T2, TABLE_T5, GAME_CATAN

SEAT_TIME = datetime(2030, 6, 4, 17, 55)


class TestSeatParty:
    """Tests for seat_party."""

    def test_direct_seating_from_confirmed(self, app, make_booking):
        from models.booking import seat_party
        from models.session import get_session_by_id

        with app.app_context():
            booking = make_booking(game_id=GAME_CATAN)
            result = seat_party(booking['id'], now=SEAT_TIME)

            assert result['success'], result
            assert 'warning' not in result
            seated = result['data']
            assert seated['status'] == 'seated'
            assert seated['seated_at'] == '2030-06-04T17:55:00'
            assert seated['arrived_at'] == '2030-06-04T17:55:00'

            session = get_session_by_id(seated['session_id'])
            assert session['table_id'] == TABLE_T2
            assert session['game_id'] == GAME_CATAN
            assert session['ended_at'] is None

    def test_seating_after_arrival_keeps_arrival_time(self, app, make_booking):
        from models.booking import seat_party, mark_arrived

        with app.app_context():
            booking = make_booking()
            mark_arrived(booking['id'], now=datetime(2030, 6, 4, 17, 40))
            seated = seat_party(booking['id'], now=SEAT_TIME)['data']

            assert seated['arrived_at'] == '2030-06-04T17:40:00'

    def test_early_seating_warns_but_succeeds(self, app, make_booking):
        from models.booking import seat_party

        with app.app_context():
            booking = make_booking(start_time='18:00')
            result = seat_party(booking['id'], now=datetime(2030, 6, 4, 17, 0))

            assert result['success']
            assert result['warning'] == (
                'Early seating: This booking is scheduled for 18:00 (60 minutes from now).'
            )

    def test_within_threshold_has_no_warning(self, app, make_booking):
        from models.booking import seat_party

        with app.app_context():
            booking = make_booking(start_time='18:00')
            result = seat_party(booking['id'], now=datetime(2030, 6, 4, 17, 45))
            assert 'warning' not in result

    def test_pending_must_be_confirmed_first(self, app, make_booking):
        from models.booking import seat_party
        from models.booking_crud import update_booking_fields

        with app.app_context():
            booking = make_booking()
            update_booking_fields(booking['id'], {'status': 'pending'})
            result = seat_party(booking['id'], now=SEAT_TIME)

            assert result['code'] == 'INVALID_TRANSITION'
            assert result['error'] == (
                'This booking must be confirmed before seating. Please confirm the booking first.'
            )

    def test_already_seated(self, app, make_booking):
        from models.booking import seat_party

        with app.app_context():
            booking = make_booking()
            seat_party(booking['id'], now=SEAT_TIME)
            result = seat_party(booking['id'], now=SEAT_TIME)

            assert result['error'] == 'This booking has already been seated.'

    def test_direct_seating_disabled(self, app, make_booking):
        from models.booking import seat_party, list_active_sessions

        with app.app_context():
            app.config['ALLOW_DIRECT_SEATING'] = False
            booking = make_booking()
            result = seat_party(booking['id'], now=SEAT_TIME)

            assert result['code'] == 'INVALID_TRANSITION'
            assert result['error'] == 'Cannot seat a booking that is confirmed.'
            assert list_active_sessions(VENUE_ID)['data'] == []

    def test_inactive_table(self, app, make_booking):
        from models.booking import seat_party
        from models.venue import set_table_active

        with app.app_context():
            booking = make_booking()
            set_table_active(TABLE_T2, False)
            result = seat_party(booking['id'], now=SEAT_TIME)

            assert result['code'] == 'VALIDATION'
            assert result['error'] == (
                'Table "T2" is not currently active. Please assign a different table.'
            )

    def test_previous_session_on_table_is_ended(self, app, make_booking):
        from models.booking import seat_party, start_walk_in_session
        from models.session import get_session_by_id

        with app.app_context():
            walk_in = start_walk_in_session(VENUE_ID, TABLE_T2, now=datetime(2030, 6, 4, 16, 0))['data']
            booking = make_booking()
            seat_party(booking['id'], now=SEAT_TIME)

            assert get_session_by_id(walk_in['id'])['ended_at'] == '2030-06-04T17:55:00'

    def test_failed_transition_ends_new_session(self, app, make_booking, monkeypatch):
        import models.occupancy as occupancy
        from models.session import get_active_sessions
        from utils.results import BookingError, ErrorKind

        def lose_race(*args, **kwargs):
            raise BookingError('Cannot seat a booking that is cancelled by venue.',
                               ErrorKind.INVALID_TRANSITION)

        with app.app_context():
            booking = make_booking()
            monkeypatch.setattr(occupancy, 'apply_transition', lose_race)

            result = occupancy.seat_party(booking['id'], now=SEAT_TIME)

            assert result['code'] == 'INVALID_TRANSITION'
            assert get_active_sessions(VENUE_ID) == []


class TestEndSession:
    """Tests for end_session_and_complete_booking."""

    def test_completes_seated_booking(self, app, make_booking):
        from models.booking import seat_party, end_session_and_complete_booking

        with app.app_context():
            booking = make_booking()
            session_id = seat_party(booking['id'], now=SEAT_TIME)['data']['session_id']

            result = end_session_and_complete_booking(session_id, now=datetime(2030, 6, 4, 20, 0))

            assert result['success']
            assert result['data']['session']['ended_at'] == '2030-06-04T20:00:00'
            assert result['data']['booking']['status'] == 'completed'
            assert result['data']['booking']['completed_at'] == '2030-06-04T20:00:00'

    def test_ending_twice(self, app, make_booking):
        from models.booking import seat_party, end_session_and_complete_booking

        with app.app_context():
            booking = make_booking()
            session_id = seat_party(booking['id'], now=SEAT_TIME)['data']['session_id']
            end_session_and_complete_booking(session_id, now=datetime(2030, 6, 4, 20, 0))

            result = end_session_and_complete_booking(session_id, now=datetime(2030, 6, 4, 20, 5))
            assert result['code'] == 'INVALID_TRANSITION'
            assert result['error'] == 'Session has already ended.'

    def test_walk_in_session_has_no_booking(self, app):
        from models.booking import start_walk_in_session, end_session_and_complete_booking

        with app.app_context():
            session = start_walk_in_session(VENUE_ID, TABLE_T1)['data']
            result = end_session_and_complete_booking(session['id'])

            assert result['success']
            assert result['data']['booking'] is None
            assert result['data']['session']['ended_at'] is not None

    def test_missing_session(self, app):
        from models.booking import end_session_and_complete_booking

        with app.app_context():
            assert end_session_and_complete_booking(999)['code'] == 'NOT_FOUND'


class TestWalkIn:
    """Tests for start_walk_in_session and list_active_sessions."""

    def test_walk_in_is_listed(self, app):
        from models.booking import start_walk_in_session, list_active_sessions

        with app.app_context():
            result = start_walk_in_session(VENUE_ID, TABLE_T1, GAME_CATAN)
            assert result['success']

            sessions = list_active_sessions(VENUE_ID)['data']
            assert len(sessions) == 1
            assert sessions[0]['table_label'] == 'T1'
            assert sessions[0]['game_title'] == 'Catan'
            assert sessions[0]['booking_id'] is None

    def test_inactive_table(self, app):
        from models.booking import start_walk_in_session

        with app.app_context():
            result = start_walk_in_session(VENUE_ID, TABLE_T5)
            assert result['error'] == 'Table "T5" is not currently active. Please assign a different table.'

    def test_unknown_game_keeps_current_session(self, app):
        from models.booking import start_walk_in_session, list_active_sessions

        with app.app_context():
            start_walk_in_session(VENUE_ID, TABLE_T1)
            result = start_walk_in_session(VENUE_ID, TABLE_T1, game_id=999)

            assert result['code'] == 'NOT_FOUND'
            assert len(list_active_sessions(VENUE_ID)['data']) == 1
