"""
Route tests.
Staff API, authentication and public guest endpoints over HTTP.
"""

from datetime import timedelta

import pytest

from conftest import VENUE_ID, TABLE_T1, TABLE_T2, GAME_AZUL, NOT_FOUND_MESSAGE


@pytest.fixture
def future_date():
    """A date a week ahead in the seeded venue's timezone."""
    from utils.datetime_helpers import get_today
    return (get_today('America/Los_Angeles') + timedelta(days=7)).isoformat()


@pytest.fixture
def booking_body(future_date):
    def make(**overrides):
        body = {
            'table_id': TABLE_T2,
            'guest_name': 'Ada Lovelace',
            'guest_email': 'ada@example.com',
            'guest_phone': '555-123-4567',
            'booking_date': future_date,
            'start_time': '18:00',
            'duration_minutes': 120,
            'party_size': 4,
        }
        body.update(overrides)
        return body
    return make


class TestAuthRoutes:
    """Login, logout and current user."""

    def test_login_success(self, client):
        response = client.post('/login', data={'username': 'admin', 'password': 'admin123'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['data']['username'] == 'admin'

    def test_login_bad_password(self, client):
        response = client.post('/login', data={'username': 'admin', 'password': 'wrong'})

        assert response.status_code == 401
        assert response.get_json()['code'] == 'UNAUTHORIZED'

    def test_login_missing_fields(self, client):
        response = client.post('/login', data={'username': 'admin'})

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION'

    def test_me_and_logout(self, authenticated_client):
        assert authenticated_client.get('/me').get_json()['data']['username'] == 'admin'

        assert authenticated_client.post('/logout').status_code == 200
        assert authenticated_client.get('/me').status_code == 401

    def test_api_requires_login(self, client):
        response = client.get(f'/api/venues/{VENUE_ID}/bookings')

        assert response.status_code == 401
        assert response.get_json() == {
            'success': False, 'error': 'Please log in to continue.', 'code': 'UNAUTHORIZED'
        }


class TestBookingApi:
    """Staff booking endpoints."""

    def test_create_and_list(self, authenticated_client, booking_body, future_date):
        response = authenticated_client.post(f'/api/venues/{VENUE_ID}/bookings', json=booking_body())

        assert response.status_code == 201
        created = response.get_json()['data']
        assert created['status'] == 'confirmed'
        assert created['source'] == 'staff'
        assert created['created_by'] == 1

        listing = authenticated_client.get(f'/api/venues/{VENUE_ID}/bookings?date={future_date}').get_json()
        assert listing['count'] == 1
        assert listing['data'][0]['table_label'] == 'T2'

    def test_create_conflict(self, authenticated_client, booking_body):
        authenticated_client.post(f'/api/venues/{VENUE_ID}/bookings', json=booking_body())
        response = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/bookings', json=booking_body(start_time='19:00')
        )

        assert response.status_code == 409
        assert response.get_json()['code'] == 'CONFLICT'

    def test_create_validation(self, authenticated_client, booking_body):
        response = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/bookings', json=booking_body(party_size=0)
        )

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION'

    def test_create_over_capacity(self, authenticated_client, booking_body):
        response = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/bookings', json=booking_body(table_id=TABLE_T1)
        )

        assert response.status_code == 400
        assert response.get_json()['code'] == 'CAPACITY'

    def test_transitions(self, authenticated_client, booking_body):
        booking = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/bookings', json=booking_body()
        ).get_json()['data']

        arrived = authenticated_client.post(f'/api/bookings/{booking["id"]}/arrive')
        assert arrived.get_json()['data']['status'] == 'arrived'

        confirm_again = authenticated_client.post(f'/api/bookings/{booking["id"]}/confirm')
        assert confirm_again.status_code == 409
        assert confirm_again.get_json()['code'] == 'INVALID_TRANSITION'

        cancelled = authenticated_client.post(
            f'/api/bookings/{booking["id"]}/cancel', json={'reason': 'Closed for a private event'}
        ).get_json()['data']
        assert cancelled['status'] == 'cancelled_by_venue'
        assert cancelled['cancellation_reason'] == 'Closed for a private event'

        history = authenticated_client.get(f'/api/bookings/{booking["id"]}/modifications').get_json()['data']
        assert [h['field_changes']['status']['new'] for h in history] == ['arrived', 'cancelled_by_venue']
        assert history[0]['modified_by_username'] == 'admin'

    def test_no_show_too_early(self, authenticated_client, booking_body):
        booking = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/bookings', json=booking_body()
        ).get_json()['data']

        response = authenticated_client.post(f'/api/bookings/{booking["id"]}/no-show')

        assert response.status_code == 409
        assert response.get_json()['code'] == 'TOO_EARLY'

    def test_amend(self, authenticated_client, booking_body):
        booking = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/bookings', json=booking_body()
        ).get_json()['data']

        response = authenticated_client.patch(
            f'/api/bookings/{booking["id"]}', json={'start_time': '19:00', 'party_size': 3}
        )

        data = response.get_json()['data']
        assert data['start_time'] == '19:00'
        assert data['end_time'] == '21:00'
        assert data['party_size'] == 3

    def test_unknown_booking(self, authenticated_client):
        response = authenticated_client.get('/api/bookings/999')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'

    def test_other_owners_venue_forbidden(self, app, authenticated_client):
        from models.user import create_user
        from models.venue import create_venue

        other_owner = create_user('rival', 'rival@example.com', 'secret123')
        other_venue = create_venue('Dice Den', 'dice-den', other_owner)

        response = authenticated_client.get(f'/api/venues/{other_venue}/bookings')

        assert response.status_code == 403
        assert response.get_json()['code'] == 'UNAUTHORIZED'


class TestSupportingApi:
    """Availability, sessions, settings and waitlist endpoints."""

    def test_slots(self, authenticated_client, future_date):
        response = authenticated_client.get(
            f'/api/venues/{VENUE_ID}/availability/slots?date={future_date}&party_size=2'
        )

        slots = response.get_json()['data']
        assert response.status_code == 200
        assert all(slot['status'] == 'available' for slot in slots)
        assert 'tables' in slots[0]

    def test_slots_validation(self, authenticated_client):
        response = authenticated_client.get(
            f'/api/venues/{VENUE_ID}/availability/slots?date=tomorrow&party_size=2'
        )
        assert response.status_code == 400

    def test_game_availability(self, authenticated_client, future_date):
        response = authenticated_client.get(
            f'/api/venues/{VENUE_ID}/games/{GAME_AZUL}/availability'
            f'?date={future_date}&start_time=18:00&end_time=20:00'
        )

        assert response.status_code == 200
        assert response.get_json()['data']['available'] is True

    def test_walk_in_session(self, authenticated_client):
        response = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/sessions', json={'table_id': TABLE_T1}
        )
        assert response.status_code == 201
        session_id = response.get_json()['data']['id']

        sessions = authenticated_client.get(f'/api/venues/{VENUE_ID}/sessions').get_json()['data']
        assert [s['id'] for s in sessions] == [session_id]

        ended = authenticated_client.post(f'/api/sessions/{session_id}/end')
        assert ended.status_code == 200

    def test_settings_roundtrip(self, authenticated_client):
        response = authenticated_client.put(
            f'/api/venues/{VENUE_ID}/settings', json={'no_show_grace_minutes': 20}
        )
        assert response.get_json()['data']['no_show_grace_minutes'] == 20

        bad = authenticated_client.put(
            f'/api/venues/{VENUE_ID}/settings', json={'buffer_minutes': 500}
        )
        assert bad.status_code == 400
        assert bad.get_json()['error'] == 'Buffer minutes must be at most 120'

    def test_hours(self, authenticated_client):
        response = authenticated_client.put(
            f'/api/venues/{VENUE_ID}/hours',
            json={'hours': [{'day_of_week': 1, 'open_time': '12:00', 'close_time': '20:00'}]}
        )
        hours = response.get_json()['data']
        assert hours[1]['open_time'] == '12:00'

        check = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/hours/check', json={'day_of_week': 9}
        )
        assert check.status_code == 400

    def test_waitlist(self, authenticated_client, future_date):
        created = authenticated_client.post(f'/api/venues/{VENUE_ID}/waitlist', json={
            'guest_name': 'Grace Hopper',
            'guest_phone': '555-987-6543',
            'requested_date': future_date,
            'party_size': 2,
        })
        assert created.status_code == 201
        entry_id = created.get_json()['data']['id']

        notified = authenticated_client.post(
            f'/api/waitlist/{entry_id}/status', json={'status': 'notified'}
        )
        assert notified.get_json()['data']['status'] == 'notified'

        listing = authenticated_client.get(
            f'/api/venues/{VENUE_ID}/waitlist?date={future_date}'
        ).get_json()
        assert [e['id'] for e in listing['data']] == [entry_id]

        invalid = authenticated_client.post(f'/api/venues/{VENUE_ID}/waitlist', json={})
        assert invalid.status_code == 400


class TestPublicRoutes:
    """Anonymous guest endpoints."""

    def test_venue_info(self, client):
        data = client.get('/v/meeple-corner').get_json()['data']

        assert data['name'] == 'Meeple Corner'
        assert data['settings']['bookings_enabled'] is True
        assert 'buffer_minutes' not in data['settings']
        assert [g['title'] for g in data['games']] == ['Azul', 'Catan', 'Gloomhaven']

    def test_unknown_slug(self, client):
        response = client.get('/v/no-such-cafe')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'

    def test_slots_hide_tables(self, client, future_date):
        slots = client.get(f'/v/meeple-corner/slots?date={future_date}&party_size=2').get_json()['data']

        assert slots
        assert 'tables' not in slots[0]
        assert 'available_count' in slots[0]

    def test_book_lookup_and_cancel(self, client, booking_body):
        response = client.post('/v/meeple-corner/bookings', json=booking_body(staff_notes='VIP'))

        assert response.status_code == 201
        booking = response.get_json()['data']
        assert 'staff_notes' not in booking
        assert 'guest_email' not in booking
        code = booking['confirmation_code']

        found = client.post('/v/meeple-corner/lookup', json={
            'confirmation_code': code.lower(), 'email': 'ADA@example.com'
        })
        assert found.get_json()['data']['id'] == booking['id']

        missing = client.post('/v/meeple-corner/lookup', json={
            'confirmation_code': code, 'email': 'someone@example.com'
        })
        assert missing.status_code == 404
        assert missing.get_json()['error'] == NOT_FOUND_MESSAGE

        cancelled = client.post('/v/meeple-corner/cancel', json={
            'confirmation_code': code, 'email': 'ada@example.com'
        })
        assert cancelled.get_json()['data']['status'] == 'cancelled_by_guest'

    def test_online_source(self, app, client, booking_body):
        from models.booking import get_booking_by_id

        booking = client.post('/v/meeple-corner/bookings', json=booking_body()).get_json()['data']

        stored = get_booking_by_id(booking['id'])
        assert stored['source'] == 'online'
        assert stored['created_by'] is None


class TestRequestBodies:
    """JSON bodies that are not objects are rejected as validation errors."""

    def test_public_booking_with_array_body(self, client):
        response = client.post('/v/meeple-corner/bookings', json=[{'guest_name': 'Ada'}])

        assert response.status_code == 400
        assert response.get_json() == {
            'success': False, 'error': 'Request body must be a JSON object.', 'code': 'VALIDATION'
        }

    def test_public_lookup_with_string_body(self, client):
        response = client.post('/v/meeple-corner/lookup', json='ABCDEF')

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION'

    def test_staff_create_with_array_body(self, authenticated_client):
        response = authenticated_client.post(f'/api/venues/{VENUE_ID}/bookings', json=[1, 2])

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION'

    def test_staff_amend_with_array_body(self, authenticated_client, booking_body):
        booking = authenticated_client.post(
            f'/api/venues/{VENUE_ID}/bookings', json=booking_body()
        ).get_json()['data']

        response = authenticated_client.patch(f'/api/bookings/{booking["id"]}', json=['party_size', 3])

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION'

    def test_hours_must_be_a_list_of_objects(self, authenticated_client):
        as_string = authenticated_client.put(f'/api/venues/{VENUE_ID}/hours', json={'hours': 'monday'})
        as_numbers = authenticated_client.put(f'/api/venues/{VENUE_ID}/hours', json={'hours': [1, 2]})

        assert as_string.status_code == 400
        assert as_string.get_json()['error'] == 'No valid updates provided.'
        assert as_numbers.status_code == 400
        assert as_numbers.get_json()['code'] == 'VALIDATION'

    def test_numeric_phone_over_http(self, client, booking_body):
        response = client.post('/v/meeple-corner/bookings', json=booking_body(
            guest_email=None, guest_phone=5551234567
        ))

        assert response.status_code == 201


class TestBookingSearchApi:
    """Booking search, guest history, export and turnover risk endpoints."""

    def _create(self, client, body):
        response = client.post(f'/api/venues/{VENUE_ID}/bookings', json=body)
        assert response.status_code == 201
        return response.get_json()['data']

    def test_search_with_paging(self, authenticated_client, booking_body):
        early = self._create(authenticated_client, booking_body(start_time='12:00'))
        late = self._create(authenticated_client, booking_body(start_time='18:00'))

        first = authenticated_client.get(f'/api/venues/{VENUE_ID}/bookings/search?limit=1').get_json()
        assert [b['id'] for b in first['data']] == [late['id']]
        assert first['total_count'] == 2
        assert first['next_cursor'] == '1'

        second = authenticated_client.get(
            f'/api/venues/{VENUE_ID}/bookings/search?limit=1&cursor={first["next_cursor"]}'
        ).get_json()
        assert [b['id'] for b in second['data']] == [early['id']]
        assert second['next_cursor'] is None

    def test_search_text_and_status(self, authenticated_client, booking_body):
        self._create(authenticated_client, booking_body())
        grace = self._create(authenticated_client, booking_body(
            table_id=TABLE_T1, party_size=2, guest_name='Grace Hopper'
        ))

        response = authenticated_client.get(
            f'/api/venues/{VENUE_ID}/bookings/search?search=hopper&status=confirmed'
        )

        assert response.status_code == 200
        assert [b['id'] for b in response.get_json()['data']] == [grace['id']]

    def test_search_validation(self, authenticated_client):
        response = authenticated_client.get(f'/api/venues/{VENUE_ID}/bookings/search?status=lost')

        assert response.status_code == 400
        assert response.get_json() == {
            'success': False, 'error': 'Unknown booking status: lost', 'code': 'VALIDATION'
        }

    def test_search_requires_login(self, client):
        assert client.get(f'/api/venues/{VENUE_ID}/bookings/search').status_code == 401

    def test_guest_history(self, authenticated_client, booking_body):
        booking = self._create(authenticated_client, booking_body())

        response = authenticated_client.get(
            f'/api/venues/{VENUE_ID}/guests/bookings?email=ADA@example.com'
        )
        assert response.get_json()['count'] == 1
        assert response.get_json()['data'][0]['id'] == booking['id']

        missing = authenticated_client.get(f'/api/venues/{VENUE_ID}/guests/bookings')
        assert missing.status_code == 400

    def test_export_workbook(self, authenticated_client, booking_body):
        import io
        from openpyxl import load_workbook

        booking = self._create(authenticated_client, booking_body())

        response = authenticated_client.get(f'/api/venues/{VENUE_ID}/bookings/export')

        assert response.status_code == 200
        assert response.mimetype == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        assert 'attachment; filename=bookings_meeple-corner_' in response.headers['Content-Disposition']

        ws = load_workbook(io.BytesIO(response.data)).active
        assert ws.cell(row=1, column=1).value == 'Bookings - Meeple Corner'
        assert [c.value for c in ws[4]][:5] == ['Date', 'Start', 'End', 'Table', 'Guest']
        row = [c.value for c in ws[5]]
        assert row[4] == 'Ada Lovelace'
        assert row[9] == 'confirmed'
        assert row[11] == booking['confirmation_code']

    def test_export_validation(self, authenticated_client):
        response = authenticated_client.get(f'/api/venues/{VENUE_ID}/bookings/export?dir=up')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Sort direction must be asc or desc.'

    def test_turnover_risks(self, authenticated_client):
        response = authenticated_client.get(f'/api/venues/{VENUE_ID}/turnover-risks')

        assert response.status_code == 200
        assert response.get_json()['data'] == []
        assert response.get_json()['count'] == 0
