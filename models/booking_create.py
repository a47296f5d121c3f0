"""
Booking creation.

create_booking() admits a reservation with an optimistic check-act-verify
sequence:

1. resolve venue settings and validate the request
2. check the table (exists, active, same venue, big enough) and its interval
3. check a copy of the requested game is free
4. insert under InsertRetryPolicy; a UNIQUE violation (slot or code taken by
   a concurrent writer) re-runs the availability checks before retrying
5. re-scan for overlapping live bookings inserted before ours; if one exists
   the new row is deleted and the request fails with CONFLICT

Step 5 is what keeps the table and game-copy invariants when two requests
pass their pre-checks at the same time: of two overlapping rows only the
later one (higher ID) is rolled back.
"""

import logging

from flask import current_app

from models.booking_availability import (
    count_game_reservations, ensure_game_available, ensure_table_available,
    find_overlapping_bookings, game_copies, game_exhausted_message,
    load_bookable_table, load_venue_game, table_conflict_message,
)
from models.booking_crud import delete_booking, get_booking_by_id, insert_booking
from models.booking_settings import DEFAULT_BOOKING_SETTINGS, get_or_create_booking_settings
from models.booking_validation import resolve_end_time, validate_booking_params
from models.confirmation_code import generate_unique_confirmation_code
from models.venue import get_venue_by_id
from utils.datetime_helpers import get_now, normalize_time, parse_date, timestamp
from utils.invalidation import BOOKINGS_VIEW, SESSIONS_VIEW, booking_page_view, invalidate_views
from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind, booking_action
from utils.retry import InsertRetryPolicy, RetryExhausted
from utils.validators import parse_positive_int, sanitize_input

logger = logging.getLogger(__name__)

BOOKING_SOURCES = ('online', 'phone', 'walk_in', 'staff')


def _insert_policy() -> InsertRetryPolicy:
    return InsertRetryPolicy(
        max_attempts=current_app.config.get('BOOKING_INSERT_MAX_ATTEMPTS', 3),
        backoff_ms=current_app.config.get('BOOKING_INSERT_BACKOFF_MS', 100),
    )


def _verify_after_insert(booking_id: int, record: dict, game: dict = None) -> None:
    """
    Roll back the new booking if an earlier live booking overlaps it.

    Raises:
        BookingError: CONFLICT after deleting the new row
    """
    window = (record['booking_date'], record['start_time'], record['end_time'])

    earlier = find_overlapping_bookings(
        record['table_id'], *window, exclude_id=booking_id, before_id=booking_id
    )
    if earlier:
        delete_booking(booking_id)
        logger.warning('Booking %s rolled back: table %s already held by booking %s',
                       booking_id, record['table_id'], earlier[0]['id'])
        raise BookingError(table_conflict_message(earlier[0]), ErrorKind.CONFLICT)

    if game:
        total = game_copies(game)
        reserved = count_game_reservations(game['id'], *window, exclude_id=booking_id, before_id=booking_id)
        if reserved >= total:
            delete_booking(booking_id)
            logger.warning('Booking %s rolled back: all %s copies of game %s taken',
                           booking_id, total, game['id'])
            raise BookingError(game_exhausted_message({
                'total_copies': total, 'reserved_count': reserved, 'title': game['title'],
            }), ErrorKind.CONFLICT)


@booking_action(unknown_message=MESSAGES['create_failed'])
def create_booking(params: dict, user_id: int = None, now=None) -> dict:
    """
    Create a confirmed booking.

    Args:
        params: venue_id, table_id, guest_name, guest_email, guest_phone,
            booking_date, start_time, end_time or duration_minutes,
            party_size, game_id (optional), guest_notes, staff_notes,
            source (defaults to 'online')
        user_id: Acting user, or None for anonymous guest bookings
        now: Current moment (defaults to now in the venue timezone)

    Returns:
        Tagged result with the new booking
    """
    params = params or {}
    venue_id = params.get('venue_id')

    if venue_id in (None, ''):
        settings = dict(DEFAULT_BOOKING_SETTINGS)
    else:
        settings = get_or_create_booking_settings(venue_id)
    if now is None:
        now = get_now(settings.get('timezone'))

    source = params.get('source') or 'online'
    if source not in BOOKING_SOURCES:
        source = 'online'
    if source == 'online' and not settings['bookings_enabled']:
        raise BookingError(MESSAGES['bookings_disabled'])

    errors = validate_booking_params(params, settings, now)
    if errors:
        raise BookingError(errors[0])

    venue = get_venue_by_id(venue_id)
    booking_date = parse_date(params['booking_date']).isoformat()
    start_time = normalize_time(params['start_time'])
    end_time = resolve_end_time(start_time, params.get('end_time'), params.get('duration_minutes'))
    party_size = parse_positive_int(params['party_size'])

    table = load_bookable_table(params['table_id'], venue['id'], party_size)
    ensure_table_available(table['id'], booking_date, start_time, end_time)

    game = None
    if params.get('game_id'):
        game = load_venue_game(params['game_id'], venue['id'])
        ensure_game_available(game['id'], booking_date, start_time, end_time)

    code_attempts = current_app.config.get('CONFIRMATION_CODE_MAX_ATTEMPTS', 5)
    record = {
        'venue_id': venue['id'],
        'table_id': table['id'],
        'game_id': game['id'] if game else None,
        'guest_name': str(params['guest_name']).strip(),
        'guest_email': sanitize_input(params.get('guest_email')),
        'guest_phone': sanitize_input(params.get('guest_phone')),
        'party_size': party_size,
        'booking_date': booking_date,
        'start_time': start_time,
        'end_time': end_time,
        'status': 'confirmed',
        'confirmed_at': timestamp(now),
        'source': source,
        'confirmation_code': generate_unique_confirmation_code(code_attempts),
        'guest_notes': sanitize_input(params.get('guest_notes'), 1000),
        'staff_notes': sanitize_input(params.get('staff_notes'), 1000),
        'created_by': user_id,
    }

    def attempt(number):
        return insert_booking(record)

    def before_retry(number, error):
        if 'confirmation_code' in str(error):
            record['confirmation_code'] = generate_unique_confirmation_code(code_attempts)
        ensure_table_available(table['id'], booking_date, start_time, end_time)
        if game:
            ensure_game_available(game['id'], booking_date, start_time, end_time)

    try:
        booking_id = _insert_policy().run(attempt, before_retry=before_retry)
    except RetryExhausted as e:
        logger.warning('Booking insert for table %s on %s %s gave up: %s',
                       table['id'], booking_date, start_time, e.last_error)
        raise BookingError(MESSAGES['table_conflict'], ErrorKind.CONFLICT)

    _verify_after_insert(booking_id, record, game)

    logger.info('Booking %s (%s) created for table %s on %s %s-%s',
                booking_id, record['confirmation_code'], table['label'],
                booking_date, start_time, end_time)

    invalidate_views(BOOKINGS_VIEW, SESSIONS_VIEW, booking_page_view(venue['slug']))
    return get_booking_by_id(booking_id)
