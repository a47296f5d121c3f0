"""
Occupancy bridge.
Turns an admitted booking into a live session on its table, and closes
sessions (completing the linked booking when there is one).
"""

import logging

from flask import current_app

from models.booking_availability import load_venue_game
from models.booking_crud import get_booking_by_session
from models.booking_lifecycle import apply_transition, fetch_booking, venue_now
from models.booking_state import validate_transition
from models.session import (
    create_session, end_all_active_sessions_for_table, end_session, get_active_sessions,
    get_session_by_id,
)
from models.venue import get_table_by_id
from utils.datetime_helpers import combine, get_now, minutes_until, timestamp
from utils.invalidation import BOOKINGS_VIEW, SESSIONS_VIEW, invalidate_views
from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind, booking_action, success_result
from utils.validators import parse_positive_int

logger = logging.getLogger(__name__)


def early_seating_warning(booking: dict, now) -> str:
    """
    Advisory text when a party is seated well before its booked time.

    Returns:
        Warning string, or None within EARLY_SEATING_THRESHOLD_MINUTES
    """
    threshold = current_app.config.get('EARLY_SEATING_THRESHOLD_MINUTES', 15)
    start = combine(booking['booking_date'], booking['start_time'], now.tzinfo)
    ahead = minutes_until(start, now)
    if ahead <= threshold:
        return None
    return MESSAGES['early_seating'].format(time=booking['start_time'], minutes=round(ahead))


@booking_action()
def seat_party(booking_id: int, user_id: int = None, now=None) -> dict:
    """
    Seat a confirmed or arrived booking at its table.

    Any session still open on the table is ended first. A booking seated
    straight from confirmed also gets arrived_at stamped. Seating early is
    allowed and reported as a warning on the successful result.

    Args:
        booking_id: Booking ID
        user_id: Acting staff user
        now: Current moment

    Returns:
        Tagged result with the seated booking (data['session_id'] set)
    """
    booking = fetch_booking(booking_id)
    status = booking['status']

    if status == 'seated':
        raise BookingError(MESSAGES['already_seated'], ErrorKind.INVALID_TRANSITION)
    if status == 'completed':
        raise BookingError(MESSAGES['already_completed'], ErrorKind.INVALID_TRANSITION)
    if status == 'pending':
        raise BookingError(MESSAGES['seat_requires_confirmation'], ErrorKind.INVALID_TRANSITION)
    validate_transition(status, 'seated')

    if not booking['table_id']:
        raise BookingError(MESSAGES['seat_no_table'])
    table = get_table_by_id(booking['table_id'])
    if not table:
        raise BookingError(MESSAGES['seat_table_missing'], ErrorKind.NOT_FOUND)
    if not table['active']:
        raise BookingError(MESSAGES['seat_table_inactive'].format(label=table['label']))

    _, now = venue_now(booking, now)
    warning = early_seating_warning(booking, now)
    started_at = timestamp(now)

    end_all_active_sessions_for_table(table['id'], started_at)
    session_id = create_session(booking['venue_id'], table['id'], booking['game_id'], started_at)

    extra_fields = {'session_id': session_id}
    if status == 'confirmed':
        extra_fields['arrived_at'] = started_at

    try:
        seated = apply_transition(booking, 'seated', now, extra_fields, modified_by=user_id)
    except Exception:
        end_session(session_id, started_at)
        logger.warning('Ended orphaned session %s after seating booking %s failed',
                       session_id, booking_id)
        raise

    if warning:
        logger.info('Booking %s seated early: %s', booking_id, warning)
    return success_result(seated, warning=warning)


@booking_action()
def end_session_and_complete_booking(session_id: int, user_id: int = None, now=None) -> dict:
    """
    Close a live session and complete the booking seated in it.

    Args:
        session_id: Session ID
        user_id: Acting staff user
        now: Current moment

    Returns:
        Tagged result with 'session' and 'booking' (None for walk-ins)
    """
    session = get_session_by_id(session_id)
    if not session:
        raise BookingError(MESSAGES['session_not_found'], ErrorKind.NOT_FOUND)
    if session['ended_at']:
        raise BookingError(MESSAGES['session_already_ended'], ErrorKind.INVALID_TRANSITION)

    booking = get_booking_by_session(session_id)
    if booking:
        _, now = venue_now(booking, now)
    elif now is None:
        now = get_now()

    if not end_session(session_id, timestamp(now)):
        raise BookingError(MESSAGES['session_already_ended'], ErrorKind.INVALID_TRANSITION)

    if booking and booking['status'] == 'seated':
        booking = apply_transition(booking, 'completed', now, modified_by=user_id)
    else:
        invalidate_views(SESSIONS_VIEW)

    return {'session': get_session_by_id(session_id), 'booking': booking}


@booking_action()
def start_walk_in_session(venue_id: int, table_id, game_id=None, now=None) -> dict:
    """
    Open a session for a walk-in party with no booking.

    Returns:
        Tagged result with the new session
    """
    table = get_table_by_id(parse_positive_int(table_id) or 0)
    if not table or str(table['venue_id']) != str(venue_id):
        raise BookingError(MESSAGES['table_not_found'], ErrorKind.NOT_FOUND)
    if not table['active']:
        raise BookingError(MESSAGES['seat_table_inactive'].format(label=table['label']))

    if now is None:
        now = get_now()
    started_at = timestamp(now)

    game = load_venue_game(game_id, venue_id) if game_id else None
    end_all_active_sessions_for_table(table['id'], started_at)
    session_id = create_session(venue_id, table['id'], game['id'] if game else None, started_at)

    invalidate_views(SESSIONS_VIEW, BOOKINGS_VIEW)
    return get_session_by_id(session_id)


@booking_action()
def list_active_sessions(venue_id: int) -> list:
    """Tagged-result wrapper around get_active_sessions."""
    return get_active_sessions(venue_id)

