"""
Self-service booking lookup.
Guests find their booking with a confirmation code and the email it was made
with. Wrong code and wrong email produce the same answer, and attempts are
rate limited per venue and email.
"""

import logging

from flask import current_app

from models.booking_crud import get_booking_by_code
from models.booking_lifecycle import cancel_booking
from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind, booking_action
from utils.validators import sanitize_input

logger = logging.getLogger(__name__)

# Fields a guest gets back from a successful lookup
PUBLIC_BOOKING_FIELDS = (
    'id', 'confirmation_code', 'status', 'guest_name', 'party_size',
    'booking_date', 'start_time', 'end_time', 'table_id', 'game_id',
)


def lookup_rate_key(venue_id, email: str) -> str:
    """Rate limit key for a venue and normalized email."""
    return f'{venue_id}:{email.strip().lower()}'


def _find_guest_booking(venue_id, confirmation_code: str, email: str, limiter=None) -> dict:
    """
    Rate-limited code + email match.

    Raises:
        BookingError: VALIDATION (missing input, rate limited) or the
            generic NOT_FOUND
    """
    code = sanitize_input(confirmation_code) or ''
    email = sanitize_input(email) or ''
    if not code:
        raise BookingError(MESSAGES['lookup_code_required'])
    if not email:
        raise BookingError(MESSAGES['lookup_email_required'])

    if current_app.config.get('RATELIMIT_ENABLED', True):
        if limiter is None:
            limiter = current_app.extensions['lookup_rate_limiter']
        if not limiter.hit(lookup_rate_key(venue_id, email)):
            logger.warning('Lookup rate limit reached for venue %s', venue_id)
            raise BookingError(MESSAGES['lookup_rate_limited'].format(
                minutes=current_app.config.get('LOOKUP_WINDOW_MINUTES', 15)
            ))

    booking = get_booking_by_code(code.upper())
    if (
        not booking
        or str(booking['venue_id']) != str(venue_id)
        or (booking.get('guest_email') or '').strip().lower() != email.lower()
    ):
        raise BookingError(MESSAGES['lookup_not_found'], ErrorKind.NOT_FOUND)

    return booking


@booking_action()
def lookup_booking(venue_id: int, confirmation_code: str, email: str, limiter=None) -> dict:
    """
    Find a guest's booking by confirmation code and email.

    Args:
        venue_id: Venue the guest is looking in
        confirmation_code: Code as typed (case-insensitive)
        email: Email the booking was made with (case-insensitive)
        limiter: Rate limiter (defaults to the application's)

    Returns:
        Tagged result with the public booking fields
    """
    booking = _find_guest_booking(venue_id, confirmation_code, email, limiter)
    return {field: booking.get(field) for field in PUBLIC_BOOKING_FIELDS}


def cancel_guest_booking(venue_id: int, confirmation_code: str, email: str,
                         reason: str = None, limiter=None) -> dict:
    """
    Guest self-cancellation after a successful code + email match.

    Returns:
        Tagged result from cancel_booking, or the lookup failure
    """
    found = lookup_booking(venue_id, confirmation_code, email, limiter)
    if not found['success']:
        return found
    return cancel_booking(found['data']['id'], actor='guest', reason=reason)
