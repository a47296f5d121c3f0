"""
Booking lifecycle operations.

Status transitions (confirm, cancel, arrive, no-show, complete) and amendment
of pending/confirmed bookings. Each operation re-reads the booking, checks the
transition table in booking_state, and writes with a compare-and-set on the
status it read, so a concurrent transition makes the later one fail cleanly.
Seating lives in models.occupancy.
"""

import logging

from models.booking_availability import (
    ensure_game_available, ensure_table_available, find_overlapping_bookings,
    load_bookable_table, load_venue_game,
)
from models.booking_crud import get_booking_by_id, update_booking_fields
from models.booking_modification import (
    determine_modification_type, diff_fields, log_booking_modification
)
from models.booking_settings import get_or_create_booking_settings
from models.booking_state import (
    AMENDABLE_STATUSES, CANCEL_ACTORS, CANCELLED_STATUSES, STATUS_TIMESTAMP_FIELDS,
    describe_status, invalid_transition_message, validate_transition,
)
from models.session import end_session
from utils.datetime_helpers import (
    MINUTES_PER_DAY, ceil_minutes, combine, get_now, minutes_to_time, minutes_until,
    normalize_time, parse_date, time_to_minutes, timestamp,
)
from utils.invalidation import BOOKINGS_VIEW, SESSIONS_VIEW, invalidate_views
from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind, booking_action
from utils.validators import parse_positive_int, sanitize_input, validate_email, validate_phone

logger = logging.getLogger(__name__)


# =============================================================================
# HELPERS
# =============================================================================

def fetch_booking(booking_id: int) -> dict:
    """
    Get a booking or fail with NOT_FOUND.

    Raises:
        BookingError: NOT_FOUND
    """
    booking = get_booking_by_id(booking_id)
    if not booking:
        raise BookingError(MESSAGES['booking_not_found'], ErrorKind.NOT_FOUND)
    return booking


def venue_now(booking: dict, now=None):
    """Settings and current moment in the booking's venue timezone."""
    settings = get_or_create_booking_settings(booking['venue_id'])
    if now is None:
        now = get_now(settings.get('timezone'))
    return settings, now


def apply_transition(booking: dict, target: str, now, extra_fields: dict = None,
                     modified_by: int = None, reason: str = None) -> dict:
    """
    Write a status change that has already passed its guards.

    The UPDATE only applies while the row still has the status we read; if
    another request moved it first, the transition fails as invalid against
    the new status.

    Returns:
        The updated booking

    Raises:
        BookingError: INVALID_TRANSITION on a lost compare-and-set
    """
    fields = {'status': target, STATUS_TIMESTAMP_FIELDS[target]: timestamp(now)}
    fields.update(extra_fields or {})

    if not update_booking_fields(booking['id'], fields, expected_statuses=(booking['status'],)):
        current = fetch_booking(booking['id'])
        raise BookingError(
            invalid_transition_message(current['status'], target), ErrorKind.INVALID_TRANSITION
        )

    log_booking_modification(
        booking['id'], 'status_change',
        {'status': {'old': booking['status'], 'new': target}},
        modified_by=modified_by, reason=reason
    )
    logger.info('Booking %s: %s -> %s', booking['id'], booking['status'], target)

    invalidate_views(BOOKINGS_VIEW, SESSIONS_VIEW)
    return get_booking_by_id(booking['id'])


# =============================================================================
# TRANSITIONS
# =============================================================================

@booking_action()
def confirm_booking(booking_id: int, user_id: int = None, now=None) -> dict:
    """Move a pending booking to confirmed."""
    booking = fetch_booking(booking_id)
    validate_transition(booking['status'], 'confirmed')
    _, now = venue_now(booking, now)
    return apply_transition(booking, 'confirmed', now, modified_by=user_id)


@booking_action()
def cancel_booking(booking_id: int, actor: str = 'venue', reason: str = None,
                   user_id: int = None, now=None) -> dict:
    """
    Cancel a booking on behalf of the guest or the venue.

    Args:
        booking_id: Booking ID
        actor: 'guest' or 'venue'
        reason: Optional cancellation reason stored on the booking
        user_id: Acting staff user, if any
        now: Current moment

    Returns:
        Tagged result with the cancelled booking
    """
    target = CANCEL_ACTORS.get(actor)
    if not target:
        raise BookingError(MESSAGES['invalid_actor'])

    booking = fetch_booking(booking_id)
    status = booking['status']

    if status in CANCELLED_STATUSES:
        raise BookingError(MESSAGES['already_cancelled'], ErrorKind.INVALID_TRANSITION)
    if status == 'completed':
        raise BookingError(MESSAGES['already_completed'], ErrorKind.INVALID_TRANSITION)
    if status == 'no_show':
        raise BookingError(MESSAGES['already_no_show'], ErrorKind.INVALID_TRANSITION)
    validate_transition(status, target)

    _, now = venue_now(booking, now)
    reason = sanitize_input(reason, 500)
    return apply_transition(
        booking, target, now,
        extra_fields={'cancellation_reason': reason},
        modified_by=user_id, reason=reason
    )


@booking_action()
def mark_arrived(booking_id: int, user_id: int = None, now=None) -> dict:
    """Record that a confirmed party has arrived."""
    booking = fetch_booking(booking_id)
    validate_transition(booking['status'], 'arrived')
    _, now = venue_now(booking, now)
    return apply_transition(booking, 'arrived', now, modified_by=user_id)


@booking_action()
def mark_no_show(booking_id: int, user_id: int = None, now=None) -> dict:
    """
    Mark a booking as a no-show.

    Allowed once the venue's grace period after the scheduled start has
    fully elapsed (exactly start + grace is allowed).

    Returns:
        Tagged result; TOO_EARLY with the minutes remaining before that
    """
    booking = fetch_booking(booking_id)
    validate_transition(booking['status'], 'no_show')

    settings, now = venue_now(booking, now)
    grace = settings['no_show_grace_minutes']
    start = combine(booking['booking_date'], booking['start_time'], now.tzinfo)
    remaining = minutes_until(start, now) + grace

    if remaining > 0:
        raise BookingError(
            MESSAGES['too_early_no_show'].format(grace=grace, remaining=ceil_minutes(remaining)),
            ErrorKind.TOO_EARLY
        )

    return apply_transition(booking, 'no_show', now, modified_by=user_id)


@booking_action()
def complete_booking(booking_id: int, user_id: int = None, now=None) -> dict:
    """Complete a seated booking and close its live session."""
    booking = fetch_booking(booking_id)
    if booking['status'] == 'completed':
        raise BookingError(MESSAGES['already_completed'], ErrorKind.INVALID_TRANSITION)
    validate_transition(booking['status'], 'completed')

    _, now = venue_now(booking, now)
    completed = apply_transition(booking, 'completed', now, modified_by=user_id)

    if booking.get('session_id'):
        try:
            end_session(booking['session_id'], timestamp(now))
        except Exception:
            logger.warning('Booking %s completed but session %s was not ended',
                           booking['id'], booking['session_id'], exc_info=True)
    return completed


# =============================================================================
# AMENDMENT
# =============================================================================

AMENDABLE_FIELDS = (
    'guest_name', 'guest_email', 'guest_phone', 'booking_date', 'start_time',
    'end_time', 'duration_minutes', 'table_id', 'party_size', 'game_id',
    'guest_notes', 'staff_notes',
)


def _amended_window(booking: dict, updates: dict, today) -> tuple:
    """
    New (date, start, end) for an amendment.

    A new start time without a new end or duration keeps the booking's
    current length.

    Raises:
        BookingError: VALIDATION for malformed or out-of-order values
    """
    booking_date = booking['booking_date']
    if 'booking_date' in updates:
        parsed = parse_date(updates['booking_date'])
        if parsed is None:
            raise BookingError(MESSAGES['date_invalid'])
        if parsed < today:
            raise BookingError(MESSAGES['date_past'])
        booking_date = parsed.isoformat()

    start_time = booking['start_time']
    if 'start_time' in updates:
        start_time = normalize_time(updates['start_time'] or '')
        if not start_time:
            raise BookingError(MESSAGES['start_time_invalid'])

    current_length = time_to_minutes(booking['end_time']) - time_to_minutes(booking['start_time'])

    if updates.get('end_time'):
        end_time = normalize_time(updates['end_time'])
        if not end_time:
            raise BookingError(MESSAGES['end_time_invalid'])
        end_minutes = time_to_minutes(end_time)
    elif updates.get('duration_minutes') not in (None, ''):
        duration = parse_positive_int(updates['duration_minutes'])
        if duration is None:
            raise BookingError(MESSAGES['duration_invalid'])
        end_minutes = time_to_minutes(start_time) + duration
    else:
        end_minutes = time_to_minutes(start_time) + current_length

    if end_minutes >= MINUTES_PER_DAY or end_minutes <= time_to_minutes(start_time):
        raise BookingError(MESSAGES['end_before_start'])

    return booking_date, start_time, minutes_to_time(end_minutes)


def _amended_guest_fields(booking: dict, updates: dict) -> dict:
    """Validated guest detail and note changes."""
    fields = {}

    if 'guest_name' in updates:
        name = sanitize_input(updates['guest_name'], 200)
        if not name:
            raise BookingError(MESSAGES['guest_name_empty'])
        fields['guest_name'] = name

    if 'guest_email' in updates:
        email = sanitize_input(updates['guest_email'])
        if email and not validate_email(email):
            raise BookingError(MESSAGES['email_invalid'])
        fields['guest_email'] = email

    if 'guest_phone' in updates:
        phone = sanitize_input(updates['guest_phone'])
        if phone and not validate_phone(phone):
            raise BookingError(MESSAGES['phone_invalid'])
        fields['guest_phone'] = phone

    email = fields.get('guest_email', booking.get('guest_email'))
    phone = fields.get('guest_phone', booking.get('guest_phone'))
    if not email and not phone:
        raise BookingError(MESSAGES['contact_required'])

    for note_field in ('guest_notes', 'staff_notes'):
        if note_field in updates:
            fields[note_field] = sanitize_input(updates[note_field], 1000)

    return fields


@booking_action()
def update_booking(booking_id: int, updates: dict, user_id: int = None, now=None) -> dict:
    """
    Amend a pending or confirmed booking.

    Every check runs before anything is written, so a rejected amendment
    leaves the booking exactly as it was. Changing the date, time or table
    re-checks the table (ignoring this booking); changing the table or the
    party size re-checks capacity; changing the time or the game re-checks
    game copies. The game re-check counts this booking's own copy too, so
    moving a game booking onto a fully booked window can be refused even
    when only this booking holds the game.

    Args:
        booking_id: Booking ID
        updates: Any of AMENDABLE_FIELDS
        user_id: Acting user
        now: Current moment

    Returns:
        Tagged result with the updated booking
    """
    updates = {k: v for k, v in (updates or {}).items() if k in AMENDABLE_FIELDS}
    if not updates:
        raise BookingError(MESSAGES['no_updates'])

    booking = fetch_booking(booking_id)
    if booking['status'] not in AMENDABLE_STATUSES:
        raise BookingError(
            MESSAGES['not_amendable'].format(status=describe_status(booking['status'])),
            ErrorKind.INVALID_TRANSITION
        )

    _, now = venue_now(booking, now)
    fields = _amended_guest_fields(booking, updates)

    # Time window
    booking_date, start_time, end_time = _amended_window(booking, updates, now.date())
    time_changed = (booking_date, start_time, end_time) != (
        booking['booking_date'], booking['start_time'], booking['end_time']
    )
    if time_changed:
        fields.update(booking_date=booking_date, start_time=start_time, end_time=end_time)

    # Party size and table
    party_size = booking['party_size']
    if 'party_size' in updates:
        party_size = parse_positive_int(updates['party_size'])
        if party_size is None:
            raise BookingError(MESSAGES['party_size_invalid'])
        fields['party_size'] = party_size

    table_id = booking['table_id']
    if 'table_id' in updates:
        table_id = parse_positive_int(updates['table_id'])
    table_changed = table_id != booking['table_id']

    if table_changed or 'party_size' in updates:
        table = load_bookable_table(table_id, booking['venue_id'], party_size)
        table_id = table['id']
        if table_changed:
            fields['table_id'] = table_id

    if time_changed or table_changed:
        ensure_table_available(
            table_id, booking_date, start_time, end_time,
            exclude_id=booking['id'], message=MESSAGES['amend_conflict']
        )

    # Game copies
    game_id = booking['game_id']
    if 'game_id' in updates:
        game_id = None
        if updates['game_id']:
            game_id = load_venue_game(updates['game_id'], booking['venue_id'])['id']
        fields['game_id'] = game_id
    game_changed = game_id != booking['game_id']

    if game_id and (time_changed or game_changed):
        ensure_game_available(
            game_id, booking_date, start_time, end_time, message_key='amend_game_exhausted'
        )

    # Write
    try:
        written = update_booking_fields(booking['id'], fields, expected_statuses=AMENDABLE_STATUSES)
    except Exception as e:
        if 'UNIQUE' in str(e):
            raise BookingError(MESSAGES['amend_conflict'], ErrorKind.CONFLICT)
        raise

    if not written:
        current = fetch_booking(booking['id'])
        raise BookingError(
            MESSAGES['not_amendable'].format(status=describe_status(current['status'])),
            ErrorKind.INVALID_TRANSITION
        )

    if time_changed or table_changed:
        _verify_amended_slot(booking, fields, table_id, booking_date, start_time, end_time)

    changes = diff_fields(booking, fields)
    if changes:
        log_booking_modification(
            booking['id'], determine_modification_type(changes), changes, modified_by=user_id
        )
        logger.info('Booking %s amended: %s', booking['id'], ', '.join(sorted(changes)))

    invalidate_views(BOOKINGS_VIEW, SESSIONS_VIEW)
    return get_booking_by_id(booking['id'])


def _verify_amended_slot(original: dict, fields: dict, table_id: int, booking_date: str,
                         start_time: str, end_time: str) -> None:
    """
    Undo the amendment if a concurrent write took the new slot.

    Raises:
        BookingError: CONFLICT after restoring every amended field
    """
    overlapping = find_overlapping_bookings(
        table_id, booking_date, start_time, end_time, exclude_id=original['id']
    )
    if not overlapping:
        return

    update_booking_fields(original['id'], {field: original.get(field) for field in fields})
    logger.warning('Amendment of booking %s reverted: slot taken by booking %s',
                   original['id'], overlapping[0]['id'])
    raise BookingError(MESSAGES['amend_conflict'], ErrorKind.CONFLICT)
