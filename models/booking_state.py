"""
Booking status state machine.

Transition legality lives in VALID_TRANSITIONS and is consulted by a single
guard, validate_transition(). The only configurable edge is the direct
confirmed -> seated shortcut (config ALLOW_DIRECT_SEATING).
"""

from flask import current_app, has_app_context

from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind


# =============================================================================
# STATUS CONSTANTS
# =============================================================================

BOOKING_STATUSES = (
    'pending',
    'confirmed',
    'arrived',
    'seated',
    'completed',
    'no_show',
    'cancelled_by_guest',
    'cancelled_by_venue',
)

TERMINAL_STATUSES = frozenset({
    'completed',
    'no_show',
    'cancelled_by_guest',
    'cancelled_by_venue',
})

CANCELLED_STATUSES = frozenset({'cancelled_by_guest', 'cancelled_by_venue'})

# Statuses that still hold a table interval or a game copy
NON_TERMINAL_STATUSES = tuple(s for s in BOOKING_STATUSES if s not in TERMINAL_STATUSES)

# Statuses in which guest-facing details may still be amended
AMENDABLE_STATUSES = frozenset({'pending', 'confirmed'})

VALID_TRANSITIONS = {
    'pending': ('confirmed', 'cancelled_by_guest', 'cancelled_by_venue'),
    'confirmed': ('arrived', 'seated', 'cancelled_by_guest', 'cancelled_by_venue', 'no_show'),
    'arrived': ('seated', 'cancelled_by_venue', 'no_show'),
    'seated': ('completed',),
    'completed': (),
    'no_show': (),
    'cancelled_by_guest': (),
    'cancelled_by_venue': (),
}

DIRECT_SEATING_EDGE = ('confirmed', 'seated')

# Verb used in "Cannot {action} a booking that is {status}."
STATUS_ACTION_NAMES = {
    'pending': 'set to pending',
    'confirmed': 'confirm',
    'arrived': 'mark as arrived',
    'seated': 'seat',
    'completed': 'complete',
    'no_show': 'mark as no-show',
    'cancelled_by_guest': 'cancel',
    'cancelled_by_venue': 'cancel',
}

# Column stamped when a booking enters each status
STATUS_TIMESTAMP_FIELDS = {
    'confirmed': 'confirmed_at',
    'arrived': 'arrived_at',
    'seated': 'seated_at',
    'completed': 'completed_at',
    'no_show': 'no_show_at',
    'cancelled_by_guest': 'cancelled_at',
    'cancelled_by_venue': 'cancelled_at',
}

CANCEL_ACTORS = {
    'guest': 'cancelled_by_guest',
    'venue': 'cancelled_by_venue',
}


# =============================================================================
# GUARD
# =============================================================================

def _direct_seating_allowed() -> bool:
    if has_app_context():
        return bool(current_app.config.get('ALLOW_DIRECT_SEATING', True))
    return True


def get_valid_transitions(allow_direct_seating: bool = None) -> dict:
    """
    Transition table in effect.

    Args:
        allow_direct_seating: Override the ALLOW_DIRECT_SEATING config flag

    Returns:
        Dict of status -> tuple of reachable statuses
    """
    if allow_direct_seating is None:
        allow_direct_seating = _direct_seating_allowed()

    if allow_direct_seating:
        return VALID_TRANSITIONS

    source, target = DIRECT_SEATING_EDGE
    table = dict(VALID_TRANSITIONS)
    table[source] = tuple(s for s in table[source] if s != target)
    return table


def can_transition(current: str, target: str, allow_direct_seating: bool = None) -> bool:
    """True if target is reachable from current in one step."""
    return target in get_valid_transitions(allow_direct_seating).get(current, ())


def describe_status(status: str) -> str:
    """Human form of a status ('no_show' -> 'no show')."""
    return status.replace('_', ' ')


def invalid_transition_message(current: str, target: str) -> str:
    """Generic 'Cannot {action} a booking that is {status}.' message."""
    return MESSAGES['invalid_transition'].format(
        action=STATUS_ACTION_NAMES.get(target, f'move to {describe_status(target)}'),
        status=describe_status(current)
    )


def validate_transition(current: str, target: str, allow_direct_seating: bool = None) -> None:
    """
    Raise unless target is reachable from current.

    Raises:
        BookingError: INVALID_TRANSITION with a message keyed by current status
    """
    if not can_transition(current, target, allow_direct_seating):
        raise BookingError(invalid_transition_message(current, target), ErrorKind.INVALID_TRANSITION)
