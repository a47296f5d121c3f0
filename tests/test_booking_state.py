"""
Tests for the booking status state machine.
"""

import pytest


class TestTransitionTable:
    """Tests for VALID_TRANSITIONS structure."""

    def test_every_status_has_an_entry(self):
        from models.booking_state import BOOKING_STATUSES, VALID_TRANSITIONS

        assert set(VALID_TRANSITIONS) == set(BOOKING_STATUSES)
        for targets in VALID_TRANSITIONS.values():
            assert set(targets) <= set(BOOKING_STATUSES)

    def test_terminal_statuses_have_no_exits(self):
        from models.booking_state import TERMINAL_STATUSES, VALID_TRANSITIONS

        for status in TERMINAL_STATUSES:
            assert VALID_TRANSITIONS[status] == ()

    def test_non_terminal_statuses(self):
        from models.booking_state import NON_TERMINAL_STATUSES

        assert set(NON_TERMINAL_STATUSES) == {'pending', 'confirmed', 'arrived', 'seated'}

    def test_completion_only_from_seated(self):
        from models.booking_state import VALID_TRANSITIONS

        sources = [s for s, targets in VALID_TRANSITIONS.items() if 'completed' in targets]
        assert sources == ['seated']


class TestTransitionGuard:
    """Tests for can_transition and validate_transition."""

    @pytest.mark.parametrize('current,target', [
        ('pending', 'confirmed'),
        ('pending', 'cancelled_by_guest'),
        ('confirmed', 'arrived'),
        ('confirmed', 'no_show'),
        ('arrived', 'seated'),
        ('arrived', 'cancelled_by_venue'),
        ('seated', 'completed'),
    ])
    def test_allowed(self, current, target):
        from models.booking_state import can_transition

        assert can_transition(current, target)

    @pytest.mark.parametrize('current,target', [
        ('pending', 'seated'),
        ('pending', 'no_show'),
        ('arrived', 'cancelled_by_guest'),
        ('seated', 'cancelled_by_venue'),
        ('completed', 'seated'),
        ('no_show', 'confirmed'),
    ])
    def test_refused(self, current, target):
        from models.booking_state import can_transition

        assert not can_transition(current, target)

    def test_direct_seating_flag(self):
        from models.booking_state import can_transition

        assert can_transition('confirmed', 'seated', allow_direct_seating=True)
        assert not can_transition('confirmed', 'seated', allow_direct_seating=False)
        assert can_transition('arrived', 'seated', allow_direct_seating=False)

    def test_direct_seating_follows_config(self, app):
        from models.booking_state import can_transition

        with app.app_context():
            app.config['ALLOW_DIRECT_SEATING'] = False
            assert not can_transition('confirmed', 'seated')

    def test_validate_transition_message(self):
        from models.booking_state import validate_transition
        from utils.results import BookingError, ErrorKind

        with pytest.raises(BookingError) as exc:
            validate_transition('no_show', 'confirmed')

        assert exc.value.code == ErrorKind.INVALID_TRANSITION
        assert exc.value.message == 'Cannot confirm a booking that is no show.'
