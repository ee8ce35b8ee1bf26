"""Tests for payment obligation state machine."""

import pytest

from payroll_ledger.core.errors import InvalidTransitionError
from payroll_ledger.core.state_machine import ObligationStateMachine
from payroll_ledger.core.types import ObligationStatus


class TestObligationStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # pending → paid
        assert ObligationStateMachine.can_transition("pending", "paid") is True

        # pending → canceled
        assert ObligationStateMachine.can_transition("pending", "canceled") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Paid is terminal; corrections go through the ledger
        assert ObligationStateMachine.can_transition("paid", "pending") is False
        assert ObligationStateMachine.can_transition("paid", "canceled") is False

        # Canceled is terminal
        assert ObligationStateMachine.can_transition("canceled", "pending") is False
        assert ObligationStateMachine.can_transition("canceled", "paid") is False

        # No self transitions
        assert ObligationStateMachine.can_transition("pending", "pending") is False

    def test_accepts_enum_members(self):
        assert ObligationStateMachine.can_transition(
            ObligationStatus.PENDING, ObligationStatus.PAID
        ) is True

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            ObligationStateMachine.validate_transition(ObligationStatus.PAID, ObligationStatus.PAID)

        assert exc_info.value.from_status == "paid"
        assert exc_info.value.to_status == "paid"
        assert "Invalid transition from 'paid' to 'paid'" in str(exc_info.value)

    def test_validate_transition_passes(self):
        ObligationStateMachine.validate_transition("pending", "paid")

    def test_is_terminal(self):
        assert ObligationStateMachine.is_terminal("paid") is True
        assert ObligationStateMachine.is_terminal("canceled") is True
        assert ObligationStateMachine.is_terminal("pending") is False

    def test_can_reverse(self):
        """Only paid obligations can be reversed."""
        assert ObligationStateMachine.can_reverse("paid") is True
        assert ObligationStateMachine.can_reverse("pending") is False
        assert ObligationStateMachine.can_reverse("canceled") is False

    def test_get_next_statuses(self):
        assert set(ObligationStateMachine.get_next_statuses("pending")) == {"paid", "canceled"}
        assert ObligationStateMachine.get_next_statuses("paid") == []
        assert ObligationStateMachine.get_next_statuses("unknown") == []
