"""Payment obligation state machine with transition validation."""

from __future__ import annotations

from payroll_ledger.core.errors import InvalidTransitionError
from payroll_ledger.core.types import ObligationStatus


class ObligationStateMachine:
    """State machine for payment obligation status transitions.

    Allowed transitions:
    - pending → paid
    - pending → canceled

    Paid and canceled are terminal. A paid obligation is corrected by
    appending a reversal entry to the ledger, never by changing its status.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        ObligationStatus.PENDING: [ObligationStatus.PAID, ObligationStatus.CANCELED],
        ObligationStatus.PAID: [],
        ObligationStatus.CANCELED: [],
    }

    # Statuses that can be reversed on the ledger
    REVERSIBLE = {ObligationStatus.PAID}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(_value(from_status), _value(to_status))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status, [])

    @classmethod
    def can_reverse(cls, status: str) -> bool:
        return status in cls.REVERSIBLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


def _value(status: str) -> str:
    return status.value if isinstance(status, ObligationStatus) else str(status)
