"""Pay run state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payroll_core.models import PayRun


class PayRunStatus(str, Enum):
    """Pay run status values."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayRunStateMachine:
    """State machine for pay run status transitions.

    Allowed transitions:
    - draft → pending (submitted for approval)
    - pending → approved
    - pending → draft (returned or rejected)
    - approved → paid
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayRunStatus.DRAFT: [PayRunStatus.PENDING],
        PayRunStatus.PENDING: [PayRunStatus.APPROVED, PayRunStatus.DRAFT],
        PayRunStatus.APPROVED: [PayRunStatus.PAID],
        PayRunStatus.PAID: [],  # Terminal state
    }

    # Statuses where recalculation is allowed
    CALCULATION_ALLOWED = {
        PayRunStatus.DRAFT,
        PayRunStatus.PENDING,
    }

    # Statuses where custom items and inputs can be modified
    INPUTS_MUTABLE = {
        PayRunStatus.DRAFT,
    }

    # Statuses where results are immutable
    RESULTS_IMMUTABLE = {
        PayRunStatus.APPROVED,
        PayRunStatus.PAID,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def can_calculate(cls, status: str) -> bool:
        """Check if recalculation is allowed in this status."""
        return status in cls.CALCULATION_ALLOWED

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        """Check if custom items and units can be modified."""
        return status in cls.INPUTS_MUTABLE

    @classmethod
    def are_results_immutable(cls, status: str) -> bool:
        """Check if item figures are frozen."""
        return status in cls.RESULTS_IMMUTABLE

    @classmethod
    def is_return_to_draft(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition sends a submitted run back (pending → draft)."""
        return from_status == PayRunStatus.PENDING and to_status == PayRunStatus.DRAFT

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def validate_pay_run_for_transition(
        cls, pay_run: PayRun, to_status: str
    ) -> list[str]:
        """Validate a pay run for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = pay_run.status

        if not cls.can_transition(from_status, to_status):
            errors.append(f"Cannot transition from '{from_status}' to '{to_status}'")
            return errors

        if to_status in (PayRunStatus.PENDING, PayRunStatus.APPROVED):
            if not pay_run.items:
                errors.append("Pay run has no pay items")

            uncalculated = [i for i in pay_run.items if i.calculation is None]
            if uncalculated:
                errors.append(f"{len(uncalculated)} pay item(s) have not been calculated")

        if to_status == PayRunStatus.APPROVED:
            estimated = [i for i in pay_run.items if i.has_error]
            if estimated:
                errors.append(f"{len(estimated)} pay item(s) use estimated deductions")

        return errors
