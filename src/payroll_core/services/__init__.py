"""Pay run services."""

from payroll_core.services.aggregator import PayRunAggregator
from payroll_core.services.pay_run_service import (
    PayItemNotFoundError,
    PayRunLockedError,
    PayRunService,
)
from payroll_core.services.state_machine import (
    InvalidTransitionError,
    PayRunStateMachine,
    PayRunStatus,
)

__all__ = [
    "InvalidTransitionError",
    "PayItemNotFoundError",
    "PayRunAggregator",
    "PayRunLockedError",
    "PayRunService",
    "PayRunStateMachine",
    "PayRunStatus",
]
