"""Pay run domain records."""

from payroll_core.models.payroll import PayItem, PayRun, PayRunTotals

__all__ = [
    "PayItem",
    "PayRun",
    "PayRunTotals",
]
