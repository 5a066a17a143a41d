"""Pay run totals aggregation."""

from __future__ import annotations

from collections.abc import Iterable

from payroll_core.calculators.types import ZERO
from payroll_core.models import PayItem, PayRun, PayRunTotals


class PayRunAggregator:
    """Sums pay item figures into run-level totals.

    Always a full re-sum over every item, never an incremental update, so
    repeated aggregation over unchanged items gives identical totals.
    """

    @staticmethod
    def aggregate(items: Iterable[PayItem]) -> PayRunTotals:
        totals = PayRunTotals(
            total_gross_pay=ZERO,
            total_deductions=ZERO,
            total_net_pay=ZERO,
            total_employer_contributions=ZERO,
        )
        for item in items:
            totals.total_gross_pay += item.gross_pay
            totals.total_deductions += item.total_deductions
            totals.total_net_pay += item.net_pay
            totals.total_employer_contributions += item.employer_contributions
            totals.item_count += 1
        return totals

    @classmethod
    def refresh(cls, pay_run: PayRun) -> PayRunTotals:
        """Recompute and store the totals of a pay run."""
        pay_run.totals = cls.aggregate(pay_run.items)
        return pay_run.totals
