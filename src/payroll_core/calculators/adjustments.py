"""Custom adjustment classification and aggregation."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from payroll_core.calculators.types import ZERO, AdjustmentType, CustomAdjustment


@dataclass
class AdjustmentTotals:
    """Custom adjustments folded into their three pools."""

    gross_additions: Decimal = ZERO
    deductions: Decimal = ZERO
    allowances: Decimal = ZERO
    breakdown: dict[str, Decimal] = field(default_factory=dict)


class CustomAdjustmentAggregator:
    """Folds ad-hoc items into gross-affecting and net-only pools.

    Benefits must be summed before statutory rules run, since percentage
    rules are computed from gross pay including benefits. Deductions and
    allowances are applied after statutory deductions.
    """

    @staticmethod
    def gross_additions(adjustments: Iterable[CustomAdjustment]) -> Decimal:
        """Sum of benefit-type items."""
        return sum((a.amount for a in adjustments if a.type.affects_gross), ZERO)

    @staticmethod
    def deductions_total(adjustments: Iterable[CustomAdjustment]) -> Decimal:
        """Sum of deduction-type items."""
        return sum((a.amount for a in adjustments if a.type.is_deduction), ZERO)

    @staticmethod
    def allowances_total(adjustments: Iterable[CustomAdjustment]) -> Decimal:
        """Sum of allowance-type items."""
        return sum((a.amount for a in adjustments if a.type.affects_net_only), ZERO)

    @classmethod
    def aggregate(cls, adjustments: Iterable[CustomAdjustment]) -> AdjustmentTotals:
        """Fold all items and keep a per-name breakdown for audit.

        Breakdown keys are "<type>:<name>"; repeated names are summed.
        """
        items = list(adjustments)
        breakdown: dict[str, Decimal] = {}
        for item in items:
            key = f"{item.type.value}:{item.name}"
            breakdown[key] = breakdown.get(key, ZERO) + item.amount

        return AdjustmentTotals(
            gross_additions=cls.gross_additions(items),
            deductions=cls.deductions_total(items),
            allowances=cls.allowances_total(items),
            breakdown=breakdown,
        )

    @staticmethod
    def of_type(
        adjustments: Iterable[CustomAdjustment], adjustment_type: AdjustmentType
    ) -> list[CustomAdjustment]:
        return [a for a in adjustments if a.type == adjustment_type]
