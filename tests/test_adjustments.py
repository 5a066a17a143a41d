"""Tests for custom adjustment aggregation."""

from decimal import Decimal

from payroll_core.calculators.adjustments import CustomAdjustmentAggregator
from payroll_core.calculators.types import AdjustmentType, CustomAdjustment


def _items():
    return [
        CustomAdjustment("Transport", Decimal("10000"), AdjustmentType.BENEFIT),
        CustomAdjustment("Meals", Decimal("5000"), AdjustmentType.ALLOWANCE),
        CustomAdjustment("Loan", Decimal("7000"), AdjustmentType.DEDUCTION),
        CustomAdjustment("Loan", Decimal("3000"), AdjustmentType.DEDUCTION),
    ]


class TestAdjustmentType:
    """Each type has exactly one effect."""

    def test_effects_are_exclusive(self):
        for adjustment_type in AdjustmentType:
            effects = [
                adjustment_type.affects_gross,
                adjustment_type.affects_net_only,
                adjustment_type.is_deduction,
            ]
            assert effects.count(True) == 1


class TestCustomAdjustmentAggregator:
    """Test pooling of custom items."""

    def test_pools(self):
        totals = CustomAdjustmentAggregator.aggregate(_items())

        assert totals.gross_additions == Decimal("10000")
        assert totals.allowances == Decimal("5000")
        assert totals.deductions == Decimal("10000")

    def test_breakdown_sums_repeated_names(self):
        totals = CustomAdjustmentAggregator.aggregate(_items())

        assert totals.breakdown == {
            "benefit:Transport": Decimal("10000"),
            "allowance:Meals": Decimal("5000"),
            "deduction:Loan": Decimal("10000"),
        }

    def test_empty(self):
        totals = CustomAdjustmentAggregator.aggregate([])
        assert totals.gross_additions == Decimal("0")
        assert totals.breakdown == {}

    def test_of_type(self):
        deductions = CustomAdjustmentAggregator.of_type(_items(), AdjustmentType.DEDUCTION)
        assert [d.amount for d in deductions] == [Decimal("7000"), Decimal("3000")]
