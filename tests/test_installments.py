"""Tests for levy installment planning."""

from decimal import Decimal

import pytest

from payroll_core.calculators.installments import (
    BracketTaxInstallmentPlanner,
    InstallmentConfigError,
    InstallmentPlan,
    LevyCandidate,
)
from payroll_core.calculators.types import AdjustmentType, StepBracket
from payroll_core.rules import UG_LST_STEPS


@pytest.fixture
def planner(settings):
    return BracketTaxInstallmentPlanner(UG_LST_STEPS, settings)


@pytest.fixture
def candidates():
    return [
        LevyCandidate("low", Decimal("80000")),
        LevyCandidate("mid", Decimal("150000")),
        LevyCandidate("high", Decimal("1500000")),
    ]


class TestAnnualLiability:
    """Test annual amount lookup."""

    def test_bracket_boundaries(self, planner):
        assert planner.annual_liability(Decimal("99999")) == Decimal("0")
        assert planner.annual_liability(Decimal("100000")) == Decimal("5000")
        assert planner.annual_liability(Decimal("1000000")) == Decimal("100000")

    def test_fixed_method(self, planner):
        annual = planner.annual_liability(Decimal("1"), "fixed", Decimal("24000"))
        assert annual == Decimal("24000")

    def test_fixed_method_requires_amount(self, planner):
        with pytest.raises(InstallmentConfigError):
            planner.annual_liability(Decimal("1"), "fixed")

    def test_unknown_method(self, planner):
        with pytest.raises(InstallmentConfigError):
            planner.annual_liability(Decimal("1"), "monthly")


class TestMonthlyInstallment:
    """Test apportionment into months."""

    def test_floor_division(self, planner):
        assert planner.monthly_installment(Decimal("10000"), 3) == Decimal("3333")

    def test_single_month_takes_full_amount(self, planner):
        assert planner.monthly_installment(Decimal("10000"), 1) == Decimal("10000")

    @pytest.mark.parametrize("months", [0, 4, -1])
    def test_months_out_of_range(self, planner, months):
        with pytest.raises(InstallmentConfigError):
            planner.monthly_installment(Decimal("10000"), months)

    def test_remainder_is_informational(self):
        plan = InstallmentPlan("e", Decimal("10000"), Decimal("3333"), 3)
        assert plan.remainder == Decimal("1")


class TestTargetSelection:
    """Test scope filtering."""

    def test_all(self, planner, candidates):
        assert len(planner.select_targets(candidates)) == 3

    def test_selected(self, planner, candidates):
        targets = planner.select_targets(candidates, "selected", selected_ids=["mid"])
        assert [t.employee_id for t in targets] == ["mid"]

    def test_empty_selection_means_all(self, planner, candidates):
        targets = planner.select_targets(candidates, "selected", selected_ids=[])
        assert len(targets) == 3

    def test_threshold_is_inclusive(self, planner, candidates):
        targets = planner.select_targets(candidates, "threshold", threshold=Decimal("150000"))
        assert [t.employee_id for t in targets] == ["mid", "high"]

    def test_threshold_required(self, planner, candidates):
        with pytest.raises(InstallmentConfigError):
            planner.select_targets(candidates, "threshold")


class TestPlanInstallments:
    """Test full plans."""

    def test_plan_over_three_months(self, settings):
        steps = (
            StepBracket(Decimal("0"), Decimal("0")),
            StepBracket(Decimal("200000"), Decimal("10000")),
        )
        planner = BracketTaxInstallmentPlanner(steps, settings)

        plans = planner.plan_installments([LevyCandidate("e", Decimal("250000"))], months=3)

        assert plans == [InstallmentPlan("e", Decimal("10000"), Decimal("3333"), 3)]

    def test_plan_uses_ug_table(self, planner, candidates):
        plans = planner.plan_installments(candidates, months=1)
        by_id = {p.employee_id: p for p in plans}

        assert by_id["low"].monthly_installment == Decimal("0")
        assert by_id["mid"].monthly_installment == Decimal("5000")
        assert by_id["high"].monthly_installment == Decimal("100000")

    def test_to_custom_adjustment(self):
        plan = InstallmentPlan("e", Decimal("10000"), Decimal("3333"), 3)
        adjustment = plan.to_custom_adjustment("LST")

        assert adjustment.name == "LST"
        assert adjustment.amount == Decimal("3333")
        assert adjustment.type == AdjustmentType.DEDUCTION
        assert adjustment.recurring is True

    @pytest.mark.parametrize("annual", ["0", "5000", "10000", "20000", "100000"])
    @pytest.mark.parametrize("months", [1, 2, 3])
    def test_installments_never_exceed_annual(self, planner, annual, months):
        annual = Decimal(annual)
        assert planner.monthly_installment(annual, months) * months <= annual
