"""Tests for pay run state machine."""

from decimal import Decimal

from payroll_core.calculators.engine import PayItemCalculator
from payroll_core.calculators.types import Employee
from payroll_core.models import PayItem, PayRun
from payroll_core.rules import RuleSnapshot
from payroll_core.services.state_machine import (
    PayRunStateMachine,
    PayRunStatus,
)


class TestPayRunStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # draft → pending
        assert PayRunStateMachine.can_transition("draft", "pending") is True

        # pending → approved
        assert PayRunStateMachine.can_transition("pending", "approved") is True

        # pending → draft (returned)
        assert PayRunStateMachine.can_transition("pending", "draft") is True

        # approved → paid
        assert PayRunStateMachine.can_transition("approved", "paid") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip pending
        assert PayRunStateMachine.can_transition("draft", "approved") is False

        # Can't go backwards from approved
        assert PayRunStateMachine.can_transition("approved", "pending") is False

        # Paid is terminal
        assert PayRunStateMachine.can_transition("paid", "draft") is False
        assert PayRunStateMachine.can_transition("paid", "approved") is False

    def test_is_return_to_draft(self):
        assert PayRunStateMachine.is_return_to_draft("pending", "draft") is True
        assert PayRunStateMachine.is_return_to_draft("draft", "pending") is False

    def test_calculation_allowed(self):
        """Recalculation is allowed before approval."""
        assert PayRunStateMachine.can_calculate("draft") is True
        assert PayRunStateMachine.can_calculate("pending") is True
        assert PayRunStateMachine.can_calculate("approved") is False
        assert PayRunStateMachine.can_calculate("paid") is False

    def test_inputs_mutable_only_in_draft(self):
        assert PayRunStateMachine.can_modify_inputs("draft") is True
        assert PayRunStateMachine.can_modify_inputs("pending") is False

    def test_results_immutable(self):
        assert PayRunStateMachine.are_results_immutable("approved") is True
        assert PayRunStateMachine.are_results_immutable("paid") is True
        assert PayRunStateMachine.are_results_immutable("draft") is False

    def test_get_next_statuses(self):
        assert PayRunStateMachine.get_next_statuses("pending") == [
            PayRunStatus.APPROVED,
            PayRunStatus.DRAFT,
        ]
        assert PayRunStateMachine.get_next_statuses("paid") == []


class TestPayRunValidation:
    """Test whole-run validation before a transition."""

    @staticmethod
    def _run(settings, calculated: bool = True, estimated: bool = False) -> PayRun:
        employee = Employee(employee_id="e1", pay_type="salary", pay_rate=Decimal("1000"))
        item = PayItem(employee=employee)
        calculator = PayItemCalculator(settings)
        if estimated:
            item.apply(calculator.estimate(employee, [], "failed"))
        elif calculated:
            item.apply(calculator.calculate(employee, [], RuleSnapshot([])))
        return PayRun(period_start="2026-01-01", period_end="2026-01-31", items=[item])

    def test_empty_run_cannot_be_submitted(self):
        run = PayRun(period_start="2026-01-01", period_end="2026-01-31")
        errors = PayRunStateMachine.validate_pay_run_for_transition(run, "pending")
        assert errors == ["Pay run has no pay items"]

    def test_uncalculated_items_block_submission(self, settings):
        run = self._run(settings, calculated=False)
        errors = PayRunStateMachine.validate_pay_run_for_transition(run, "pending")
        assert errors == ["1 pay item(s) have not been calculated"]

    def test_estimated_items_block_approval(self, settings):
        run = self._run(settings, estimated=True)
        run.status = "pending"

        errors = PayRunStateMachine.validate_pay_run_for_transition(run, "approved")
        assert errors == ["1 pay item(s) use estimated deductions"]

    def test_valid_run(self, settings):
        run = self._run(settings)
        assert PayRunStateMachine.validate_pay_run_for_transition(run, "pending") == []

    def test_invalid_transition_short_circuits(self, settings):
        run = self._run(settings)
        errors = PayRunStateMachine.validate_pay_run_for_transition(run, "paid")
        assert errors == ["Cannot transition from 'draft' to 'paid'"]
