"""Pay run service - orchestrates pay item calculation and bulk operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from payroll_core.calculators.engine import PayItemCalculator
from payroll_core.calculators.installments import (
    BracketTaxInstallmentPlanner,
    InstallmentPlan,
    InstallmentScope,
    LevyCandidate,
    LevyMethod,
)
from payroll_core.calculators.line_builder import BreakdownBuilder
from payroll_core.calculators.types import (
    ZERO,
    AdjustmentType,
    CustomAdjustment,
    Employee,
    PayCalculation,
    StepBracket,
)
from payroll_core.config import Settings, get_settings
from payroll_core.models import PayItem, PayRun, PayRunTotals
from payroll_core.rules.country_tables import UG_LST_STEPS
from payroll_core.rules.snapshot import RuleSnapshot
from payroll_core.services.aggregator import PayRunAggregator
from payroll_core.services.state_machine import (
    InvalidTransitionError,
    PayRunStateMachine,
    PayRunStatus,
)

logger = logging.getLogger(__name__)


class PayRunLockedError(Exception):
    """Raised when a pay run's status does not allow the requested change."""

    def __init__(self, pay_run_id: str, status: str, action: str):
        self.pay_run_id = pay_run_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} pay run {pay_run_id} in status '{status}'")


class PayItemNotFoundError(Exception):
    """Raised when a pay item id is not part of the pay run."""

    def __init__(self, pay_run_id: str, pay_item_id: str):
        self.pay_run_id = pay_run_id
        self.pay_item_id = pay_item_id
        super().__init__(f"Pay item {pay_item_id} not found in pay run {pay_run_id}")


class PayRunService:
    """Service for pay run generation and mutation.

    Operations:
    - generate: create and calculate one pay item per active employee
    - recalculate: recompute items in parallel batches
    - add_custom_adjustment / remove_custom_adjustments
    - bulk_add / bulk_deduct: custom items across many items
    - plan_installments / apply_installments: annual levy installments
    - update_item_status / transition: status changes

    Every mutation ends with exactly one full re-aggregation of the run
    totals, after all affected items have been recalculated.
    """

    def __init__(
        self,
        rules: RuleSnapshot,
        settings: Settings | None = None,
        levy_steps: tuple[StepBracket, ...] = UG_LST_STEPS,
    ):
        self.rules = rules
        self.settings = settings or get_settings()
        self.calculator = PayItemCalculator(self.settings)
        self.planner = BracketTaxInstallmentPlanner(levy_steps, self.settings)

    def generate(
        self,
        employees: Iterable[Employee],
        period_start: str,
        period_end: str,
        adjustments: Mapping[str, list[CustomAdjustment]] | None = None,
        benefit_deductions: Mapping[str, Decimal] | None = None,
        pay_group: str = "",
    ) -> PayRun:
        """Create a draft pay run with one calculated item per active employee."""
        adjustments = adjustments or {}
        benefit_deductions = benefit_deductions or {}

        pay_run = PayRun(period_start=period_start, period_end=period_end, pay_group=pay_group)
        for employee in employees:
            if not employee.active:
                continue
            pay_run.items.append(
                PayItem(
                    employee=employee,
                    custom_adjustments=list(adjustments.get(employee.employee_id, [])),
                    benefit_deductions=benefit_deductions.get(employee.employee_id, ZERO),
                )
            )

        self._calculate_items(pay_run.items)
        PayRunAggregator.refresh(pay_run)
        logger.info(
            "Generated pay run %s with %d item(s)", pay_run.pay_run_id, len(pay_run.items)
        )
        return pay_run

    def recalculate(
        self, pay_run: PayRun, pay_item_ids: list[str] | None = None
    ) -> PayRunTotals:
        """Recalculate items (all by default) and refresh run totals once."""
        if not PayRunStateMachine.can_calculate(pay_run.status):
            raise PayRunLockedError(pay_run.pay_run_id, pay_run.status, "recalculate")

        items = pay_run.items_for(pay_item_ids)
        self._calculate_items(items)
        return PayRunAggregator.refresh(pay_run)

    def add_custom_adjustment(
        self, pay_run: PayRun, pay_item_id: str, adjustment: CustomAdjustment
    ) -> PayItem:
        """Attach a custom item to one pay item and recalculate it."""
        self._ensure_inputs_mutable(pay_run, "add custom items to")
        item = self._get_item(pay_run, pay_item_id)
        item.custom_adjustments.append(adjustment)

        self._calculate_items([item])
        PayRunAggregator.refresh(pay_run)
        return item

    def remove_custom_adjustments(
        self,
        pay_run: PayRun,
        pay_item_ids: list[str] | None = None,
        names: Iterable[str] | None = None,
    ) -> int:
        """Remove custom items, optionally only those with the given names.

        Returns the number of custom items removed.
        """
        self._ensure_inputs_mutable(pay_run, "remove custom items from")
        wanted = set(names) if names is not None else None

        removed = 0
        touched: list[PayItem] = []
        for item in pay_run.items_for(pay_item_ids):
            kept = [
                a for a in item.custom_adjustments if wanted is not None and a.name not in wanted
            ]
            count = len(item.custom_adjustments) - len(kept)
            if count:
                item.custom_adjustments = kept
                removed += count
                touched.append(item)

        self._calculate_items(touched)
        PayRunAggregator.refresh(pay_run)
        logger.info("Removed %d custom item(s) from pay run %s", removed, pay_run.pay_run_id)
        return removed

    def bulk_add(
        self,
        pay_run: PayRun,
        amount: Decimal,
        name: str,
        is_percentage: bool = False,
        add_to_gross: bool = False,
        pay_item_ids: list[str] | None = None,
    ) -> list[PayItem]:
        """Add a benefit (gross-affecting) or allowance to many items.

        A percentage is taken of each item's current gross pay. No selection
        means every item of the run.
        """
        adjustment_type = AdjustmentType.BENEFIT if add_to_gross else AdjustmentType.ALLOWANCE
        return self._bulk_apply(pay_run, amount, name, is_percentage, adjustment_type, pay_item_ids)

    def bulk_deduct(
        self,
        pay_run: PayRun,
        amount: Decimal,
        name: str,
        is_percentage: bool = False,
        pay_item_ids: list[str] | None = None,
    ) -> list[PayItem]:
        """Add a custom deduction to many items."""
        return self._bulk_apply(
            pay_run, amount, name, is_percentage, AdjustmentType.DEDUCTION, pay_item_ids
        )

    def levy_candidates(self, pay_run: PayRun) -> list[LevyCandidate]:
        """Current gross pay of each item, as the basis for levy lookup."""
        return [
            LevyCandidate(
                employee_id=item.employee_id,
                gross_pay=item.gross_pay,
                name=item.employee.name,
            )
            for item in pay_run.items
        ]

    def plan_installments(
        self,
        pay_run: PayRun,
        method: LevyMethod | str = LevyMethod.BRACKET,
        months: int = 3,
        scope: InstallmentScope | str = InstallmentScope.ALL,
        selected_ids: Iterable[str] | None = None,
        threshold: Decimal | None = None,
        fixed_amount: Decimal | None = None,
    ) -> list[InstallmentPlan]:
        """Preview levy installments for the run without changing it."""
        return self.planner.plan_installments(
            self.levy_candidates(pay_run),
            method=method,
            months=months,
            scope=scope,
            selected_ids=selected_ids,
            threshold=threshold,
            fixed_amount=fixed_amount,
        )

    def apply_installments(self, pay_run: PayRun, plans: Iterable[InstallmentPlan]) -> int:
        """Persist the current installment of each plan as a recurring deduction.

        A previous installment with the same name on the item is replaced.
        Plans with a zero installment are skipped. Returns the number of
        items changed.
        """
        self._ensure_inputs_mutable(pay_run, "apply installments to")
        name = self.settings.installment_deduction_name
        by_employee = {item.employee_id: item for item in pay_run.items}

        touched: list[PayItem] = []
        for plan in plans:
            item = by_employee.get(plan.employee_id)
            if item is None or plan.monthly_installment <= 0:
                continue
            item.custom_adjustments = [
                a for a in item.custom_adjustments if not (a.recurring and a.name == name)
            ]
            item.custom_adjustments.append(plan.to_custom_adjustment(name))
            touched.append(item)

        self._calculate_items(touched)
        totals = PayRunAggregator.refresh(pay_run)
        logger.info(
            "Applied %s installments to %d item(s) of pay run %s, total deductions now %s",
            name,
            len(touched),
            pay_run.pay_run_id,
            totals.total_deductions,
        )
        return len(touched)

    def update_item_status(
        self, pay_run: PayRun, status: str, pay_item_ids: list[str] | None = None
    ) -> list[PayItem]:
        """Set the status of selected items (all by default).

        Refused once the run's results are frozen (approved or paid).
        """
        if PayRunStateMachine.are_results_immutable(pay_run.status):
            raise PayRunLockedError(pay_run.pay_run_id, pay_run.status, "change item statuses of")

        status = PayRunStatus(status).value
        items = pay_run.items_for(pay_item_ids)
        for item in items:
            item.status = status
        return items

    def transition(self, pay_run: PayRun, to_status: str) -> PayRun:
        """Move the pay run to a new status.

        Raises InvalidTransitionError if the transition is not allowed. A run
        returned to draft has its item statuses reset to draft.
        """
        from_status = pay_run.status
        if not PayRunStateMachine.can_transition(from_status, to_status):
            allowed = ", ".join(PayRunStateMachine.get_next_statuses(from_status)) or "none"
            raise InvalidTransitionError(from_status, to_status, f"allowed next statuses: {allowed}")

        errors = PayRunStateMachine.validate_pay_run_for_transition(pay_run, to_status)
        if errors:
            raise InvalidTransitionError(from_status, to_status, "; ".join(errors))

        pay_run.status = PayRunStatus(to_status).value
        if PayRunStateMachine.is_return_to_draft(from_status, pay_run.status):
            for item in pay_run.items:
                item.status = PayRunStatus.DRAFT.value

        logger.info(
            "Pay run %s moved from %s to %s", pay_run.pay_run_id, from_status, pay_run.status
        )
        return pay_run

    def _bulk_apply(
        self,
        pay_run: PayRun,
        amount: Decimal,
        name: str,
        is_percentage: bool,
        adjustment_type: AdjustmentType,
        pay_item_ids: list[str] | None,
    ) -> list[PayItem]:
        self._ensure_inputs_mutable(pay_run, "apply bulk items to")
        items = pay_run.items_for(pay_item_ids)
        amount = Decimal(amount)

        for item in items:
            final_amount = amount
            if is_percentage:
                final_amount = BreakdownBuilder.round_to_cents(item.gross_pay * amount / 100)
            item.custom_adjustments.append(
                CustomAdjustment(name=name, amount=final_amount, type=adjustment_type)
            )

        self._calculate_items(items)
        PayRunAggregator.refresh(pay_run)
        logger.info(
            "Applied %s '%s' to %d item(s) of pay run %s",
            adjustment_type.value,
            name,
            len(items),
            pay_run.pay_run_id,
        )
        return items

    def _calculate_items(self, items: list[PayItem]) -> None:
        """Calculate items in parallel batches.

        Each item is written only after its own calculation completes.
        """
        batch_size = max(1, self.settings.bulk_batch_size)
        workers = max(1, self.settings.bulk_max_workers)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            for start in range(0, len(items), batch_size):
                batch = items[start : start + batch_size]
                results = list(executor.map(self._calculate_one, batch))
                for item, calculation in zip(batch, results):
                    item.apply(calculation)

    def _calculate_one(self, item: PayItem) -> PayCalculation:
        try:
            return self.calculator.calculate(
                item.employee,
                item.custom_adjustments,
                self.rules,
                benefit_deductions=item.benefit_deductions,
            )
        except Exception as e:
            logger.exception("Calculation failed for pay item %s", item.pay_item_id)
            return self.calculator.estimate(
                item.employee,
                item.custom_adjustments,
                f"Unexpected error: {e}",
                benefit_deductions=item.benefit_deductions,
            )

    def _ensure_inputs_mutable(self, pay_run: PayRun, action: str) -> None:
        if not PayRunStateMachine.can_modify_inputs(pay_run.status):
            raise PayRunLockedError(pay_run.pay_run_id, pay_run.status, action)

    @staticmethod
    def _get_item(pay_run: PayRun, pay_item_id: str) -> PayItem:
        item = pay_run.get_item(pay_item_id)
        if item is None:
            raise PayItemNotFoundError(pay_run.pay_run_id, pay_item_id)
        return item
