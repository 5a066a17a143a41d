"""Payroll calculation engine - per-employee orchestrator."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from payroll_core.calculators.adjustments import AdjustmentTotals, CustomAdjustmentAggregator
from payroll_core.calculators.base_pay import BasePayResult, CompensationBaseResolver
from payroll_core.calculators.deduction_rules import (
    DeductionRuleEngine,
    StatutoryResult,
)
from payroll_core.calculators.line_builder import BreakdownBuilder
from payroll_core.calculators.types import (
    ZERO,
    AdjustmentType,
    BreakdownLine,
    CalculationIssue,
    CustomAdjustment,
    Employee,
    IssueCode,
    PayCalculation,
)
from payroll_core.config import Settings, get_settings

if TYPE_CHECKING:
    from payroll_core.rules.snapshot import RuleSnapshot

logger = logging.getLogger(__name__)

FALLBACK_LABEL = "Estimated Tax"


class PayItemCalculator:
    """Main payroll calculation engine.

    Calculation pipeline (stable order per employee):
    1) Resolve base gross pay from pay type and units
    2) Sum benefit-type custom items
    3) Gross pay = base + benefits
    4) Statutory deductions and employer contributions from gross pay
    5) Sum deduction-type and allowance-type custom items
    6) Total deductions = statutory + manual benefit deductions + custom deductions
    7) Net pay = gross + allowances - total deductions

    If step 4 raises, a flat estimate of gross pay stands in for the
    statutory deductions and the failure is recorded on the result.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def calculate(
        self,
        employee: Employee,
        custom_adjustments: Iterable[CustomAdjustment],
        rules: RuleSnapshot,
        benefit_deductions: Decimal = ZERO,
        default_units: Decimal = ZERO,
    ) -> PayCalculation:
        """Calculate pay for a single employee."""
        adjustments = list(custom_adjustments)
        issues: list[CalculationIssue] = []

        # 1-3) Base pay, then benefits feed gross before any statutory rule sees it
        base, totals = self._gross_inputs(employee, adjustments, default_units)
        issues.extend(base.issues)
        gross_pay = base.amount + totals.gross_additions

        # 4) Statutory
        estimated = False
        try:
            rule_set = DeductionRuleEngine.resolve_rule_set(
                employee.employee_type,
                employee.country,
                rules,
                expatriate_rate=self.settings.expatriate_flat_tax_rate,
                expatriate_label=self.settings.expatriate_tax_label,
                issues=issues,
            )
            statutory = DeductionRuleEngine.evaluate(rule_set, gross_pay)
        except Exception as e:
            logger.exception(
                "Statutory calculation failed for employee %s, using flat estimate",
                employee.employee_id,
            )
            issues.append(
                CalculationIssue(IssueCode.CALCULATION_FAILURE, f"Statutory calculation failed: {e}")
            )
            statutory = self._fallback_estimate(gross_pay)
            estimated = True

        for issue in issues:
            if issue.code != IssueCode.CALCULATION_FAILURE:
                logger.warning("Employee %s: %s", employee.employee_id, issue.message)

        # 5-7) Custom deductions, allowances, totals
        result = self._assemble(
            employee,
            adjustments,
            base.amount,
            totals,
            statutory,
            benefit_deductions,
            issues,
            estimated,
        )
        result.fingerprint = BreakdownBuilder.compute_fingerprint(
            self._fingerprint_inputs(
                employee, adjustments, rules, result.benefit_deductions, default_units
            )
        )

        logger.debug(
            "Calculated employee %s: gross=%s deductions=%s net=%s",
            employee.employee_id,
            result.gross_pay,
            result.total_deductions,
            result.net_pay,
        )
        return result

    def estimate(
        self,
        employee: Employee,
        custom_adjustments: Iterable[CustomAdjustment],
        error: str,
        benefit_deductions: Decimal = ZERO,
        default_units: Decimal = ZERO,
    ) -> PayCalculation:
        """Flat-estimate result for an employee whose calculation could not run.

        Gross pay and custom items are resolved from the employee's own
        inputs; only the statutory part is replaced by the flat estimate.
        """
        adjustments = list(custom_adjustments)
        base, totals = self._gross_inputs(employee, adjustments, default_units)
        statutory = self._fallback_estimate(base.amount + totals.gross_additions)
        issues = [*base.issues, CalculationIssue(IssueCode.CALCULATION_FAILURE, error)]
        return self._assemble(
            employee,
            adjustments,
            base.amount,
            totals,
            statutory,
            benefit_deductions,
            issues,
            estimated=True,
        )

    @staticmethod
    def _gross_inputs(
        employee: Employee,
        adjustments: list[CustomAdjustment],
        default_units: Decimal,
    ) -> tuple[BasePayResult, AdjustmentTotals]:
        base = CompensationBaseResolver.resolve(
            employee.pay_type,
            employee.pay_rate,
            hours_worked=employee.hours_worked,
            pieces_completed=employee.pieces_completed,
            default_units=default_units,
        )
        return base, CustomAdjustmentAggregator.aggregate(adjustments)

    def _assemble(
        self,
        employee: Employee,
        adjustments: list[CustomAdjustment],
        base_gross_pay: Decimal,
        totals: AdjustmentTotals,
        statutory: StatutoryResult,
        benefit_deductions: Decimal,
        issues: list[CalculationIssue],
        estimated: bool,
    ) -> PayCalculation:
        benefit_deductions = Decimal(benefit_deductions or ZERO)
        gross_pay = base_gross_pay + totals.gross_additions
        tax_deduction = statutory.total_employee
        total_deductions = tax_deduction + benefit_deductions + totals.deductions

        return PayCalculation(
            employee_id=employee.employee_id,
            base_gross_pay=base_gross_pay,
            gross_affecting_additions=totals.gross_additions,
            gross_pay=gross_pay,
            tax_deduction=tax_deduction,
            benefit_deductions=benefit_deductions,
            custom_deductions_total=totals.deductions,
            allowances_total=totals.allowances,
            total_deductions=total_deductions,
            net_pay=gross_pay + totals.allowances - total_deductions,
            employer_contributions=statutory.total_employer,
            standard_deductions=dict(statutory.employee_amounts),
            employer_breakdown=dict(statutory.employer_amounts),
            custom_breakdown=totals.breakdown,
            lines=self._build_lines(adjustments, statutory, benefit_deductions),
            issues=issues,
            estimated=estimated,
        )

    def _fallback_estimate(self, gross_pay: Decimal) -> StatutoryResult:
        """Simplified flat estimate used when statutory rules fail."""
        amount = BreakdownBuilder.round_to_cents(gross_pay * self.settings.fallback_tax_rate)
        return StatutoryResult(employee_amounts={FALLBACK_LABEL: amount})

    @staticmethod
    def _build_lines(
        adjustments: list[CustomAdjustment],
        statutory: StatutoryResult,
        benefit_deductions: Decimal,
    ) -> list[BreakdownLine]:
        lines: list[BreakdownLine] = []

        for item in CustomAdjustmentAggregator.of_type(adjustments, AdjustmentType.BENEFIT):
            lines.append(BreakdownBuilder.addition(item.name, item.amount))

        for name, amount in statutory.employee_amounts.items():
            lines.append(BreakdownBuilder.deduction(name, amount))

        for item in CustomAdjustmentAggregator.of_type(adjustments, AdjustmentType.DEDUCTION):
            lines.append(BreakdownBuilder.deduction(item.name, item.amount))

        for item in CustomAdjustmentAggregator.of_type(adjustments, AdjustmentType.ALLOWANCE):
            lines.append(BreakdownBuilder.addition(item.name, item.amount))

        if benefit_deductions > 0:
            lines.append(BreakdownBuilder.deduction("Benefit Deductions", benefit_deductions))

        for name, amount in statutory.employer_amounts.items():
            lines.append(BreakdownBuilder.employer(name, amount))

        return lines

    def _fingerprint_inputs(
        self,
        employee: Employee,
        adjustments: list[CustomAdjustment],
        rules: RuleSnapshot,
        benefit_deductions: Decimal,
        default_units: Decimal,
    ) -> dict[str, Any]:
        return {
            "engine_version": self.settings.engine_version,
            "employee": {
                "id": employee.employee_id,
                "pay_type": str(employee.pay_type),
                "pay_rate": employee.pay_rate,
                "country": employee.country,
                "employee_type": str(employee.employee_type),
                "hours_worked": employee.hours_worked,
                "pieces_completed": employee.pieces_completed,
            },
            "adjustments": [
                {"name": a.name, "amount": a.amount, "type": a.type.value} for a in adjustments
            ],
            "rules": repr(rules.get(employee.country)),
            "benefit_deductions": benefit_deductions,
            "default_units": default_units,
        }
