"""Statutory deduction rule evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from payroll_core.calculators.line_builder import BreakdownBuilder
from payroll_core.calculators.types import (
    ZERO,
    CalculationIssue,
    DeductionRule,
    EmployeeType,
    IssueCode,
    RuleKind,
    StepBracket,
    TaxBracket,
)

if TYPE_CHECKING:
    from payroll_core.rules.snapshot import RuleSnapshot

HUNDRED = Decimal("100")


class RuleConfigurationError(Exception):
    """Raised when a rule lacks the data its kind requires."""

    def __init__(self, rule_name: str, reason: str):
        self.rule_name = rule_name
        self.reason = reason
        super().__init__(f"Deduction rule '{rule_name}' is misconfigured: {reason}")


@dataclass(frozen=True)
class LocalRuleSet:
    """Mandatory rules from the employee's country table."""

    country_code: str | None
    rules: tuple[DeductionRule, ...]


@dataclass(frozen=True)
class ExpatriateFlatTax:
    """Single flat-rate tax replacing the whole country table."""

    rate: Decimal
    label: str


RuleSet = LocalRuleSet | ExpatriateFlatTax


@dataclass
class StatutoryResult:
    """Employee and employer portions of statutory deductions."""

    employee_amounts: dict[str, Decimal] = field(default_factory=dict)
    employer_amounts: dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_employee(self) -> Decimal:
        return sum(self.employee_amounts.values(), ZERO)

    @property
    def total_employer(self) -> Decimal:
        return sum(self.employer_amounts.values(), ZERO)


class DeductionRuleEngine:
    """Evaluates statutory deduction rules against gross pay.

    The classification is resolved once into a rule set:
    - expatriate: one flat-rate tax, no employer contribution
    - local: the mandatory rules of the country table, in table order

    Every local rule computes from the same gross pay. Rules flagged
    employer_only feed employer contributions only; any rule may also carry
    an employer_percentage on top of its employee amount.
    """

    @staticmethod
    def resolve_rule_set(
        employee_type: EmployeeType | str,
        country: str | None,
        snapshot: RuleSnapshot,
        expatriate_rate: Decimal,
        expatriate_label: str,
        issues: list[CalculationIssue] | None = None,
    ) -> RuleSet:
        """Resolve the rule set for a classification and country."""
        if EmployeeType(employee_type) == EmployeeType.EXPATRIATE:
            return ExpatriateFlatTax(rate=expatriate_rate, label=expatriate_label)

        table = snapshot.get(country)
        if table is None:
            if issues is not None:
                issues.append(
                    CalculationIssue(
                        IssueCode.UNKNOWN_COUNTRY,
                        f"No deduction rules for country {country!r}",
                    )
                )
            return LocalRuleSet(country_code=None, rules=())

        mandatory = tuple(rule for rule in table.rules if rule.mandatory)
        return LocalRuleSet(country_code=table.country_code, rules=mandatory)

    @classmethod
    def evaluate(cls, rule_set: RuleSet, gross_pay: Decimal) -> StatutoryResult:
        """Compute employee deductions and employer contributions."""
        result = StatutoryResult()

        if isinstance(rule_set, ExpatriateFlatTax):
            result.employee_amounts[rule_set.label] = BreakdownBuilder.round_to_cents(
                gross_pay * rule_set.rate
            )
            return result

        for rule in rule_set.rules:
            if rule.employer_only:
                percentage = rule.percentage if rule.percentage is not None else rule.employer_percentage
                amount = cls.employer_amount(rule, gross_pay, percentage)
                result.employer_amounts[rule.name] = BreakdownBuilder.round_to_cents(amount)
                continue

            result.employee_amounts[rule.name] = BreakdownBuilder.round_to_cents(
                cls.employee_amount(rule, gross_pay)
            )
            if rule.employer_percentage:
                amount = cls.employer_amount(rule, gross_pay, rule.employer_percentage)
                result.employer_amounts[rule.name] = BreakdownBuilder.round_to_cents(amount)

        return result

    @classmethod
    def employee_amount(cls, rule: DeductionRule, gross_pay: Decimal) -> Decimal:
        """Compute the employee-side amount of one rule."""
        if rule.kind == RuleKind.FIXED:
            if rule.amount is None:
                raise RuleConfigurationError(rule.name, "fixed rule has no amount")
            return rule.amount

        if rule.kind == RuleKind.PERCENTAGE:
            if rule.percentage is None:
                raise RuleConfigurationError(rule.name, "percentage rule has no percentage")
            return cls._capped_base(rule, gross_pay) * rule.percentage / HUNDRED

        if rule.kind == RuleKind.PROGRESSIVE:
            if not rule.brackets:
                raise RuleConfigurationError(rule.name, "progressive rule has no brackets")
            tax = calculate_progressive_tax(gross_pay, rule.brackets)
            if rule.relief and tax > 0:
                tax = max(ZERO, tax - rule.relief)
            return tax

        if rule.kind == RuleKind.BRACKET:
            if not rule.steps:
                raise RuleConfigurationError(rule.name, "bracket rule has no steps")
            return lookup_step_amount(gross_pay, rule.steps)

        raise RuleConfigurationError(rule.name, f"unsupported kind {rule.kind!r}")

    @classmethod
    def employer_amount(
        cls, rule: DeductionRule, gross_pay: Decimal, percentage: Decimal | None
    ) -> Decimal:
        """Compute an employer-side percentage of the (capped) base."""
        if percentage is None:
            raise RuleConfigurationError(rule.name, "employer rule has no percentage")
        return cls._capped_base(rule, gross_pay) * percentage / HUNDRED

    @staticmethod
    def _capped_base(rule: DeductionRule, gross_pay: Decimal) -> Decimal:
        if rule.cap is not None:
            return min(gross_pay, rule.cap)
        return gross_pay


def calculate_progressive_tax(gross_pay: Decimal, brackets: tuple[TaxBracket, ...]) -> Decimal:
    """Marginal tax: each bracket taxes the slice of pay that falls inside it."""
    tax = ZERO
    for bracket in brackets:
        if gross_pay <= bracket.min_amount:
            break
        upper = gross_pay if bracket.max_amount is None else min(gross_pay, bracket.max_amount)
        taxable = upper - bracket.min_amount
        if taxable > 0:
            tax += taxable * bracket.rate
    return tax


def lookup_step_amount(basis: Decimal, steps: tuple[StepBracket, ...]) -> Decimal:
    """Step function: the amount of the highest threshold not above basis.

    No blending across boundaries; a basis below the first threshold maps
    to zero.
    """
    amount = ZERO
    for step in steps:
        if basis < step.threshold:
            break
        amount = step.amount
    return amount
