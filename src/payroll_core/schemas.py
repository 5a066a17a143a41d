"""Pydantic schemas for records consumed from collaborators."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from payroll_core.calculators.types import (
    AdjustmentType,
    CountryRuleTable,
    CustomAdjustment,
    DeductionRule,
    Employee,
    EmployeeType,
    PayCalculation,
    RuleKind,
    StepBracket,
    TaxBracket,
)
from payroll_core.rules.country_tables import COUNTRY_ALIASES
from payroll_core.rules.snapshot import RuleSnapshot


# ============================================================================
# Employee and custom item records
# ============================================================================


class EmployeeRecord(BaseModel):
    """Employee record as supplied by the employee store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    pay_type: str = "salary"
    pay_rate: Decimal | None = None
    country: str | None = None
    employee_type: EmployeeType = EmployeeType.LOCAL
    hours_worked: Decimal | None = None
    pieces_completed: Decimal | None = None
    status: str = "active"
    first_name: str = ""
    last_name: str = ""

    def to_domain(self) -> Employee:
        return Employee(
            employee_id=self.id,
            pay_type=self.pay_type,
            pay_rate=self.pay_rate,
            country=self.country,
            employee_type=self.employee_type,
            hours_worked=self.hours_worked,
            pieces_completed=self.pieces_completed,
            active=self.status == "active",
            name=f"{self.first_name} {self.last_name}".strip(),
        )


class CustomAdjustmentRecord(BaseModel):
    """Custom item attached to a pay item."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(min_length=1)
    amount: Decimal
    type: AdjustmentType = AdjustmentType.DEDUCTION
    is_recurring: bool = False

    def to_domain(self) -> CustomAdjustment:
        return CustomAdjustment(
            name=self.name,
            amount=self.amount,
            type=self.type,
            recurring=self.is_recurring,
        )


# ============================================================================
# Country rule table records
# ============================================================================


class BracketRecord(BaseModel):
    """Bracket row. Progressive rules read min/max/rate, bracket rules min/amount."""

    min: Decimal
    max: Decimal | None = None
    rate: Decimal | None = None
    amount: Decimal | None = None


class DeductionRuleRecord(BaseModel):
    """One rule of a country deduction table."""

    name: str
    type: RuleKind
    mandatory: bool = True
    amount: Decimal | None = None
    percentage: Decimal | None = None
    brackets: list[BracketRecord] = Field(default_factory=list)
    relief: Decimal | None = None
    cap: Decimal | None = None
    employee_contribution: Decimal | None = Field(default=None, alias="employeeContribution")
    employer_contribution: Decimal | None = Field(default=None, alias="employerContribution")
    employer_only: bool = Field(default=False, alias="employerOnly")
    description: str = ""

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_kind_fields(self) -> DeductionRuleRecord:
        if self.type == RuleKind.FIXED and self.amount is None:
            raise ValueError(f"fixed rule '{self.name}' requires amount")
        if self.type == RuleKind.PERCENTAGE and self.percentage is None:
            raise ValueError(f"percentage rule '{self.name}' requires percentage")
        if self.type in (RuleKind.PROGRESSIVE, RuleKind.BRACKET) and not self.brackets:
            raise ValueError(f"{self.type.value} rule '{self.name}' requires brackets")
        if self.type == RuleKind.PROGRESSIVE:
            rates = [b.rate for b in self.brackets if b.rate]
            if any(r >= 1 for r in rates) and any(r < 1 for r in rates):
                raise ValueError(
                    f"progressive rule '{self.name}' mixes marginal rates with fixed amounts"
                )
        return self

    @property
    def has_amount_brackets(self) -> bool:
        """Progressive rows whose rate is a whole amount (>= 1) form a step table."""
        return self.type == RuleKind.PROGRESSIVE and any(
            b.rate is not None and b.rate >= 1 for b in self.brackets
        )

    def to_domain(self) -> DeductionRule:
        kind = RuleKind.BRACKET if self.has_amount_brackets else self.type
        brackets: tuple[TaxBracket, ...] = ()
        steps: tuple[StepBracket, ...] = ()
        if kind == RuleKind.PROGRESSIVE:
            brackets = tuple(
                TaxBracket(min_amount=b.min, max_amount=b.max, rate=b.rate or Decimal("0"))
                for b in sorted(self.brackets, key=lambda b: b.min)
            )
        elif kind == RuleKind.BRACKET:
            steps = tuple(
                StepBracket(
                    threshold=b.min,
                    amount=b.amount if b.amount is not None else b.rate or Decimal("0"),
                )
                for b in sorted(self.brackets, key=lambda b: b.min)
            )

        # A rule with only an employer contribution is employer-paid
        employer_only = self.employer_only or (
            self.employer_contribution is not None
            and self.employee_contribution is None
            and kind == RuleKind.PERCENTAGE
            and self.percentage == self.employer_contribution
        )

        return DeductionRule(
            name=self.name,
            kind=kind,
            mandatory=self.mandatory,
            amount=self.amount,
            percentage=self.percentage,
            brackets=brackets,
            steps=steps,
            relief=self.relief,
            cap=self.cap,
            employer_percentage=None if employer_only else self.employer_contribution,
            employer_only=employer_only,
            description=self.description,
        )


class CountryRulesRecord(BaseModel):
    """Deduction table of one country."""

    currency: str = ""
    deductions: list[DeductionRuleRecord]

    def to_domain(self, country_code: str) -> CountryRuleTable:
        return CountryRuleTable(
            country_code=country_code.upper(),
            currency=self.currency,
            rules=tuple(r.to_domain() for r in self.deductions),
        )


def build_rule_snapshot(
    tables: dict[str, CountryRulesRecord | dict],
    aliases: dict[str, str] | None = None,
) -> RuleSnapshot:
    """Validate raw country tables and build a snapshot from them."""
    parsed = []
    for code, value in tables.items():
        record = CountryRulesRecord.model_validate(value)
        parsed.append(record.to_domain(code))
    return RuleSnapshot(parsed, aliases=COUNTRY_ALIASES if aliases is None else aliases)


# ============================================================================
# Calculation output
# ============================================================================


class CalculationResponse(BaseModel):
    """Serializable view of one pay calculation."""

    employee_id: str
    gross_pay: Decimal
    tax_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    employer_contributions: Decimal
    standard_deductions: dict[str, Decimal]
    custom_breakdown: dict[str, Decimal]
    breakdown: list[dict[str, str]]
    issues: list[dict[str, str]]
    estimated: bool
    fingerprint: str

    @classmethod
    def from_calculation(cls, calc: PayCalculation) -> CalculationResponse:
        return cls(
            employee_id=calc.employee_id,
            gross_pay=calc.gross_pay,
            tax_deduction=calc.tax_deduction,
            total_deductions=calc.total_deductions,
            net_pay=calc.net_pay,
            employer_contributions=calc.employer_contributions,
            standard_deductions=calc.standard_deductions,
            custom_breakdown=calc.custom_breakdown,
            breakdown=[line.to_canonical_dict() for line in calc.lines],
            issues=[{"code": i.code.value, "message": i.message} for i in calc.issues],
            estimated=calc.estimated,
            fingerprint=calc.fingerprint,
        )


class InstallmentPreview(BaseModel):
    """Serializable installment plan row."""

    employee_id: str
    annual_liability: Decimal
    monthly_installment: Decimal


class PayRunSnapshot(BaseModel):
    """Input file for the CLI: employees, custom items and optional rule tables."""

    period_start: str = ""
    period_end: str = ""
    employees: list[EmployeeRecord]
    custom_adjustments: dict[str, list[CustomAdjustmentRecord]] = Field(default_factory=dict)
    benefit_deductions: dict[str, Decimal] = Field(default_factory=dict)
    rules: dict[str, CountryRulesRecord] | None = None
