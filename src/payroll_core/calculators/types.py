"""Type definitions for calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

ZERO = Decimal("0")


class PayType(str, Enum):
    """How base pay is derived from the pay rate."""

    HOURLY = "hourly"
    PIECE_RATE = "piece_rate"
    DAILY_RATE = "daily_rate"
    SALARY = "salary"


class EmployeeType(str, Enum):
    """Tax classification of an employee."""

    LOCAL = "local"
    EXPATRIATE = "expatriate"


class AdjustmentType(str, Enum):
    """Custom adjustment classification.

    Each member has exactly one effect:
    - BENEFIT: added to gross pay, so percentage rules see it
    - ALLOWANCE: added to net pay after deductions
    - DEDUCTION: added to total deductions
    """

    BENEFIT = "benefit"
    ALLOWANCE = "allowance"
    DEDUCTION = "deduction"

    @property
    def affects_gross(self) -> bool:
        return self is AdjustmentType.BENEFIT

    @property
    def affects_net_only(self) -> bool:
        return self is AdjustmentType.ALLOWANCE

    @property
    def is_deduction(self) -> bool:
        return self is AdjustmentType.DEDUCTION


class RuleKind(str, Enum):
    """Deduction rule computation kinds."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"
    PROGRESSIVE = "progressive"
    BRACKET = "bracket"


class LineKind(str, Enum):
    """Breakdown line kinds."""

    ADDITION = "addition"
    DEDUCTION = "deduction"
    EMPLOYER = "employer"


class IssueCode(str, Enum):
    """Non-fatal conditions recorded during a calculation."""

    MISSING_INPUT_DEFAULT = "missing_input_default"
    UNKNOWN_COUNTRY = "unknown_country"
    UNKNOWN_PAY_TYPE = "unknown_pay_type"
    CALCULATION_FAILURE = "calculation_failure"


@dataclass(frozen=True)
class Employee:
    """Employee compensation data consumed by the calculator."""

    employee_id: str
    pay_type: str
    pay_rate: Decimal | None = None
    country: str | None = None
    employee_type: EmployeeType = EmployeeType.LOCAL
    hours_worked: Decimal | None = None
    pieces_completed: Decimal | None = None
    active: bool = True
    name: str = ""

    @property
    def is_expatriate(self) -> bool:
        return self.employee_type == EmployeeType.EXPATRIATE


@dataclass(frozen=True)
class CustomAdjustment:
    """Ad-hoc per-period item owned by a pay item."""

    name: str
    amount: Decimal
    type: AdjustmentType = AdjustmentType.DEDUCTION
    recurring: bool = False


@dataclass(frozen=True)
class TaxBracket:
    """Marginal tax bracket for progressive rules."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.30 for 30%


@dataclass(frozen=True)
class StepBracket:
    """Step-table entry: basis at or above threshold maps to amount."""

    threshold: Decimal
    amount: Decimal


@dataclass(frozen=True)
class DeductionRule:
    """A statutory deduction rule from a country table."""

    name: str
    kind: RuleKind
    mandatory: bool = True
    amount: Decimal | None = None  # FIXED
    percentage: Decimal | None = None  # PERCENTAGE, in percent (5 = 5%)
    brackets: tuple[TaxBracket, ...] = ()  # PROGRESSIVE
    steps: tuple[StepBracket, ...] = ()  # BRACKET
    relief: Decimal | None = None  # subtracted from a positive PROGRESSIVE result
    cap: Decimal | None = None  # ceiling on the base for percentage portions
    employer_percentage: Decimal | None = None
    employer_only: bool = False
    description: str = ""


@dataclass(frozen=True)
class CountryRuleTable:
    """Ordered statutory rules for one country."""

    country_code: str
    currency: str
    rules: tuple[DeductionRule, ...]


@dataclass(frozen=True)
class CalculationIssue:
    """A non-fatal issue recorded against one calculation."""

    code: IssueCode
    message: str


@dataclass(frozen=True)
class BreakdownLine:
    """One itemized line of a pay calculation."""

    description: str
    amount: Decimal
    kind: LineKind

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "description": self.description,
            "amount": str(self.amount),
            "kind": self.kind.value,
        }


@dataclass
class PayCalculation:
    """Full breakdown of one employee's pay for a period."""

    employee_id: str
    base_gross_pay: Decimal
    gross_affecting_additions: Decimal
    gross_pay: Decimal
    tax_deduction: Decimal  # statutory deductions total
    benefit_deductions: Decimal
    custom_deductions_total: Decimal
    allowances_total: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    employer_contributions: Decimal
    standard_deductions: dict[str, Decimal] = field(default_factory=dict)
    employer_breakdown: dict[str, Decimal] = field(default_factory=dict)
    custom_breakdown: dict[str, Decimal] = field(default_factory=dict)
    lines: list[BreakdownLine] = field(default_factory=list)
    issues: list[CalculationIssue] = field(default_factory=list)
    estimated: bool = False
    fingerprint: str = ""

    @property
    def errors(self) -> list[str]:
        return [
            i.message for i in self.issues if i.code == IssueCode.CALCULATION_FAILURE
        ]

    @property
    def success(self) -> bool:
        return len(self.errors) == 0
