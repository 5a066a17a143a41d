"""Pay run and pay item records."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import uuid4

from payroll_core.calculators.types import (
    ZERO,
    CustomAdjustment,
    Employee,
    PayCalculation,
)


def _new_id() -> str:
    return str(uuid4())


@dataclass
class PayRunTotals:
    """Aggregate money totals of a pay run."""

    total_gross_pay: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_net_pay: Decimal = ZERO
    total_employer_contributions: Decimal = ZERO
    item_count: int = 0


@dataclass
class PayItem:
    """One employee's record within a pay run."""

    employee: Employee
    pay_item_id: str = field(default_factory=_new_id)
    custom_adjustments: list[CustomAdjustment] = field(default_factory=list)
    benefit_deductions: Decimal = ZERO
    status: str = "draft"
    calculation: PayCalculation | None = None

    # Persisted figures, written only from a completed calculation
    gross_pay: Decimal = ZERO
    tax_deduction: Decimal = ZERO
    total_deductions: Decimal = ZERO
    net_pay: Decimal = ZERO
    employer_contributions: Decimal = ZERO

    @property
    def employee_id(self) -> str:
        return self.employee.employee_id

    @property
    def hours_worked(self) -> Decimal | None:
        return self.employee.hours_worked

    @property
    def pieces_completed(self) -> Decimal | None:
        return self.employee.pieces_completed

    @property
    def has_error(self) -> bool:
        return self.calculation is not None and not self.calculation.success

    def apply(self, calculation: PayCalculation) -> None:
        """Store a finished calculation on the item."""
        self.calculation = calculation
        self.gross_pay = calculation.gross_pay
        self.tax_deduction = calculation.tax_deduction
        self.total_deductions = calculation.total_deductions
        self.net_pay = calculation.net_pay
        self.employer_contributions = calculation.employer_contributions


@dataclass
class PayRun:
    """A batch of pay items for one pay group and period."""

    period_start: str
    period_end: str
    pay_run_id: str = field(default_factory=_new_id)
    pay_group: str = ""
    status: str = "draft"
    items: list[PayItem] = field(default_factory=list)
    totals: PayRunTotals = field(default_factory=PayRunTotals)

    def get_item(self, pay_item_id: str) -> PayItem | None:
        return next((i for i in self.items if i.pay_item_id == pay_item_id), None)

    def items_for(self, pay_item_ids: list[str] | None) -> list[PayItem]:
        """Items with the given ids, or every item when no ids are given."""
        if not pay_item_ids:
            return list(self.items)
        wanted = set(pay_item_ids)
        return [i for i in self.items if i.pay_item_id in wanted]
