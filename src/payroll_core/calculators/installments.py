"""Bracket-based annual levy planning and monthly apportionment."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from enum import Enum

from payroll_core.calculators.deduction_rules import lookup_step_amount
from payroll_core.calculators.types import (
    AdjustmentType,
    CustomAdjustment,
    StepBracket,
)
from payroll_core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class LevyMethod(str, Enum):
    """How the annual liability is determined."""

    BRACKET = "bracket"  # official step table lookup
    FIXED = "fixed"  # same annual amount for every employee


class InstallmentScope(str, Enum):
    """Which employees an installment plan applies to."""

    ALL = "all"
    SELECTED = "selected"
    THRESHOLD = "threshold"


class InstallmentConfigError(ValueError):
    """Raised when an installment plan request is invalid."""


@dataclass(frozen=True)
class LevyCandidate:
    """An employee considered for the levy, with the basis for lookup."""

    employee_id: str
    gross_pay: Decimal
    name: str = ""


@dataclass(frozen=True)
class InstallmentPlan:
    """Annual liability and the installment for the current period."""

    employee_id: str
    annual_liability: Decimal
    monthly_installment: Decimal
    months: int

    @property
    def remainder(self) -> Decimal:
        """Part of the annual liability not covered by N equal installments.

        Informational only; it is not added to any installment.
        """
        return self.annual_liability - self.monthly_installment * self.months

    def to_custom_adjustment(self, name: str) -> CustomAdjustment:
        """The recurring deduction persisted for the current period."""
        return CustomAdjustment(
            name=name,
            amount=self.monthly_installment,
            type=AdjustmentType.DEDUCTION,
            recurring=True,
        )


class BracketTaxInstallmentPlanner:
    """Computes annual levy liabilities and apportions them into installments.

    Bracket lookup is a step function over the configured table. The monthly
    installment is floor(annual / months); with a single month the full
    annual amount is due at once. Only the current period's installment is
    produced, so later periods are left to the caller.
    """

    def __init__(self, steps: tuple[StepBracket, ...], settings: Settings | None = None):
        self.steps = steps
        self.settings = settings or get_settings()

    def annual_liability(
        self,
        basis: Decimal,
        method: LevyMethod | str = LevyMethod.BRACKET,
        fixed_amount: Decimal | None = None,
    ) -> Decimal:
        """Annual liability for one basis value."""
        method = _parse(LevyMethod, method, "method")
        if method == LevyMethod.FIXED:
            if fixed_amount is None:
                raise InstallmentConfigError("Fixed method requires an annual amount")
            return Decimal(fixed_amount)
        return lookup_step_amount(Decimal(basis), self.steps)

    def monthly_installment(self, annual: Decimal, months: int) -> Decimal:
        """floor(annual / months), or the full amount for a single month."""
        self._validate_months(months)
        if months == 1:
            return annual
        return (annual / months).to_integral_value(rounding=ROUND_FLOOR)

    def select_targets(
        self,
        employees: Iterable[LevyCandidate],
        scope: InstallmentScope | str = InstallmentScope.ALL,
        selected_ids: Iterable[str] | None = None,
        threshold: Decimal | None = None,
    ) -> list[LevyCandidate]:
        """Filter candidates by scope.

        An empty selection under the selected scope means every employee.
        """
        scope = _parse(InstallmentScope, scope, "scope")
        candidates = list(employees)

        if scope == InstallmentScope.SELECTED:
            wanted = set(selected_ids or ())
            if wanted:
                return [c for c in candidates if c.employee_id in wanted]
            return candidates

        if scope == InstallmentScope.THRESHOLD:
            if threshold is None:
                raise InstallmentConfigError("Threshold scope requires a threshold")
            return [c for c in candidates if c.gross_pay >= threshold]

        return candidates

    def plan_installments(
        self,
        employees: Iterable[LevyCandidate],
        method: LevyMethod | str = LevyMethod.BRACKET,
        months: int = 3,
        scope: InstallmentScope | str = InstallmentScope.ALL,
        selected_ids: Iterable[str] | None = None,
        threshold: Decimal | None = None,
        fixed_amount: Decimal | None = None,
    ) -> list[InstallmentPlan]:
        """Preview installments for every targeted employee."""
        self._validate_months(months)
        targets = self.select_targets(employees, scope, selected_ids, threshold)

        plans = []
        for candidate in targets:
            annual = self.annual_liability(candidate.gross_pay, method, fixed_amount)
            plans.append(
                InstallmentPlan(
                    employee_id=candidate.employee_id,
                    annual_liability=annual,
                    monthly_installment=self.monthly_installment(annual, months),
                    months=months,
                )
            )

        logger.debug(
            "Planned %d installment(s) over %d month(s) using %s",
            len(plans),
            months,
            method,
        )
        return plans

    def _validate_months(self, months: int) -> None:
        limit = self.settings.max_installment_months
        if not isinstance(months, int) or not 1 <= months <= limit:
            raise InstallmentConfigError(
                f"Installment months must be between 1 and {limit}, got {months!r}"
            )


def _parse(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise InstallmentConfigError(f"Unknown installment {label} {value!r}") from None

