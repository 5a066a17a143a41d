"""Base gross pay resolution from pay type and units worked."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from payroll_core.calculators.types import (
    ZERO,
    CalculationIssue,
    IssueCode,
    PayType,
)


@dataclass
class BasePayResult:
    """Resolved base gross pay plus any defaults that were applied."""

    amount: Decimal
    issues: list[CalculationIssue] = field(default_factory=list)


class CompensationBaseResolver:
    """Resolves base gross pay for one employee.

    Resolution by pay type:
    - hourly: hours_worked * pay_rate
    - piece_rate: pieces_completed * pay_rate
    - daily_rate: hours_worked (read as days) * pay_rate
    - salary: pay_rate
    - anything else: pay_rate, recorded as an unknown pay type

    Units that do not match the pay type are ignored. An absent unit value
    falls back to the caller's default, an absent rate to zero. The result
    is never negative.
    """

    @staticmethod
    def resolve(
        pay_type: str | PayType | None,
        pay_rate: Decimal | None,
        hours_worked: Decimal | None = None,
        pieces_completed: Decimal | None = None,
        default_units: Decimal = ZERO,
    ) -> BasePayResult:
        issues: list[CalculationIssue] = []

        if pay_rate is None:
            issues.append(
                CalculationIssue(
                    IssueCode.MISSING_INPUT_DEFAULT, "Pay rate missing, using 0"
                )
            )
            rate = ZERO
        else:
            rate = Decimal(pay_rate)

        try:
            resolved_type = PayType(pay_type)
        except ValueError:
            resolved_type = None

        if resolved_type in (PayType.HOURLY, PayType.DAILY_RATE):
            units = _units_or_default(hours_worked, default_units, "hours_worked", issues)
            amount = units * rate
        elif resolved_type == PayType.PIECE_RATE:
            units = _units_or_default(
                pieces_completed, default_units, "pieces_completed", issues
            )
            amount = units * rate
        elif resolved_type == PayType.SALARY:
            amount = rate
        else:
            issues.append(
                CalculationIssue(
                    IssueCode.UNKNOWN_PAY_TYPE,
                    f"Unrecognized pay type {pay_type!r}, using pay rate as salary",
                )
            )
            amount = rate

        return BasePayResult(amount=max(amount, ZERO), issues=issues)


def _units_or_default(
    value: Decimal | None,
    default: Decimal,
    field_name: str,
    issues: list[CalculationIssue],
) -> Decimal:
    if value is None:
        issues.append(
            CalculationIssue(
                IssueCode.MISSING_INPUT_DEFAULT,
                f"{field_name} missing, using default {default}",
            )
        )
        return Decimal(default)
    return Decimal(value)
