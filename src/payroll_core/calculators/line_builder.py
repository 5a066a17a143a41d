"""Breakdown line builder with deterministic hashing."""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from payroll_core.calculators.types import BreakdownLine, LineKind


class BreakdownBuilder:
    """Builds itemized breakdown lines for audit and export.

    Amounts are stored positive; the line kind carries the direction:
    - ADDITION: adds to pay (benefits, allowances)
    - DEDUCTION: reduces net pay (statutory, custom, manual benefit deductions)
    - EMPLOYER: employer-borne, never touches employee pay

    Rounding:
    - Statutory and employer amounts are rounded to cents per line
    - Totals are summed from the rounded lines
    """

    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(BreakdownBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def addition(description: str, amount: Decimal) -> BreakdownLine:
        return BreakdownLine(description=description, amount=abs(amount), kind=LineKind.ADDITION)

    @staticmethod
    def deduction(description: str, amount: Decimal) -> BreakdownLine:
        return BreakdownLine(description=description, amount=abs(amount), kind=LineKind.DEDUCTION)

    @staticmethod
    def employer(description: str, amount: Decimal) -> BreakdownLine:
        return BreakdownLine(description=description, amount=abs(amount), kind=LineKind.EMPLOYER)

    @staticmethod
    def compute_fingerprint(inputs: dict[str, Any]) -> str:
        """Compute a deterministic fingerprint of calculation inputs.

        Identical inputs produce identical fingerprints, so two calculations
        with the same fingerprint must produce the same breakdown.
        """
        json_str = json.dumps(inputs, sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()

    @staticmethod
    def total(lines: list[BreakdownLine], kind: LineKind) -> Decimal:
        """Sum line amounts of one kind."""
        return sum((line.amount for line in lines if line.kind == kind), Decimal("0"))
