"""Payroll core command line interface.

Provides operational tools for:
- Calculating a pay run from a JSON snapshot
- Previewing annual levy installments

Usage:
    python -m payroll_core calculate snapshot.json
    python -m payroll_core plan-installments snapshot.json --months 3 --scope threshold --threshold 100000
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from payroll_core.calculators.installments import (
    InstallmentConfigError,
    InstallmentScope,
    LevyMethod,
)
from payroll_core.config import get_settings
from payroll_core.rules.country_tables import default_rule_snapshot
from payroll_core.schemas import (
    CalculationResponse,
    InstallmentPreview,
    PayRunSnapshot,
    build_rule_snapshot,
)
from payroll_core.services.pay_run_service import PayRunService

logger = logging.getLogger(__name__)


def parse_decimal(s: str) -> Decimal:
    """Parse a decimal amount."""
    try:
        return Decimal(s)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {s!r}") from None


class PayrollCli:
    """Payroll core command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m payroll_core",
            description="Payroll computation tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        calculate = subparsers.add_parser(
            "calculate",
            help="Calculate every employee of a snapshot and print the pay run",
        )
        calculate.add_argument("snapshot", type=Path, help="JSON snapshot file")

        plan = subparsers.add_parser(
            "plan-installments",
            help="Preview levy installments for a snapshot",
        )
        plan.add_argument("snapshot", type=Path, help="JSON snapshot file")
        plan.add_argument(
            "--method",
            choices=[m.value for m in LevyMethod],
            default=LevyMethod.BRACKET.value,
            help="Bracket table lookup or one fixed annual amount",
        )
        plan.add_argument("--months", type=int, default=3, help="Installment months")
        plan.add_argument(
            "--scope",
            choices=[s.value for s in InstallmentScope],
            default=InstallmentScope.ALL.value,
        )
        plan.add_argument(
            "--selected",
            type=str,
            help="Comma-separated employee ids for the selected scope",
        )
        plan.add_argument("--threshold", type=parse_decimal, help="Minimum gross pay")
        plan.add_argument(
            "--annual-amount",
            type=parse_decimal,
            help="Annual amount for the fixed method",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        handlers: dict[str, Callable[..., int]] = {
            "calculate": self._cmd_calculate,
            "plan-installments": self._cmd_plan_installments,
        }

        handler = handlers.get(parsed.command)
        if handler:
            try:
                return handler(parsed)
            except (OSError, ValidationError, InstallmentConfigError) as e:
                print(f"ERROR: {e}", file=sys.stderr)
                return 1

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_calculate(self, args: argparse.Namespace) -> int:
        """Calculate a pay run from a snapshot."""
        service, snapshot = self._load(args.snapshot)
        pay_run = service.generate(
            [e.to_domain() for e in snapshot.employees],
            period_start=snapshot.period_start,
            period_end=snapshot.period_end,
            adjustments={
                employee_id: [r.to_domain() for r in records]
                for employee_id, records in snapshot.custom_adjustments.items()
            },
            benefit_deductions=snapshot.benefit_deductions,
        )

        output = {
            "pay_run_id": pay_run.pay_run_id,
            "status": pay_run.status,
            "totals": {
                "gross_pay": str(pay_run.totals.total_gross_pay),
                "total_deductions": str(pay_run.totals.total_deductions),
                "net_pay": str(pay_run.totals.total_net_pay),
                "employer_contributions": str(pay_run.totals.total_employer_contributions),
                "items": pay_run.totals.item_count,
            },
            "items": [
                CalculationResponse.from_calculation(item.calculation).model_dump(mode="json")
                for item in pay_run.items
                if item.calculation is not None
            ],
        }
        print(json.dumps(output, indent=2))
        return 0

    def _cmd_plan_installments(self, args: argparse.Namespace) -> int:
        """Preview installments without applying them."""
        service, snapshot = self._load(args.snapshot)
        pay_run = service.generate(
            [e.to_domain() for e in snapshot.employees],
            period_start=snapshot.period_start,
            period_end=snapshot.period_end,
        )
        selected = [s.strip() for s in args.selected.split(",")] if args.selected else None

        plans = service.plan_installments(
            pay_run,
            method=args.method,
            months=args.months,
            scope=args.scope,
            selected_ids=selected,
            threshold=args.threshold,
            fixed_amount=args.annual_amount,
        )
        rows = [
            InstallmentPreview(
                employee_id=p.employee_id,
                annual_liability=p.annual_liability,
                monthly_installment=p.monthly_installment,
            ).model_dump(mode="json")
            for p in plans
        ]
        print(json.dumps(rows, indent=2))
        return 0

    @staticmethod
    def _load(path: Path) -> tuple[PayRunService, PayRunSnapshot]:
        snapshot = PayRunSnapshot.model_validate_json(path.read_text())
        if snapshot.rules is not None:
            rules = build_rule_snapshot(snapshot.rules)
        else:
            rules = default_rule_snapshot()
        logger.debug("Loaded %d employee(s) from %s", len(snapshot.employees), path)
        return PayRunService(rules), snapshot


def main() -> int:
    """CLI entry point."""
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    cli = PayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
