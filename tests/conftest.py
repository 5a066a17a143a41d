"""Pytest fixtures for payroll core tests."""

from __future__ import annotations

from decimal import Decimal

import pytest

from payroll_core.calculators.types import (
    CountryRuleTable,
    DeductionRule,
    Employee,
    EmployeeType,
    RuleKind,
)
from payroll_core.config import Settings
from payroll_core.rules import RuleSnapshot, default_rule_snapshot


@pytest.fixture
def settings() -> Settings:
    """Settings with the shipped defaults, independent of the environment."""
    return Settings(
        expatriate_flat_tax_rate=Decimal("0.15"),
        fallback_tax_rate=Decimal("0.15"),
        installment_deduction_name="LST",
        max_installment_months=3,
        bulk_max_workers=2,
        bulk_batch_size=2,
        engine_version="test",
        log_level="DEBUG",
    )


@pytest.fixture
def flat_snapshot() -> RuleSnapshot:
    """A single-country snapshot with one 5% percentage rule."""
    table = CountryRuleTable(
        country_code="ZZ",
        currency="ZZD",
        rules=(
            DeductionRule(name="Levy", kind=RuleKind.PERCENTAGE, percentage=Decimal("5")),
        ),
    )
    return RuleSnapshot([table], aliases={"Zedland": "ZZ"})


@pytest.fixture
def default_snapshot() -> RuleSnapshot:
    """Snapshot of the shipped country tables."""
    return default_rule_snapshot()


@pytest.fixture
def make_employee():
    """Factory for salaried local employees."""

    def _make(
        employee_id: str = "emp-1",
        pay_rate: str | None = "50000",
        country: str | None = "ZZ",
        **kwargs,
    ) -> Employee:
        kwargs.setdefault("pay_type", "salary")
        kwargs.setdefault("employee_type", EmployeeType.LOCAL)
        return Employee(
            employee_id=employee_id,
            pay_rate=Decimal(pay_rate) if pay_rate is not None else None,
            country=country,
            **kwargs,
        )

    return _make
