"""Default statutory rule tables for the supported East African countries."""

from __future__ import annotations

from decimal import Decimal

from payroll_core.calculators.types import (
    CountryRuleTable,
    DeductionRule,
    RuleKind,
    StepBracket,
    TaxBracket,
)
from payroll_core.rules.snapshot import RuleSnapshot

D = Decimal

COUNTRY_ALIASES = {
    "Uganda": "UG",
    "Kenya": "KE",
    "Tanzania": "TZ",
    "Rwanda": "RW",
    "South Sudan": "SS",
}

# Pensionable ceiling for UG NSSF, applied to both portions.
UG_NSSF_PENSIONABLE_CAP = D("1200000")


def _brackets(*rows: tuple[str, str | None, str]) -> tuple[TaxBracket, ...]:
    return tuple(
        TaxBracket(
            min_amount=D(low),
            max_amount=D(high) if high is not None else None,
            rate=D(rate),
        )
        for low, high, rate in rows
    )


def _steps(*rows: tuple[str, str]) -> tuple[StepBracket, ...]:
    return tuple(StepBracket(threshold=D(t), amount=D(a)) for t, a in rows)


# Uganda Local Service Tax: annual liability by monthly gross pay.
UG_LST_STEPS = _steps(
    ("0", "0"),
    ("100000", "5000"),
    ("200000", "10000"),
    ("300000", "20000"),
    ("400000", "30000"),
    ("500000", "40000"),
    ("600000", "60000"),
    ("700000", "70000"),
    ("800000", "80000"),
    ("900000", "90000"),
    ("1000000", "100000"),
)

UGANDA = CountryRuleTable(
    country_code="UG",
    currency="UGX",
    rules=(
        DeductionRule(
            name="PAYE",
            kind=RuleKind.PROGRESSIVE,
            brackets=_brackets(
                ("0", "235000", "0"),
                ("235001", "335000", "0.10"),
                ("335001", "410000", "0.20"),
                ("410001", "10000000", "0.30"),
                ("10000001", None, "0.40"),
            ),
            description="Pay As You Earn Tax - Progressive income tax",
        ),
        DeductionRule(
            name="NSSF Employee",
            kind=RuleKind.PERCENTAGE,
            percentage=D("5"),
            cap=UG_NSSF_PENSIONABLE_CAP,
            description="NSSF Employee - 5%",
        ),
        DeductionRule(
            name="NSSF Employer",
            kind=RuleKind.PERCENTAGE,
            percentage=D("10"),
            cap=UG_NSSF_PENSIONABLE_CAP,
            employer_only=True,
            description="NSSF Employer - 10%",
        ),
        DeductionRule(
            name="LST",
            kind=RuleKind.FIXED,
            amount=D("4000"),
            mandatory=False,
            description="Local Service Tax - applied through installments",
        ),
    ),
)

KENYA = CountryRuleTable(
    country_code="KE",
    currency="KSH",
    rules=(
        DeductionRule(
            name="PAYE",
            kind=RuleKind.PROGRESSIVE,
            brackets=_brackets(
                ("0", "24000", "0.10"),
                ("24001", "32333", "0.25"),
                ("32334", None, "0.30"),
            ),
            relief=D("2400"),
            description="Pay As You Earn Tax - Personal Relief: 2,400 KSH",
        ),
        DeductionRule(
            name="NSSF",
            kind=RuleKind.PERCENTAGE,
            percentage=D("6"),
            employer_percentage=D("6"),
            description="National Social Security Fund",
        ),
        # Steps are reached at the threshold itself: a gross of exactly 6000
        # pays 150. Every bracket table here shares that rule with LST.
        DeductionRule(
            name="NHIF",
            kind=RuleKind.BRACKET,
            steps=_steps(
                ("0", "0"),
                ("6000", "150"),
                ("8000", "300"),
                ("12000", "400"),
                ("15000", "500"),
                ("20000", "600"),
                ("25000", "750"),
                ("30000", "850"),
                ("35000", "900"),
                ("40000", "950"),
                ("45000", "1000"),
                ("50000", "1100"),
                ("60000", "1200"),
                ("70000", "1300"),
                ("80000", "1400"),
                ("90000", "1500"),
                ("100000", "1700"),
            ),
            description="National Hospital Insurance Fund - Sliding scale",
        ),
        DeductionRule(
            name="Housing Levy",
            kind=RuleKind.PERCENTAGE,
            percentage=D("1.5"),
            employer_percentage=D("1.5"),
            description="Housing Development Levy - 1.5% employee + 1.5% employer",
        ),
    ),
)

TANZANIA = CountryRuleTable(
    country_code="TZ",
    currency="TZS",
    rules=(
        DeductionRule(
            name="PAYE",
            kind=RuleKind.PROGRESSIVE,
            brackets=_brackets(
                ("0", "270000", "0"),
                ("270001", "520000", "0.08"),
                ("520001", "760000", "0.20"),
                ("760001", "1000000", "0.25"),
                ("1000001", None, "0.30"),
            ),
            description="Pay As You Earn Tax",
        ),
        DeductionRule(
            name="NSSF",
            kind=RuleKind.PERCENTAGE,
            percentage=D("10"),
            employer_percentage=D("10"),
            description="National Social Security Fund - 10% employee + 10% employer",
        ),
        DeductionRule(
            name="Skills Development Levy",
            kind=RuleKind.PERCENTAGE,
            percentage=D("4.5"),
            employer_only=True,
            description="Skills Development Levy - 4.5% employer paid",
        ),
        DeductionRule(
            name="NHIF",
            kind=RuleKind.PERCENTAGE,
            percentage=D("3"),
            description="Health Insurance",
        ),
    ),
)

RWANDA = CountryRuleTable(
    country_code="RW",
    currency="RWF",
    rules=(
        DeductionRule(
            name="PAYE",
            kind=RuleKind.PROGRESSIVE,
            brackets=_brackets(
                ("0", "30000", "0"),
                ("30001", "100000", "0.20"),
                ("100001", "200000", "0.25"),
                ("200001", "400000", "0.30"),
                ("400001", None, "0.35"),
            ),
            description="Pay As You Earn Tax",
        ),
        DeductionRule(
            name="RSSB Pension",
            kind=RuleKind.PERCENTAGE,
            percentage=D("3"),
            employer_percentage=D("3"),
            description="Rwanda Social Security Board - Pension 3% + 3%",
        ),
        DeductionRule(
            name="RSSB Medical",
            kind=RuleKind.PERCENTAGE,
            percentage=D("3"),
            employer_percentage=D("3"),
            description="Rwanda Social Security Board - Medical 3% + 3%",
        ),
        DeductionRule(
            name="RSSB Occupational Hazards",
            kind=RuleKind.PERCENTAGE,
            percentage=D("2"),
            employer_only=True,
            description="Rwanda Social Security Board - Occupational Hazards 2% employer",
        ),
    ),
)

SOUTH_SUDAN = CountryRuleTable(
    country_code="SS",
    currency="SSP",
    rules=(
        DeductionRule(
            name="PAYE",
            kind=RuleKind.PROGRESSIVE,
            brackets=_brackets(
                ("0", "300", "0"),
                ("301", "1000", "0.10"),
                ("1001", "3000", "0.15"),
                ("3001", "10000", "0.20"),
                ("10001", "20000", "0.25"),
                ("20001", None, "0.30"),
            ),
            description="Pay As You Earn Tax - Progressive",
        ),
        DeductionRule(
            name="Pension",
            kind=RuleKind.PERCENTAGE,
            percentage=D("5"),
            employer_percentage=D("7"),
            description="Pension - 5% employee + 7% employer",
        ),
    ),
)

DEFAULT_TABLES = (UGANDA, KENYA, TANZANIA, RWANDA, SOUTH_SUDAN)


def default_rule_snapshot() -> RuleSnapshot:
    """Build a fresh snapshot of the shipped country tables."""
    return RuleSnapshot(DEFAULT_TABLES, aliases=COUNTRY_ALIASES)
