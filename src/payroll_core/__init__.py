"""Payroll computation and adjustment engine."""

from payroll_core.calculators import (
    BracketTaxInstallmentPlanner,
    CompensationBaseResolver,
    CustomAdjustmentAggregator,
    DeductionRuleEngine,
    PayItemCalculator,
)
from payroll_core.rules import RuleSnapshot, default_rule_snapshot
from payroll_core.services import PayRunAggregator, PayRunService

__version__ = "1.0.0"

__all__ = [
    "BracketTaxInstallmentPlanner",
    "CompensationBaseResolver",
    "CustomAdjustmentAggregator",
    "DeductionRuleEngine",
    "PayItemCalculator",
    "PayRunAggregator",
    "PayRunService",
    "RuleSnapshot",
    "default_rule_snapshot",
]
