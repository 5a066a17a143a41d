"""Payroll calculation engine."""

from payroll_core.calculators.adjustments import CustomAdjustmentAggregator
from payroll_core.calculators.base_pay import CompensationBaseResolver
from payroll_core.calculators.deduction_rules import DeductionRuleEngine
from payroll_core.calculators.engine import PayItemCalculator
from payroll_core.calculators.installments import (
    BracketTaxInstallmentPlanner,
    InstallmentPlan,
)
from payroll_core.calculators.line_builder import BreakdownBuilder

__all__ = [
    "BracketTaxInstallmentPlanner",
    "BreakdownBuilder",
    "CompensationBaseResolver",
    "CustomAdjustmentAggregator",
    "DeductionRuleEngine",
    "InstallmentPlan",
    "PayItemCalculator",
]
