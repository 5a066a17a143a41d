"""Country rule tables and rule snapshots."""

from payroll_core.rules.country_tables import (
    COUNTRY_ALIASES,
    DEFAULT_TABLES,
    UG_LST_STEPS,
    default_rule_snapshot,
)
from payroll_core.rules.snapshot import RuleSnapshot

__all__ = [
    "COUNTRY_ALIASES",
    "DEFAULT_TABLES",
    "UG_LST_STEPS",
    "RuleSnapshot",
    "default_rule_snapshot",
]
