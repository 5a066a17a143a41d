"""Immutable snapshot of country rule tables passed into each calculation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payroll_core.calculators.types import CountryRuleTable


class RuleSnapshot:
    """Country code -> rule table lookup, with country-name aliases.

    The snapshot is built by the caller and never refreshed by the engine;
    a new configuration means a new snapshot.
    """

    def __init__(
        self,
        tables: Iterable[CountryRuleTable],
        aliases: Mapping[str, str] | None = None,
    ):
        self._tables = MappingProxyType({t.country_code.upper(): t for t in tables})
        self._aliases = MappingProxyType(
            {name.casefold(): code.upper() for name, code in (aliases or {}).items()}
        )

    def resolve_code(self, country: str | None) -> str | None:
        """Map a country code or name to a known country code."""
        if not country:
            return None
        key = country.strip()
        if key.upper() in self._tables:
            return key.upper()
        code = self._aliases.get(key.casefold())
        if code in self._tables:
            return code
        return None

    def get(self, country: str | None) -> CountryRuleTable | None:
        """Rule table for a country code or name, None when unknown."""
        code = self.resolve_code(country)
        return self._tables[code] if code else None

    @property
    def country_codes(self) -> list[str]:
        return sorted(self._tables)

    def __contains__(self, country: object) -> bool:
        return isinstance(country, str) and self.resolve_code(country) is not None

    def __len__(self) -> int:
        return len(self._tables)
