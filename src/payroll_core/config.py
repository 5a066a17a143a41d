"""Configuration management for the payroll core."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Engine settings loaded from environment."""

    expatriate_flat_tax_rate: Decimal
    fallback_tax_rate: Decimal
    installment_deduction_name: str
    max_installment_months: int
    bulk_max_workers: int
    bulk_batch_size: int
    engine_version: str
    log_level: str

    @property
    def expatriate_tax_label(self) -> str:
        """Breakdown label for the expatriate flat tax, e.g. 'Flat Tax (15%)'."""
        percent = (self.expatriate_flat_tax_rate * 100).normalize()
        return f"Flat Tax ({percent:f}%)"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            expatriate_flat_tax_rate=Decimal(os.getenv("EXPATRIATE_FLAT_TAX_RATE", "0.15")),
            fallback_tax_rate=Decimal(os.getenv("FALLBACK_TAX_RATE", "0.15")),
            installment_deduction_name=os.getenv("INSTALLMENT_DEDUCTION_NAME", "LST"),
            max_installment_months=int(os.getenv("MAX_INSTALLMENT_MONTHS", "3")),
            bulk_max_workers=int(os.getenv("BULK_MAX_WORKERS", "4")),
            bulk_batch_size=int(os.getenv("BULK_BATCH_SIZE", "50")),
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
