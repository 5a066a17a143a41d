"""Tests for settings loading."""

from decimal import Decimal

from payroll_core.config import Settings


class TestSettings:
    """Test environment configuration."""

    def test_defaults(self, monkeypatch):
        for name in (
            "EXPATRIATE_FLAT_TAX_RATE",
            "FALLBACK_TAX_RATE",
            "INSTALLMENT_DEDUCTION_NAME",
            "MAX_INSTALLMENT_MONTHS",
        ):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr("payroll_core.config.load_dotenv", lambda: None)

        settings = Settings.from_env()

        assert settings.expatriate_flat_tax_rate == Decimal("0.15")
        assert settings.fallback_tax_rate == Decimal("0.15")
        assert settings.installment_deduction_name == "LST"
        assert settings.max_installment_months == 3

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("EXPATRIATE_FLAT_TAX_RATE", "0.125")
        monkeypatch.setenv("BULK_MAX_WORKERS", "8")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.expatriate_flat_tax_rate == Decimal("0.125")
        assert settings.bulk_max_workers == 8
        assert settings.log_level == "DEBUG"

    def test_expatriate_label(self, settings):
        assert settings.expatriate_tax_label == "Flat Tax (15%)"
