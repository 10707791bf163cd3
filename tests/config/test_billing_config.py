"""Tests for billing settings loading (billing_config)."""

from decimal import Decimal

import pytest

from billing_config import SETTINGS_ENV_VAR, get_active_settings, parse_settings
from billing_config.loader import compute_checksum, load_settings, load_yaml_file
from billing_config.schema import BillingSettings
from billing_kernel.exceptions import BillingConfigError


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "acme.yaml"
    path.write_text(
        "billing:\n"
        "  invoice_prefix: ACME\n"
        "  default_payment_terms_days: 14\n"
        "  default_tax_rate: 19.5\n"
        "  currency: EUR\n"
    )
    return path


class TestGetActiveSettings:
    """Resolution order: explicit path, environment variable, packaged default."""

    def test_packaged_default(self, monkeypatch):
        monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)
        settings = get_active_settings()
        assert settings.invoice_prefix == "INV"
        assert settings.default_payment_terms_days == 30
        assert settings.max_period_days == 366
        assert settings.default_tax_rate == Decimal("0")
        assert settings.currency == "USD"
        assert len(settings.checksum) == 64

    def test_environment_variable(self, monkeypatch, settings_file):
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(settings_file))
        settings = get_active_settings()
        assert settings.invoice_prefix == "ACME"
        assert settings.default_payment_terms_days == 14
        assert settings.default_tax_rate == Decimal("19.5")
        assert settings.currency == "EUR"

    def test_explicit_path_wins(self, monkeypatch, settings_file, tmp_path):
        other = tmp_path / "other.yaml"
        other.write_text("invoice_prefix: OTHER\n")
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(settings_file))
        assert get_active_settings(other).invoice_prefix == "OTHER"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_settings(tmp_path / "absent.yaml")

    def test_config_trace_logged(self, monkeypatch, settings_file, log_capture):
        monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)
        settings = get_active_settings(settings_file)
        [record] = log_capture.find("BILLING_CONFIG_TRACE")
        assert record["source"] == str(settings_file)
        assert record["checksum"] == settings.checksum


class TestParseSettings:
    def test_flat_mapping(self):
        settings = parse_settings({"invoice_prefix": "BILL", "max_period_days": 90})
        assert settings.invoice_prefix == "BILL"
        assert settings.max_period_days == 90
        assert settings.default_payment_terms_days == 30

    def test_empty_mapping_uses_defaults(self):
        settings = parse_settings({})
        assert settings == BillingSettings(checksum=settings.checksum)

    def test_unknown_keys_rejected(self):
        with pytest.raises(BillingConfigError, match="unknown keys: invoice_prefx"):
            parse_settings({"invoice_prefx": "INV"})

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"invoice_prefix": ""}, "invoice_prefix"),
            ({"default_tax_rate": 120}, "between 0 and 100"),
            ({"default_tax_rate": "lots"}, "numeric"),
            ({"default_tax_rate": "NaN"}, "between 0 and 100"),
            ({"default_payment_terms_days": 0}, "positive integer"),
            ({"max_period_days": True}, "positive integer"),
            ({"currency": 5}, "currency"),
            ({"billing": ["INV"]}, "must be a mapping"),
        ],
    )
    def test_invalid_values(self, data, message):
        with pytest.raises(BillingConfigError, match=message) as exc_info:
            parse_settings(data, source="test.yaml")
        assert exc_info.value.code == "BILLING_CONFIG_INVALID"
        assert exc_info.value.source == "test.yaml"

    def test_checksum_deterministic(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})


class TestLoadYamlFile:
    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("billing: [unclosed\n")
        with pytest.raises(BillingConfigError, match="malformed YAML"):
            load_yaml_file(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- INV\n- USD\n")
        with pytest.raises(BillingConfigError, match="top level must be a mapping"):
            load_settings(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}
