"""
Settings Loader (``billing_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a ``BillingSettings``
instance.  The single public entry point for runtime settings is
``billing_config.get_active_settings()``.

Invariants enforced
-------------------
* Unknown keys are rejected so typos never fall back to silent defaults.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  settings identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML or invalid values  -> ``BillingConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from billing_config.schema import BillingSettings
from billing_kernel.exceptions import BillingConfigError

_KNOWN_KEYS = frozenset(f.name for f in fields(BillingSettings)) - {"checksum"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        BillingConfigError: if the file is not valid YAML or not a mapping.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise BillingConfigError(str(path), f"malformed YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise BillingConfigError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _positive_int(source: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise BillingConfigError(source, f"{key} must be a positive integer, got {value!r}")
    return value


def parse_settings(data: dict[str, Any], source: str = "<dict>") -> BillingSettings:
    """
    Parse a ``BillingSettings`` from a dict.

    Settings may be nested under a top-level ``billing`` key.

    Raises:
        BillingConfigError: unknown keys or invalid values.
    """
    section = data.get("billing", data)
    if not isinstance(section, dict):
        raise BillingConfigError(source, "billing section must be a mapping")

    unknown = sorted(set(section) - _KNOWN_KEYS)
    if unknown:
        raise BillingConfigError(source, f"unknown keys: {', '.join(unknown)}")

    defaults = BillingSettings()

    prefix = section.get("invoice_prefix", defaults.invoice_prefix)
    if not isinstance(prefix, str) or not prefix.strip():
        raise BillingConfigError(source, "invoice_prefix must be a non-empty string")

    try:
        tax_rate = Decimal(str(section.get("default_tax_rate", defaults.default_tax_rate)))
    except InvalidOperation as exc:
        raise BillingConfigError(source, "default_tax_rate must be numeric") from exc
    if not tax_rate.is_finite() or not Decimal("0") <= tax_rate <= Decimal("100"):
        raise BillingConfigError(source, "default_tax_rate must be between 0 and 100")

    currency = section.get("currency", defaults.currency)
    if not isinstance(currency, str) or not currency.strip():
        raise BillingConfigError(source, "currency must be a non-empty string")

    return BillingSettings(
        invoice_prefix=prefix.strip(),
        default_payment_terms_days=_positive_int(
            source,
            "default_payment_terms_days",
            section.get("default_payment_terms_days", defaults.default_payment_terms_days),
        ),
        max_period_days=_positive_int(
            source, "max_period_days", section.get("max_period_days", defaults.max_period_days)
        ),
        default_tax_rate=tax_rate,
        currency=currency.strip(),
        checksum=compute_checksum(data),
    )


def load_settings(path: Path) -> BillingSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(path), source=str(path))
