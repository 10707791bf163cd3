"""
billing_config -- single public entrypoint for billing settings.

Responsibility:
    Provides the ONLY way to obtain billing settings at runtime through
    ``get_active_settings()``.  No other component reads settings files or
    environment variables directly.

Resolution order:
    1. An explicit ``path`` argument
    2. The ``BILLING_SETTINGS_FILE`` environment variable
    3. The packaged ``sets/default.yaml``

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``BillingConfigError`` -- malformed YAML or invalid values.

Audit relevance:
    Every successful call emits a ``BILLING_CONFIG_TRACE`` log entry with
    the source path and checksum, tying generated invoices back to the
    settings that governed them.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from billing_config.loader import load_settings, parse_settings
from billing_config.schema import BillingSettings

_logger = logging.getLogger("billing_kernel.config")

SETTINGS_ENV_VAR = "BILLING_SETTINGS_FILE"
_DEFAULT_SETTINGS_FILE = Path(__file__).parent / "sets" / "default.yaml"


def get_active_settings(path: str | Path | None = None) -> BillingSettings:
    """Load the billing settings in effect."""
    if path is None:
        path = os.environ.get(SETTINGS_ENV_VAR) or _DEFAULT_SETTINGS_FILE
    source = Path(path)

    settings = load_settings(source)

    _logger.info(
        "BILLING_CONFIG_TRACE",
        extra={
            "trace_type": "BILLING_CONFIG_TRACE",
            "source": str(source),
            "checksum": settings.checksum,
            "invoice_prefix": settings.invoice_prefix,
            "default_payment_terms_days": settings.default_payment_terms_days,
        },
    )
    return settings


__all__ = [
    "BillingSettings",
    "SETTINGS_ENV_VAR",
    "get_active_settings",
    "load_settings",
    "parse_settings",
]
