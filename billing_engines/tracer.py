"""
billing_engines.tracer -- BILLING_ENGINE_TRACE for pure engine calls.

Responsibility:
    ``@traced_engine`` wraps an engine function and, after each successful
    call, logs one ``BILLING_ENGINE_TRACE`` record: engine name and
    version, a fingerprint of the selected inputs, and the call duration.
    Two calls with equal inputs share a fingerprint, so a disputed invoice
    can be matched to the calculation that produced it.

Architecture position:
    Engines -- support for the pure calculation layer.  Reads arguments and
    logs; never mutates inputs or touches I/O otherwise.

Invariants enforced:
    - Fingerprints are the first 16 hex chars of a SHA-256 over a canonical
      text form: mappings sorted by key, sequences in order, None as "null".
    - Positional and keyword calls bind to the same parameter names, so
      they fingerprint identically.

Failure modes:
    - Exceptions from the engine propagate unchanged and no trace is logged.

Usage:
    @traced_engine("totals", "1.0", fingerprint_fields=("line_items", "tax_rate"))
    def compute_totals(line_items, tax_rate):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from typing import Any

from billing_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "BILLING_ENGINE_TRACE"
_FINGERPRINT_LENGTH = 16


def _canonicalize(value: Any) -> str:
    """Stable text form of an engine argument.

    Frozen dataclasses, Decimals and dates already have a deterministic
    ``str``; only containers need ordering rules.
    """
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        inner = ",".join(f"{k}:{_canonicalize(v)}" for k, v in sorted(value.items()))
        return "{" + inner + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(map(_canonicalize, value)) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Fingerprint of ``arguments`` restricted to ``fingerprint_fields``.

    Absent fields hash as "null".
    """
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return digest[:_FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorate a pure engine so each call emits BILLING_ENGINE_TRACE.

    Args:
        engine_name: Short engine identifier, e.g. "cycle".
        engine_version: Version of the engine's calculation rules.
        fingerprint_fields: Parameter names hashed into input_fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound)

            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.monotonic() - started) * 1000, 2)

            _logger.info(TRACE_TYPE, extra={
                "trace_type": TRACE_TYPE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
                "function": func.__qualname__,
            })
            return result

        return wrapper

    return decorator
