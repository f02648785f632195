"""JSON-safe normalization and hashing for quote snapshots.

Provider payloads (yfinance in particular) use NaN for missing numerics and
occasionally emit -0.0. Both break diff-stable, strict JSON output, so every
snapshot goes through sanitize_nan_inf() before it is cached or hashed.
"""

from __future__ import annotations

import hashlib
import json
import math
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """Produce canonical JSON string with sorted keys and minimal separators.

    Uses allow_nan=False to fail fast if NaN/inf values slip through
    sanitization.
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def _is_nan_or_inf(x: Any) -> bool:
    """Check if value is NaN or inf, handling numpy types safely."""
    if isinstance(x, bool):
        return False
    try:
        return math.isnan(x) or math.isinf(x)
    except (TypeError, ValueError):
        return False


def to_finite_float(value: Any) -> float | None:
    """Coerce to float, or None for absent, non-numeric, bool, NaN or inf."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _is_negative_zero(x: Any) -> bool:
    """Check if value is -0.0 (which creates diff noise)."""
    try:
        return x == 0.0 and math.copysign(1.0, x) < 0
    except (TypeError, ValueError):
        return False


def sanitize_nan_inf(obj: Any) -> Any:
    """Recursively replace NaN, inf, -inf with None and -0.0 with 0.0."""
    if isinstance(obj, dict):
        return {k: sanitize_nan_inf(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [sanitize_nan_inf(item) for item in obj]
    elif _is_nan_or_inf(obj):
        return None
    elif _is_negative_zero(obj):
        return 0.0
    return obj


def snapshot_hash(obj: Any) -> str:
    """SHA-256 of the canonical JSON, truncated to 16 hex chars."""
    canonical_json = canonical_dumps(sanitize_nan_inf(obj))
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()[:16]
