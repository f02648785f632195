"""Utility modules."""

from quote_mcp.utils.export import card_to_csv, card_to_text
from quote_mcp.utils.formatting import (
    format_percent_change,
    format_price,
    format_ratio,
    format_short_form,
)
from quote_mcp.utils.magnitude import (
    DEFAULT_CONFIG,
    ResolutionMethod,
    ResolutionResult,
    ResolverConfig,
    ScaleCandidate,
    estimate_reference,
    resolve_magnitude,
)
from quote_mcp.utils.normalize import canonical_dumps, sanitize_nan_inf, snapshot_hash
from quote_mcp.utils.provenance import build_error_response, build_meta, build_provenance
from quote_mcp.utils.sanitize import sanitize_text, sanitize_url
from quote_mcp.utils.validators import QuoteParams, normalize_symbol

__all__ = [
    "card_to_csv",
    "card_to_text",
    "format_percent_change",
    "format_price",
    "format_ratio",
    "format_short_form",
    "DEFAULT_CONFIG",
    "ResolutionMethod",
    "ResolutionResult",
    "ResolverConfig",
    "ScaleCandidate",
    "estimate_reference",
    "resolve_magnitude",
    "canonical_dumps",
    "sanitize_nan_inf",
    "snapshot_hash",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "sanitize_text",
    "sanitize_url",
    "QuoteParams",
    "normalize_symbol",
]
