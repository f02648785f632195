"""Offline market-cap resolution tool."""

from typing import Any

from quote_mcp.utils.formatting import format_short_form
from quote_mcp.utils.magnitude import ResolverConfig, estimate_reference, resolve_magnitude
from quote_mcp.utils.provenance import build_meta


def resolve_market_cap(
    reported: float | None,
    shares_outstanding: float | None = None,
    price: float | None = None,
    config: ResolverConfig | None = None,
) -> dict[str, Any]:
    """
    Resolve a reported market cap without fetching anything.

    Args:
        reported: Market-cap figure of unknown scale
        shares_outstanding: Raw share count, for the reference estimate
        price: Price per share, for the reference estimate
        config: Resolver thresholds (default: ResolverConfig())

    Returns:
        Dict with inputs, reference value, resolution and short form
    """
    reference = estimate_reference(shares_outstanding, price)
    resolution = resolve_magnitude(reported, reference, config or ResolverConfig())
    return {
        "meta": build_meta("resolve_market_cap"),
        "inputs": {
            "reported": reported,
            "shares_outstanding": shares_outstanding,
            "price": price,
        },
        "reference_value": reference,
        **resolution.to_dict(),
        "short_form": format_short_form(resolution.canonical_value),
    }
