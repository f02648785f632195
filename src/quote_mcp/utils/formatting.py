"""Display formatting for quote card values."""

from typing import Any

from quote_mcp.utils.normalize import to_finite_float

NOT_AVAILABLE = "N/A"

# (threshold, divisor, suffix), largest first. The tier is chosen on the
# unrounded value, so 999_999_000 renders as "$1000.00M", not "$1.00B".
_SHORT_FORM_STEPS: tuple[tuple[float, float, str], ...] = (
    (1e12, 1e12, "T"),
    (1e9, 1e9, "B"),
    (1e6, 1e6, "M"),
)


def format_short_form(value: Any) -> str:
    """
    Render a raw-unit dollar amount as a suffixed short form.

    Examples: 2_980_000_000_000 -> "$2.98T", 32_800_000 -> "$32.80M",
    999.5 -> "$999.50", None -> "N/A". Negative values keep their sign
    in front of the dollar sign ("-$1.50B").

    Args:
        value: Canonical value in raw units

    Returns:
        Short form string
    """
    number = to_finite_float(value)
    if number is None:
        return NOT_AVAILABLE

    sign = "-" if number < 0 else ""
    magnitude = abs(number)
    for threshold, divisor, suffix in _SHORT_FORM_STEPS:
        if magnitude >= threshold:
            return f"{sign}${magnitude / divisor:.2f}{suffix}"
    return f"{sign}${magnitude:.2f}"


def format_price(value: Any) -> str:
    """Format a share price as "$191.03"."""
    number = to_finite_float(value)
    if number is None:
        return NOT_AVAILABLE
    sign = "-" if number < 0 else ""
    return f"{sign}${abs(number):.2f}"


def format_percent_change(value: Any) -> str:
    """Format a percent change with an explicit plus sign for gains."""
    number = to_finite_float(value)
    if number is None:
        return NOT_AVAILABLE
    # Avoid "-0.00%" for tiny losses
    if round(number, 2) == 0:
        return "0.00%"
    return f"{number:+.2f}%"


def format_ratio(value: Any) -> str:
    number = to_finite_float(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{number:.2f}"
