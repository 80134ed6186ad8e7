from __future__ import annotations


def _scaled_dollars(value: float, digits: int) -> str:
    if value >= 1e12:
        return f"${value / 1e12:.{digits}f}T"
    if value >= 1e9:
        return f"${value / 1e9:.{digits}f}B"
    if value >= 1e6:
        return f"${value / 1e6:.{digits}f}M"
    return f"${value:.0f}"


def format_market_cap(value: float) -> str:
    """1_500_000_000_000 -> "$1.5T", 2_300_000_000 -> "$2.3B", 950 -> "$950"."""
    return _scaled_dollars(value, 1)


def format_revenue(value: float) -> str:
    return _scaled_dollars(value, 2)


def format_billions(value: float, digits: int = 1) -> str:
    return f"${value / 1e9:.{digits}f}B"


def format_ratio_percent(value: float, digits: int = 1) -> str:
    """Render a 0-1 ratio as a percentage, e.g. 0.123 -> "12.3%"."""
    return f"{value * 100:.{digits}f}%"


def format_signed_percent(value: float, digits: int = 2) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{digits}f}%"
