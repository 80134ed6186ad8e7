from __future__ import annotations

import pytest

from esg_dashboard.core.formatting import (
    format_billions,
    format_market_cap,
    format_ratio_percent,
    format_revenue,
    format_signed_percent,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1.5e12, "$1.5T"),
        (2.3e9, "$2.3B"),
        (450e6, "$450.0M"),
        (950, "$950"),
        (0, "$0"),
    ],
)
def test_format_market_cap(value, expected) -> None:
    assert format_market_cap(value) == expected


def test_format_revenue_uses_two_decimals() -> None:
    assert format_revenue(3.6e10) == "$36.00B"
    assert format_revenue(1.25e12) == "$1.25T"
    assert format_revenue(7.5e6) == "$7.50M"


def test_prompt_helpers() -> None:
    assert format_billions(2.3e9) == "$2.3B"
    assert format_billions(8.6e10) == "$86.0B"
    assert format_ratio_percent(0.123) == "12.3%"
    assert format_ratio_percent(-0.02) == "-2.0%"


def test_format_signed_percent() -> None:
    assert format_signed_percent(1.234) == "+1.23%"
    assert format_signed_percent(0) == "+0.00%"
    assert format_signed_percent(-0.5) == "-0.50%"
