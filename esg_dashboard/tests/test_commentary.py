from __future__ import annotations

import asyncio
import json

from esg_dashboard.core.errors import UpstreamError
from esg_dashboard.services.commentary import (
    CLIMATE_PLACEHOLDER,
    COMMENTARY_PLACEHOLDER,
    CompanySnapshot,
    build_prompt,
    describe_snapshot,
    first_sentence,
    parse_commentary_reply,
    strip_code_fences,
)


def test_first_sentence_truncates_at_terminal_punctuation() -> None:
    assert first_sentence("Strong margins. Weak demand hurt volumes.") == "Strong margins."
    assert first_sentence("Up sharply! Analysts upgraded.") == "Up sharply!"
    assert first_sentence("  Single sentence.  ") == "Single sentence."


def test_first_sentence_ignores_decimals_and_lowercase_continuations() -> None:
    text = "Revenue grew 3.5 percent on U.S. demand. Margins held."
    assert first_sentence(text) == "Revenue grew 3.5 percent on U.S. demand."
    assert first_sentence("Revenue grew due to U.S. demand. Margins held.") == "Revenue grew due to U.S. demand."


def test_first_sentence_without_punctuation_is_kept_whole() -> None:
    assert first_sentence("no terminal punctuation here") == "no terminal punctuation here"
    assert first_sentence("") == ""


def test_strip_code_fences() -> None:
    assert strip_code_fences('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'
    assert strip_code_fences("```\n[]\n```  ") == "[]"
    assert strip_code_fences("[]") == "[]"


def test_describe_snapshot_formats_known_metrics() -> None:
    snapshot = CompanySnapshot(
        ticker="GIS",
        name="General Mills",
        sector="food-manufacturer",
        price=58.9,
        change_percent=1.234,
        market_cap=3.5e10,
        ttm_revenue=1.99e10,
        ttm_profit_margin=0.123,
    )
    assert describe_snapshot(snapshot) == (
        "- GIS (General Mills, food-manufacturer): "
        "$35.0B market cap, $19.9B TTM revenue, 12.3% TTM profit margin, +1.23% today"
    )


def test_describe_snapshot_omits_missing_metrics() -> None:
    snapshot = CompanySnapshot(ticker="ZZZ", name="ZZZ", sector="unknown", change_percent=-0.5)
    assert describe_snapshot(snapshot) == "- ZZZ (ZZZ, unknown): -0.50% today"


def test_build_prompt_lists_one_line_per_company() -> None:
    prompt = build_prompt(
        [
            CompanySnapshot(ticker="A", name="Alpha", sector="ag-chemical"),
            CompanySnapshot(ticker="B", name="Beta", sector="animal-feed"),
        ]
    )
    assert '"climateImpact"' in prompt
    assert prompt.endswith("- A (Alpha, ag-chemical): \n- B (Beta, animal-feed): ")


def test_malformed_reply_falls_back_to_placeholders_in_request_order() -> None:
    for raw in ("not json at all", '{"ticker": "A"}', '[{"ticker": "A"}]', "[1, 2]"):
        items = parse_commentary_reply(raw, ["GIS", "MDLZ"])
        assert [i.ticker for i in items] == ["GIS", "MDLZ"]
        assert all(i.commentary == COMMENTARY_PLACEHOLDER for i in items)
        assert all(i.climate_impact == CLIMATE_PLACEHOLDER for i in items)


def test_reply_fields_are_truncated_to_one_sentence() -> None:
    raw = "```json\n" + json.dumps(
        [
            {
                "ticker": "gis",
                "commentary": "Margins are solid. Volumes fell.",
                "climateImpact": "Drought raised wheat costs. Packaging rules loom.",
            }
        ]
    ) + "\n```"
    items = parse_commentary_reply(raw, ["GIS"])
    assert len(items) == 1
    assert items[0].ticker == "GIS"
    assert items[0].commentary == "Margins are solid."
    assert items[0].climate_impact == "Drought raised wheat costs."
    assert items[0].model_dump(by_alias=True)["climateImpact"] == "Drought raised wheat costs."


def test_generate_builds_prompt_from_live_data(services, fake_generator) -> None:
    fake_generator.reply = json.dumps(
        [
            {"ticker": "GIS", "commentary": "Steady.", "climateImpact": "Crop yields swung."},
            {"ticker": "ZZZINVALID", "commentary": "Unknown.", "climateImpact": "Unknown."},
        ]
    )
    items = asyncio.run(services.commentary.generate(["gis", "zzzinvalid"]))

    assert [i.ticker for i in items] == ["GIS", "ZZZINVALID"]
    prompt = fake_generator.prompts[0]
    assert "- GIS (General Mills, food-manufacturer): $32.0B market cap, $19.9B TTM revenue, 12.3% TTM profit margin, +0.40% today" in prompt
    assert "- ZZZINVALID (ZZZINVALID, unknown): " in prompt


def test_generate_returns_empty_when_generator_fails(services, fake_generator) -> None:
    fake_generator.error = UpstreamError("anthropic", "HTTP 529")
    assert asyncio.run(services.commentary.generate(["GIS", "MDLZ"])) == []


def test_generate_with_no_tickers_skips_the_generator(services, fake_generator) -> None:
    assert asyncio.run(services.commentary.generate(["", "  "])) == []
    assert fake_generator.prompts == []
