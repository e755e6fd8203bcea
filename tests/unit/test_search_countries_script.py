from __future__ import annotations

import json

import pytest

from collector.api_client import CountryNotFoundError
from scripts.search_countries import format_card, run_search
from transforms.countries import CountryRecord, DisplayCard


class _FakeClient:
    def __init__(self, records=None, error: Exception | None = None) -> None:
        self.records = records or []
        self.error = error

    async def search_by_name(self, name: str):
        if self.error is not None:
            raise self.error
        return [CountryRecord.model_validate(r) for r in self.records]


NARNIA_OZ = [
    {"name": {"common": "Narnia"}, "region": "Europe", "population": 1000, "cca3": "NAR"},
    {"name": {"common": "Oz"}, "region": "Asia", "population": 5000, "cca3": "OZZ"},
]


@pytest.mark.asyncio
async def test_run_search_json_descending(capsys: pytest.CaptureFixture[str]) -> None:
    code = await run_search(
        name="land",
        region="All",
        sort_desc=True,
        as_json=True,
        seed=3,
        client=_FakeClient(NARNIA_OZ),
        image_base_url="https://img.test/",
    )
    assert code == 0
    cards = json.loads(capsys.readouterr().out)
    assert [c["name"] for c in cards] == ["Oz", "Narnia"]
    assert all(c["image_url"].startswith("https://img.test/?") for c in cards)


@pytest.mark.asyncio
async def test_run_search_text_region_filter(capsys: pytest.CaptureFixture[str]) -> None:
    code = await run_search(
        name="land",
        region="Europe",
        sort_desc=False,
        as_json=False,
        seed=None,
        client=_FakeClient(NARNIA_OZ),
    )
    assert code == 0
    out = capsys.readouterr().out
    assert out.startswith("Narnia\n")
    assert "Oz" not in out


@pytest.mark.asyncio
async def test_run_search_not_found(capsys: pytest.CaptureFixture[str]) -> None:
    code = await run_search(
        name="nowhere",
        region="All",
        sort_desc=False,
        as_json=False,
        seed=None,
        client=_FakeClient(error=CountryNotFoundError("Country not found")),
    )
    assert code == 1
    assert "Country not found - Please try another search term" in capsys.readouterr().err


def test_format_card_defaults() -> None:
    text = format_card(DisplayCard())
    assert text.splitlines()[0] == "Unknown"
    assert "  Capital:    N/A" in text
    assert "  Region:     -" in text
