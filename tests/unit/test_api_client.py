from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from collector.api_client import (
    APIServerError,
    APITimeoutError,
    APIUnexpectedStatusError,
    CountryNotFoundError,
    LookupFailure,
    MalformedResponseError,
    RateLimitError,
    RestCountriesClient,
)


def _fixture_text(name: str) -> str:
    p = Path(__file__).resolve().parents[1] / "fixtures" / "api_responses" / name
    return p.read_text(encoding="utf-8")


def _client(handler) -> RestCountriesClient:
    return RestCountriesClient(base_url="https://countries.test/v3.1", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_search_by_name_returns_records() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=json.loads(_fixture_text("name_united.json")))

    async with _client(handler) as client:
        records = await client.search_by_name("  united ")

    assert [r.cca3 for r in records] == ["GBR", "USA", "ARE", "TZA", "UMI"]
    assert records[0].currencies["GBP"].name == "British pound"

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/v3.1/name/united"


@pytest.mark.asyncio
async def test_search_by_name_encodes_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        assert await client.search_by_name("new zealand") == []

    assert seen[0].url.raw_path == b"/v3.1/name/new%20zealand"


@pytest.mark.asyncio
async def test_blank_name_rejected_without_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected for a blank name")

    async with _client(handler) as client:
        with pytest.raises(ValueError):
            await client.search_by_name("   ")


@pytest.mark.asyncio
async def test_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text=_fixture_text("name_not_found.json"))

    async with _client(handler) as client:
        with pytest.raises(CountryNotFoundError) as exc:
            await client.search_by_name("narnia")

    assert exc.value.message == "Country not found"
    assert isinstance(exc.value, LookupFailure)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [(429, RateLimitError), (500, APIServerError), (502, APIServerError), (503, APIServerError), (418, APIUnexpectedStatusError)],
)
async def test_status_mapping(status_code: int, error_type: type[LookupFailure]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text="nope")

    async with _client(handler) as client:
        with pytest.raises(error_type):
            await client.search_by_name("france")


@pytest.mark.asyncio
async def test_unexpected_status_keeps_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(418, text="teapot")

    async with _client(handler) as client:
        with pytest.raises(APIUnexpectedStatusError) as exc:
            await client.search_by_name("france")

    assert exc.value.status_code == 418
    assert exc.value.body_text == "teapot"


@pytest.mark.asyncio
async def test_timeout_and_transport_errors() -> None:
    def timeout_handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    def connect_handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(timeout_handler) as client:
        with pytest.raises(APITimeoutError):
            await client.search_by_name("peru")

    async with _client(connect_handler) as client:
        with pytest.raises(LookupFailure) as exc:
            await client.search_by_name("peru")
    assert "refused" in exc.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        '{"name": {"common": "Peru"}}',
        "not json",
        '[{"name": {"common": "Peru"}, "capital": "Lima"}]',
    ],
)
async def test_malformed_response(body: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=body, headers={"content-type": "application/json"})

    async with _client(handler) as client:
        with pytest.raises(MalformedResponseError):
            await client.search_by_name("peru")
