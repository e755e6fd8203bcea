from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from transforms.countries import CountryRecord
from utils.logging import get_logger


logger = get_logger(component="api_client")


class LookupFailure(Exception):
    """Base error for a country lookup that produced no records. `message` is user-facing."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CountryNotFoundError(LookupFailure):
    pass


class RateLimitError(LookupFailure):
    pass


class APITimeoutError(LookupFailure):
    pass


class APIServerError(LookupFailure):
    pass


class MalformedResponseError(LookupFailure):
    pass


class APIUnexpectedStatusError(LookupFailure):
    def __init__(self, status_code: int, body_text: str | None = None) -> None:
        super().__init__(f"Unexpected status code: {status_code}")
        self.status_code = status_code
        self.body_text = body_text


class RestCountriesClient:
    """
    REST Countries v3.1 client
    - GET-only
    - No custom headers
    - Async httpx
    """

    def __init__(
        self,
        *,
        base_url: str = "https://restcountries.com/v3.1",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = float(timeout_seconds)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RestCountriesClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def search_by_name(self, name: str) -> list[CountryRecord]:
        """
        GET /name/{name}

        Returns every record the API matched (possibly several for partial names).
        Raises a LookupFailure subclass when the lookup cannot produce records.
        """
        query = (name or "").strip()
        if not query:
            raise ValueError("Country name must not be blank")

        payload = await self._get_json(f"/name/{quote(query, safe='')}")
        if not isinstance(payload, list):
            logger.warning("lookup_malformed", query=query, payload_type=type(payload).__name__)
            raise MalformedResponseError("Malformed response from country service")

        try:
            records = [CountryRecord.model_validate(item) for item in payload]
        except ValidationError as e:
            logger.warning("lookup_malformed", query=query, errors=e.error_count())
            raise MalformedResponseError("Malformed response from country service") from e

        logger.info("lookup_ok", query=query, count=len(records))
        return records

    async def _get_json(self, endpoint: str) -> Any:
        try:
            resp = await self._client.get(endpoint)
        except httpx.TimeoutException as e:
            logger.warning("lookup_failed", endpoint=endpoint, reason="timeout")
            raise APITimeoutError("Country service timed out") from e
        except httpx.RequestError as e:
            logger.warning("lookup_failed", endpoint=endpoint, reason="transport", error=str(e))
            raise LookupFailure(f"Network error: {e}") from e

        if resp.status_code == 200:
            try:
                return resp.json()
            except ValueError as e:
                raise MalformedResponseError("Failed to parse JSON") from e

        logger.warning("lookup_failed", endpoint=endpoint, status_code=resp.status_code)

        if resp.status_code == 404:
            raise CountryNotFoundError("Country not found")

        if resp.status_code == 429:
            raise RateLimitError("Too Many Requests (429): rate limit exceeded")

        if resp.status_code in (500, 502, 503, 504):
            raise APIServerError(f"Country service error ({resp.status_code})")

        raise APIUnexpectedStatusError(resp.status_code, body_text=resp.text)
