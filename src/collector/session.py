from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol

from collector.api_client import LookupFailure
from transforms.countries import ALL_REGIONS, CountryRecord, DisplayCard, is_known_region_filter, project
from utils.logging import get_logger


logger = get_logger(component="search_session")


class CountryLookup(Protocol):
    async def search_by_name(self, name: str) -> list[CountryRecord]: ...


@dataclass(frozen=True)
class SearchState:
    query: str = ""
    region: str = ALL_REGIONS
    sort_desc: bool = False
    loading: bool = False
    error: str | None = None
    records: tuple[CountryRecord, ...] = ()
    generation: int = 0

    def cards(self) -> list[DisplayCard]:
        return project(self.records, self.region, self.sort_desc)

    def error_banner(self) -> str | None:
        if self.error is None:
            return None
        return f"{self.error} - Please try another search term"


class SearchSession:
    """
    Mutable search state held outside the projector.

    Every mutation swaps in a new SearchState; readers only ever see snapshots.

    Each search bumps `generation`. With discard_stale_responses=True a response whose
    generation is no longer current is dropped; with False the last response to resolve wins.
    """

    def __init__(self, client: CountryLookup, *, discard_stale_responses: bool = True) -> None:
        self._client = client
        self._discard_stale = bool(discard_stale_responses)
        self._state = SearchState()

    @property
    def state(self) -> SearchState:
        return self._state

    def set_query(self, query: str) -> SearchState:
        self._state = replace(self._state, query=query)
        return self._state

    def set_region(self, region: str) -> SearchState:
        if not is_known_region_filter(region):
            raise ValueError(f"Unknown region filter: {region}")
        self._state = replace(self._state, region=region)
        return self._state

    def toggle_sort(self) -> SearchState:
        self._state = replace(self._state, sort_desc=not self._state.sort_desc)
        return self._state

    async def search(self, query: str | None = None) -> SearchState:
        if query is not None:
            self.set_query(query)

        text = self._state.query.strip()
        if not text:
            return self._state

        generation = self._state.generation + 1
        self._state = replace(self._state, generation=generation, loading=True, error=None)

        try:
            records = await self._client.search_by_name(text)
        except LookupFailure as e:
            if self._is_stale(generation):
                logger.info("stale_response_discarded", query=text, generation=generation, outcome="error")
                return self._state
            logger.warning("search_failed", query=text, error=e.message)
            self._state = replace(self._state, records=(), error=e.message, loading=False)
            return self._state

        if self._is_stale(generation):
            logger.info("stale_response_discarded", query=text, generation=generation, outcome="ok")
            return self._state

        self._state = replace(self._state, records=tuple(records), error=None, loading=False)
        return self._state

    def cards(self) -> list[DisplayCard]:
        return self._state.cards()

    def _is_stale(self, generation: int) -> bool:
        return self._discard_stale and generation != self._state.generation
