from __future__ import annotations

import random
from typing import Callable, Sequence
from urllib.parse import quote

import httpx

from utils.config import DEFAULT_IMAGE_BASE_URL
from utils.logging import get_logger


logger = get_logger(component="images")

IMAGE_PLACEHOLDER_URL = (
    "https://images.unsplash.com/photo-1483729558449-99ef09a8c325"
    "?ixlib=rb-1.2.1&auto=format&fit=crop&w=600&h=400&q=80"
)
FLAG_PLACEHOLDER_URL = "https://via.placeholder.com/30x20?text=Flag"
MAP_SEARCH_BASE_URL = "https://www.google.com/maps/search/"

TermChooser = Callable[[Sequence[str]], str]

# Characters encodeURIComponent leaves as-is beyond the unreserved set quote() always keeps.
_URI_COMPONENT_SAFE = "!'()*"


def image_search_terms(name: str, capital: str) -> list[str]:
    return [
        f"{name} landscape",
        f"{name} city",
        f"{capital} city",
        f"{name}",
        "beautiful landscape",
    ]


def country_image_url(
    name: str,
    capital: str,
    *,
    choose: TermChooser = random.choice,
    base_url: str = DEFAULT_IMAGE_BASE_URL,
) -> str:
    """
    Build a descriptive image URL for a country card.

    The search term is picked by `choose`; pass `random.Random(seed).choice` for repeatable output.
    """
    term = choose(image_search_terms(name, capital))
    return f"{base_url}?{quote(term, safe=_URI_COMPONENT_SAFE)}"


def flag_or_placeholder(flag_url: str | None) -> str:
    return flag_url or FLAG_PLACEHOLDER_URL


def map_search_url(name: str) -> str:
    return f"{MAP_SEARCH_BASE_URL}{quote(name, safe=_URI_COMPONENT_SAFE)}"


class ImageResolver:
    """
    Best-effort image lookup.

    - verify=False: return the constructed URL as-is
    - verify=True: probe the URL; any failure resolves to IMAGE_PLACEHOLDER_URL
    Image failures never propagate.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_IMAGE_BASE_URL,
        verify: bool = False,
        timeout_seconds: float = 5.0,
        choose: TermChooser = random.choice,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._verify = bool(verify)
        self._choose = choose
        self._client: httpx.AsyncClient | None = None
        if self._verify:
            self._client = httpx.AsyncClient(
                timeout=float(timeout_seconds),
                follow_redirects=True,
                transport=transport,
            )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def resolve(self, name: str, capital: str) -> str:
        url = country_image_url(name, capital, choose=self._choose, base_url=self._base_url)
        if self._client is None:
            return url

        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.warning("image_unavailable", country=name, reason="transport", error=str(e))
            return IMAGE_PLACEHOLDER_URL

        content_type = resp.headers.get("content-type", "")
        if resp.status_code >= 400 or not content_type.startswith("image/"):
            logger.warning(
                "image_unavailable",
                country=name,
                status_code=resp.status_code,
                content_type=content_type,
            )
            return IMAGE_PLACEHOLDER_URL

        return str(resp.url)
