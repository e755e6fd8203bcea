from __future__ import annotations

import asyncio
import random
from typing import Any, AsyncIterator

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request

from collector.api_client import CountryNotFoundError, LookupFailure, RestCountriesClient
from collector.images import ImageResolver, flag_or_placeholder, map_search_url
from transforms.countries import ALL_REGIONS, REGIONS, DisplayCard, is_known_region_filter, project, region_accent
from utils.config import load_api_config, load_image_config
from utils.logging import get_logger


load_dotenv()

logger = get_logger(component="read_api")

app = FastAPI(title="travel-explorer-read-api", version="v1")


async def get_country_client() -> AsyncIterator[RestCountriesClient]:
    cfg = load_api_config()
    client = RestCountriesClient(base_url=cfg.base_url, timeout_seconds=cfg.timeout_seconds)
    try:
        yield client
    finally:
        await client.aclose()


async def get_image_resolver() -> AsyncIterator[ImageResolver]:
    cfg = load_image_config()
    resolver = ImageResolver(
        base_url=cfg.base_url,
        verify=cfg.verify,
        timeout_seconds=cfg.timeout_seconds,
        choose=random.choice,
    )
    try:
        yield resolver
    finally:
        await resolver.aclose()


def _reject_unknown_query_params(request: Request, allowed: set[str]) -> None:
    unknown = sorted(k for k in request.query_params.keys() if k not in allowed)
    if unknown:
        raise HTTPException(
            status_code=400,
            detail={"error": "unknown_query_params", "unknown": unknown, "allowed": sorted(allowed)},
        )


def _lookup_error_detail(e: LookupFailure) -> dict[str, str]:
    code = "country_not_found" if isinstance(e, CountryNotFoundError) else "lookup_failed"
    return {"error": code, "message": f"{e.message} - Please try another search term"}


async def _card_payload(card: DisplayCard, images: ImageResolver) -> dict[str, Any]:
    out = card.model_dump()
    out["flag_url"] = flag_or_placeholder(card.flag_url)
    out["accent"] = region_accent(card.region)
    out["image_url"] = await images.resolve(card.name, card.capital)
    out["map_url"] = map_search_url(card.name)
    return out


@app.get("/v1/health")
async def health() -> dict:
    return {"ok": True}


@app.get("/v1/regions")
async def regions() -> list[dict[str, str]]:
    out = [{"region": ALL_REGIONS, "accent": region_accent(None)}]
    out.extend({"region": r, "accent": region_accent(r)} for r in REGIONS)
    return out


@app.get("/v1/countries")
async def countries(
    request: Request,
    name: str = "",
    region: str = ALL_REGIONS,
    sort_desc: bool = False,
    client: RestCountriesClient = Depends(get_country_client),
    images: ImageResolver = Depends(get_image_resolver),
) -> dict[str, Any]:
    """
    Search countries by name, then filter by region and order by population.
    A failed lookup yields an error body and no cards.
    """
    _reject_unknown_query_params(request, {"name", "region", "sort_desc"})

    query = name.strip()
    if not query:
        raise HTTPException(status_code=400, detail={"error": "name_required"})
    if not is_known_region_filter(region):
        raise HTTPException(
            status_code=400,
            detail={"error": "unknown_region", "allowed": [ALL_REGIONS, *REGIONS]},
        )

    try:
        records = await client.search_by_name(query)
    except LookupFailure as e:
        status_code = 404 if isinstance(e, CountryNotFoundError) else 502
        raise HTTPException(status_code=status_code, detail=_lookup_error_detail(e))

    cards = project(records, region, sort_desc)
    payload = list(await asyncio.gather(*(_card_payload(c, images) for c in cards)))
    logger.info("countries_served", query=query, region=region, sort_desc=sort_desc, count=len(payload))
    return {
        "ok": True,
        "query": query,
        "region": region,
        "sort_desc": sort_desc,
        "count": len(payload),
        "cards": payload,
    }
