from __future__ import annotations

import argparse
import asyncio
import json
import os
import random
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_DIR))

from collector.api_client import RestCountriesClient  # noqa: E402
from collector.images import country_image_url, flag_or_placeholder, map_search_url  # noqa: E402
from collector.session import CountryLookup, SearchSession  # noqa: E402
from transforms.countries import ALL_REGIONS, REGIONS, DisplayCard, region_accent  # noqa: E402
from utils.config import load_api_config, load_image_config, load_session_config  # noqa: E402
from utils.logging import get_logger, setup_logging  # noqa: E402


logger = get_logger(script="search_countries")


def card_to_dict(card: DisplayCard, *, rng: random.Random, image_base_url: str) -> dict[str, Any]:
    out = card.model_dump()
    out["flag_url"] = flag_or_placeholder(card.flag_url)
    out["accent"] = region_accent(card.region)
    out["image_url"] = country_image_url(card.name, card.capital, choose=rng.choice, base_url=image_base_url)
    out["map_url"] = map_search_url(card.name)
    return out


def format_card(card: DisplayCard) -> str:
    return "\n".join(
        [
            card.name,
            f"  Capital:    {card.capital}",
            f"  Region:     {card.region or '-'}",
            f"  Population: {card.population_formatted}",
            f"  Currency:   {card.currency_name}",
            f"  Languages:  {card.languages_joined}",
            f"  Timezone:   {card.timezone}",
            f"  Map:        {map_search_url(card.name)}",
        ]
    )


async def run_search(
    *,
    name: str,
    region: str,
    sort_desc: bool,
    as_json: bool,
    seed: int | None,
    client: CountryLookup,
    discard_stale_responses: bool = True,
    image_base_url: str | None = None,
) -> int:
    session = SearchSession(client, discard_stale_responses=discard_stale_responses)
    session.set_region(region)
    if sort_desc:
        session.toggle_sort()

    state = await session.search(name)
    if state.error is not None:
        print(state.error_banner(), file=sys.stderr)
        return 1

    cards = state.cards()
    logger.info("search_complete", query=name, region=region, count=len(cards))
    if as_json:
        rng = random.Random(seed)
        base = image_base_url or load_image_config().base_url
        print(json.dumps([card_to_dict(c, rng=rng, image_base_url=base) for c in cards], indent=2, ensure_ascii=False))
        return 0

    if not cards:
        print("No results - try another search term or region")
        return 0
    for card in cards:
        print(format_card(card))
    return 0


async def _amain() -> int:
    load_dotenv()
    setup_logging(log_format=os.getenv("LOG_FORMAT") or "console")
    parser = argparse.ArgumentParser(description="Search countries by name (REST Countries v3.1)")
    parser.add_argument("name", help="Country name or partial name")
    parser.add_argument("--region", default=ALL_REGIONS, choices=[ALL_REGIONS, *REGIONS], help="Region filter (default: All)")
    parser.add_argument("--desc", action="store_true", help="Sort population high to low")
    parser.add_argument("--json", action="store_true", help="Print cards as JSON")
    parser.add_argument("--seed", type=int, default=None, help="Seed for image search term selection")
    args = parser.parse_args()

    api_cfg = load_api_config()
    session_cfg = load_session_config()
    async with RestCountriesClient(base_url=api_cfg.base_url, timeout_seconds=api_cfg.timeout_seconds) as client:
        return await run_search(
            name=args.name,
            region=args.region,
            sort_desc=args.desc,
            as_json=args.json,
            seed=args.seed,
            client=client,
            discard_stale_responses=session_cfg.discard_stale_responses,
        )


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_amain()))
