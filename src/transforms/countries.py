from __future__ import annotations

from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict


ALL_REGIONS = "All"
REGIONS: tuple[str, ...] = ("Africa", "Americas", "Asia", "Europe", "Oceania")

NOT_AVAILABLE = "N/A"
UNKNOWN_NAME = "Unknown"

REGION_ACCENTS: dict[str, str] = {
    "Africa": "linear-gradient(135deg, #FFD700, #FFA500)",
    "Americas": "linear-gradient(135deg, #4169E1, #1E90FF)",
    "Asia": "linear-gradient(135deg, #FF6347, #FF4500)",
    "Europe": "linear-gradient(135deg, #9370DB, #8A2BE2)",
    "Oceania": "linear-gradient(135deg, #3CB371, #2E8B57)",
}
DEFAULT_ACCENT = "linear-gradient(135deg, #E0E0E0, #B0B0B0)"


class NameIn(BaseModel):
    common: str | None = None
    official: str | None = None


class FlagsIn(BaseModel):
    png: str | None = None
    svg: str | None = None
    alt: str | None = None


class CurrencyIn(BaseModel):
    name: str | None = None
    symbol: str | None = None


class CountryRecord(BaseModel):
    """One element of a REST Countries v3.1 response. Every field is optional."""

    name: NameIn | None = None
    flags: FlagsIn | None = None
    capital: list[str] | None = None
    region: str | None = None
    population: int | None = None
    currencies: dict[str, CurrencyIn] | None = None
    languages: dict[str, str] | None = None
    timezones: list[str] | None = None
    cca3: str | None = None


class DisplayCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str | None = None
    name: str = UNKNOWN_NAME
    flag_url: str | None = None
    capital: str = NOT_AVAILABLE
    region: str | None = None
    population_formatted: str = NOT_AVAILABLE
    currency_name: str = NOT_AVAILABLE
    languages_joined: str = NOT_AVAILABLE
    timezone: str = NOT_AVAILABLE


def is_known_region_filter(value: str | None) -> bool:
    return value == ALL_REGIONS or value in REGIONS


def region_accent(region: str | None) -> str:
    if region is None:
        return DEFAULT_ACCENT
    return REGION_ACCENTS.get(region, DEFAULT_ACCENT)


def format_population(value: int | None) -> str:
    # Grouped digits as an en-US locale renders them: 1234567 -> "1,234,567"
    if value is None:
        return NOT_AVAILABLE
    return f"{int(value):,}"


def _first(items: Sequence[str] | None) -> str | None:
    if not items:
        return None
    return items[0] or None


def _currency_name(currencies: Mapping[str, CurrencyIn] | None) -> str:
    if not currencies:
        return NOT_AVAILABLE
    first = next(iter(currencies.values()))
    return first.name or NOT_AVAILABLE


def _languages_joined(languages: Mapping[str, str] | None) -> str:
    if not languages:
        return NOT_AVAILABLE
    return ", ".join(languages.values())


def to_display_card(record: CountryRecord) -> DisplayCard:
    """
    CountryRecord -> DisplayCard
    Each field degrades to its default independently; empty strings count as missing.
    """
    name = record.name.common if record.name is not None else None
    flag_url = None
    if record.flags is not None:
        flag_url = record.flags.png or record.flags.svg or None

    return DisplayCard(
        key=record.cca3,
        name=name or UNKNOWN_NAME,
        flag_url=flag_url,
        capital=_first(record.capital) or NOT_AVAILABLE,
        region=record.region,
        population_formatted=format_population(record.population),
        currency_name=_currency_name(record.currencies),
        languages_joined=_languages_joined(record.languages),
        timezone=_first(record.timezones) or NOT_AVAILABLE,
    )


def _coerce(record: CountryRecord | Mapping[str, Any]) -> CountryRecord:
    if isinstance(record, CountryRecord):
        return record
    return CountryRecord.model_validate(record)


def _population_key(record: CountryRecord) -> int:
    # Missing population sorts as 0.
    return record.population if record.population is not None else 0


def project(
    records: Sequence[CountryRecord | Mapping[str, Any]],
    region_filter: str,
    sort_descending: bool,
) -> list[DisplayCard]:
    """
    Raw lookup result -> ordered display cards.

    - keep a record iff region_filter == "All" or record.region == region_filter
    - order by population; sorted() is stable for reverse=True too, so ties keep input order
    """
    parsed = [_coerce(r) for r in records]
    kept = [r for r in parsed if region_filter == ALL_REGIONS or r.region == region_filter]
    ordered = sorted(kept, key=_population_key, reverse=bool(sort_descending))
    return [to_display_card(r) for r in ordered]
