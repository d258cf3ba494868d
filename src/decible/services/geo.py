"""
Geo Resolver and currency selection.

Server side, the country comes from a header injected by the edge network
(``x-vercel-ip-country`` by default). The value is trusted as-is apart from
shape checks; a missing or malformed value means the default country.

Client side, ``CurrencyResolver`` decides which currency to display:

    1. A valid currency cached in session storage under
       ``decible_currency`` wins, with no network call.
    2. Otherwise the geo endpoint is asked for the country, the country is
       mapped to a currency and the result is cached.
    3. If the fetch fails the resolver answers INR and caches nothing, so
       the next page load tries again.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Mapping, MutableMapping, Optional

import httpx

from decible.core.config import Defaults
from decible.core.logging import get_logger, verbose, warn

_LOG = get_logger("decible.geo")

CURRENCY_CACHE_KEY = "decible_currency"


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Currency"]:
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


def _valid_country(value: str) -> bool:
    return len(value) == 2 and value.isascii() and value.isalpha()


def resolve_country(
    headers: Mapping[str, str],
    header: str = Defaults.GEO_HEADER,
    default: str = Defaults.GEO_DEFAULT_COUNTRY,
) -> str:
    """Read the two-letter country code from ``headers``; fall back to ``default``."""
    raw = headers.get(header)
    if raw is None:
        return default
    country = raw.strip().upper()
    if not _valid_country(country):
        verbose(_LOG, "geo_header_ignored", value=raw[:16])
        return default
    return country


def currency_for_country(country: Optional[str]) -> Currency:
    """India pays in INR; everyone else sees USD."""
    return Currency.INR if (country or "").strip().upper() == "IN" else Currency.USD


class GeoApiClient:
    """Fetches the caller's country from the service's own ``/api/geo`` endpoint."""

    def __init__(self, base_url: str, timeout_s: float = 5.0, transport: Optional[httpx.BaseTransport] = None):
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout_s, transport=transport)

    def fetch_country(self) -> str:
        response = self._client.get("/api/geo")
        response.raise_for_status()
        return str(response.json()["country"])

    def close(self) -> None:
        self._client.close()


class CurrencyResolver:
    """
    Session-cached currency selection.

    Args:
        fetch_country: Callable returning a country code; may raise.
        session: Session-scoped string storage (a dict in tests).
    """

    def __init__(self, fetch_country: Callable[[], str], session: MutableMapping[str, str]):
        self._fetch_country = fetch_country
        self._session = session

    def cached(self) -> Optional[Currency]:
        return Currency.parse(self._session.get(CURRENCY_CACHE_KEY))

    def resolve(self) -> Currency:
        cached = self.cached()
        if cached is not None:
            return cached

        try:
            country = self._fetch_country()
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            warn(_LOG, "geo_fetch_failed", reason=type(exc).__name__, fallback=Currency.INR.value)
            return Currency.INR

        currency = currency_for_country(country)
        self._session[CURRENCY_CACHE_KEY] = currency.value
        return currency
