"""
Tests for country resolution, currency selection and plan pricing.

Tests cover:
- resolve_country() header parsing and fallback
- currency_for_country()
- CurrencyResolver session caching and failure fallback
- GeoApiClient against a mock /api/geo
- Plan prices and formatting (Indian digit grouping)
"""
from unittest.mock import MagicMock

import httpx
import pytest

from decible.services.geo import (
    CURRENCY_CACHE_KEY,
    Currency,
    CurrencyResolver,
    GeoApiClient,
    currency_for_country,
    resolve_country,
)
from decible.services.pricing import PLANS, format_price, get_plan, plan_price, pricing_for


class TestResolveCountry:
    def test_present(self):
        assert resolve_country({"x-vercel-ip-country": "US"}) == "US"

    def test_absent(self):
        assert resolve_country({}) == "IN"

    def test_normalized(self):
        assert resolve_country({"x-vercel-ip-country": " fr "}) == "FR"

    @pytest.mark.parametrize("value", ["", "USA", "1A", "É1"])
    def test_malformed(self, value):
        assert resolve_country({"x-vercel-ip-country": value}) == "IN"

    def test_custom_header_and_default(self):
        headers = {"cf-ipcountry": "JP"}
        assert resolve_country(headers, header="cf-ipcountry", default="US") == "JP"
        assert resolve_country({}, header="cf-ipcountry", default="US") == "US"


class TestCurrencyForCountry:
    def test_india(self):
        assert currency_for_country("IN") is Currency.INR
        assert currency_for_country("in") is Currency.INR

    @pytest.mark.parametrize("country", ["US", "GB", "DE", "", None])
    def test_everyone_else(self, country):
        assert currency_for_country(country) is Currency.USD

    def test_parse(self):
        assert Currency.parse("usd") is Currency.USD
        assert Currency.parse("EUR") is None
        assert Currency.parse(None) is None


class TestCurrencyResolver:
    """Session-cached currency selection."""

    def test_non_india_resolves_usd_and_caches(self):
        fetch = MagicMock(return_value="US")
        session = {}
        resolver = CurrencyResolver(fetch, session)

        assert resolver.resolve() is Currency.USD
        assert session[CURRENCY_CACHE_KEY] == "USD"
        assert resolver.resolve() is Currency.USD
        fetch.assert_called_once()

    def test_india_resolves_inr(self):
        session = {}
        assert CurrencyResolver(lambda: "IN", session).resolve() is Currency.INR
        assert session == {CURRENCY_CACHE_KEY: "INR"}

    def test_cached_value_skips_fetch(self):
        fetch = MagicMock(return_value="US")
        resolver = CurrencyResolver(fetch, {CURRENCY_CACHE_KEY: "INR"})
        assert resolver.resolve() is Currency.INR
        fetch.assert_not_called()

    def test_invalid_cached_value_refetches(self):
        fetch = MagicMock(return_value="US")
        session = {CURRENCY_CACHE_KEY: "GBP"}
        assert CurrencyResolver(fetch, session).resolve() is Currency.USD
        assert session[CURRENCY_CACHE_KEY] == "USD"

    @pytest.mark.parametrize("exc", [
        httpx.ConnectError("down"),
        ValueError("bad json"),
        KeyError("country"),
    ])
    def test_failure_falls_back_to_inr_without_caching(self, exc):
        session = {}
        fetch = MagicMock(side_effect=exc)
        resolver = CurrencyResolver(fetch, session)

        assert resolver.resolve() is Currency.INR
        assert session == {}

        fetch.side_effect = None
        fetch.return_value = "US"
        assert resolver.resolve() is Currency.USD


class TestGeoApiClient:
    def test_fetch_country(self):
        def handler(request):
            assert request.url.path == "/api/geo"
            return httpx.Response(200, json={"country": "US"})

        client = GeoApiClient("https://app.test/", transport=httpx.MockTransport(handler))
        try:
            assert client.fetch_country() == "US"
        finally:
            client.close()

    def test_with_resolver_failure(self):
        client = GeoApiClient("https://app.test", transport=httpx.MockTransport(lambda r: httpx.Response(502)))
        session = {}
        try:
            assert CurrencyResolver(client.fetch_country, session).resolve() is Currency.INR
        finally:
            client.close()
        assert session == {}

    def test_against_app(self, app):
        """The resolver works end-to-end against the service's own endpoint."""
        from fastapi.testclient import TestClient

        with TestClient(app) as c:
            def fetch():
                return c.get("/api/geo", headers={"x-vercel-ip-country": "CA"}).json()["country"]

            assert CurrencyResolver(fetch, {}).resolve() is Currency.USD


class TestPricing:
    def test_plan_ids(self):
        assert [p.id for p in PLANS] == ["free", "starter", "creator", "pro", "advanced"]

    def test_plan_price(self):
        assert plan_price("creator", Currency.INR) == 139500
        assert plan_price("creator", Currency.USD) == 1700
        with pytest.raises(KeyError):
            plan_price("enterprise", Currency.USD)

    def test_get_plan(self):
        assert get_plan("pro").credits == 500_000
        assert get_plan("missing") is None

    @pytest.mark.parametrize("minor,currency,expected", [
        (0, Currency.USD, "$0"),
        (500, Currency.USD, "$5"),
        (1999, Currency.USD, "$19.99"),
        (12345600, Currency.USD, "$123,456"),
        (139500, Currency.INR, "₹1,395"),
        (349500, Currency.INR, "₹3,495"),
        (100000000, Currency.INR, "₹10,00,000"),
        (1234567890, Currency.INR, "₹1,23,45,678.90"),
        (-500, Currency.USD, "-$5"),
    ])
    def test_format_price(self, minor, currency, expected):
        assert format_price(minor, currency) == expected

    def test_pricing_table(self):
        rows = pricing_for(Currency.USD)
        assert len(rows) == 5
        creator = rows[2]
        assert creator == {
            "id": "creator",
            "name": "Creator",
            "credits": 150000,
            "price": 1700,
            "formattedPrice": "$17",
            "firstMonthPrice": 1000,
            "formattedFirstMonthPrice": "$10",
        }
        assert rows[0]["firstMonthPrice"] is None
        assert rows[0]["formattedFirstMonthPrice"] is None
