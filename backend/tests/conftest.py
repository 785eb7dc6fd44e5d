"""
Pytest configuration for Staybook tests.

Upstream APIs are never called: LiteAPI and Google Places are served by an
in-process httpx.MockTransport, and redis is replaced by an in-memory fake.
"""
import json

import httpx
import pytest

from staybook.config import Settings


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        liteapi_key_b2c="b2c-test-key",
        liteapi_key_cug="cug-test-key",
        google_maps_api_key="google-test-key",
        auth_cookie_secret="test-cookie-secret-0123456789",
        redis_url="",
        staff_email_domain="breadfast.com",
    )


class FakeCache:
    """In-memory stand-in for CacheService."""

    def __init__(self):
        self.rates = {}
        self.details = {}

    @staticmethod
    def _key(params):
        return json.dumps(params, sort_keys=True, default=str)

    async def get_rates_search(self, params):
        return self.rates.get(self._key(params))

    async def set_rates_search(self, params, data):
        self.rates[self._key(params)] = data

    async def get_hotel_details(self, hotel_id, language):
        return self.details.get((hotel_id, language))

    async def set_hotel_details(self, hotel_id, language, data):
        self.details[(hotel_id, language)] = data

    async def close(self):
        pass


class FakeUpstream:
    """Routes (method, path) to canned responses and records every request."""

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def add(self, method, path, payload=None, status=200, handler=None):
        self.routes[(method, path)] = handler or (lambda request: httpx.Response(status, json=payload))

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": {"message": f"no route for {request.url.path}"}})
        return route(request)

    @property
    def transport(self):
        return httpx.MockTransport(self)

    def calls(self, path):
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def fake_cache():
    return FakeCache()


@pytest.fixture
def upstream():
    return FakeUpstream()


def rates_item(hotel_id, amount, currency="USD", refundable_tag="RFN"):
    """One hotel entry of a LiteAPI /hotels/rates response."""
    return {
        "hotelId": hotel_id,
        "roomTypes": [
            {
                "offerId": f"offer-{hotel_id}",
                "offerRetailRate": {"amount": amount, "currency": currency},
                "rates": [
                    {
                        "retailRate": {
                            "total": [{"amount": amount, "currency": currency}],
                            "taxesAndFees": [{"included": True}],
                        },
                        "cancellationPolicies": {"refundableTag": refundable_tag},
                    }
                ],
            }
        ],
    }
