"""
Shared fixtures: a local aiohttp server standing in for the MEXC REST API.
"""

import json

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from config import ExchangeConfig
from exchange.mexc_rest import MexcRestClient

API_KEY = "test-api-key"
API_SECRET = "test-api-secret"


class FakeVenue:
    """Records every request and replays canned responses keyed by (method, path)."""

    def __init__(self):
        self.base_url = ""
        self.requests = []
        self._responses = {}

    def reply(self, method, path, payload=None, status=200, text=None):
        body = text if text is not None else json.dumps(payload)
        self._responses[(method, path)] = (status, body)

    @property
    def last(self):
        return self.requests[-1]

    async def handle(self, request):
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "query": request.rel_url.raw_query_string,
            "headers": request.headers.copy(),
            "body": await request.read(),
        })
        status, body = self._responses.get(
            (request.method, request.path),
            (404, json.dumps({"code": 404, "msg": "no route"})),
        )
        return web.Response(status=status, text=body, content_type="application/json")


def split_signed(query):
    """Split `a=1&b=2&signature=xx` into ({'a': '1', 'b': '2'}, signed_part, 'xx')."""
    signed_part, signature = query.rsplit("&signature=", 1)
    params = dict(pair.split("=", 1) for pair in signed_part.split("&"))
    return params, signed_part, signature


@pytest_asyncio.fixture
async def venue():
    fake = FakeVenue()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def client(venue):
    rest = MexcRestClient(ExchangeConfig(
        api_key=API_KEY,
        api_secret=API_SECRET,
        base_url=venue.base_url,
        recv_window=5000,
    ))
    yield rest
    await rest.close()
