"""
MexcRestClient tests against a local fake venue.
"""

from decimal import Decimal

import pytest

from config import ExchangeConfig
from conftest import API_KEY, API_SECRET, split_signed
from exchange.errors import ConfigurationError, ExchangeAPIError
from exchange.mexc_rest import MexcRestClient, sign
from exchange.models import OrderIntent, OrderType, Side, TimeInForce


# ============================================================
# CONSTRUCTION
# ============================================================

class TestConstruction:

    @pytest.mark.parametrize("key,secret", [("", "s"), ("k", ""), ("", "")])
    def test_missing_credentials_raise(self, key, secret):
        with pytest.raises(ConfigurationError):
            MexcRestClient(ExchangeConfig(api_key=key, api_secret=secret))

    @pytest.mark.asyncio
    async def test_missing_credentials_never_touch_network(self, venue):
        with pytest.raises(ConfigurationError):
            MexcRestClient(ExchangeConfig(api_key="", api_secret="", base_url=venue.base_url))
        assert venue.requests == []


# ============================================================
# SIGNED ENDPOINTS
# ============================================================

class TestSignedRequests:

    @pytest.mark.asyncio
    async def test_account_info_is_signed(self, venue, client):
        venue.reply("GET", "/api/v3/account", {
            "canTrade": True,
            "accountType": "SPOT",
            "permissions": ["SPOT"],
            "balances": [{"asset": "USDC", "free": "10.5", "locked": "0"}],
        })

        snapshot = await client.account_info()

        req = venue.last
        assert req["method"] == "GET"
        assert req["headers"]["X-MEXC-APIKEY"] == API_KEY
        params, signed_part, signature = split_signed(req["query"])
        assert signature == sign(API_SECRET, signed_part)
        assert list(params) == sorted(params)
        assert params["recvWindow"] == "5000"
        assert params["timestamp"].isdigit()
        assert API_SECRET not in req["query"]

        assert snapshot.can_trade is True
        assert snapshot.balance("USDC").free == Decimal("10.5")
        assert snapshot.balance("BTC") is None

    @pytest.mark.asyncio
    async def test_place_limit_order(self, venue, client):
        venue.reply("POST", "/api/v3/order", {
            "symbol": "ETHUSDC",
            "orderId": "C02__443776347957968896",
            "price": "3000.5",
            "origQty": "0.0066",
            "type": "LIMIT",
            "side": "BUY",
            "transactTime": 1700000000000,
        })

        ack = await client.place_order(OrderIntent(
            symbol="ETHUSDC",
            side=Side.BUY,
            type=OrderType.LIMIT,
            quantity=Decimal("0.0066"),
            price=Decimal("3000.5"),
            time_in_force=TimeInForce.IOC,
            new_client_order_id="SEED_BUY_1700000000000",
        ))

        req = venue.last
        assert req["method"] == "POST"
        assert req["body"] == b""
        params, signed_part, signature = split_signed(req["query"])
        assert signature == sign(API_SECRET, signed_part)
        assert params["symbol"] == "ETHUSDC"
        assert params["side"] == "BUY"
        assert params["type"] == "LIMIT"
        assert params["timeInForce"] == "IOC"
        assert params["quantity"] == "0.0066"
        assert params["price"] == "3000.5"
        assert params["newClientOrderId"] == "SEED_BUY_1700000000000"
        assert "quoteOrderQty" not in params

        assert ack.order_id == "C02__443776347957968896"
        assert ack.price == Decimal("3000.5")
        assert ack.transact_time == 1700000000000

    @pytest.mark.asyncio
    async def test_place_order_defaults_to_market(self, venue, client):
        venue.reply("POST", "/api/v3/order", {"symbol": "ETHUSDC", "orderId": 7})

        ack = await client.place_order(OrderIntent(
            symbol="ETHUSDC", side="BUY", quote_order_qty=Decimal("15"),
        ))

        params, _, _ = split_signed(venue.last["query"])
        assert params["type"] == "MARKET"
        assert params["quoteOrderQty"] == "15"
        for absent in ("price", "quantity", "timeInForce", "newClientOrderId"):
            assert absent not in params
        assert ack.order_id == "7"

    @pytest.mark.asyncio
    async def test_recv_window_override(self, venue, client):
        venue.reply("POST", "/api/v3/order", {"orderId": 1})

        await client.place_order(OrderIntent(
            symbol="ETHUSDC", side=Side.SELL, quantity=Decimal("1"), recv_window=1000,
        ))

        params, _, _ = split_signed(venue.last["query"])
        assert params["recvWindow"] == "1000"

    @pytest.mark.asyncio
    async def test_cancel_by_client_label(self, venue, client):
        venue.reply("DELETE", "/api/v3/order", {
            "symbol": "ETHUSDC",
            "origClientOrderId": "SEED_BUY_1",
            "orderId": "42",
            "status": "CANCELED",
        })

        ack = await client.cancel_order("ETHUSDC", orig_client_order_id="SEED_BUY_1")

        req = venue.last
        assert req["method"] == "DELETE"
        assert req["body"] == b""
        params, _, _ = split_signed(req["query"])
        assert params["origClientOrderId"] == "SEED_BUY_1"
        assert "orderId" not in params
        assert ack.status == "CANCELED"
        assert ack.orig_client_order_id == "SEED_BUY_1"

    @pytest.mark.asyncio
    async def test_cancel_unknown_order_surfaces_venue_error(self, venue, client):
        body = '{"code":-2011,"msg":"Unknown order sent."}'
        venue.reply("DELETE", "/api/v3/order", status=400, text=body)

        with pytest.raises(ExchangeAPIError) as exc_info:
            await client.cancel_order("ETHUSDC", order_id="123")

        err = exc_info.value
        assert err.status == 400
        assert err.body == body
        assert err.code == -2011
        assert err.msg == "Unknown order sent."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [{}, {"order_id": "1", "orig_client_order_id": "x"}])
    async def test_cancel_requires_exactly_one_identifier(self, venue, client, kwargs):
        with pytest.raises(ValueError):
            await client.cancel_order("ETHUSDC", **kwargs)
        assert venue.requests == []

    @pytest.mark.asyncio
    async def test_open_orders_all_symbols(self, venue, client):
        venue.reply("GET", "/api/v3/openOrders", [
            {"symbol": "ETHUSDC", "orderId": "1", "clientOrderId": "SEED_BUY_1", "time": 1},
            {"symbol": "BTCUSDC", "orderId": "2", "clientOrderId": None, "time": 2},
        ])

        orders = await client.open_orders()

        params, _, _ = split_signed(venue.last["query"])
        assert "symbol" not in params
        assert [o.client_order_id for o in orders] == ["SEED_BUY_1", ""]

    @pytest.mark.asyncio
    async def test_open_orders_one_symbol(self, venue, client):
        venue.reply("GET", "/api/v3/openOrders", [])

        assert await client.open_orders("ETHUSDC") == []

        params, _, _ = split_signed(venue.last["query"])
        assert params["symbol"] == "ETHUSDC"

    @pytest.mark.asyncio
    async def test_my_trades_time_bounded(self, venue, client):
        venue.reply("GET", "/api/v3/myTrades", [{
            "symbol": "ETHUSDC", "id": "t1", "orderId": "o1",
            "price": "3000.5", "qty": "0.0066", "commission": "0",
            "isBuyer": True, "time": 1700000000500,
        }])

        trades = await client.my_trades("ETHUSDC", limit=50, start_time=1700000000000)

        params, _, _ = split_signed(venue.last["query"])
        assert params["limit"] == "50"
        assert params["startTime"] == "1700000000000"
        assert "endTime" not in params
        assert trades[0].qty == Decimal("0.0066")
        assert trades[0].is_buyer is True

    @pytest.mark.asyncio
    async def test_query_order(self, venue, client):
        venue.reply("GET", "/api/v3/order", {"orderId": "9", "status": "FILLED", "executedQty": "0.0066"})

        ack = await client.query_order("ETHUSDC", order_id="9")

        params, _, _ = split_signed(venue.last["query"])
        assert params["orderId"] == "9"
        assert ack.executed_qty == Decimal("0.0066")

    @pytest.mark.asyncio
    async def test_cancel_open_orders(self, venue, client):
        venue.reply("DELETE", "/api/v3/openOrders", [{"orderId": "1"}, {"orderId": "2"}])

        acks = await client.cancel_open_orders("ETHUSDC")

        assert venue.last["method"] == "DELETE"
        assert [a.order_id for a in acks] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_server_error_propagates_with_body(self, venue, client):
        venue.reply("GET", "/api/v3/account", status=503, text="maintenance")

        with pytest.raises(ExchangeAPIError) as exc_info:
            await client.account_info()

        assert exc_info.value.status == 503
        assert exc_info.value.body == "maintenance"
        assert exc_info.value.code is None
        assert len(venue.requests) == 1


# ============================================================
# PUBLIC MARKET DATA
# ============================================================

class TestMarketData:

    @pytest.mark.asyncio
    async def test_price_is_unsigned(self, venue, client):
        venue.reply("GET", "/api/v3/ticker/price", {"symbol": "ETHUSDC", "price": "3000.1"})

        tick = await client.price("ETHUSDC")

        req = venue.last
        assert req["query"] == "symbol=ETHUSDC"
        assert "X-MEXC-APIKEY" not in req["headers"]
        assert tick.price == Decimal("3000.1")

    @pytest.mark.asyncio
    async def test_all_prices(self, venue, client):
        venue.reply("GET", "/api/v3/ticker/price", [
            {"symbol": "ETHUSDC", "price": "3000.1"},
            {"symbol": "BTCUSDC", "price": "65000"},
        ])

        ticks = await client.all_prices()

        assert venue.last["query"] == ""
        assert [t.symbol for t in ticks] == ["ETHUSDC", "BTCUSDC"]

    @pytest.mark.asyncio
    async def test_ticker_24h_accepts_list_wrapping(self, venue, client):
        venue.reply("GET", "/api/v3/ticker/24hr", [
            {"symbol": "ETHUSDC", "lastPrice": "3000", "volume": "1234.5"},
        ])

        ticker = await client.ticker_24h("ETHUSDC")

        assert "signature" not in venue.last["query"]
        assert ticker.last_price == Decimal("3000")
        assert ticker.volume == Decimal("1234.5")

    @pytest.mark.asyncio
    async def test_book_ticker(self, venue, client):
        venue.reply("GET", "/api/v3/ticker/bookTicker", {
            "symbol": "ETHUSDC", "bidPrice": "2999.5", "askPrice": "3000.0",
        })

        book = await client.book_ticker("ETHUSDC")

        assert book.bid == Decimal("2999.5")
        assert book.ask == Decimal("3000.0")
        assert book.is_valid

    @pytest.mark.asyncio
    async def test_server_time_and_ping(self, venue, client):
        venue.reply("GET", "/api/v3/time", {"serverTime": 1700000000000})
        venue.reply("GET", "/api/v3/ping", {})

        assert await client.server_time() == 1700000000000
        assert await client.ping() is True

    @pytest.mark.asyncio
    async def test_public_error_propagates(self, venue, client):
        venue.reply("GET", "/api/v3/ticker/price", status=400, text='{"code":-1121,"msg":"Invalid symbol."}')

        with pytest.raises(ExchangeAPIError) as exc_info:
            await client.price("NOPE")

        assert exc_info.value.code == -1121


# ============================================================
# MALFORMED 2xx RESPONSES
# ============================================================

class TestMalformedResponses:

    @pytest.mark.asyncio
    async def test_non_json_body_raises_api_error(self, venue, client):
        venue.reply("GET", "/api/v3/ticker/bookTicker", text="<html>gateway</html>")

        with pytest.raises(ExchangeAPIError) as exc_info:
            await client.book_ticker("ETHUSDC")

        assert exc_info.value.status == 200
        assert exc_info.value.reason == "response is not JSON"
        assert exc_info.value.body == "<html>gateway</html>"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call,method,path", [
        (lambda c: c.open_orders("ETHUSDC"), "GET", "/api/v3/openOrders"),
        (lambda c: c.my_trades("ETHUSDC"), "GET", "/api/v3/myTrades"),
        (lambda c: c.all_prices(), "GET", "/api/v3/ticker/price"),
        (lambda c: c.cancel_open_orders("ETHUSDC"), "DELETE", "/api/v3/openOrders"),
    ])
    async def test_list_endpoint_rejects_object(self, venue, client, call, method, path):
        venue.reply(method, path, {"code": 0, "msg": "weird"})

        with pytest.raises(ExchangeAPIError) as exc_info:
            await call(client)

        assert exc_info.value.reason == "expected a JSON list"
        assert exc_info.value.code == 0

    @pytest.mark.asyncio
    async def test_list_endpoint_rejects_non_object_rows(self, venue, client):
        venue.reply("GET", "/api/v3/openOrders", [1, 2])

        with pytest.raises(ExchangeAPIError):
            await client.open_orders("ETHUSDC")

    @pytest.mark.asyncio
    async def test_book_ticker_rejects_list(self, venue, client):
        venue.reply("GET", "/api/v3/ticker/bookTicker", [{"bidPrice": "1", "askPrice": "2"}])

        with pytest.raises(ExchangeAPIError) as exc_info:
            await client.book_ticker("ETHUSDC")

        assert exc_info.value.reason == "expected a JSON dict"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["3000", [], [1]])
    async def test_ticker_24h_rejects_non_object(self, venue, client, payload):
        venue.reply("GET", "/api/v3/ticker/24hr", payload)

        with pytest.raises(ExchangeAPIError) as exc_info:
            await client.ticker_24h("ETHUSDC")

        assert exc_info.value.reason == "expected a JSON dict"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"serverTime": None}, {"serverTime": "soon"}])
    async def test_server_time_missing_field(self, venue, client, payload):
        venue.reply("GET", "/api/v3/time", payload)

        with pytest.raises(ExchangeAPIError) as exc_info:
            await client.server_time()

        assert exc_info.value.reason == "missing serverTime"

    @pytest.mark.asyncio
    async def test_empty_list_body_is_empty_list(self, venue, client):
        venue.reply("GET", "/api/v3/openOrders", text="")

        assert await client.open_orders("ETHUSDC") == []
