"""
MEXC Spot v3 REST API Client.
Handles request signing and all needed account, trading and market endpoints.

Signed calls put every parameter, signature included, in the query string:
    path?<sorted key=value pairs>&signature=<hex HMAC-SHA256>
No request body is sent, not even for POST / DELETE.
"""

from __future__ import annotations
import asyncio
import hashlib
import hmac
import json
import time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import aiohttp
import logging
from yarl import URL

from config import ExchangeConfig
from exchange.errors import ConfigurationError, ExchangeAPIError
from exchange.models import (
    AccountSnapshot,
    BookTicker,
    OpenOrder,
    OrderAck,
    OrderIntent,
    PriceTick,
    Ticker24h,
    TradeRecord,
    _to_int,
)

logger = logging.getLogger(__name__)

# Same unreserved set as JavaScript's encodeURIComponent
_SAFE_CHARS = "-_.!~*'()"


def _format_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def canonical_query(params: Dict[str, Any]) -> str:
    """Sorted, URL-encoded `key=value&...` string. None values are dropped."""
    return "&".join(
        f"{key}={quote(_format_value(params[key]), safe=_SAFE_CHARS)}"
        for key in sorted(params)
        if params[key] is not None
    )


def _has_shape(data: Any, expect: type) -> bool:
    if expect is list:
        return isinstance(data, list) and all(isinstance(d, dict) for d in data)
    return isinstance(data, expect)


def sign(secret: str, query: str) -> str:
    """Hex HMAC-SHA256 of `query` keyed by `secret`."""
    return hmac.new(
        secret.encode("utf-8"),
        query.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class MexcRestClient:
    """Async MEXC spot REST API wrapper."""

    def __init__(self, config: ExchangeConfig):
        if not config.has_credentials:
            raise ConfigurationError("MEXC API credentials are missing (MEXC_API_KEY / MEXC_SECRET_KEY)")
        self.api_key = config.api_key
        self.api_secret = config.api_secret
        self.base_url = config.base_url.rstrip("/")
        self.recv_window = config.recv_window
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_sec)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    def sign(self, query: str) -> str:
        """Generate HMAC-SHA256 signature."""
        return sign(self.api_secret, query)

    def _signed_query(self, params: Dict[str, Any]) -> str:
        merged = dict(params)
        merged["timestamp"] = int(time.time() * 1000)
        if merged.get("recvWindow") is None:
            merged["recvWindow"] = self.recv_window
        query = canonical_query(merged)
        return f"{query}&signature={self.sign(query)}"

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "X-MEXC-APIKEY": self.api_key,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        signed: bool = False,
        expect: Optional[type] = dict,
    ) -> Any:
        """
        Make an API request; no retries.
        Raises ExchangeAPIError on non-2xx, on a non-JSON body, and when the
        payload is not `expect` (dict, or list of dicts). `expect=None`
        accepts any JSON. An empty body yields an empty `expect`.
        """
        session = await self._get_session()

        if signed:
            query = self._signed_query(params or {})
            headers = self._auth_headers()
        else:
            query = canonical_query(params or {})
            headers = {"Content-Type": "application/json"}

        url = f"{self.base_url}{path}"
        if query:
            url = f"{url}?{query}"

        try:
            # encoded=True: the wire query must match the signed query byte for byte
            async with session.request(method, URL(url, encoded=True), headers=headers) as resp:
                body = await resp.text()
                if not 200 <= resp.status < 300:
                    logger.error(f"[REST] {method} {path} Error: HTTP {resp.status}: {body[:300]}")
                    raise ExchangeAPIError(resp.status, body, method, path)
                status = resp.status

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[REST] {method} {path} Exception: {e!r}")
            raise

        if not body:
            return expect() if expect else None

        try:
            data = json.loads(body)
        except ValueError:
            logger.error(f"[REST] {method} {path} Error: non-JSON body: {body[:300]}")
            raise ExchangeAPIError(status, body, method, path, reason="response is not JSON")

        if expect is not None and not _has_shape(data, expect):
            logger.error(f"[REST] {method} {path} Error: expected {expect.__name__}: {body[:300]}")
            raise ExchangeAPIError(status, body, method, path, reason=f"expected a JSON {expect.__name__}")
        return data

    def _unexpected(self, path: str, data: Any, reason: str) -> ExchangeAPIError:
        logger.error(f"[REST] GET {path} Error: {reason}: {data!r:.300}")
        return ExchangeAPIError(200, json.dumps(data), "GET", path, reason=reason)

    # ==================== Market Endpoints ====================

    async def ping(self) -> bool:
        """Connectivity check."""
        await self._request("GET", "/api/v3/ping")
        return True

    async def server_time(self) -> int:
        """Venue clock in epoch ms."""
        data = await self._request("GET", "/api/v3/time")
        server_time = _to_int(data.get("serverTime"))
        if server_time is None:
            raise self._unexpected("/api/v3/time", data, "missing serverTime")
        return server_time

    async def price(self, symbol: str) -> PriceTick:
        """Last price for one symbol."""
        data = await self._request("GET", "/api/v3/ticker/price", {"symbol": symbol})
        return PriceTick.from_api(data)

    async def all_prices(self) -> List[PriceTick]:
        """Last price for every symbol."""
        data = await self._request("GET", "/api/v3/ticker/price", expect=list)
        return [PriceTick.from_api(d) for d in data]

    async def ticker_24h(self, symbol: str) -> Ticker24h:
        """24h rolling statistics for one symbol."""
        data = await self._request("GET", "/api/v3/ticker/24hr", {"symbol": symbol}, expect=None)
        # Some API revisions wrap the single-symbol answer in a list
        if isinstance(data, list):
            rows = [d for d in data if isinstance(d, dict)]
            data = next((d for d in rows if d.get("symbol") == symbol), rows[0] if rows else None)
        if not isinstance(data, dict):
            raise self._unexpected("/api/v3/ticker/24hr", data, "expected a JSON dict")
        return Ticker24h.from_api(data)

    async def book_ticker(self, symbol: str) -> BookTicker:
        """Best bid/ask for one symbol."""
        data = await self._request("GET", "/api/v3/ticker/bookTicker", {"symbol": symbol})
        return BookTicker.from_api(data)

    # ==================== Account Endpoints ====================

    async def account_info(self) -> AccountSnapshot:
        """Balances and permissions."""
        data = await self._request("GET", "/api/v3/account", signed=True)
        return AccountSnapshot.from_api(data)

    async def open_orders(self, symbol: Optional[str] = None) -> List[OpenOrder]:
        """Open orders for one symbol, or for all symbols when omitted."""
        data = await self._request("GET", "/api/v3/openOrders", {"symbol": symbol}, signed=True, expect=list)
        return [OpenOrder.from_api(o) for o in data]

    async def my_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> List[TradeRecord]:
        """Trade history for one symbol, optionally bounded by time."""
        params = {
            "symbol": symbol,
            "limit": limit,
            "startTime": start_time,
            "endTime": end_time,
        }
        data = await self._request("GET", "/api/v3/myTrades", params, signed=True, expect=list)
        return [TradeRecord.from_api(t) for t in data]

    # ==================== Trading Endpoints ====================

    async def place_order(self, intent: OrderIntent) -> OrderAck:
        """Place an order. Only fields present in the intent are sent."""
        logger.info(
            f"[ORDER] Placing: {intent.side.value} {intent.quantity or intent.quote_order_qty} "
            f"{intent.symbol} @ {intent.price or 'Market'} ({intent.type.value})"
        )
        data = await self._request("POST", "/api/v3/order", intent.to_params(), signed=True)
        return OrderAck.from_api(data)

    async def cancel_order(
        self,
        symbol: str,
        order_id: Optional[str] = None,
        orig_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
    ) -> OrderAck:
        """Cancel an order by venue id or by client label (exactly one)."""
        params = self._order_ref(symbol, order_id, orig_client_order_id)
        params["recvWindow"] = recv_window
        logger.info(f"[ORDER] Cancelling: {order_id or orig_client_order_id} on {symbol}")
        data = await self._request("DELETE", "/api/v3/order", params, signed=True)
        return OrderAck.from_api(data)

    async def query_order(
        self,
        symbol: str,
        order_id: Optional[str] = None,
        orig_client_order_id: Optional[str] = None,
    ) -> OrderAck:
        """Current state of one order."""
        params = self._order_ref(symbol, order_id, orig_client_order_id)
        data = await self._request("GET", "/api/v3/order", params, signed=True)
        return OrderAck.from_api(data)

    async def cancel_open_orders(self, symbol: str) -> List[OrderAck]:
        """Cancel every open order on a symbol."""
        logger.info(f"[ORDER] Cancelling all open orders on {symbol}")
        data = await self._request("DELETE", "/api/v3/openOrders", {"symbol": symbol}, signed=True, expect=list)
        return [OrderAck.from_api(o) for o in data]

    @staticmethod
    def _order_ref(
        symbol: str,
        order_id: Optional[str],
        orig_client_order_id: Optional[str],
    ) -> Dict[str, Any]:
        if (order_id is None) == (orig_client_order_id is None):
            raise ValueError("Exactly one of order_id / orig_client_order_id is required")
        return {
            "symbol": symbol,
            "orderId": order_id,
            "origClientOrderId": orig_client_order_id,
        }
