"""
Data models for the MEXC seed bot.
Uses Decimal for all monetary/price values — no floating point errors.

Venue payloads vary between endpoints and API revisions, so every result
type parses permissively: missing or unparseable fields become None and the venue
payload is kept as-is in `raw`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class Side(Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class TimeInForce(Enum):
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


# Accepted spellings for top-of-book prices, highest priority first.
BID_ALIASES = ("bidPrice", "bid", "bestBid", "b")
ASK_ALIASES = ("askPrice", "ask", "bestAsk", "a")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a venue number (usually a string) into Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def first_present(data: Dict[str, Any], aliases: Sequence[str]) -> Any:
    """Return the first truthy value among `aliases`, in order."""
    for key in aliases:
        value = data.get(key)
        if value:
            return value
    return None


@dataclass
class OrderIntent:
    """What the caller wants placed. Validated on construction."""
    symbol: str
    side: Side
    type: OrderType = OrderType.MARKET
    quantity: Optional[Decimal] = None
    quote_order_qty: Optional[Decimal] = None
    price: Optional[Decimal] = None
    time_in_force: Optional[TimeInForce] = None
    new_client_order_id: Optional[str] = None
    recv_window: Optional[int] = None

    def __post_init__(self):
        self.side = Side(self.side)
        self.type = OrderType(self.type or OrderType.MARKET)
        if self.time_in_force is not None:
            self.time_in_force = TimeInForce(self.time_in_force)
        for name in ("quantity", "quote_order_qty", "price"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Decimal):
                setattr(self, name, to_decimal(value))

        if not self.symbol:
            raise ValueError("symbol is required")

        if self.type == OrderType.LIMIT:
            if self.price is None or not self.price.is_finite() or self.price <= 0:
                raise ValueError("price must be positive for LIMIT orders")
            if self.quantity is None:
                raise ValueError("quantity is required for LIMIT orders")
            if self.quote_order_qty is not None:
                raise ValueError("quoteOrderQty is not accepted for LIMIT orders")
        elif (self.quantity is None) == (self.quote_order_qty is None):
            raise ValueError("MARKET orders need exactly one of quantity / quoteOrderQty")

        for name, size in (("quantity", self.quantity), ("quoteOrderQty", self.quote_order_qty)):
            if size is not None and (not size.is_finite() or size <= 0):
                raise ValueError(f"{name} must be a positive number")

    def to_params(self) -> Dict[str, Any]:
        """Venue parameter names; absent fields stay None and get dropped by the signer."""
        return {
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.type.value,
            "timeInForce": self.time_in_force.value if self.time_in_force else None,
            "quantity": self.quantity,
            "quoteOrderQty": self.quote_order_qty,
            "price": self.price,
            "newClientOrderId": self.new_client_order_id,
            "recvWindow": self.recv_window,
        }


@dataclass
class Balance:
    asset: str
    free: Optional[Decimal] = None
    locked: Optional[Decimal] = None


@dataclass
class AccountSnapshot:
    """Balances and permissions from /api/v3/account."""
    balances: List[Balance] = field(default_factory=list)
    can_trade: Optional[bool] = None
    can_withdraw: Optional[bool] = None
    can_deposit: Optional[bool] = None
    account_type: Optional[str] = None
    permissions: List[str] = field(default_factory=list)
    update_time: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AccountSnapshot":
        balances = [
            Balance(
                asset=b.get("asset", ""),
                free=to_decimal(b.get("free")),
                locked=to_decimal(b.get("locked")),
            )
            for b in data.get("balances") or []
        ]
        return cls(
            balances=balances,
            can_trade=data.get("canTrade"),
            can_withdraw=data.get("canWithdraw"),
            can_deposit=data.get("canDeposit"),
            account_type=data.get("accountType"),
            permissions=list(data.get("permissions") or []),
            update_time=_to_int(data.get("updateTime")),
            raw=data,
        )

    def balance(self, asset: str) -> Optional[Balance]:
        for b in self.balances:
            if b.asset == asset:
                return b
        return None


@dataclass
class OrderAck:
    """Order acknowledgment as reported by the venue (place / cancel / query)."""
    symbol: str = ""
    order_id: Optional[str] = None
    client_order_id: Optional[str] = None
    orig_client_order_id: Optional[str] = None
    side: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Decimal] = None
    orig_qty: Optional[Decimal] = None
    executed_qty: Optional[Decimal] = None
    cumulative_quote_qty: Optional[Decimal] = None
    transact_time: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "OrderAck":
        order_id = data.get("orderId")
        return cls(
            symbol=data.get("symbol", ""),
            order_id=str(order_id) if order_id is not None else None,
            client_order_id=data.get("clientOrderId"),
            orig_client_order_id=data.get("origClientOrderId"),
            side=data.get("side"),
            type=data.get("type"),
            status=data.get("status"),
            price=to_decimal(data.get("price")),
            orig_qty=to_decimal(data.get("origQty")),
            executed_qty=to_decimal(data.get("executedQty")),
            # The venue spells it "cummulative"
            cumulative_quote_qty=to_decimal(data.get("cummulativeQuoteQty")),
            transact_time=_to_int(data.get("transactTime")),
            raw=data,
        )


@dataclass
class OpenOrder:
    """Resting order from /api/v3/openOrders."""
    symbol: str = ""
    order_id: Optional[str] = None
    client_order_id: str = ""
    side: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    time_in_force: Optional[str] = None
    price: Optional[Decimal] = None
    orig_qty: Optional[Decimal] = None
    executed_qty: Optional[Decimal] = None
    time: Optional[int] = None
    update_time: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "OpenOrder":
        order_id = data.get("orderId")
        return cls(
            symbol=data.get("symbol", ""),
            order_id=str(order_id) if order_id is not None else None,
            client_order_id=data.get("clientOrderId") or "",
            side=data.get("side"),
            type=data.get("type"),
            status=data.get("status"),
            time_in_force=data.get("timeInForce"),
            price=to_decimal(data.get("price")),
            orig_qty=to_decimal(data.get("origQty")),
            executed_qty=to_decimal(data.get("executedQty")),
            time=_to_int(data.get("time")),
            update_time=_to_int(data.get("updateTime")),
            raw=data,
        )


@dataclass
class TradeRecord:
    """Single fill from /api/v3/myTrades."""
    symbol: str = ""
    trade_id: Optional[str] = None
    order_id: Optional[str] = None
    client_order_id: Optional[str] = None
    price: Optional[Decimal] = None
    qty: Optional[Decimal] = None
    quote_qty: Optional[Decimal] = None
    commission: Optional[Decimal] = None
    commission_asset: Optional[str] = None
    is_buyer: Optional[bool] = None
    is_maker: Optional[bool] = None
    time: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TradeRecord":
        trade_id = data.get("id")
        order_id = data.get("orderId")
        return cls(
            symbol=data.get("symbol", ""),
            trade_id=str(trade_id) if trade_id is not None else None,
            order_id=str(order_id) if order_id is not None else None,
            client_order_id=data.get("clientOrderId"),
            price=to_decimal(data.get("price")),
            qty=to_decimal(data.get("qty")),
            quote_qty=to_decimal(data.get("quoteQty")),
            commission=to_decimal(data.get("commission")),
            commission_asset=data.get("commissionAsset"),
            is_buyer=data.get("isBuyer"),
            is_maker=data.get("isMaker"),
            time=_to_int(data.get("time")),
            raw=data,
        )


@dataclass
class PriceTick:
    """Last traded price."""
    symbol: str
    price: Optional[Decimal]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PriceTick":
        return cls(symbol=data.get("symbol", ""), price=to_decimal(data.get("price")))


@dataclass
class Ticker24h:
    """Rolling 24h statistics."""
    symbol: str = ""
    last_price: Optional[Decimal] = None
    open_price: Optional[Decimal] = None
    high_price: Optional[Decimal] = None
    low_price: Optional[Decimal] = None
    price_change: Optional[Decimal] = None
    price_change_percent: Optional[Decimal] = None
    bid_price: Optional[Decimal] = None
    ask_price: Optional[Decimal] = None
    volume: Optional[Decimal] = None
    quote_volume: Optional[Decimal] = None
    open_time: Optional[int] = None
    close_time: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Ticker24h":
        return cls(
            symbol=data.get("symbol", ""),
            last_price=to_decimal(data.get("lastPrice")),
            open_price=to_decimal(data.get("openPrice")),
            high_price=to_decimal(data.get("highPrice")),
            low_price=to_decimal(data.get("lowPrice")),
            price_change=to_decimal(data.get("priceChange")),
            price_change_percent=to_decimal(data.get("priceChangePercent")),
            bid_price=to_decimal(data.get("bidPrice")),
            ask_price=to_decimal(data.get("askPrice")),
            volume=to_decimal(data.get("volume")),
            quote_volume=to_decimal(data.get("quoteVolume")),
            open_time=_to_int(data.get("openTime")),
            close_time=_to_int(data.get("closeTime")),
            raw=data,
        )


@dataclass
class BookTicker:
    """Top of book snapshot."""
    symbol: str
    bid: Optional[Decimal]
    ask: Optional[Decimal]
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BookTicker":
        return cls(
            symbol=data.get("symbol", ""),
            bid=to_decimal(first_present(data, BID_ALIASES)),
            ask=to_decimal(first_present(data, ASK_ALIASES)),
            raw=data,
        )

    @property
    def is_valid(self) -> bool:
        """Both sides present, finite and positive."""
        for px in (self.bid, self.ask):
            if px is None or not px.is_finite() or px <= 0:
                return False
        return True
