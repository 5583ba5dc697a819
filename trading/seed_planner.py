"""
Seed Planner — Places one marketable LIMIT IOC BUY for a fixed notional.

Per run:
  1. Cancel the most recent open SEED_BUY_* order, if any (non-fatal).
  2. Read best bid/ask; both must be finite and positive.
  3. Price = ask + 1 tick, rounded to tick size.
  4. Qty = notional / price, floored to the lot step, never below one step.
  5. Submit LIMIT IOC BUY tagged with a fresh client order id.

At most one attempt per call. Duplicate protection relies on the unique
client order id, not on locking.
"""

from __future__ import annotations
import asyncio
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Optional, TYPE_CHECKING
import aiohttp
import logging

from core.precision import floor_to, round_to
from exchange.errors import ExchangeError
from exchange.models import OrderAck, OrderIntent, OrderType, Side, TimeInForce

if TYPE_CHECKING:
    from exchange.mexc_rest import MexcRestClient
    from config import SeedConfig

logger = logging.getLogger(__name__)

# Venue rejections and transport failures are treated alike
REQUEST_ERRORS = (ExchangeError, aiohttp.ClientError, asyncio.TimeoutError)


@dataclass
class SeedResult:
    """Outcome of one planner run. The caller maps it to an exit code."""
    success: bool
    symbol: str
    client_order_id: Optional[str] = None
    bid: Optional[Decimal] = None
    ask: Optional[Decimal] = None
    price: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    ack: Optional[OrderAck] = None
    cancelled_client_order_id: Optional[str] = None
    dry_run: bool = False
    error: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


def seed_price(ask: Decimal, tick_size: Decimal) -> Decimal:
    """One tick above the ask, snapped to the tick grid."""
    return round_to(ask + tick_size, tick_size)


def seed_quantity(notional: Decimal, price: Decimal, step: Decimal) -> Decimal:
    """Largest lot-step multiple within the notional, but at least one step."""
    return max(step, floor_to(notional / price, step))


class SeedPlanner:
    """Cancels the stale seed order and submits a fresh one."""

    def __init__(
        self,
        client: "MexcRestClient",
        config: "SeedConfig",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.config = config
        self._sleep = sleep

    def new_client_order_id(self) -> str:
        return f"{self.config.label_prefix}{int(time.time() * 1000)}"

    async def run(self) -> SeedResult:
        cfg = self.config
        symbol = cfg.symbol

        logger.info(
            f"[SEED] Start: {symbol} notional=${cfg.seed_usd} delta={cfg.delta_pct} "
            f"min_ticks={cfg.min_ticks} ttl={cfg.ttl_ms}ms dry_run={cfg.dry_run}"
        )

        cancelled = None
        if cfg.dry_run:
            logger.info(f"[SEED] {symbol}: Dry run, not touching existing orders")
        else:
            cancelled = await self._cancel_stale_seed()

        try:
            book = await self.client.book_ticker(symbol)
        except REQUEST_ERRORS as e:
            logger.error(f"[SEED] {symbol}: Failed to fetch book ticker: {e}")
            return SeedResult(
                success=False, symbol=symbol,
                cancelled_client_order_id=cancelled, error=f"book ticker: {e}",
            )

        if not book.is_valid:
            logger.error(f"[SEED] {symbol}: No bid/ask price for calculation (bid={book.bid}, ask={book.ask})")
            return SeedResult(
                success=False, symbol=symbol, bid=book.bid, ask=book.ask,
                cancelled_client_order_id=cancelled, error="invalid bid/ask",
            )

        price = seed_price(book.ask, cfg.tick_size)
        qty = seed_quantity(cfg.seed_usd, price, cfg.qty_step)
        coid = self.new_client_order_id()
        result = SeedResult(
            success=False, symbol=symbol, client_order_id=coid,
            bid=book.bid, ask=book.ask, price=price, quantity=qty,
            cancelled_client_order_id=cancelled, dry_run=cfg.dry_run,
        )

        logger.info(
            f"[SEED] {symbol}: Placing LIMIT IOC BUY bid={book.bid} ask={book.ask} "
            f"price={price} qty={qty} coid={coid}"
        )

        if cfg.dry_run:
            logger.info(f"[SEED] {symbol}: Dry run, order not submitted")
            result.success = True
            return result

        intent = OrderIntent(
            symbol=symbol,
            side=Side.BUY,
            type=OrderType.LIMIT,
            quantity=qty,
            price=price,
            time_in_force=TimeInForce.IOC,
            new_client_order_id=coid,
        )

        try:
            result.ack = await self.client.place_order(intent)
        except REQUEST_ERRORS as e:
            logger.error(f"[SEED] {symbol}: Seed LIMIT IOC BUY failed: {e}")
            result.error = f"place order: {e}"
            return result

        logger.info(
            f"[SEED] {symbol}: Seed LIMIT IOC BUY submitted "
            f"(orderId={result.ack.order_id}, status={result.ack.status})"
        )
        result.success = True
        return result

    async def _cancel_stale_seed(self) -> Optional[str]:
        """
        Cancel the most recent open order carrying the seed prefix.
        Returns the cancelled client order id, or None. Never raises on
        request errors: a failed cancel must not block the new seed.
        """
        symbol = self.config.symbol
        prefix = self.config.label_prefix

        try:
            orders = await self.client.open_orders(symbol)
            seeds = [o for o in orders if o.client_order_id.startswith(prefix)]
            if not seeds:
                logger.debug(f"[SEED] {symbol}: No existing {prefix} order")
                return None

            stale = max(seeds, key=lambda o: o.time or 0)
            await self.client.cancel_order(symbol, orig_client_order_id=stale.client_order_id)
            logger.info(f"[SEED] {symbol}: Cancelled existing seed order {stale.client_order_id}")
            await self._sleep(self.config.settle_delay_sec)
            return stale.client_order_id

        except REQUEST_ERRORS as e:
            logger.warning(f"[SEED] {symbol}: Failed to check/cancel existing seed order: {e}")
            return None
