"""
Telegram Notifier — Sends seed order results to admin chats.
"""

from __future__ import annotations
import aiohttp
from typing import List, Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from trading.seed_planner import SeedResult

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Sends messages via Telegram Bot API."""

    API_URL = "https://api.telegram.org"

    def __init__(self, bot_token: str, chat_ids: List[str], enabled: bool = True):
        self.bot_token = bot_token
        self.chat_ids = list(chat_ids)
        self.enabled = enabled and bool(bot_token) and bool(self.chat_ids)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def send(self, message: str, parse_mode: str = "HTML"):
        """Send a message to every configured chat."""
        if not self.enabled:
            logger.debug(f"[TG] (disabled) Would send: {message[:100]}...")
            return

        session = await self._get_session()
        url = f"{self.API_URL}/bot{self.bot_token}/sendMessage"

        for chat_id in self.chat_ids:
            payload = {
                "chat_id": chat_id,
                "text": message,
                "parse_mode": parse_mode,
                "disable_web_page_preview": True,
            }
            try:
                async with session.post(url, json=payload) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        logger.warning(f"[TG] Send to {chat_id} failed ({resp.status}): {body[:200]}")
                    else:
                        logger.debug(f"[TG] Sent to {chat_id}: {message[:80]}...")

            except Exception as e:
                logger.warning(f"[TG] Error sending message to {chat_id}: {e}")

    async def send_seed_result(self, result: "SeedResult"):
        """Report a planner run."""
        if result.success:
            status = result.ack.status if result.ack else "DRY RUN"
            msg = (
                f"🟢 <b>SEED BUY</b>\n\n"
                f"Symbol: <code>{result.symbol}</code>\n"
                f"Price: <code>{result.price}</code>\n"
                f"Qty: <code>{result.quantity}</code>\n"
                f"Status: {status}\n"
                f"Label: <code>{result.client_order_id}</code>"
            )
        else:
            msg = (
                f"❌ <b>SEED BUY FAILED</b>\n\n"
                f"Symbol: <code>{result.symbol}</code>\n"
                f"Reason: {result.error}"
            )
        await self.send(msg)
