"""
MEXC Seed Bot — Entry point.
Loads configuration, runs one seed planner pass and maps the result to a
process exit code (0 = placed / dry run, 1 = anything fatal).
"""

from __future__ import annotations
import asyncio
import os
import sys
import logging

from dotenv import load_dotenv

from config import BotConfig
from exchange.mexc_rest import MexcRestClient
from notifications.telegram import TelegramNotifier
from trading.seed_planner import SeedPlanner

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: str = ""):
    """Configure root logging: stdout, plus a file when LOG_FILE is set."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


async def run_seed(config: BotConfig) -> int:
    """Run one seed pass. Returns the process exit code."""
    # Validate critical config before any client exists
    if not config.exchange.has_credentials:
        logger.critical("MEXC_API_KEY and MEXC_SECRET_KEY must be set!")
        return 1

    client = MexcRestClient(config.exchange)
    notifier = TelegramNotifier(
        bot_token=config.notifications.telegram_bot_token,
        chat_ids=config.notifications.telegram_chat_ids,
        enabled=config.notifications.enabled,
    )

    try:
        result = await SeedPlanner(client, config.seed).run()
        await notifier.send_seed_result(result)
    except Exception as e:
        logger.critical(f"Seed script fatal: {e}", exc_info=True)
        return 1
    finally:
        await client.close()
        await notifier.close()

    return result.exit_code


def run():
    """Console script entry."""
    load_dotenv()
    config = BotConfig.from_env()
    setup_logging(config.log_level, config.log_file)
    sys.exit(asyncio.run(run_seed(config)))


if __name__ == "__main__":
    run()
