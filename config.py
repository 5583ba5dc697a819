"""
MEXC Seed Bot — Configuration
All tunable parameters in one place.
"""

import os
from decimal import Decimal
from dataclasses import dataclass, field
from typing import List


@dataclass
class ExchangeConfig:
    api_key: str = ""
    api_secret: str = ""
    base_url: str = "https://api.mexc.com"
    timeout_ms: int = 15000             # Per-request HTTP timeout
    recv_window: int = 60000            # Server-side timestamp tolerance (ms)

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)


@dataclass
class SeedConfig:
    symbol: str = "ETHUSDC"
    seed_usd: Decimal = Decimal("20")           # Notional per seed order
    delta_pct: Decimal = Decimal("0.001")       # 0.1%
    min_ticks: int = 3
    ttl_ms: int = 60000
    settle_delay_ms: int = 800                  # Pause after cancelling a stale seed
    label_prefix: str = "SEED_BUY_"
    tick_size: Decimal = Decimal("0.01")        # Price precision step
    step_size: Decimal = Decimal("0.000001")    # Quantity precision step
    min_qty_step: Decimal = Decimal("0.00001")  # Floor for the effective qty step
    dry_run: bool = False                       # Log the order, place nothing

    @property
    def settle_delay_sec(self) -> float:
        return self.settle_delay_ms / 1000

    @property
    def qty_step(self) -> Decimal:
        return max(self.step_size, self.min_qty_step)


@dataclass
class NotificationConfig:
    telegram_bot_token: str = ""
    telegram_chat_ids: List[str] = field(default_factory=list)
    enabled: bool = True


@dataclass
class BotConfig:
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    seed: SeedConfig = field(default_factory=SeedConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = "INFO"
    log_file: str = ""

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Load config with environment variable overrides."""
        config = cls()
        config.exchange.api_key = os.getenv("MEXC_API_KEY", "")
        config.exchange.api_secret = os.getenv("MEXC_SECRET_KEY", "")
        config.exchange.base_url = os.getenv("MEXC_BASE_URL", config.exchange.base_url).rstrip("/")
        config.exchange.timeout_ms = int(os.getenv("MEXC_TIMEOUT_MS", "15000"))
        config.exchange.recv_window = int(os.getenv("MEXC_RECV_WINDOW", "60000"))

        config.seed.symbol = os.getenv("SYMBOL", "ETHUSDC").upper()
        config.seed.seed_usd = Decimal(os.getenv("SEED_USD", "20"))
        config.seed.delta_pct = Decimal(os.getenv("SEED_DELTA_PCT", "0.001"))
        config.seed.min_ticks = int(os.getenv("SEED_MIN_TICKS", "3"))
        config.seed.ttl_ms = int(os.getenv("SEED_TTL_MS", "60000"))
        config.seed.settle_delay_ms = int(os.getenv("SEED_SETTLE_MS", "800"))
        config.seed.label_prefix = os.getenv("SEED_PREFIX", "SEED_BUY_")
        config.seed.tick_size = Decimal(os.getenv("TICK_SIZE", "0.01"))
        config.seed.step_size = Decimal(os.getenv("STEP_SIZE", "0.000001"))
        config.seed.min_qty_step = Decimal(os.getenv("SEED_MIN_QTY_STEP", "0.00001"))
        config.seed.dry_run = os.getenv("DRY_RUN", "false").lower() == "true"

        config.notifications.telegram_bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "")
        config.notifications.telegram_chat_ids = [
            s.strip() for s in os.getenv("TELEGRAM_ADMIN_CHAT_IDS", "").split(",") if s.strip()
        ]
        config.log_level = os.getenv("LOG_LEVEL", "INFO")
        config.log_file = os.getenv("LOG_FILE", "")
        return config
