"""
Exchange errors raised by the MEXC REST client.
"""

from __future__ import annotations
import json
from typing import Any, Optional


class ExchangeError(Exception):
    """Base class for all client-side exchange errors."""


class ConfigurationError(ExchangeError):
    """Missing or invalid client configuration (e.g. empty credentials)."""


class ExchangeAPIError(ExchangeError):
    """
    Non-2xx response from the venue, or a 2xx whose body is not the
    expected JSON shape (`reason` says which).
    Keeps the raw response body untouched; `code`/`msg` are filled in
    when the body is the usual `{"code": ..., "msg": ...}` JSON.
    """

    def __init__(
        self,
        status: int,
        body: str,
        method: str = "",
        path: str = "",
        reason: str = "",
    ):
        self.status = status
        self.reason = reason
        self.body = body
        self.method = method
        self.path = path
        self.code: Optional[Any] = None
        self.msg: Optional[str] = None

        try:
            payload = json.loads(body) if body else None
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            self.code = payload.get("code")
            self.msg = payload.get("msg")

        detail = f" ({reason})" if reason else ""
        super().__init__(f"{method} {path} failed: HTTP {status}{detail}: {body}")
