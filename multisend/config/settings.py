"""
Sender settings: relay endpoint, concurrency, retry policy, timeouts.

Env-backed defaults, clamped in __post_init__ so a bad env value degrades to a
safe setting instead of failing the batch.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from multisend.config.env import get_relay_api_base, get_relay_api_key, load_multisend_env

MAX_WALLETS = 30
DEFAULT_CONCURRENCY = 8
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY_SEC = 0.15
DEFAULT_RELAY_TIMEOUT_SEC = 15.0
DEFAULT_COMPUTE_UNIT_LIMIT = 200_000
DEFAULT_TOKEN_DECIMALS = 6


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def clamp_concurrency(value: int | None) -> int:
    """Clamp a requested concurrency to [1, MAX_WALLETS]; None/0 -> 1."""
    return min(MAX_WALLETS, max(1, int(value or 1)))


@dataclass
class SenderConfig:
    """Config for the batch sender (env or explicit)."""

    relay_api_base: str = field(default_factory=get_relay_api_base)
    relay_api_key: str | None = field(default_factory=get_relay_api_key)
    concurrency: int = field(default_factory=lambda: _env_int("SEND_CONCURRENCY", DEFAULT_CONCURRENCY))
    max_attempts: int = field(default_factory=lambda: _env_int("SEND_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))
    retry_base_delay_sec: float = field(
        default_factory=lambda: _env_float("SEND_RETRY_BASE_DELAY_SEC", DEFAULT_RETRY_BASE_DELAY_SEC)
    )
    relay_timeout_sec: float = field(default_factory=lambda: _env_float("RELAY_TIMEOUT_SEC", DEFAULT_RELAY_TIMEOUT_SEC))
    compute_unit_limit: int = field(default_factory=lambda: _env_int("COMPUTE_UNIT_LIMIT", DEFAULT_COMPUTE_UNIT_LIMIT))
    token_decimals: int = field(default_factory=lambda: _env_int("TOKEN_DECIMALS", DEFAULT_TOKEN_DECIMALS))

    def __post_init__(self) -> None:
        self.relay_api_base = self.relay_api_base.strip().rstrip("/")
        if not self.relay_api_base:
            raise ValueError("RELAY_API_BASE must be non-empty")
        self.concurrency = clamp_concurrency(self.concurrency)
        if self.max_attempts < 1:
            self.max_attempts = 1
        if self.retry_base_delay_sec < 0:
            self.retry_base_delay_sec = 0.0
        if self.relay_timeout_sec <= 0:
            self.relay_timeout_sec = DEFAULT_RELAY_TIMEOUT_SEC
        if self.compute_unit_limit < 1:
            self.compute_unit_limit = DEFAULT_COMPUTE_UNIT_LIMIT
        if self.token_decimals < 0:
            self.token_decimals = DEFAULT_TOKEN_DECIMALS


def get_settings() -> SenderConfig:
    """Return sender settings from the environment (.env loaded first)."""
    load_multisend_env()
    return SenderConfig()
