"""
Environment variable loading for multisend.

- RELAY_API_BASE: relay base URL (default http://localhost:8787)
- RELAY_API_KEY: optional shared secret sent as x-api-key
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is multisend/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_RELAY_API_BASE = "http://localhost:8787"


def load_multisend_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def get_relay_api_base() -> str:
    """Return RELAY_API_BASE without trailing slash."""
    load_multisend_env()
    raw = (os.getenv("RELAY_API_BASE") or DEFAULT_RELAY_API_BASE).strip()
    return raw.rstrip("/") or DEFAULT_RELAY_API_BASE


def get_relay_api_key() -> str | None:
    """Return RELAY_API_KEY, or None when unset/blank (no auth header is sent)."""
    load_multisend_env()
    key = (os.getenv("RELAY_API_KEY") or "").strip()
    return key or None


def print_multisend_startup(script_name: str) -> None:
    """Print relay base and whether a shared secret is configured."""
    api_base = get_relay_api_base()
    auth = "set" if get_relay_api_key() else "none"
    print(f"[multisend] {script_name} | relay={api_base} | api_key={auth}")
