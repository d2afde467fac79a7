"""
Load signer wallets from operator text: one wallet per line, optional "name:" prefix.

Secret keys are accepted as a JSON array of 64 byte values or a base58 string
(the two formats solana-keygen and browser wallets export).
"""

from __future__ import annotations

import json

import base58
from solders.keypair import Keypair

from multisend.config.settings import MAX_WALLETS
from multisend.core.exceptions import BatchLimitExceeded, InvalidIdentity
from multisend.engine.models import SignerIdentity
from multisend.multisend_logging import get_logger

logger = get_logger(__name__)

SECRET_KEY_LEN = 64


def parse_secret_key(text: str) -> bytes:
    """Decode a secret key from a JSON byte array or base58; raise InvalidIdentity otherwise."""
    raw = (text or "").strip()
    if not raw:
        raise InvalidIdentity("Empty secret key input")
    if raw.startswith("["):
        try:
            arr = json.loads(raw)
            if isinstance(arr, list) and arr:
                return bytes(arr)
        except (json.JSONDecodeError, TypeError, ValueError):
            pass
    try:
        return base58.b58decode(raw)
    except ValueError as e:
        raise InvalidIdentity("Secret key must be JSON array or base58-encoded") from e


def _split_line(line: str, idx: int) -> tuple[str, str]:
    """Split "name:secret" at the first colon; unnamed lines get wallet-<n>."""
    if ":" in line:
        name, secret = line.split(":", 1)
    else:
        name, secret = "", line
    return (name.strip() or f"wallet-{idx + 1}"), secret


def load_signer(name: str, secret: str) -> SignerIdentity:
    """Build one SignerIdentity; the secret must decode to exactly 64 bytes."""
    key = parse_secret_key(secret)
    if len(key) != SECRET_KEY_LEN:
        raise InvalidIdentity(f"Wallet {name}: secret key must be {SECRET_KEY_LEN} bytes, got {len(key)}")
    try:
        keypair = Keypair.from_bytes(key)
    except Exception as e:
        raise InvalidIdentity(f"Wallet {name}: invalid secret key") from e
    return SignerIdentity(name=name, keypair=keypair)


def parse_wallet_batch(raw: str) -> list[SignerIdentity]:
    """
    Parse up to MAX_WALLETS wallets from newline-separated text.

    Blank lines are skipped. Raises BatchLimitExceeded for more than MAX_WALLETS
    lines and InvalidIdentity for bad key material or duplicate names.
    """
    lines = [line.strip() for line in (raw or "").splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return []
    if len(lines) > MAX_WALLETS:
        raise BatchLimitExceeded(f"Provide at most {MAX_WALLETS} wallets")

    signers: list[SignerIdentity] = []
    seen: set[str] = set()
    for idx, line in enumerate(lines):
        name, secret = _split_line(line, idx)
        if name in seen:
            raise InvalidIdentity(f"Duplicate wallet name: {name}")
        seen.add(name)
        signers.append(load_signer(name, secret))
    logger.info("wallets_loaded", wallet_count=len(signers))
    return signers
