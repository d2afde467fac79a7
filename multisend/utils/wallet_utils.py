"""Wallet address validation utilities."""

from solders.pubkey import Pubkey

from multisend.core.exceptions import InvalidIdentity


def parse_pubkey(value: str, field: str = "address") -> Pubkey:
    """Parse a base58 Solana address; raise InvalidIdentity naming the field on failure."""
    raw = (value or "").strip()
    if not raw:
        raise InvalidIdentity(f"{field} is required")
    try:
        return Pubkey.from_string(raw)
    except Exception as e:
        raise InvalidIdentity(f"Invalid {field}: {raw}") from e
