"""
Decimal amount string -> exact integer raw (minor unit) amount.

Excess fractional precision is dropped, not rounded: ("1.239", 2) -> 123.
"""

from __future__ import annotations

import re

from multisend.core.exceptions import InvalidAmount

_WHOLE_RE = re.compile(r"[0-9]+")
_FRACTION_RE = re.compile(r"[0-9]*")


def to_raw_amount(amount: str, decimals: int) -> int:
    """
    Parse a human-entered decimal string into raw token units.

    Empty whole part counts as zero (".5"). Raises InvalidAmount for empty input,
    negative decimals, more than one decimal point, or non-digit characters.
    """
    normalized = (amount or "").strip()
    if not normalized:
        raise InvalidAmount("Amount is required")
    if decimals < 0:
        raise InvalidAmount(f"decimals must be non-negative, got {decimals}")
    whole, sep, frac = normalized.partition(".")
    if sep and "." in frac:
        raise InvalidAmount(f"Amount must be numeric: {normalized!r}")
    safe_whole = whole or "0"
    if not _WHOLE_RE.fullmatch(safe_whole) or not _FRACTION_RE.fullmatch(frac):
        raise InvalidAmount(f"Amount must be numeric: {normalized!r}")
    padded = (frac + "0" * decimals)[:decimals]
    return int(safe_whole) * 10**decimals + int(padded or "0")
