"""
Application-level exceptions.

Local input errors (InvalidAmount, InvalidIdentity, BatchLimitExceeded) are also
ValueErrors and are never retried. Relay-side errors drive the per-signer retry
loop: StaleReference is recoverable (refresh + re-sign), UpstreamUnavailable is
retried with backoff, Unauthorized is surfaced immediately.
"""

from __future__ import annotations


class MultisendError(Exception):
    """Base class for all multisend errors."""


class InvalidAmount(MultisendError, ValueError):
    """Malformed human-entered amount or decimals."""


class InvalidIdentity(MultisendError, ValueError):
    """Malformed address or secret key material."""


class BatchLimitExceeded(MultisendError, ValueError):
    """More wallets or addresses than the relay accepts in one call."""


class StaleReference(MultisendError):
    """Relay rejected the transaction because its blockhash is unknown or expired."""


class UpstreamUnavailable(MultisendError):
    """Relay or network failure (including timeouts and non-2xx responses)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class Unauthorized(MultisendError):
    """Relay refused the shared secret (HTTP 401)."""


class ExhaustedRetries(MultisendError):
    """Retry loop exited without reaching a classified terminal state."""


class Cancelled(MultisendError):
    """The batch was cancelled before this signer reached a terminal state."""
