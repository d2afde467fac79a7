"""
Data model for one batch: signers, the shared transfer plan, the blockhash a
transaction is bound to, prepared transactions and per-wallet outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from multisend.core.exceptions import InvalidAmount
from multisend.engine.amount import to_raw_amount
from multisend.utils.wallet_utils import parse_pubkey


@dataclass(frozen=True)
class SignerIdentity:
    """A named signing wallet. Owned by the caller; never persisted here."""

    name: str
    keypair: Keypair

    @property
    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    def __repr__(self) -> str:
        return f"SignerIdentity(name={self.name!r}, pubkey={self.pubkey})"


@dataclass(frozen=True)
class TransferPlan:
    """The transfer every signer in a batch performs. Shared read-only across signers."""

    mint: Pubkey
    destination: Pubkey
    amount_raw: int
    priority_fee_rate: int | None = None  # micro-lamports per compute unit

    def __post_init__(self) -> None:
        if self.amount_raw < 0:
            raise InvalidAmount(f"amount_raw must be non-negative, got {self.amount_raw}")
        if self.priority_fee_rate is not None and self.priority_fee_rate < 0:
            raise InvalidAmount(f"priority_fee_rate must be non-negative, got {self.priority_fee_rate}")

    @classmethod
    def from_inputs(
        cls,
        mint: str,
        destination: str,
        amount: str,
        decimals: int,
        priority_fee: int | None = None,
    ) -> TransferPlan:
        """Build a plan from operator-entered strings (addresses, decimal amount)."""
        return cls(
            mint=parse_pubkey(mint, "mint"),
            destination=parse_pubkey(destination, "destination"),
            amount_raw=to_raw_amount(amount, decimals),
            priority_fee_rate=priority_fee if priority_fee and priority_fee > 0 else None,
        )


@dataclass(frozen=True)
class BlockhashInfo:
    """Recent blockhash and the last block height at which it is accepted."""

    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True)
class PreparedTransaction:
    """A signed, serialized transaction bound to exactly one BlockhashInfo."""

    signer_name: str
    raw: bytes
    blockhash_info: BlockhashInfo


@dataclass(frozen=True)
class SendOutcome:
    """Terminal result for one wallet: exactly one of signature / error is set."""

    wallet: str
    signature: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if (self.signature is None) == (self.error is None):
            raise ValueError("SendOutcome needs exactly one of signature or error")

    @property
    def ok(self) -> bool:
        return self.signature is not None
