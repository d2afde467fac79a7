"""
Batch transaction execution engine.

Amount normalizer -> blockhash cache -> transaction builder -> send with retry
-> batch dispatcher. See dispatcher.execute_batch for the entry point.
"""

from multisend.engine.amount import to_raw_amount
from multisend.engine.blockhash import BlockhashCache
from multisend.engine.builder import build_transfer_transaction
from multisend.engine.dispatcher import execute_batch, send_batch
from multisend.engine.models import (
    BlockhashInfo,
    PreparedTransaction,
    SendOutcome,
    SignerIdentity,
    TransferPlan,
)
from multisend.engine.relay import RelayClient
from multisend.engine.sender import send_with_retry
from multisend.engine.wallets import parse_secret_key, parse_wallet_batch

__all__ = [
    "BlockhashCache",
    "BlockhashInfo",
    "PreparedTransaction",
    "RelayClient",
    "SendOutcome",
    "SignerIdentity",
    "TransferPlan",
    "build_transfer_transaction",
    "execute_batch",
    "parse_secret_key",
    "parse_wallet_batch",
    "send_batch",
    "send_with_retry",
    "to_raw_amount",
]
