"""
Build the signed SPL token transfer for one signer.

Instruction order: optional compute-unit price (priority fee), compute-unit
limit, idempotent create of the destination's associated token account, then
the token transfer from the signer's ATA. Ed25519 signing is deterministic, so
identical inputs (including blockhash) serialize to identical bytes.
"""

from __future__ import annotations

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferParams,
    create_idempotent_associated_token_account,
    get_associated_token_address,
    transfer,
)

from multisend.config.settings import DEFAULT_COMPUTE_UNIT_LIMIT
from multisend.core.exceptions import InvalidAmount
from multisend.engine.models import BlockhashInfo, PreparedTransaction, SignerIdentity, TransferPlan

U64_MAX = 2**64 - 1


def derive_token_account(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Associated token account for (owner, mint)."""
    return get_associated_token_address(owner, mint)


def build_transfer_instructions(
    owner: Pubkey,
    plan: TransferPlan,
    compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT,
) -> list[Instruction]:
    if plan.amount_raw > U64_MAX:
        raise InvalidAmount(f"amount_raw {plan.amount_raw} exceeds u64")
    from_ata = derive_token_account(owner, plan.mint)
    to_ata = derive_token_account(plan.destination, plan.mint)

    ixs: list[Instruction] = []
    if plan.priority_fee_rate and plan.priority_fee_rate > 0:
        ixs.append(set_compute_unit_price(plan.priority_fee_rate))
    ixs.append(set_compute_unit_limit(compute_unit_limit))
    ixs.append(create_idempotent_associated_token_account(owner, plan.destination, plan.mint))
    ixs.append(
        transfer(
            TransferParams(
                program_id=TOKEN_PROGRAM_ID,
                source=from_ata,
                dest=to_ata,
                owner=owner,
                amount=plan.amount_raw,
            )
        )
    )
    return ixs


def build_transfer_transaction(
    signer: SignerIdentity,
    plan: TransferPlan,
    blockhash_info: BlockhashInfo,
    *,
    compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT,
) -> PreparedTransaction:
    """Assemble, bind to blockhash_info, set signer as fee payer and sign."""
    payer = signer.pubkey
    ixs = build_transfer_instructions(payer, plan, compute_unit_limit)
    recent_blockhash = Hash.from_string(blockhash_info.blockhash)
    message = Message.new_with_blockhash(ixs, payer, recent_blockhash)
    tx = Transaction([signer.keypair], message, recent_blockhash)
    return PreparedTransaction(
        signer_name=signer.name,
        raw=bytes(tx),
        blockhash_info=blockhash_info,
    )
