"""
Batch dispatcher: run send_with_retry for every signer under a concurrency cap.

One blockhash is fetched up front and shared through a BlockhashCache. Each
signer run pushes its terminal SendOutcome onto a queue; a single consumer
feeds both the observer callback and the result map, so no collection is shared
between runs. The dispatcher never raises for per-signer failures.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Protocol, Sequence

from multisend.config.settings import (
    DEFAULT_COMPUTE_UNIT_LIMIT,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_BASE_DELAY_SEC,
    SenderConfig,
    clamp_concurrency,
    get_settings,
)
from multisend.engine.blockhash import BlockhashCache
from multisend.engine.models import BlockhashInfo, PreparedTransaction, SendOutcome, SignerIdentity, TransferPlan
from multisend.engine.relay import RelayClient
from multisend.engine.sender import send_with_retry
from multisend.multisend_logging import get_logger

logger = get_logger(__name__)

OnResult = Callable[[SendOutcome], None]


class Relay(Protocol):
    async def get_blockhash(self) -> BlockhashInfo: ...

    async def send_raw(self, prepared: PreparedTransaction) -> str: ...


def _check_unique_names(signers: Sequence[SignerIdentity]) -> None:
    seen: set[str] = set()
    for s in signers:
        if s.name in seen:
            raise ValueError(f"Duplicate signer name: {s.name}")
        seen.add(s.name)


def _emit(on_result: OnResult | None, outcome: SendOutcome) -> None:
    if on_result is None:
        return
    try:
        on_result(outcome)
    except Exception as e:
        logger.warning("batch_observer_failed", wallet=outcome.wallet, error=str(e))


async def execute_batch(
    signers: Sequence[SignerIdentity],
    plan: TransferPlan,
    relay: Relay,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_result: OnResult | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_sec: float = DEFAULT_RETRY_BASE_DELAY_SEC,
    compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT,
    cancel_event: asyncio.Event | None = None,
    cache: BlockhashCache | None = None,
) -> list[SendOutcome]:
    """
    Send plan from every signer; return one SendOutcome per signer in input order.

    concurrency is clamped to [1, 30]. on_result is called once per signer as
    soon as it reaches a terminal state. Raises ValueError only for duplicate
    signer names (caller error), before any network call.
    """
    _check_unique_names(signers)
    if not signers:
        return []
    limit = clamp_concurrency(concurrency)
    cache = cache or BlockhashCache(relay.get_blockhash)
    started = time.monotonic()
    logger.info("batch_started", wallet_count=len(signers), concurrency=limit)

    results: dict[str, SendOutcome] = {}
    try:
        await cache.get()
    except Exception as e:
        message = str(e) or type(e).__name__
        logger.error("batch_initial_blockhash_failed", error=message)
        for s in signers:
            outcome = SendOutcome(wallet=s.name, error=message)
            _emit(on_result, outcome)
            results[s.name] = outcome
        return [results[s.name] for s in signers]

    semaphore = asyncio.Semaphore(limit)
    outcomes: asyncio.Queue[SendOutcome] = asyncio.Queue()

    async def run_one(signer: SignerIdentity) -> None:
        async with semaphore:
            try:
                outcome = await send_with_retry(
                    signer,
                    plan,
                    cache,
                    relay,
                    max_attempts=max_attempts,
                    base_delay_sec=base_delay_sec,
                    compute_unit_limit=compute_unit_limit,
                    cancel_event=cancel_event,
                )
            except Exception as e:
                logger.exception("batch_signer_crashed", wallet=signer.name, error=str(e))
                outcome = SendOutcome(wallet=signer.name, error=str(e) or type(e).__name__)
        await outcomes.put(outcome)

    tasks = [asyncio.create_task(run_one(s)) for s in signers]
    try:
        for _ in range(len(tasks)):
            outcome = await outcomes.get()
            _emit(on_result, outcome)
            results[outcome.wallet] = outcome
    finally:
        for t in tasks:
            if not t.done():
                t.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    ok = sum(1 for o in results.values() if o.ok)
    logger.info(
        "batch_finished",
        wallet_count=len(signers),
        confirmed=ok,
        failed=len(signers) - ok,
        elapsed_sec=round(time.monotonic() - started, 2),
    )
    return [results[s.name] for s in signers]


async def send_batch(
    signers: Sequence[SignerIdentity],
    plan: TransferPlan,
    config: SenderConfig | None = None,
    *,
    on_result: OnResult | None = None,
    cancel_event: asyncio.Event | None = None,
) -> list[SendOutcome]:
    """Open a RelayClient from config (env when omitted) and run execute_batch."""
    cfg = config or get_settings()
    async with RelayClient(
        cfg.relay_api_base,
        cfg.relay_api_key,
        timeout_sec=cfg.relay_timeout_sec,
    ) as relay:
        return await execute_batch(
            signers,
            plan,
            relay,
            concurrency=cfg.concurrency,
            on_result=on_result,
            max_attempts=cfg.max_attempts,
            base_delay_sec=cfg.retry_base_delay_sec,
            compute_unit_limit=cfg.compute_unit_limit,
            cancel_event=cancel_event,
        )
