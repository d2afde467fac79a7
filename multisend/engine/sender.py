"""
Submit one signer's transaction through the relay with bounded retries.

Per-signer state machine, run as an explicit loop over attempts:

    Built -> Submitting -> Confirmed
                        -> Retrying -> Submitting   (stale blockhash: refresh + re-sign)
                        -> Submitting after backoff (other relay/network error)
                        -> Failed                   (401, refresh failure, attempts exhausted)

Backoff is linear (base_delay * attempt). Stale-blockhash retries do not sleep.
The attempt bound applies to every failure kind. The outcome error is always the
last single message, never the retry history.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Protocol, TypeVar

from multisend.config.settings import (
    DEFAULT_COMPUTE_UNIT_LIMIT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_BASE_DELAY_SEC,
)
from multisend.core.exceptions import Cancelled, ExhaustedRetries, StaleReference, Unauthorized
from multisend.engine.blockhash import BlockhashCache
from multisend.engine.builder import build_transfer_transaction
from multisend.engine.models import PreparedTransaction, SendOutcome, SignerIdentity, TransferPlan
from multisend.multisend_logging import bind_wallet

T = TypeVar("T")

CANCELLED_MESSAGE = "Cancelled"
EXHAUSTED_MESSAGE = "exhausted retries"


class TransactionSubmitter(Protocol):
    async def send_raw(self, prepared: PreparedTransaction) -> str: ...


async def _cancellable(aw: Awaitable[T], cancel_event: asyncio.Event | None) -> T:
    """Await aw, raising Cancelled as soon as cancel_event is set."""
    if cancel_event is None:
        return await aw
    if cancel_event.is_set():
        if asyncio.iscoroutine(aw):
            aw.close()
        raise Cancelled(CANCELLED_MESSAGE)
    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            return task.result()
        raise Cancelled(CANCELLED_MESSAGE)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


async def _backoff(delay_sec: float, cancel_event: asyncio.Event | None) -> bool:
    """Sleep delay_sec; return True if cancel_event fired during the wait."""
    if cancel_event is None:
        await asyncio.sleep(delay_sec)
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay_sec)
    except asyncio.TimeoutError:
        return False
    return True


async def send_with_retry(
    signer: SignerIdentity,
    plan: TransferPlan,
    cache: BlockhashCache,
    relay: TransactionSubmitter,
    *,
    prepared: PreparedTransaction | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_sec: float = DEFAULT_RETRY_BASE_DELAY_SEC,
    compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT,
    cancel_event: asyncio.Event | None = None,
) -> SendOutcome:
    """
    Run one signer to a terminal SendOutcome. Never raises for relay or build failures.

    prepared: an already-built transaction (state Built); built from the cache's
        current blockhash when omitted.
    """
    log = bind_wallet(signer.name)

    def failed(message: str) -> SendOutcome:
        return SendOutcome(wallet=signer.name, error=message)

    if prepared is None:
        try:
            info = await _cancellable(cache.get(), cancel_event)
            prepared = build_transfer_transaction(signer, plan, info, compute_unit_limit=compute_unit_limit)
        except Exception as e:
            message = str(e) or type(e).__name__
            log.error("send_build_failed", error=message)
            return failed(message)

    last_error: str | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            signature = await _cancellable(relay.send_raw(prepared), cancel_event)
            log.info(
                "send_confirmed",
                signature=signature,
                attempt=attempt,
                blockhash=prepared.blockhash_info.blockhash,
            )
            return SendOutcome(wallet=signer.name, signature=signature)
        except Cancelled:
            log.warning("send_cancelled", attempt=attempt)
            return failed(CANCELLED_MESSAGE)
        except Unauthorized as e:
            log.error("send_unauthorized", attempt=attempt, error=str(e))
            return failed(str(e))
        except StaleReference as e:
            last_error = str(e)
            log.warning(
                "send_stale_blockhash",
                attempt=attempt,
                error=last_error,
                blockhash=prepared.blockhash_info.blockhash,
            )
            if attempt == max_attempts:
                break
            try:
                fresh = await _cancellable(cache.refresh(seen=prepared.blockhash_info), cancel_event)
            except Cancelled:
                log.warning("send_cancelled", attempt=attempt)
                return failed(CANCELLED_MESSAGE)
            except Exception as refresh_err:
                message = str(refresh_err) or type(refresh_err).__name__
                log.error("send_blockhash_refresh_failed", attempt=attempt, error=message)
                return failed(message)
            prepared = build_transfer_transaction(signer, plan, fresh, compute_unit_limit=compute_unit_limit)
        except Exception as e:
            last_error = str(e) or type(e).__name__
            if attempt == max_attempts:
                break
            delay = base_delay_sec * attempt
            log.warning("send_failed_retrying", attempt=attempt, error=last_error, backoff_sec=round(delay, 3))
            if await _backoff(delay, cancel_event):
                log.warning("send_cancelled", attempt=attempt)
                return failed(CANCELLED_MESSAGE)

    if last_error is not None:
        log.error("send_retries_exhausted", attempts=max_attempts, error=last_error)
        return failed(last_error)
    return failed(str(ExhaustedRetries(EXHAUSTED_MESSAGE)))
