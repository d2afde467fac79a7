"""
Pytest fixtures for multisend tests: deterministic keypairs, a transfer plan and
an in-memory relay that scripts per-wallet responses.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from multisend.core.exceptions import StaleReference, Unauthorized, UpstreamUnavailable
from multisend.engine.models import BlockhashInfo, PreparedTransaction, SignerIdentity, TransferPlan

# Valid Solana pubkeys (base58, 32 bytes)
MINT = "So11111111111111111111111111111111111111112"
DESTINATION = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"

OK = "ok"


def make_signer(i: int, name: str | None = None) -> SignerIdentity:
    """Deterministic signer from a fixed 32-byte seed."""
    return SignerIdentity(name=name or f"wallet-{i}", keypair=Keypair.from_seed(bytes([i % 256] * 32)))


def make_blockhash(n: int) -> BlockhashInfo:
    return BlockhashInfo(blockhash=str(Hash(bytes([n % 256] * 32))), last_valid_block_height=1000 + n)


class FakeRelay:
    """
    In-memory relay. `script` maps wallet name -> list of responses per attempt:
    OK or an exception instance to raise. Missing entries answer OK.
    Tracks concurrent send_raw calls to measure the high-water mark.
    """

    def __init__(
        self,
        script: dict[str, list] | None = None,
        *,
        send_delay: float = 0.0,
        blockhash_error: Exception | None = None,
    ) -> None:
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.send_delay = send_delay
        self.blockhash_error = blockhash_error
        self.blockhash_calls = 0
        self.sent: dict[str, list[PreparedTransaction]] = defaultdict(list)
        self.active = 0
        self.high_water = 0

    async def get_blockhash(self) -> BlockhashInfo:
        if self.blockhash_error is not None:
            raise self.blockhash_error
        self.blockhash_calls += 1
        return make_blockhash(self.blockhash_calls)

    async def send_raw(self, prepared: PreparedTransaction) -> str:
        name = prepared.signer_name
        self.sent[name].append(prepared)
        self.active += 1
        self.high_water = max(self.high_water, self.active)
        try:
            if self.send_delay:
                await asyncio.sleep(self.send_delay)
            steps = self.script.get(name)
            action = steps.pop(0) if steps else OK
            if isinstance(action, BaseException):
                raise action
            return f"sig-{name}-{len(self.sent[name])}"
        finally:
            self.active -= 1


@pytest.fixture
def plan() -> TransferPlan:
    return TransferPlan(
        mint=Pubkey.from_string(MINT),
        destination=Pubkey.from_string(DESTINATION),
        amount_raw=1_250_000,
    )


@pytest.fixture
def signer() -> SignerIdentity:
    return make_signer(1)


@pytest.fixture
def stale_error() -> StaleReference:
    return StaleReference("Transaction simulation failed: Blockhash not found")


@pytest.fixture
def transient_error() -> UpstreamUnavailable:
    return UpstreamUnavailable("sendRaw failed: 502", 502)


@pytest.fixture
def unauthorized_error() -> Unauthorized:
    return Unauthorized("Unauthorized")
