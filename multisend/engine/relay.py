"""
HTTP client for the relay in front of the ledger RPC.

Three stateless endpoints: GET /blockhash, POST /sendRaw, POST /balances. The
optional shared secret goes in the x-api-key header; a 401 raises Unauthorized
and is never retried. Every call carries the client timeout; timeouts and
transport errors raise UpstreamUnavailable.

Staleness classification prefers a structured "code" from the relay error body
and falls back to matching the error message.
"""

from __future__ import annotations

import base64
import re
from typing import Any

import httpx
from solders.hash import Hash

from multisend.config.settings import DEFAULT_RELAY_TIMEOUT_SEC, MAX_WALLETS
from multisend.core.exceptions import BatchLimitExceeded, StaleReference, Unauthorized, UpstreamUnavailable
from multisend.engine.models import BlockhashInfo, PreparedTransaction
from multisend.multisend_logging import get_logger

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"
STALE_ERROR_CODES = frozenset({"blockhash_not_found", "blockhash_expired", "stale_reference"})
_STALE_MESSAGE_RE = re.compile(r"BlockhashNotFound|blockhash|expired|stale", re.IGNORECASE)


def is_stale_error(message: str, code: str | None = None) -> bool:
    """True when the relay error means the bound blockhash is unknown or expired."""
    if code:
        return code.strip().lower() in STALE_ERROR_CODES
    return bool(_STALE_MESSAGE_RE.search(message or ""))


def _json_body(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class RelayClient:
    """
    Async relay client. Use as an async context manager, or pass an existing
    httpx.AsyncClient (tests inject one built on httpx.MockTransport).
    """

    def __init__(
        self,
        api_base: str,
        api_key: str | None = None,
        *,
        timeout_sec: float = DEFAULT_RELAY_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_base.strip():
            raise ValueError("api_base must be non-empty")
        self._api_base = api_base.strip().rstrip("/")
        headers = {API_KEY_HEADER: api_key} if api_key else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_sec)
        self._headers = headers

    async def __aenter__(self) -> RelayClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, json_body: dict[str, Any] | None = None) -> httpx.Response:
        url = f"{self._api_base}{path}"
        try:
            resp = await self._client.request(method, url, json=json_body, headers=self._headers)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"{path} timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"{path} request failed: {e}") from e
        if resp.status_code == 401:
            raise Unauthorized(_json_body(resp).get("error") or "Unauthorized")
        return resp

    async def get_blockhash(self) -> BlockhashInfo:
        """GET /blockhash -> BlockhashInfo. Accepts {hash, expiryHeight} or {blockhash, lastValidBlockHeight}."""
        resp = await self._request("GET", "/blockhash")
        if resp.is_error:
            raise UpstreamUnavailable(f"Blockhash fetch failed: {resp.status_code}", resp.status_code)
        data = _json_body(resp)
        blockhash = data.get("hash") or data.get("blockhash")
        height = data.get("expiryHeight", data.get("lastValidBlockHeight"))
        if not blockhash or height is None:
            raise UpstreamUnavailable("Blockhash response missing hash or expiry height")
        try:
            Hash.from_string(str(blockhash))
        except Exception as e:
            raise UpstreamUnavailable(f"Blockhash response has malformed hash: {blockhash}") from e
        try:
            expiry = int(height)
        except (TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"Blockhash response has malformed expiry height: {height}") from e
        return BlockhashInfo(blockhash=str(blockhash), last_valid_block_height=expiry)

    async def send_raw(self, prepared: PreparedTransaction) -> str:
        """
        POST /sendRaw with the serialized tx and its bound blockhash.

        Returns the signature. Raises StaleReference, Unauthorized or
        UpstreamUnavailable (any other relay error or network failure).
        """
        body = {
            "tx": base64.b64encode(prepared.raw).decode("ascii"),
            "hash": prepared.blockhash_info.blockhash,
            "expiryHeight": prepared.blockhash_info.last_valid_block_height,
        }
        resp = await self._request("POST", "/sendRaw", body)
        data = _json_body(resp)
        if resp.is_error:
            message = str(data.get("error") or f"sendRaw failed: {resp.status_code}")
            code = data.get("code")
            if is_stale_error(message, code if isinstance(code, str) else None):
                raise StaleReference(message)
            raise UpstreamUnavailable(message, resp.status_code)
        signature = data.get("signature")
        if not signature:
            raise UpstreamUnavailable("sendRaw response missing signature", resp.status_code)
        return str(signature)

    async def fetch_balances(self, addresses: list[str]) -> dict[str, int]:
        """POST /balances for up to MAX_WALLETS addresses -> {address: lamports}."""
        if not addresses:
            return {}
        if len(addresses) > MAX_WALLETS:
            raise BatchLimitExceeded(f"max {MAX_WALLETS} addresses per balance request")
        resp = await self._request("POST", "/balances", {"addresses": list(addresses)})
        if resp.is_error:
            raise UpstreamUnavailable(f"Balance fetch failed: {resp.status_code}", resp.status_code)
        balances = _json_body(resp).get("balances") or {}
        if not isinstance(balances, dict):
            raise UpstreamUnavailable("Balance response is not an address map")
        try:
            return {str(k): int(v) for k, v in balances.items()}
        except (TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"Balance response has non-integer lamports: {e}") from e
