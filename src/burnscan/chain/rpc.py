"""Solana JSON-RPC transport over httpx - single and batched calls."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from burnscan.errors import TransientFetchError

log = logging.getLogger(__name__)


class SolanaRPC:
    """Thin JSON-RPC 2.0 client for a Solana-compatible node.

    Every transport-level problem (connection errors, timeouts, HTTP 429
    and 5xx, unparseable bodies) is surfaced as TransientFetchError so the
    scanner has one failure type to reason about.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._timeout = timeout
        self._transport = transport
        self._request_id = 0

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def _payload(self, method: str, params: list | None) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params or [],
        }

    async def _post(self, body: Any, method: str) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10),
                transport=self._transport,
            ) as client:
                resp = await client.post(self._rpc_url, json=body)
                resp.raise_for_status()
                return resp.json()
        except httpx.TimeoutException as exc:
            log.warning("%s timed out against %s", method, self._rpc_url)
            raise TransientFetchError(f"{method}: timeout", method=method) from exc
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            if code == 429:
                msg = f"{method}: rate limited (HTTP 429)"
            else:
                msg = f"{method}: HTTP {code}"
            log.warning(msg)
            raise TransientFetchError(msg, method=method) from exc
        except httpx.HTTPError as exc:
            log.warning("%s transport error: %s", method, exc)
            raise TransientFetchError(f"{method}: {exc}", method=method) from exc
        except ValueError as exc:
            raise TransientFetchError(
                f"{method}: response is not valid JSON", method=method,
            ) from exc

    async def call(self, method: str, params: list | None = None) -> Any:
        """Make one JSON-RPC request and return its ``result``."""
        data = await self._post(self._payload(method, params), method)
        if not isinstance(data, dict):
            raise TransientFetchError(f"{method}: unexpected response shape", method=method)
        if "error" in data:
            err = data["error"] or {}
            raise TransientFetchError(
                f"{method}: RPC error {err.get('code')}: {err.get('message')}",
                method=method,
            )
        return data.get("result")

    async def batch(self, method: str, params_list: Sequence[list]) -> list[dict]:
        """Send one JSON-RPC batch with a request per params entry.

        Returns the raw reply objects in request order. A reply the node
        dropped from the batch is filled in with an ``error`` entry so
        callers can treat it like any other per-entry failure.
        """
        if not params_list:
            return []

        requests = [self._payload(method, params) for params in params_list]
        data = await self._post(requests, method)

        if isinstance(data, dict) and "error" in data:
            # Some nodes answer a throttled batch with a single error object
            err = data["error"] or {}
            raise TransientFetchError(
                f"{method}: RPC error {err.get('code')}: {err.get('message')}",
                method=method,
            )
        if not isinstance(data, list):
            raise TransientFetchError(f"{method}: unexpected batch response", method=method)

        by_id = {
            reply.get("id"): reply for reply in data if isinstance(reply, dict)
        }
        replies: list[dict] = []
        for req in requests:
            reply = by_id.get(req["id"])
            if reply is None:
                reply = {"id": req["id"], "error": {"code": None, "message": "missing from batch"}}
            replies.append(reply)

        log.debug("%s batch: %d requests, %d replies", method, len(requests), len(data))
        return replies
