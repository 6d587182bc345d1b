"""Batched transaction fetcher - one JSON-RPC batch of getTransaction per page."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from burnscan.chain.rpc import SolanaRPC
from burnscan.errors import MalformedTransaction
from burnscan.models.records import ParsedTransaction, TokenBalance

log = logging.getLogger(__name__)


def ui_amount(token_amount: Any) -> Decimal | None:
    """Read a UI-scaled amount from a ``uiTokenAmount``/``tokenAmount`` object.

    Prefers the exact raw amount + decimals, then uiAmountString, then the
    float uiAmount. Returns None if none of them is usable.
    """
    if not isinstance(token_amount, dict):
        return None
    raw = token_amount.get("amount")
    decimals = token_amount.get("decimals")
    try:
        if raw is not None and decimals is not None:
            return Decimal(int(raw)).scaleb(-int(decimals))
        if token_amount.get("uiAmountString") is not None:
            return Decimal(str(token_amount["uiAmountString"]))
        if token_amount.get("uiAmount") is not None:
            return Decimal(str(token_amount["uiAmount"]))
    except (InvalidOperation, TypeError, ValueError):
        return None
    return None


def _account_key(entry: Any) -> str:
    # jsonParsed gives {"pubkey": ..., "signer": ...}; legacy json gives bare strings
    if isinstance(entry, dict):
        return str(entry.get("pubkey", ""))
    return str(entry)


def _parse_balances(raw: Any, signature: str) -> tuple[TokenBalance, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise MalformedTransaction("token balances are not a list", signature)
    balances = []
    for entry in raw:
        if not isinstance(entry, dict) or "mint" not in entry:
            raise MalformedTransaction("token balance entry without mint", signature)
        index = entry.get("accountIndex")
        balances.append(TokenBalance(
            account_index=int(index) if index is not None else None,
            mint=str(entry["mint"]),
            owner=entry.get("owner"),
            amount=ui_amount(entry.get("uiTokenAmount")),
        ))
    return tuple(balances)


def parse_transaction(signature: str, body: dict) -> ParsedTransaction:
    """Normalize one jsonParsed getTransaction result.

    Raises MalformedTransaction if required fields are missing.
    """
    if not isinstance(body, dict):
        raise MalformedTransaction("transaction body is not an object", signature)

    meta = body.get("meta")
    tx = body.get("transaction")
    if not isinstance(meta, dict) or not isinstance(tx, dict):
        raise MalformedTransaction("missing meta or transaction", signature)
    message = tx.get("message")
    if not isinstance(message, dict):
        raise MalformedTransaction("missing transaction message", signature)

    top_level = message.get("instructions") or []
    if not isinstance(top_level, list):
        raise MalformedTransaction("instructions are not a list", signature)

    instructions: list[dict] = [ix for ix in top_level if isinstance(ix, dict)]
    for group in meta.get("innerInstructions") or []:
        if not isinstance(group, dict):
            continue
        instructions.extend(
            ix for ix in group.get("instructions") or [] if isinstance(ix, dict)
        )

    block_time = body.get("blockTime")
    try:
        return ParsedTransaction(
            signature=signature,
            slot=int(body.get("slot") or 0),
            block_time=int(block_time) if block_time is not None else None,
            succeeded=meta.get("err") is None,
            account_keys=tuple(_account_key(k) for k in message.get("accountKeys") or []),
            instructions=tuple(instructions),
            pre_token_balances=_parse_balances(meta.get("preTokenBalances"), signature),
            post_token_balances=_parse_balances(meta.get("postTokenBalances"), signature),
        )
    except (TypeError, ValueError) as exc:
        raise MalformedTransaction(str(exc), signature) from exc


class ParsedTransactionFetcher:
    """Resolves a page of signatures to parsed transactions in one round trip.

    Per-entry problems (not found, RPC error for that entry, failed on-chain,
    malformed body) become None so a single bad transaction never costs the
    page. Whole-request failures propagate as TransientFetchError.
    """

    def __init__(self, rpc: SolanaRPC, commitment: str = "confirmed") -> None:
        self._rpc = rpc
        self._commitment = commitment

    async def fetch_batch(
        self, signatures: Sequence[str]
    ) -> list[ParsedTransaction | None]:
        if not signatures:
            return []

        opts = {
            "encoding": "jsonParsed",
            "maxSupportedTransactionVersion": 0,
            "commitment": self._commitment,
        }
        replies = await self._rpc.batch(
            "getTransaction", [[sig, opts] for sig in signatures],
        )

        results: list[ParsedTransaction | None] = []
        for sig, reply in zip(signatures, replies):
            results.append(self._from_reply(sig, reply))

        missing = sum(1 for r in results if r is None)
        if missing:
            log.debug("%d/%d transactions skipped in batch", missing, len(signatures))
        return results

    def _from_reply(self, signature: str, reply: dict) -> ParsedTransaction | None:
        if "error" in reply:
            log.warning("getTransaction %s failed: %s", signature[:20], reply["error"])
            return None

        body = reply.get("result")
        if body is None:
            log.debug("Transaction %s not available", signature[:20])
            return None

        try:
            parsed = parse_transaction(signature, body)
        except MalformedTransaction as exc:
            log.warning("Skipping malformed transaction %s: %s", signature[:20], exc)
            return None

        if not parsed.succeeded:
            return None
        return parsed
