"""Signature history paginator - walks getSignaturesForAddress backward."""

from __future__ import annotations

import logging

from burnscan.chain.rpc import SolanaRPC
from burnscan.errors import TransientFetchError
from burnscan.models.records import SignatureInfo, SignaturePage

log = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def _parse_signature(raw: dict) -> SignatureInfo | None:
    """Convert one getSignaturesForAddress entry. None if it is unreadable."""
    sig = raw.get("signature") if isinstance(raw, dict) else None
    if not sig:
        return None
    block_time = raw.get("blockTime")
    try:
        return SignatureInfo(
            signature=str(sig),
            slot=int(raw.get("slot") or 0),
            block_time=int(block_time) if block_time is not None else None,
            err=raw.get("err"),
        )
    except (TypeError, ValueError):
        return None


class SignaturePaginator:
    """Pages through an account's signatures from newest to oldest.

    The cursor is the oldest signature of the previous page and is passed
    back as ``before``. A page where the node sent fewer entries than
    requested means the start of history was reached; there is no other
    end-of-scan signal. Unreadable entries are dropped but still counted.
    """

    def __init__(self, rpc: SolanaRPC, commitment: str = "confirmed") -> None:
        self._rpc = rpc
        self._commitment = commitment

    async def next_page(
        self,
        account: str,
        cursor: str | None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> SignaturePage:
        opts: dict = {"limit": page_size, "commitment": self._commitment}
        if cursor:
            opts["before"] = cursor

        result = await self._rpc.call("getSignaturesForAddress", [account, opts])
        if result is None:
            result = []
        if not isinstance(result, list):
            raise TransientFetchError(
                "getSignaturesForAddress: expected a list", method="getSignaturesForAddress",
            )

        page: list[SignatureInfo] = []
        for raw in result:
            info = _parse_signature(raw)
            if info is None:
                log.warning("Dropping unreadable signature entry: %r", raw)
                continue
            page.append(info)

        if result and not page and len(result) >= page_size:
            # Cursor could never move past a full page of unreadable entries
            raise TransientFetchError(
                "getSignaturesForAddress: page has no readable signatures",
                method="getSignaturesForAddress",
            )

        new_cursor = cursor
        if page:
            new_cursor = page[-1].signature

        log.debug(
            "Fetched %d/%d signatures for %s (before=%s)",
            len(page), len(result), account[:16], cursor[:16] if cursor else None,
        )
        return SignaturePage(signatures=tuple(page), cursor=new_cursor, fetched=len(result))
