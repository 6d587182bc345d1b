"""TransactionFetcher protocol - resolves signatures to parsed bodies."""

from __future__ import annotations

from typing import Protocol, Sequence

from burnscan.models.records import ParsedTransaction


class TransactionFetcher(Protocol):
    """Bulk fetch of parsed transactions for one page of signatures."""

    async def fetch_batch(
        self, signatures: Sequence[str]
    ) -> list[ParsedTransaction | None]:
        """Return one entry per input signature, in input order.

        Missing, failed or unparseable transactions come back as None.
        """
        ...
