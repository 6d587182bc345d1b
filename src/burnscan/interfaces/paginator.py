"""HistoryPaginator protocol - walks signature history backward."""

from __future__ import annotations

from typing import Protocol

from burnscan.models.records import SignaturePage


class HistoryPaginator(Protocol):
    """Cursor-walking primitive over an account's signature history."""

    async def next_page(
        self, account: str, cursor: str | None, page_size: int
    ) -> SignaturePage:
        """Fetch up to page_size signatures strictly older than cursor.

        Signatures come back newest-first with the cursor for the next call.
        Raises TransientFetchError on network or rate-limit failures.
        """
        ...
