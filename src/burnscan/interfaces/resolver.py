"""AddressResolver protocol - picks the account a scan walks."""

from __future__ import annotations

from typing import Protocol

from burnscan.models.records import ResolvedAccount


class AddressResolver(Protocol):
    """Maps (owner, mint) to the most specific account with burn history."""

    async def resolve(self, owner: str, mint: str) -> ResolvedAccount:
        """Return the associated token account, or the owner as a fallback.

        Never raises: any derivation or lookup failure degrades to the owner.
        """
        ...
