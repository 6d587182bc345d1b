"""MintInfoReader protocol - token metadata for the tracked mint."""

from __future__ import annotations

from typing import Protocol

from burnscan.models.records import MintInfo


class MintInfoReader(Protocol):
    """Reads decimals and current supply for a mint."""

    async def get_mint_info(self, mint: str) -> MintInfo:
        """Raises TransientFetchError if the node cannot be reached."""
        ...
