"""Mint reader - decimals and supply for the tracked token."""

from __future__ import annotations

import logging
from decimal import Decimal

from burnscan.chain.fetcher import ui_amount
from burnscan.chain.rpc import SolanaRPC
from burnscan.errors import TransientFetchError
from burnscan.models.records import MintInfo, SupplySnapshot

log = logging.getLogger(__name__)


def supply_snapshot(info: MintInfo, initial_supply: int) -> SupplySnapshot:
    """Burned = initial supply minus current supply, floored at zero."""
    initial = Decimal(initial_supply)
    return SupplySnapshot(
        mint=info.mint,
        decimals=info.decimals,
        supply=info.supply,
        initial_supply=initial,
        burned=max(Decimal(0), initial - info.supply),
    )


class MintReader:
    """Read-only queries against a token mint via getTokenSupply."""

    def __init__(self, rpc: SolanaRPC, commitment: str = "confirmed") -> None:
        self._rpc = rpc
        self._commitment = commitment

    async def get_mint_info(self, mint: str) -> MintInfo:
        result = await self._rpc.call(
            "getTokenSupply", [mint, {"commitment": self._commitment}],
        )
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, dict) or value.get("decimals") is None:
            raise TransientFetchError(
                f"getTokenSupply: no supply data for {mint}", method="getTokenSupply",
            )

        decimals = int(value["decimals"])
        supply = ui_amount(value)
        if supply is None:
            supply = Decimal(0)
        log.debug("Mint %s: decimals=%d supply=%s", mint[:16], decimals, supply)
        return MintInfo(mint=mint, decimals=decimals, supply=supply)

    async def get_supply_snapshot(self, mint: str, initial_supply: int) -> SupplySnapshot:
        """Current supply and how much of the initial supply has been burned."""
        return supply_snapshot(await self.get_mint_info(mint), initial_supply)
