"""Chain record types produced by the RPC layer and consumed by the extractor."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Union


@dataclass(frozen=True)
class SignatureInfo:
    """One entry of a getSignaturesForAddress page."""

    signature: str
    slot: int
    block_time: int | None = None
    err: Any = None  # on-chain error object, None on success


@dataclass(frozen=True)
class SignaturePage:
    """One page of history as the node returned it.

    ``fetched`` counts every entry the node sent, including ones that could
    not be read into a SignatureInfo; only ``fetched < page_size`` marks the
    start of history.
    """

    signatures: tuple[SignatureInfo, ...]
    cursor: str | None
    fetched: int


@dataclass(frozen=True)
class TokenBalance:
    """A pre- or post-transaction token balance entry."""

    account_index: int | None
    mint: str
    owner: str | None
    amount: Decimal | None  # UI-scaled, None when the node omitted it


@dataclass(frozen=True)
class ParsedTransaction:
    """A jsonParsed transaction body, normalized for burn extraction.

    ``instructions`` is already flattened: top-level instructions first,
    then every inner instruction in the order the node reported them.
    """

    signature: str
    slot: int
    block_time: int | None
    succeeded: bool
    account_keys: tuple[str, ...] = ()
    instructions: tuple[dict, ...] = ()
    pre_token_balances: tuple[TokenBalance, ...] = ()
    post_token_balances: tuple[TokenBalance, ...] = ()

    def account_key(self, index: int | None) -> str | None:
        if index is None or index < 0 or index >= len(self.account_keys):
            return None
        return self.account_keys[index]


# ── Instruction variants ───────────────────────────────────


@dataclass(frozen=True)
class TokenBurn:
    """Token program ``burn``: raw amount only."""

    account: str
    mint: str
    authority: str | None
    amount_raw: int


@dataclass(frozen=True)
class TokenBurnChecked:
    """Token program ``burnChecked``: raw amount plus the node's UI amount."""

    account: str
    mint: str
    authority: str | None
    amount_raw: int
    ui_amount: Decimal | None
    decimals: int | None


@dataclass(frozen=True)
class OtherInstruction:
    """Anything that is not a recognizable token burn."""

    program: str | None = None


Instruction = Union[TokenBurn, TokenBurnChecked, OtherInstruction]


# ── Accounts & mint ────────────────────────────────────────


@dataclass(frozen=True)
class ResolvedAccount:
    """Account a scan walks. ``derived`` is False when it fell back to the owner."""

    address: str
    derived: bool


@dataclass(frozen=True)
class MintInfo:
    """Current decimals and supply of a mint."""

    mint: str
    decimals: int
    supply: Decimal  # token units


@dataclass
class SupplySnapshot:
    """Global burn figure derived from the mint supply."""

    mint: str
    decimals: int
    supply: Decimal
    initial_supply: Decimal
    burned: Decimal = field(default=Decimal(0))

    @property
    def burned_pct(self) -> Decimal:
        if self.initial_supply <= 0:
            return Decimal(0)
        return min(self.burned / self.initial_supply * 100, Decimal(100))
