"""Configuration models for the scanner."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

BRAINS_MINT = "EpKRiKwbCKZDZE9pgH48HcXqQkBunXUK5axC1EHUBtPN"


class ScanMode(str, Enum):
    """What a scan keeps while walking history."""

    TOTAL = "total"  # Running total only
    LEDGER = "ledger"  # Running total + per-transaction burn ledger


class TokenProgram(str, Enum):
    """Token program that owns the tracked mint."""

    TOKEN = "token"
    TOKEN_2022 = "token-2022"


@dataclass
class ScannerConfig:
    """Complete scanner configuration."""

    # RPC
    rpc_url: str = "https://rpc.mainnet.x1.xyz"
    commitment: str = "confirmed"
    request_timeout: float = 30.0  # seconds

    # Token
    mint_address: str = BRAINS_MINT
    token_program: TokenProgram = TokenProgram.TOKEN_2022
    decimals: int | None = None  # None = read from the mint before scanning
    initial_supply: int = 8_880_000  # whole tokens, used for the global burned figure

    # Scan
    page_size: int = 100  # getSignaturesForAddress practical ceiling
    mode: ScanMode = ScanMode.LEDGER

    # Logging
    log_level: str = "info"
