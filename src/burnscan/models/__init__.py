"""Data models for the burn history scanner."""

from burnscan.models.events import (
    BurnEvent,
    ScanOutcome,
    ScanProgress,
    ScanStatus,
    ScanTarget,
)
from burnscan.models.records import (
    Instruction,
    MintInfo,
    OtherInstruction,
    ParsedTransaction,
    ResolvedAccount,
    SignatureInfo,
    SignaturePage,
    SupplySnapshot,
    TokenBalance,
    TokenBurn,
    TokenBurnChecked,
)
from burnscan.models.config import ScanMode, ScannerConfig, TokenProgram

__all__ = [
    "BurnEvent", "ScanOutcome", "ScanProgress", "ScanStatus", "ScanTarget",
    "Instruction", "MintInfo", "OtherInstruction", "ParsedTransaction",
    "ResolvedAccount", "SignatureInfo", "SignaturePage", "SupplySnapshot", "TokenBalance",
    "TokenBurn", "TokenBurnChecked",
    "ScanMode", "ScannerConfig", "TokenProgram",
]
