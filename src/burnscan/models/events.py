"""Scan-level models: targets, burn events, progress snapshots and outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class ScanTarget:
    """What one scan is looking for. Fixed for the lifetime of the scan."""

    owner_address: str
    mint_address: str
    decimals: int


@dataclass(frozen=True)
class BurnEvent:
    """One confirmed burn attributable to the scan target.

    At most one per signature: a transaction that burns through several
    instructions still contributes a single net amount.
    """

    signature: str
    amount: Decimal  # token units, already scaled by decimals
    block_time: int | None  # unix seconds, absent for unindexed txs
    slot: int


@dataclass(frozen=True)
class ScanProgress:
    """Snapshot emitted after every processed page."""

    running_total: Decimal
    events: tuple[BurnEvent, ...] = ()  # newest first
    done: bool = False

    @property
    def tx_count(self) -> int:
        return len(self.events)


class ScanStatus(str, Enum):
    """Lifecycle of a single scan."""

    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.CANCELLED, ScanStatus.FAILED)


@dataclass(frozen=True)
class ScanOutcome:
    """Terminal result of a scan.

    ``progress`` is the last snapshot that was emitted (for a failed scan,
    the last fully processed page). ``reason`` is only set on failure.
    """

    status: ScanStatus
    progress: ScanProgress
    reason: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == ScanStatus.FAILED
