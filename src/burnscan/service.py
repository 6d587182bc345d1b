"""Scan service - caller-facing start/cancel surface with one scan per owner."""

from __future__ import annotations

import asyncio
import inspect
import logging
from decimal import Decimal
from typing import AsyncIterator

from burnscan.chain.fetcher import ParsedTransactionFetcher
from burnscan.chain.mint import MintReader, supply_snapshot
from burnscan.chain.paginator import SignaturePaginator
from burnscan.chain.resolver import AssociatedAccountResolver
from burnscan.chain.rpc import SolanaRPC
from burnscan.errors import TransientFetchError
from burnscan.extractor import BurnExtractor
from burnscan.interfaces import (
    AddressResolver,
    HistoryPaginator,
    MintInfoReader,
    TransactionFetcher,
)
from burnscan.models.config import ScanMode, ScannerConfig
from burnscan.models.events import ScanOutcome, ScanProgress, ScanStatus, ScanTarget
from burnscan.models.records import SupplySnapshot
from burnscan.scanner import BurnScanner, CancelToken, ProgressCallback

log = logging.getLogger(__name__)


class ScanSubscription:
    """Handle for one running scan.

    Iterate it to receive ScanProgress snapshots as they are emitted; the
    iteration ends after the terminal snapshot (or immediately on failure).
    ``wait()`` returns the ScanOutcome, which is the only place a failure
    is reported.
    """

    def __init__(self, owner: str, token: CancelToken) -> None:
        self.owner = owner
        self._token = token
        self._queue: asyncio.Queue[ScanProgress | None] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._outcome: ScanOutcome | None = None
        self._latest: ScanProgress | None = None

    @property
    def status(self) -> ScanStatus:
        if self._outcome is not None:
            return self._outcome.status
        return ScanStatus.SCANNING

    @property
    def latest(self) -> ScanProgress | None:
        return self._latest

    @property
    def outcome(self) -> ScanOutcome | None:
        return self._outcome

    def cancel(self) -> None:
        self._token.cancel()

    async def wait(self) -> ScanOutcome:
        if self._task is not None:
            try:
                await asyncio.shield(self._task)
            except asyncio.CancelledError:
                if self._outcome is None:
                    raise
        if self._outcome is None:
            raise RuntimeError(f"scan for {self.owner} has not been started")
        return self._outcome

    def __aiter__(self) -> AsyncIterator[ScanProgress]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ScanProgress]:
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item

    def _push(self, progress: ScanProgress) -> None:
        self._latest = progress
        self._queue.put_nowait(progress)

    def _close(self, outcome: ScanOutcome) -> None:
        if self._outcome is not None:
            return
        self._outcome = outcome
        self._queue.put_nowait(None)


class ScanService:
    """Wires the chain components and runs scans for owner addresses.

    Decimals are read from the mint once and reused by every later scan.
    Starting a scan for an owner that already has one running cancels the
    older scan; each subscription only ever sees its own scan's snapshots.
    """

    def __init__(
        self,
        cfg: ScannerConfig,
        rpc: SolanaRPC | None = None,
        resolver: AddressResolver | None = None,
        paginator: HistoryPaginator | None = None,
        fetcher: TransactionFetcher | None = None,
        mint_reader: MintInfoReader | None = None,
        extractor: BurnExtractor | None = None,
    ) -> None:
        self._cfg = cfg
        self.rpc = rpc or SolanaRPC(cfg.rpc_url, cfg.request_timeout)
        self.resolver = resolver or AssociatedAccountResolver(self.rpc, cfg.token_program)
        self.paginator = paginator or SignaturePaginator(self.rpc, cfg.commitment)
        self.fetcher = fetcher or ParsedTransactionFetcher(self.rpc, cfg.commitment)
        self.mint_reader = mint_reader or MintReader(self.rpc, cfg.commitment)
        self.extractor = extractor or BurnExtractor()
        self._decimals: int | None = cfg.decimals
        self._active: dict[str, ScanSubscription] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def config(self) -> ScannerConfig:
        return self._cfg

    def is_scanning(self, owner: str) -> bool:
        return owner in self._active

    async def get_decimals(self) -> int:
        """Decimals of the tracked mint, read once and cached."""
        if self._decimals is None:
            info = await self.mint_reader.get_mint_info(self._cfg.mint_address)
            self._decimals = info.decimals
            log.info("Mint %s has %d decimals", self._cfg.mint_address[:16], info.decimals)
        return self._decimals

    async def read_supply(self) -> SupplySnapshot:
        """Current supply of the tracked mint and the globally burned amount."""
        info = await self.mint_reader.get_mint_info(self._cfg.mint_address)
        snapshot = supply_snapshot(info, self._cfg.initial_supply)
        if self._decimals is None:
            self._decimals = snapshot.decimals
        return snapshot

    async def start_scan(
        self,
        owner: str,
        mode: ScanMode | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ScanSubscription:
        """Start scanning an owner's burn history, superseding any prior scan.

        The superseded scan is cancelled and awaited first, so at most one
        scan per owner is ever running.
        """
        while (old := self._active.get(owner)) is not None:
            await self.cancel_scan(owner)
            await old.wait()

        sub = ScanSubscription(owner, CancelToken())
        self._active[owner] = sub
        sub._task = asyncio.create_task(
            self._run(sub, ScanMode(mode or self._cfg.mode), on_progress),
        )
        self._tasks.add(sub._task)
        sub._task.add_done_callback(self._tasks.discard)
        log.info("Started scan for %s", owner[:16])
        return sub

    async def cancel_scan(self, owner: str) -> None:
        """Cancel the active scan for owner. No-op if there is none."""
        sub = self._active.pop(owner, None)
        if sub is None:
            return
        sub.cancel()
        log.info("Cancelled scan for %s", owner[:16])

    async def close(self) -> None:
        """Cancel every scan, including superseded ones, and wait for them to settle."""
        for sub in list(self._active.values()):
            sub.cancel()
        self._active.clear()
        tasks = list(self._tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(
        self,
        sub: ScanSubscription,
        mode: ScanMode,
        on_progress: ProgressCallback | None,
    ) -> None:
        async def _forward(progress: ScanProgress) -> None:
            sub._push(progress)
            if on_progress is not None:
                result = on_progress(progress)
                if inspect.isawaitable(result):
                    await result

        try:
            decimals = await self.get_decimals()
            target = ScanTarget(
                owner_address=sub.owner,
                mint_address=self._cfg.mint_address,
                decimals=decimals,
            )
            scanner = BurnScanner(
                resolver=self.resolver,
                paginator=self.paginator,
                fetcher=self.fetcher,
                extractor=self.extractor,
                page_size=self._cfg.page_size,
                mode=mode,
            )
            outcome = await scanner.run(target, _forward, sub._token)
        except TransientFetchError as exc:
            log.warning("Scan for %s could not start: %s", sub.owner[:16], exc)
            outcome = ScanOutcome(
                status=ScanStatus.FAILED,
                progress=sub.latest or ScanProgress(running_total=Decimal(0)),
                reason=str(exc),
            )
        except asyncio.CancelledError:
            sub._close(ScanOutcome(
                status=ScanStatus.CANCELLED,
                progress=sub.latest or ScanProgress(running_total=Decimal(0), done=True),
            ))
            raise
        except Exception as exc:
            log.error("Scan for %s crashed: %s", sub.owner[:16], exc, exc_info=True)
            outcome = ScanOutcome(
                status=ScanStatus.FAILED,
                progress=sub.latest or ScanProgress(running_total=Decimal(0)),
                reason=str(exc),
            )
        finally:
            if self._active.get(sub.owner) is sub:
                del self._active[sub.owner]

        sub._close(outcome)
