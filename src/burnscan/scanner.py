"""Burn scanner - drives pagination and aggregates burns into progress snapshots."""

from __future__ import annotations

import asyncio
import inspect
import logging
from decimal import Decimal
from typing import Awaitable, Callable, Union

from burnscan.chain.paginator import DEFAULT_PAGE_SIZE
from burnscan.errors import MalformedTransaction, TransientFetchError
from burnscan.extractor import BurnExtractor
from burnscan.interfaces import AddressResolver, HistoryPaginator, TransactionFetcher
from burnscan.models.config import ScanMode
from burnscan.models.events import (
    BurnEvent,
    ScanOutcome,
    ScanProgress,
    ScanStatus,
    ScanTarget,
)

log = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], Union[None, Awaitable[None]]]


class CancelToken:
    """Cooperative cancellation flag shared between a caller and a scan."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class BurnScanner:
    """Walks one account's history backward and totals burns for a target.

    One instance runs one scan. Each page goes through:
    1. Cancellation check
    2. Signature page from the paginator
    3. One batched fetch of the page's transactions
    4. Extraction per transaction, in page order
    5. One ScanProgress emission (done=True on the last page)

    Cancellation is only observed between pages, so a cancel may still let
    the in-flight page finish. Transient fetch errors end the scan as
    failed with no further progress emission; retries are up to the caller.
    A single transaction the extractor cannot read is skipped.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        paginator: HistoryPaginator,
        fetcher: TransactionFetcher,
        extractor: BurnExtractor | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        mode: ScanMode = ScanMode.LEDGER,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._resolver = resolver
        self._paginator = paginator
        self._fetcher = fetcher
        self._extractor = extractor or BurnExtractor()
        self._page_size = page_size
        self._mode = ScanMode(mode)
        self._status = ScanStatus.IDLE

    @property
    def status(self) -> ScanStatus:
        return self._status

    @property
    def mode(self) -> ScanMode:
        return self._mode

    async def run(
        self,
        target: ScanTarget,
        on_progress: ProgressCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> ScanOutcome:
        """Run the scan to a terminal state and return its outcome."""
        if self._status != ScanStatus.IDLE:
            raise RuntimeError(f"scanner already used (status: {self._status.value})")

        self._status = ScanStatus.SCANNING
        cancel = cancel or CancelToken()

        total = Decimal(0)
        ledger: list[BurnEvent] = []
        seen: set[str] = set()
        last = ScanProgress(running_total=total)
        cursor: str | None = None
        pages = 0

        try:
            resolved = await self._resolver.resolve(target.owner_address, target.mint_address)
            scan_account = resolved.address
            log.info(
                "Scanning %s for burns of %s (account %s, %s)",
                target.owner_address[:16], target.mint_address[:16], scan_account[:16],
                "token account" if resolved.derived else "owner fallback",
            )

            while True:
                if cancel.cancelled:
                    last = ScanProgress(running_total=total, events=tuple(ledger), done=True)
                    await self._emit(on_progress, last)
                    log.info("Scan cancelled after %d pages, total %s", pages, total)
                    return self._finish(ScanStatus.CANCELLED, last)

                page = await self._paginator.next_page(
                    scan_account, cursor, self._page_size,
                )
                cursor = page.cursor
                pages += 1

                pending = [s for s in page.signatures if s.err is None and s.signature not in seen]
                txs = await self._fetcher.fetch_batch([s.signature for s in pending]) if pending else []

                for info, tx in zip(pending, txs):
                    try:
                        amount = self._extractor.extract(tx, target, scan_account)
                    except (MalformedTransaction, TypeError, ValueError) as exc:
                        log.warning("Skipping unreadable transaction %s: %s", info.signature[:20], exc)
                        continue
                    if amount is None or amount <= 0:
                        continue
                    seen.add(info.signature)
                    total += amount
                    if self._mode == ScanMode.LEDGER:
                        ledger.append(BurnEvent(
                            signature=info.signature,
                            amount=amount,
                            block_time=info.block_time if info.block_time is not None else tx.block_time,
                            slot=info.slot or tx.slot,
                        ))

                done = page.fetched < self._page_size
                last = ScanProgress(running_total=total, events=tuple(ledger), done=done)
                await self._emit(on_progress, last)

                if done:
                    log.info("Scan complete: %d pages, %d burns, total %s", pages, len(seen), total)
                    return self._finish(ScanStatus.COMPLETED, last)

        except TransientFetchError as exc:
            log.warning("Scan failed on page %d: %s", pages, exc)
            return self._finish(ScanStatus.FAILED, last, reason=str(exc))
        except asyncio.CancelledError:
            self._status = ScanStatus.CANCELLED
            raise
        except Exception:
            self._status = ScanStatus.FAILED
            raise

    def _finish(
        self, status: ScanStatus, progress: ScanProgress, reason: str | None = None
    ) -> ScanOutcome:
        self._status = status
        return ScanOutcome(status=status, progress=progress, reason=reason)

    @staticmethod
    async def _emit(on_progress: ProgressCallback | None, progress: ScanProgress) -> None:
        if on_progress is None:
            return
        result = on_progress(progress)
        if inspect.isawaitable(result):
            await result
