"""CLI entry point for the burn history scanner."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from decimal import Decimal

import click

from burnscan.chain.resolver import derive_associated_account
from burnscan.config import load_config
from burnscan.models.config import ScanMode, ScannerConfig
from burnscan.models.events import BurnEvent, ScanStatus
from burnscan.service import ScanService


def _fmt_amount(amount: Decimal) -> str:
    return f"{amount.normalize():,f}"


def _fmt_time(block_time: int | None) -> str:
    if block_time is None:
        return "-"
    return datetime.fromtimestamp(block_time, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _make_service(cfg: ScannerConfig) -> ScanService:
    return ScanService(cfg)


def _load(ctx: click.Context) -> ScannerConfig:
    """Load config and apply its log level unless -v already forced DEBUG."""
    cfg = load_config(ctx.obj["config_path"])
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())
    return cfg


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """burnscan - walk a wallet's history and total its token burns."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show scanner configuration."""
    cfg = _load(ctx)
    click.echo(f"RPC URL:    {cfg.rpc_url}")
    click.echo(f"Commitment: {cfg.commitment}")
    click.echo(f"Mint:       {cfg.mint_address}")
    click.echo(f"Program:    {cfg.token_program.value}")
    click.echo(f"Decimals:   {cfg.decimals if cfg.decimals is not None else '(read from mint)'}")
    click.echo(f"Page size:  {cfg.page_size}")
    click.echo(f"Mode:       {cfg.mode.value}")


@cli.command()
@click.argument("owner")
@click.pass_context
def resolve(ctx: click.Context, owner: str) -> None:
    """Show which account a scan for OWNER would walk."""
    cfg = _load(ctx)

    try:
        ata = derive_associated_account(owner, cfg.mint_address, cfg.token_program)
        click.echo(f"Token account: {ata}")
    except (ValueError, TypeError) as exc:
        click.echo(f"Token account: (cannot derive: {exc})")

    async def _resolve():
        service = _make_service(cfg)
        try:
            resolved = await service.resolver.resolve(owner, cfg.mint_address)
        finally:
            await service.close()
        source = "token account" if resolved.derived else "owner fallback"
        click.echo(f"Scan account:  {resolved.address} ({source})")

    asyncio.run(_resolve())


@cli.command()
@click.pass_context
def supply(ctx: click.Context) -> None:
    """Show current supply and the globally burned amount."""
    cfg = _load(ctx)

    async def _supply():
        service = _make_service(cfg)
        try:
            snap = await service.read_supply()
        except Exception as exc:
            click.echo(f"Supply lookup failed: {exc}", err=True)
            sys.exit(1)
        finally:
            await service.close()

        click.echo(f"Mint:     {snap.mint}")
        click.echo(f"Decimals: {snap.decimals}")
        click.echo(f"Initial:  {_fmt_amount(snap.initial_supply)}")
        click.echo(f"Supply:   {_fmt_amount(snap.supply)}")
        click.echo(f"Burned:   {_fmt_amount(snap.burned)} ({snap.burned_pct:.2f}%)")

    asyncio.run(_supply())


# ── Scan ───────────────────────────────────────────────


@cli.command()
@click.argument("owner")
@click.option("--total-only", is_flag=True, help="Only track the running total, no ledger")
@click.pass_context
def scan(ctx: click.Context, owner: str, total_only: bool) -> None:
    """Scan OWNER's history for burns of the configured mint.

    Ctrl-C stops at the next page boundary and prints the partial result.
    """
    cfg = _load(ctx)
    mode = ScanMode.TOTAL if total_only else cfg.mode

    async def _scan() -> ScanStatus:
        service = _make_service(cfg)
        loop = asyncio.get_running_loop()

        def _signal_handler():
            asyncio.ensure_future(service.cancel_scan(owner))

        try:
            loop.add_signal_handler(signal.SIGINT, _signal_handler)
        except (NotImplementedError, RuntimeError):
            # Windows / non-main thread
            pass

        try:
            sub = await service.start_scan(owner, mode=mode)
            page = 0
            async for progress in sub:
                page += 1
                click.echo(
                    f"page {page}: total={_fmt_amount(progress.running_total)} "
                    f"burns={progress.tx_count}{' (done)' if progress.done else ''}"
                )
            outcome = await sub.wait()
        finally:
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except (NotImplementedError, RuntimeError):
                pass
            await service.close()

        if outcome.failed:
            click.echo(f"Scan failed: {outcome.reason}", err=True)
            click.echo(f"Last good total: {_fmt_amount(outcome.progress.running_total)}", err=True)
            return outcome.status

        events: tuple[BurnEvent, ...] = outcome.progress.events
        if events:
            click.echo("")
            for ev in events:
                click.echo(f"  {_fmt_time(ev.block_time)}  slot={ev.slot}  {_fmt_amount(ev.amount):>20}  {ev.signature}")
        click.echo("")
        click.echo(f"Status: {outcome.status.value}")
        click.echo(f"Total burned: {_fmt_amount(outcome.progress.running_total)}")
        return outcome.status

    result = asyncio.run(_scan())
    if result == ScanStatus.FAILED:
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
