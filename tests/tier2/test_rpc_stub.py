"""End-to-end scans over real httpx against the local JSON-RPC stub."""

from __future__ import annotations

from decimal import Decimal

import pytest

from burnscan.chain.resolver import TOKEN_2022_PROGRAM
from burnscan.models.events import ScanStatus
from burnscan.service import ScanService

from tests.conftest import make_test_config
from tests.factories import (
    MINT,
    OTHER_MINT,
    OWNER,
    make_burn_ix,
    make_raw_balance,
    make_raw_signature,
    make_raw_tx,
)


def _keys(token_account: str) -> tuple[str, ...]:
    return (OWNER, token_account, MINT, TOKEN_2022_PROGRAM)


def _load_scenario(state, account: str) -> None:
    keys = _keys(account)
    state.history[account] = [
        make_raw_signature("sigA", slot=400),
        make_raw_signature("sigB", slot=399, err={"InstructionError": [0, "Custom"]}),
        make_raw_signature("sigC", slot=398),
        make_raw_signature("sigD", slot=300),
    ]
    state.transactions.update({
        "sigA": make_raw_tx(
            "sigA",
            instructions=[make_burn_ix(account=account, amount_raw=100_000_000)],
            pre=[make_raw_balance(1, 1_000_000_000)],
            post=[make_raw_balance(1, 900_000_000)],
            account_keys=keys,
            slot=400,
        ),
        "sigB": make_raw_tx(
            "sigB",
            instructions=[make_burn_ix(account=account)],
            err={"InstructionError": [0, "Custom"]},
            account_keys=keys,
        ),
        "sigC": make_raw_tx(
            "sigC",
            instructions=[make_burn_ix(account=account, mint=OTHER_MINT)],
            account_keys=keys,
        ),
        "sigD": make_raw_tx(
            "sigD",
            inner=[[make_burn_ix(account=account, amount_raw=50_000_000, checked=False)]],
            account_keys=keys,
            slot=300,
        ),
    })


@pytest.mark.rpc_stub
async def test_full_scan_over_http(rpc_stub, chain_state, owner_ata):
    chain_state.existing_accounts.add(owner_ata)
    _load_scenario(chain_state, owner_ata)
    service = ScanService(make_test_config(rpc_url=rpc_stub, page_size=3))

    emitted = []
    sub = await service.start_scan(OWNER, on_progress=emitted.append)
    outcome = await sub.wait()
    await service.close()

    assert outcome.status == ScanStatus.COMPLETED
    assert len(emitted) == 2
    assert emitted[-1].done is True
    assert outcome.progress.running_total == Decimal(150)
    assert [e.signature for e in outcome.progress.events] == ["sigA", "sigD"]
    assert [e.slot for e in outcome.progress.events] == [400, 300]

    methods = [r["method"] for r in chain_state.requests]
    assert methods.count("getTokenSupply") == 1
    assert methods.count("getSignaturesForAddress") == 2
    # The failed signature is never fetched
    fetched = [r["params"][0] for r in chain_state.requests if r["method"] == "getTransaction"]
    assert fetched == ["sigA", "sigC", "sigD"]


@pytest.mark.rpc_stub
async def test_missing_token_account_scans_owner(rpc_stub, chain_state):
    _load_scenario(chain_state, OWNER)
    service = ScanService(make_test_config(rpc_url=rpc_stub, page_size=3, decimals=6))

    outcome = await (await service.start_scan(OWNER)).wait()
    await service.close()

    assert outcome.status == ScanStatus.COMPLETED
    assert outcome.progress.running_total == Decimal(150)
    walked = {r["params"][0] for r in chain_state.requests if r["method"] == "getSignaturesForAddress"}
    assert walked == {OWNER}


@pytest.mark.rpc_stub
async def test_rate_limit_fails_scan(rpc_stub, chain_state, owner_ata):
    chain_state.existing_accounts.add(owner_ata)
    _load_scenario(chain_state, owner_ata)
    chain_state.http_failures["getTransaction"] = 429
    service = ScanService(make_test_config(rpc_url=rpc_stub, page_size=3, decimals=6))

    sub = await service.start_scan(OWNER)
    received = [p async for p in sub]
    outcome = await sub.wait()
    await service.close()

    assert received == []
    assert outcome.status == ScanStatus.FAILED
    assert "429" in outcome.reason


@pytest.mark.rpc_stub
async def test_read_supply_over_http(rpc_stub, chain_state):
    chain_state.supply_raw = 8_437_500_000_000
    service = ScanService(make_test_config(rpc_url=rpc_stub))

    snap = await service.read_supply()

    assert snap.supply == Decimal("8437500")
    assert snap.burned == Decimal("442500")
    assert await service.get_decimals() == 6


@pytest.mark.rpc_stub
async def test_missing_transaction_is_skipped(rpc_stub, chain_state, owner_ata):
    chain_state.existing_accounts.add(owner_ata)
    _load_scenario(chain_state, owner_ata)
    chain_state.transactions["sigA"] = None
    service = ScanService(make_test_config(rpc_url=rpc_stub, page_size=3, decimals=6))

    outcome = await (await service.start_scan(OWNER)).wait()
    await service.close()

    assert outcome.status == ScanStatus.COMPLETED
    assert outcome.progress.running_total == Decimal(50)


@pytest.mark.rpc_stub
async def test_unreadable_signature_entry_does_not_end_scan(rpc_stub, chain_state, owner_ata):
    chain_state.existing_accounts.add(owner_ata)
    _load_scenario(chain_state, owner_ata)
    history = chain_state.history[owner_ata]
    history[2] = {"signature": None, "slot": 398, "err": None, "blockTime": None}
    service = ScanService(make_test_config(rpc_url=rpc_stub, page_size=3, decimals=6))

    outcome = await (await service.start_scan(OWNER)).wait()
    await service.close()

    assert outcome.status == ScanStatus.COMPLETED
    assert outcome.progress.running_total == Decimal(150)
    assert [e.signature for e in outcome.progress.events] == ["sigA", "sigD"]
