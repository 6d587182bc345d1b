"""Tier 2 fixtures: a local aiohttp JSON-RPC node stub."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from aiohttp import web

from burnscan.chain.resolver import derive_associated_account
from burnscan.chain.rpc import SolanaRPC

from tests.factories import MINT, OWNER


@dataclass
class ChainState:
    """What the stub node knows about. Tests fill it in before scanning."""

    # account -> signature entries, newest first
    history: dict[str, list[dict]] = field(default_factory=dict)
    # signature -> getTransaction result (None = not found)
    transactions: dict[str, dict | None] = field(default_factory=dict)
    existing_accounts: set[str] = field(default_factory=set)
    supply_raw: int = 8_000_000_000_000
    decimals: int = 6
    # method -> HTTP status to answer with instead of a result
    http_failures: dict[str, int] = field(default_factory=dict)
    requests: list[dict] = field(default_factory=list)
    posts: int = 0


def _signatures_for_address(state: ChainState, params: list) -> list[dict]:
    account, opts = params[0], params[1] if len(params) > 1 else {}
    entries = state.history.get(account, [])
    before = opts.get("before")
    if before:
        idx = next((i for i, e in enumerate(entries) if e["signature"] == before), None)
        entries = entries[idx + 1:] if idx is not None else []
    return entries[: opts.get("limit", 1000)]


def _dispatch(state: ChainState, req: dict) -> dict:
    state.requests.append(req)
    method, params = req.get("method"), req.get("params") or []
    if method == "getSignaturesForAddress":
        result = _signatures_for_address(state, params)
    elif method == "getTransaction":
        result = state.transactions.get(params[0])
    elif method == "getAccountInfo":
        exists = params[0] in state.existing_accounts
        result = {"context": {"slot": 1}, "value": {"lamports": 2039280} if exists else None}
    elif method == "getTokenSupply":
        result = {
            "context": {"slot": 1},
            "value": {"amount": str(state.supply_raw), "decimals": state.decimals},
        }
    else:
        return {"jsonrpc": "2.0", "id": req.get("id"),
                "error": {"code": -32601, "message": "Method not found"}}
    return {"jsonrpc": "2.0", "id": req.get("id"), "result": result}


@pytest.fixture
def chain_state() -> ChainState:
    return ChainState()


@pytest.fixture
async def rpc_stub(chain_state):
    """Local HTTP JSON-RPC server backed by chain_state.

    Returns the base URL. Handles single requests and batches.
    """

    async def handle_rpc(request):
        chain_state.posts += 1
        body = await request.json()
        first = body[0] if isinstance(body, list) and body else body
        status = chain_state.http_failures.get(first.get("method") if isinstance(first, dict) else None)
        if status:
            return web.Response(status=status, text="stub failure")
        if isinstance(body, list):
            return web.json_response([_dispatch(chain_state, r) for r in body])
        return web.json_response(_dispatch(chain_state, body))

    app = web.Application()
    app.router.add_post("/", handle_rpc)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    yield f"http://{host}:{port}/"
    await runner.cleanup()


@pytest.fixture
def owner_ata() -> str:
    return derive_associated_account(OWNER, MINT)


@pytest.fixture
def real_rpc(rpc_stub) -> SolanaRPC:
    return SolanaRPC(rpc_stub, timeout=5)
