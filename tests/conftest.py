"""Shared fixtures for burnscan tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from burnscan.extractor import BurnExtractor
from burnscan.models.config import ScanMode, ScannerConfig, TokenProgram
from burnscan.models.events import ScanTarget
from burnscan.scanner import BurnScanner
from burnscan.service import ScanService

from tests.factories import DECIMALS, MINT, OWNER, OWNER_ATA
from tests.mocks import MockFetcher, MockMintReader, MockPaginator, MockResolver

RPC_URL = "https://rpc.mainnet.x1.xyz"
EXPLORER_BASE = "https://explorer.mainnet.x1.xyz"


def explorer_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to the chain explorer for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add chain info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["RPC"] = RPC_URL
    meta["Mint"] = MINT
    meta["Owner"] = OWNER


@pytest.hookimpl(optionalhook=True)
def pytest_html_results_summary(prefix, summary, postfix):
    """Inject explorer links for the fixture addresses into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Explorer Links</strong><br/>"
        f'Mint: {explorer_link("address", MINT, MINT)}<br/>'
        f'Owner: {explorer_link("address", OWNER, OWNER)}'
        "</div>"
    )


def make_test_config(**overrides) -> ScannerConfig:
    """Build a ScannerConfig suitable for testing."""
    defaults = dict(
        rpc_url="http://127.0.0.1:8899",
        commitment="confirmed",
        request_timeout=5.0,
        mint_address=MINT,
        token_program=TokenProgram.TOKEN_2022,
        decimals=None,
        page_size=3,
        mode=ScanMode.LEDGER,
    )
    defaults.update(overrides)
    return ScannerConfig(**defaults)


@pytest.fixture
def test_config():
    """Default ScannerConfig for tests."""
    return make_test_config()


@pytest.fixture
def target():
    return ScanTarget(owner_address=OWNER, mint_address=MINT, decimals=DECIMALS)


@pytest.fixture
def mock_resolver():
    return MockResolver(OWNER_ATA)


@pytest.fixture
def mock_paginator():
    return MockPaginator()


@pytest.fixture
def mock_fetcher():
    return MockFetcher()


@pytest.fixture
def mock_mint_reader():
    return MockMintReader(decimals=DECIMALS)


@pytest.fixture
def scanner(mock_resolver, mock_paginator, mock_fetcher):
    """BurnScanner over mocked chain components, page size 3."""
    return BurnScanner(
        resolver=mock_resolver,
        paginator=mock_paginator,
        fetcher=mock_fetcher,
        extractor=BurnExtractor(),
        page_size=3,
    )


@pytest.fixture
async def service(test_config, mock_resolver, mock_paginator, mock_fetcher, mock_mint_reader):
    """Fully wired ScanService with mocked components."""
    s = ScanService(
        test_config,
        resolver=mock_resolver,
        paginator=mock_paginator,
        fetcher=mock_fetcher,
        mint_reader=mock_mint_reader,
    )
    yield s
    await s.close()
