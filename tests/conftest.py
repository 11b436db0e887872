"""Shared fixtures for stellar_leaderboard tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from stellar_leaderboard.aggregator import StatusAggregator
from stellar_leaderboard.checks import build_checks
from stellar_leaderboard.models.config import ChecksConfig, LeaderboardConfig
from stellar_leaderboard.stellar.events import PaginatedEventFetcher
from stellar_leaderboard.stellar.queries import LedgerQueries
from stellar_leaderboard.storage.sqlite import SQLiteWatchListStore

from tests.factories import FACTORY_ID, NATIVE_ID, ROUTER_ID
from tests.mocks import FakeCodec, MockAttestations, MockLedger

RPC_URL = "https://soroban-testnet.stellar.org"
EXPLORER_BASE = "https://stellar.expert/explorer/testnet"


def stellar_expert_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to stellar.expert for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Stellar Testnet"
    meta["RPC"] = RPC_URL
    meta["Soroswap Factory"] = FACTORY_ID
    meta["Soroswap Router"] = ROUTER_ID


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable Stellar explorer links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Stellar Testnet Explorer Links</strong><br/>"
        f'Native asset: {stellar_expert_link("contract", NATIVE_ID, NATIVE_ID)}<br/>'
        f'Soroswap factory: {stellar_expert_link("contract", FACTORY_ID, FACTORY_ID)}<br/>'
        f'Soroswap router: {stellar_expert_link("contract", ROUTER_ID, ROUTER_ID)}'
        "</div>"
    )


def make_test_config(**overrides) -> LeaderboardConfig:
    """Build a LeaderboardConfig suitable for testing."""
    defaults = dict(
        rpc_url=RPC_URL,
        refresh_interval=1,
        stale_after=5,
        error_backoff=1,
        db_path=":memory:",
        checks=ChecksConfig(lookback_ledgers=2160, event_page_limit=200, max_empty_pages=5),
    )
    defaults.update(overrides)
    return LeaderboardConfig(**defaults)


@pytest.fixture
def test_config():
    """Default LeaderboardConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteWatchListStore."""
    s = SQLiteWatchListStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def ledger():
    return MockLedger(latest_ledger=100_000)


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def attestations():
    return MockAttestations()


@pytest.fixture
def queries(ledger):
    return LedgerQueries(ledger)


@pytest.fixture
def fetcher(ledger):
    return PaginatedEventFetcher(ledger, page_limit=200, max_empty_pages=5)


@pytest.fixture
def aggregator(test_config, ledger, codec, attestations):
    """StatusAggregator with the real checks over the mock ledger."""
    queries = LedgerQueries(ledger)
    fetcher = PaginatedEventFetcher(ledger, test_config.checks.event_page_limit,
                                    test_config.checks.max_empty_pages)
    checks = build_checks(test_config, queries, fetcher, codec, attestations)
    return StatusAggregator(queries, checks, test_config.checks.lookback_ledgers)
