"""Leaderboard service - the watch-list, its refresh loop and component wiring."""

from __future__ import annotations

import asyncio
import logging
import re
import signal
from datetime import datetime, timezone

from stellar_leaderboard.aggregator import StatusAggregator
from stellar_leaderboard.attestation import (
    AttestationCache,
    AttestationProxy,
    GitHubAttestationUpstream,
    ProxyAttestationClient,
)
from stellar_leaderboard.checks import build_checks
from stellar_leaderboard.errors import WatchListError
from stellar_leaderboard.interfaces.attestation import AttestationLookup
from stellar_leaderboard.interfaces.codec import LedgerCodec
from stellar_leaderboard.interfaces.store import WatchListStore
from stellar_leaderboard.interfaces.transport import RpcTransport
from stellar_leaderboard.models.config import AttestationConfig, LeaderboardConfig
from stellar_leaderboard.models.records import WatchedContract
from stellar_leaderboard.models.status import ContractStatus
from stellar_leaderboard.stellar import (
    JsonRpcTransport,
    LedgerQueries,
    PaginatedEventFetcher,
    XdrLedgerCodec,
)
from stellar_leaderboard.storage.sqlite import SQLiteWatchListStore

log = logging.getLogger(__name__)

_CONTRACT_ADDRESS = re.compile(r"[A-Z2-7]{56}")


def is_valid_contract_address(address: str) -> bool:
    """56 base32 characters (A-Z, 2-7)."""
    return isinstance(address, str) and _CONTRACT_ADDRESS.fullmatch(address) is not None


def shorten_address(address: str) -> str:
    return f"{address[:6]}...{address[-6:]}"


def is_stale(last_updated: str | None, max_age: float, now: datetime | None = None) -> bool:
    """True if a status stored at ``last_updated`` (ISO 8601) is older than
    ``max_age`` seconds, or was never stored."""
    if not last_updated:
        return True
    try:
        updated = datetime.fromisoformat(last_updated)
    except ValueError:
        return True
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return (now - updated).total_seconds() > max_age


def build_attestation_proxy(att: AttestationConfig) -> AttestationProxy:
    """Cache + GitHub upstream, as served on ``/attestation``."""
    cache = AttestationCache(ttl_seconds=att.cache_ttl, max_entries=att.cache_max_entries)
    upstream = GitHubAttestationUpstream(att.upstream_url, att.github_token, att.timeout)
    return AttestationProxy(cache, upstream)


def build_attestation_lookup(
    att: AttestationConfig,
    proxy: AttestationProxy | None = None,
) -> AttestationLookup:
    """Remote proxy client when ``proxy_url`` is set, otherwise in-process."""
    if att.proxy_url:
        return ProxyAttestationClient(att.proxy_url, att.timeout)
    return proxy or build_attestation_proxy(att)


def build_aggregator(
    cfg: LeaderboardConfig,
    transport: RpcTransport,
    codec: LedgerCodec,
    attestations: AttestationLookup,
) -> StatusAggregator:
    queries = LedgerQueries(transport)
    fetcher = PaginatedEventFetcher(
        transport, cfg.checks.event_page_limit, cfg.checks.max_empty_pages,
    )
    checks = build_checks(cfg, queries, fetcher, codec, attestations)
    return StatusAggregator(
        queries, checks, cfg.checks.lookback_ledgers, cfg.checks.concurrent_checks,
    )


class Leaderboard:
    """Watch-list of contracts whose evidence status is kept up to date.

    Statuses are recomputed from scratch on every refresh and replace
    whatever was stored before.
    """

    def __init__(
        self,
        cfg: LeaderboardConfig,
        store: WatchListStore | None = None,
        aggregator: StatusAggregator | None = None,
        attestations: AttestationLookup | None = None,
    ) -> None:
        self._cfg = cfg
        self._running = False
        self._stop_event = asyncio.Event()

        self.store = store or SQLiteWatchListStore(cfg.db_path)
        self.transport: JsonRpcTransport | None = None
        self.attestations = attestations
        if aggregator is None:
            self.transport = JsonRpcTransport(cfg.rpc_url, cfg.rpc_timeout)
            if self.attestations is None:
                self.attestations = build_attestation_lookup(cfg.attestation)
            aggregator = build_aggregator(cfg, self.transport, XdrLedgerCodec(), self.attestations)
        self.aggregator = aggregator

    async def initialize(self) -> None:
        await self.store.initialize()

    async def close(self) -> None:
        await self.store.close()
        if self.transport is not None:
            await self.transport.close()
        closer = getattr(self.attestations, "close", None)
        if closer is not None:
            await closer()

    # ── Watch-list ─────────────────────────────────────────

    async def add_contract(self, address: str, name: str = "") -> WatchedContract:
        """Validate, store and immediately refresh a contract."""
        address = (address or "").strip().upper()
        if not address:
            raise WatchListError("Contract address is required")
        if not is_valid_contract_address(address):
            raise WatchListError(
                "Invalid Stellar contract address (56 characters, A-Z and 2-7)",
                details={"address": address},
            )
        if await self.store.get_contract(address) is not None:
            raise WatchListError(
                "Contract is already on the leaderboard", details={"address": address},
            )

        short = shorten_address(address)
        contract = await self.store.add_contract(address, name.strip() or short, short)
        log.info("Added %s (%s) to the watch-list", contract.name, short)

        status = await self.update_contract_status(address)
        if status is not None:
            contract.status = status
            stored = await self.store.get_contract(address)
            if stored is not None:
                contract.last_updated = stored.last_updated
        return contract

    async def remove_contract(self, address: str) -> bool:
        removed = await self.store.remove_contract(address.strip().upper())
        if removed:
            log.info("Removed %s from the watch-list", shorten_address(address.strip().upper()))
        return removed

    async def list_contracts(self) -> list[WatchedContract]:
        return await self.store.list_contracts()

    # ── Status ─────────────────────────────────────────────

    async def get_status(self, contract_id: str) -> ContractStatus:
        """Compute a status without touching the watch-list."""
        return await self.aggregator.get_full_status(contract_id)

    async def update_contract_status(self, address: str) -> ContractStatus | None:
        """Recompute and persist one contract's status. None if not watched."""
        if await self.store.get_contract(address) is None:
            return None
        status = await self.aggregator.get_full_status(address)
        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            await self.store.save_status(address, status, updated_at)
        except WatchListError:
            log.info("%s left the watch-list during refresh", shorten_address(address))
            return None
        return status

    async def refresh_all(self, only_stale: bool = False) -> dict[str, ContractStatus]:
        """Refresh every watched contract concurrently."""
        contracts = await self.store.list_contracts()
        if only_stale:
            contracts = [
                c for c in contracts if is_stale(c.last_updated, self._cfg.stale_after)
            ]
        if not contracts:
            return {}

        results = await asyncio.gather(
            *(self._refresh_one(c.address) for c in contracts)
        )
        refreshed = {
            c.address: status for c, status in zip(contracts, results) if status is not None
        }
        log.info("Refreshed %d/%d contracts", len(refreshed), len(contracts))
        return refreshed

    async def _refresh_one(self, address: str) -> ContractStatus | None:
        try:
            return await self.update_contract_status(address)
        except Exception as exc:
            log.error("Refresh of %s failed: %s", shorten_address(address), exc)
            return None

    # ── Loop ───────────────────────────────────────────────

    async def run(self, interval: float | None = None) -> None:
        """Refresh periodically until stop() is called."""
        interval = self._cfg.refresh_interval if interval is None else interval
        self._running = True
        self._stop_event.clear()
        log.info("Leaderboard refresh loop started (every %ss)", interval)

        # Fresh entries from a previous run are kept as they are
        await self.refresh_all(only_stale=True)

        while self._running:
            try:
                if await self._wait(interval):
                    break
                await self.refresh_all()
            except asyncio.CancelledError:
                log.info("Refresh loop cancelled")
                break
            except Exception as exc:
                log.error("Refresh loop error: %s", exc, exc_info=True)
                if await self._wait(self._cfg.error_backoff):
                    break
        self._running = False
        log.info("Leaderboard refresh loop stopped")

    async def stop(self) -> None:
        log.info("Stop requested")
        self._running = False
        self._stop_event.set()

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True if stop() was called meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


async def run_leaderboard(cfg: LeaderboardConfig) -> None:
    """Entry point for the periodic refresh loop."""
    board = Leaderboard(cfg)
    await board.initialize()

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(board.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    try:
        await board.run()
    finally:
        await board.close()
