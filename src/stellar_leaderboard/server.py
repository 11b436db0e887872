"""HTTP server: attestation proxy, status endpoint and static leaderboard files."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from aiohttp import web

from stellar_leaderboard.aggregator import StatusAggregator
from stellar_leaderboard.attestation.proxy import AttestationProxy
from stellar_leaderboard.leaderboard import (
    build_aggregator,
    build_attestation_lookup,
    build_attestation_proxy,
    is_valid_contract_address,
)
from stellar_leaderboard.models.config import LeaderboardConfig
from stellar_leaderboard.stellar import JsonRpcTransport, XdrLedgerCodec

log = logging.getLogger(__name__)


class StatusHandler:
    """``GET /status/{contract_id}`` - a freshly aggregated ContractStatus."""

    def __init__(self, aggregator: StatusAggregator) -> None:
        self._aggregator = aggregator

    async def handle(self, request: web.Request) -> web.Response:
        contract_id = request.match_info["contract_id"].strip().upper()
        if not is_valid_contract_address(contract_id):
            return web.json_response(
                {"error": "invalid contract address", "contractId": contract_id}, status=400,
            )
        status = await self._aggregator.get_full_status(contract_id)
        return web.json_response({"contractId": contract_id, "status": status.to_dict()})


def create_app(
    proxy: AttestationProxy,
    aggregator: StatusAggregator | None = None,
    static_root: str = "",
) -> web.Application:
    app = web.Application()
    app.router.add_get("/attestation", proxy.handle)
    if aggregator is not None:
        app.router.add_get("/status/{contract_id}", StatusHandler(aggregator).handle)

    if static_root:
        root = Path(static_root).expanduser()
        index = root / "index.html"

        async def handle_index(request: web.Request) -> web.StreamResponse:
            if not index.is_file():
                raise web.HTTPNotFound()
            return web.FileResponse(index)

        app.router.add_get("/", handle_index)
        app.router.add_static("/", root, show_index=False)
    return app


async def run_server(cfg: LeaderboardConfig) -> None:
    """Serve until SIGINT/SIGTERM."""
    proxy = build_attestation_proxy(cfg.attestation)
    transport = JsonRpcTransport(cfg.rpc_url, cfg.rpc_timeout)
    # In-process lookups share the proxy's cache
    attestations = build_attestation_lookup(cfg.attestation, proxy)
    aggregator = build_aggregator(cfg, transport, XdrLedgerCodec(), attestations)

    app = create_app(proxy, aggregator, cfg.server.static_root)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, cfg.server.host, cfg.server.port)
    await site.start()
    log.info("Serving on http://%s:%d", cfg.server.host, cfg.server.port)
    if cfg.server.static_root:
        log.info("  Static files: %s", cfg.server.static_root)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    try:
        await stop.wait()
    finally:
        await runner.cleanup()
        await transport.close()
        await proxy.close()
        if attestations is not proxy:
            await attestations.close()  # type: ignore[attr-defined]
        log.info("Server shut down cleanly")
