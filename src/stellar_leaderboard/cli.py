"""CLI entry point for stellar_leaderboard."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from stellar_leaderboard.config import load_config
from stellar_leaderboard.errors import WatchListError
from stellar_leaderboard.leaderboard import (
    Leaderboard,
    build_aggregator,
    build_attestation_lookup,
    is_valid_contract_address,
    run_leaderboard,
)
from stellar_leaderboard.models.status import ContractStatus
from stellar_leaderboard.server import run_server
from stellar_leaderboard.stellar import JsonRpcTransport, XdrLedgerCodec

_LABELS = {
    "deployed": "Deployed",
    "build_verified": "Build verified",
    "minted": "Minted",
    "soroswap_pair": "Soroswap pair",
    "soroswap_liquidity": "Soroswap liquidity",
    "soroswap_swapped": "Soroswap swapped",
}


def _mark(value: bool | None) -> str:
    if value is None:
        return "-"
    return "yes" if value else "no"


def _echo_status(status: ContractStatus | None, indent: str = "  ") -> None:
    for name in ContractStatus.field_names():
        value = getattr(status, name) if status is not None else None
        click.echo(f"{indent}{_LABELS[name] + ':':20s}{_mark(value)}")


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """stellar-leaderboard - on-chain progress tracker for Soroban contracts."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    cfg = load_config(config_path)
    ctx.obj["cfg"] = cfg
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── One-shot status ────────────────────────────────────


@cli.command()
@click.argument("contract_id")
@click.option("--json", "as_json", is_flag=True, help="Print the status as JSON")
@click.pass_context
def status(ctx: click.Context, contract_id: str, as_json: bool) -> None:
    """Compute the evidence status of one contract."""
    cfg = ctx.obj["cfg"]
    contract_id = contract_id.strip().upper()
    if not is_valid_contract_address(contract_id):
        click.echo("Error: not a valid contract address (56 characters, A-Z and 2-7).", err=True)
        sys.exit(1)

    async def _status() -> ContractStatus:
        transport = JsonRpcTransport(cfg.rpc_url, cfg.rpc_timeout)
        attestations = build_attestation_lookup(cfg.attestation)
        try:
            aggregator = build_aggregator(cfg, transport, XdrLedgerCodec(), attestations)
            return await aggregator.get_full_status(contract_id)
        finally:
            await transport.close()
            await attestations.close()  # type: ignore[attr-defined]

    result = asyncio.run(_status())
    if as_json:
        click.echo(json.dumps({"contractId": contract_id, "status": result.to_dict()}, indent=2))
        return
    click.echo(f"Contract: {contract_id}")
    _echo_status(result)


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Show the effective configuration."""
    cfg = ctx.obj["cfg"]
    click.echo(f"Network:       {cfg.network}")
    click.echo(f"RPC URL:       {cfg.rpc_url}")
    click.echo(f"Native asset:  {cfg.native_asset_contract}")
    click.echo(f"Factory:       {cfg.soroswap_factory_contract}")
    click.echo(f"Router:        {cfg.soroswap_router_contract}")
    click.echo(f"Lookback:      {cfg.checks.lookback_ledgers} ledgers")
    click.echo(f"Attestations:  {cfg.attestation.proxy_url or '(in-process)'}")
    click.echo(f"GitHub token:  {'***configured***' if cfg.attestation.github_token else '(not set)'}")
    click.echo(f"Refresh:       every {cfg.refresh_interval}s")
    click.echo(f"DB path:       {cfg.db_path}")
    click.echo(f"Server:        {cfg.server.host}:{cfg.server.port}")


# ── Watch-list ─────────────────────────────────────────


@cli.command()
@click.argument("address")
@click.option("--name", default="", help="Display name (defaults to the shortened address)")
@click.pass_context
def add(ctx: click.Context, address: str, name: str) -> None:
    """Add a contract to the watch-list and compute its status."""
    cfg = ctx.obj["cfg"]

    async def _add():
        board = Leaderboard(cfg)
        await board.initialize()
        try:
            return await board.add_contract(address, name)
        finally:
            await board.close()

    try:
        contract = asyncio.run(_add())
    except WatchListError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Added {contract.name} ({contract.short_address})")
    _echo_status(contract.status)


@cli.command()
@click.argument("address")
@click.pass_context
def remove(ctx: click.Context, address: str) -> None:
    """Remove a contract from the watch-list."""
    cfg = ctx.obj["cfg"]

    async def _remove() -> bool:
        board = Leaderboard(cfg)
        await board.initialize()
        try:
            return await board.remove_contract(address)
        finally:
            await board.close()

    if asyncio.run(_remove()):
        click.echo(f"Removed {address.strip().upper()}")
    else:
        click.echo("Contract is not on the watch-list.", err=True)
        sys.exit(1)


@cli.command("list")
@click.pass_context
def list_contracts(ctx: click.Context) -> None:
    """List watched contracts with their last stored status."""
    cfg = ctx.obj["cfg"]

    async def _list():
        board = Leaderboard(cfg)
        await board.initialize()
        try:
            return await board.list_contracts()
        finally:
            await board.close()

    contracts = asyncio.run(_list())
    if not contracts:
        click.echo("No contracts on the watch-list.")
        return

    for c in contracts:
        click.echo(f"{c.name} ({c.address})")
        click.echo(f"  Last updated:      {c.last_updated or 'never'}")
        _echo_status(c.status)


@cli.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """Recompute the status of every watched contract once."""
    cfg = ctx.obj["cfg"]

    async def _refresh():
        board = Leaderboard(cfg)
        await board.initialize()
        try:
            return await board.refresh_all()
        finally:
            await board.close()

    results = asyncio.run(_refresh())
    click.echo(f"Refreshed {len(results)} contract(s)")
    for address, result in results.items():
        click.echo(f"{address}")
        _echo_status(result)


@cli.command()
@click.option("--interval", type=int, default=None, help="Seconds between refreshes")
@click.pass_context
def watch(ctx: click.Context, interval: int | None) -> None:
    """Keep the watch-list refreshed until interrupted."""
    cfg = ctx.obj["cfg"]
    if interval is not None:
        cfg.refresh_interval = interval
    click.echo(f"Refreshing the watch-list every {cfg.refresh_interval}s (Ctrl+C to stop)")
    asyncio.run(run_leaderboard(cfg))


# ── Server ─────────────────────────────────────────────


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", type=int, default=None, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the attestation proxy and status API."""
    cfg = ctx.obj["cfg"]
    if host:
        cfg.server.host = host
    if port:
        cfg.server.port = port
    click.echo(f"Starting server on {cfg.server.host}:{cfg.server.port}")
    asyncio.run(run_server(cfg))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
