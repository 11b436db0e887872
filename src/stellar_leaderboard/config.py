"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from stellar_leaderboard.models.config import (
    AttestationConfig,
    ChecksConfig,
    LeaderboardConfig,
    ServerConfig,
)

NETWORK_RPC_URLS = {
    "testnet": "https://soroban-testnet.stellar.org",
    "futurenet": "https://rpc-futurenet.stellar.org",
}


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "STELLAR_LEADERBOARD_",
) -> LeaderboardConfig:
    """Load configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (STELLAR_LEADERBOARD_RPC_URL, etc.)
        2. TOML config file
        3. Defaults from LeaderboardConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = LeaderboardConfig()

    # ── Stellar section ────────────────────────────────────
    stellar = raw.get("stellar", {})
    if v := stellar.get("network"):
        cfg.network = str(v)
        cfg.rpc_url = NETWORK_RPC_URLS.get(cfg.network, cfg.rpc_url)
    if v := stellar.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := stellar.get("rpc_timeout"):
        cfg.rpc_timeout = int(v)
    if v := stellar.get("native_asset_contract"):
        cfg.native_asset_contract = str(v)
    if v := stellar.get("soroswap_factory_contract"):
        cfg.soroswap_factory_contract = str(v)
    if v := stellar.get("soroswap_router_contract"):
        cfg.soroswap_router_contract = str(v)

    # ── Checks section ─────────────────────────────────────
    checks_raw = raw.get("checks", {})
    cfg.checks = ChecksConfig(
        lookback_ledgers=int(checks_raw.get("lookback_ledgers", 2160)),
        event_page_limit=int(checks_raw.get("event_page_limit", 200)),
        max_empty_pages=int(checks_raw.get("max_empty_pages", 5)),
        concurrent_checks=bool(checks_raw.get("concurrent_checks", True)),
        source_repo_prefix=str(checks_raw.get("source_repo_prefix", "github:")),
    )

    # ── Attestation section ────────────────────────────────
    att_raw = raw.get("attestation", {})
    cache_ttl = att_raw.get("cache_ttl")
    cfg.attestation = AttestationConfig(
        proxy_url=str(att_raw.get("proxy_url", AttestationConfig.proxy_url)),
        upstream_url=str(att_raw.get("upstream_url", AttestationConfig.upstream_url)),
        github_token=str(att_raw.get("github_token", "")),
        timeout=int(att_raw.get("timeout", 15)),
        cache_ttl=int(cache_ttl) if cache_ttl else None,
        cache_max_entries=int(att_raw.get("cache_max_entries", 4096)),
    )

    # ── Server section ─────────────────────────────────────
    server_raw = raw.get("server", {})
    cfg.server = ServerConfig(
        host=str(server_raw.get("host", "127.0.0.1")),
        port=int(server_raw.get("port", 8080)),
        static_root=str(server_raw.get("static_root", "")),
    )

    # ── Leaderboard section ────────────────────────────────
    board = raw.get("leaderboard", {})
    if v := board.get("refresh_interval"):
        cfg.refresh_interval = int(v)
    if v := board.get("stale_after"):
        cfg.stale_after = int(v)
    if v := board.get("error_backoff"):
        cfg.error_backoff = int(v)
    if v := board.get("db_path"):
        cfg.db_path = str(v)

    # ── Logging section ────────────────────────────────────
    if v := raw.get("logging", {}).get("log_level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
        cfg.rpc_url = NETWORK_RPC_URLS.get(net, cfg.rpc_url)
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db
    if token := os.environ.get(f"{env_prefix}GITHUB_TOKEN"):
        cfg.attestation.github_token = token
    if proxy := os.environ.get(f"{env_prefix}PROXY_URL"):
        cfg.attestation.proxy_url = proxy
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
