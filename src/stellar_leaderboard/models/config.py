"""Configuration models."""

from __future__ import annotations

from dataclasses import dataclass, field

# Testnet contract identifiers
NATIVE_ASSET_CONTRACT = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"
SOROSWAP_FACTORY_CONTRACT = "CBVFAI4TEJCHIICFUYN2C5VYW5TD3CKPIZ4S5P5LVVUWMF5MRLJH77NH"
SOROSWAP_ROUTER_CONTRACT = "CACIQ6HWPBEMPQYKRRAZSM6ZQORTBTS7DNXCRTI6NQYMUP2BHOXTBUVD"


@dataclass
class ChecksConfig:
    """Evidence check tuning."""

    lookback_ledgers: int = 2160  # ~3 hours at 5s per ledger
    event_page_limit: int = 200
    max_empty_pages: int = 5  # consecutive empty pages before giving up
    concurrent_checks: bool = True
    source_repo_prefix: str = "github:"


@dataclass
class AttestationConfig:
    """Attestation proxy (server side) and client settings."""

    proxy_url: str = ""  # empty: look attestations up in-process
    upstream_url: str = "https://api.github.com"
    github_token: str = ""  # optional, raises the GitHub rate limit
    timeout: int = 15  # seconds
    cache_ttl: int | None = None  # seconds; None keeps entries for the process lifetime
    cache_max_entries: int = 4096


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    static_root: str = ""  # empty: no static serving


@dataclass
class LeaderboardConfig:
    """Complete configuration."""

    # Stellar
    network: str = "testnet"
    rpc_url: str = "https://soroban-testnet.stellar.org"
    rpc_timeout: int = 30  # seconds
    native_asset_contract: str = NATIVE_ASSET_CONTRACT
    soroswap_factory_contract: str = SOROSWAP_FACTORY_CONTRACT
    soroswap_router_contract: str = SOROSWAP_ROUTER_CONTRACT

    # Watch-list refresh
    refresh_interval: int = 10  # seconds
    stale_after: int = 5  # seconds before a stored status is refreshed on startup
    error_backoff: int = 30  # seconds
    db_path: str = "~/.stellar_leaderboard/watchlist.db"

    log_level: str = "info"

    checks: ChecksConfig = field(default_factory=ChecksConfig)
    attestation: AttestationConfig = field(default_factory=AttestationConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
