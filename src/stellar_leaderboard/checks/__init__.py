"""Evidence checks - one boolean probe per ContractStatus field."""

from __future__ import annotations

from stellar_leaderboard.checks.build import BuildVerifiedCheck
from stellar_leaderboard.checks.deployment import DeployedCheck, fetch_instance
from stellar_leaderboard.checks.mint import MintedCheck
from stellar_leaderboard.checks.soroswap import (
    SoroswapLiquidityCheck,
    SoroswapPairCheck,
    SoroswapSwapCheck,
)
from stellar_leaderboard.interfaces.attestation import AttestationLookup
from stellar_leaderboard.interfaces.checks import EvidenceCheck
from stellar_leaderboard.interfaces.codec import LedgerCodec
from stellar_leaderboard.models.config import LeaderboardConfig
from stellar_leaderboard.stellar.events import PaginatedEventFetcher
from stellar_leaderboard.stellar.queries import LedgerQueries


def build_checks(
    cfg: LeaderboardConfig,
    queries: LedgerQueries,
    fetcher: PaginatedEventFetcher,
    codec: LedgerCodec,
    attestations: AttestationLookup,
) -> list[EvidenceCheck]:
    """The six checks, in ContractStatus field order."""
    return [
        DeployedCheck(queries, codec),
        BuildVerifiedCheck(queries, codec, attestations, cfg.checks.source_repo_prefix),
        MintedCheck(fetcher, codec),
        SoroswapPairCheck(fetcher, codec, cfg.soroswap_factory_contract),
        SoroswapLiquidityCheck(fetcher, codec, cfg.soroswap_router_contract),
        SoroswapSwapCheck(fetcher, codec, cfg.soroswap_router_contract),
    ]


__all__ = [
    "BuildVerifiedCheck", "DeployedCheck", "MintedCheck",
    "SoroswapLiquidityCheck", "SoroswapPairCheck", "SoroswapSwapCheck",
    "build_checks", "fetch_instance",
]
