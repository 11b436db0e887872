"""Build attestation lookups: cache, GitHub upstream, proxy and client."""

from stellar_leaderboard.attestation.cache import AttestationCache
from stellar_leaderboard.attestation.client import ProxyAttestationClient
from stellar_leaderboard.attestation.proxy import AttestationProxy, GitHubAttestationUpstream

__all__ = [
    "AttestationCache",
    "AttestationProxy",
    "GitHubAttestationUpstream",
    "ProxyAttestationClient",
]
