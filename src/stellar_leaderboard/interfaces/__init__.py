"""Protocol interfaces for stellar_leaderboard components."""

from stellar_leaderboard.interfaces.transport import RpcTransport
from stellar_leaderboard.interfaces.codec import LedgerCodec, XdrBackend
from stellar_leaderboard.interfaces.checks import EvidenceCheck
from stellar_leaderboard.interfaces.attestation import AttestationLookup
from stellar_leaderboard.interfaces.store import WatchListStore

__all__ = [
    "RpcTransport",
    "LedgerCodec", "XdrBackend",
    "EvidenceCheck",
    "AttestationLookup",
    "WatchListStore",
]
