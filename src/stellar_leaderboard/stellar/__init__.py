"""Stellar/Soroban integration components."""

from stellar_leaderboard.stellar.codec import StellarXdrBackend, XdrLedgerCodec
from stellar_leaderboard.stellar.events import PaginatedEventFetcher
from stellar_leaderboard.stellar.queries import LedgerQueries
from stellar_leaderboard.stellar.transport import JsonRpcTransport

__all__ = [
    "StellarXdrBackend", "XdrLedgerCodec",
    "PaginatedEventFetcher",
    "LedgerQueries",
    "JsonRpcTransport",
]
