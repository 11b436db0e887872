"""Data models for stellar_leaderboard."""

from stellar_leaderboard.models.config import (
    AttestationConfig,
    ChecksConfig,
    LeaderboardConfig,
    ServerConfig,
)
from stellar_leaderboard.models.ledger import (
    ContractCodeEntry,
    ContractCodeKey,
    ContractEvent,
    ContractInstanceEntry,
    ContractInstanceKey,
    ContractMetaEntry,
    EventFilter,
    LedgerEntryData,
    LedgerKey,
    ScAddress,
    ScBool,
    ScBytes,
    ScInt,
    ScMap,
    ScMapEntry,
    ScOther,
    ScString,
    ScSymbol,
    ScVal,
    ScVec,
    ScVoid,
)
from stellar_leaderboard.models.records import AttestationCacheEntry, WatchedContract
from stellar_leaderboard.models.status import ContractStatus

__all__ = [
    "AttestationConfig", "ChecksConfig", "LeaderboardConfig", "ServerConfig",
    "ContractCodeEntry", "ContractCodeKey", "ContractEvent",
    "ContractInstanceEntry", "ContractInstanceKey", "ContractMetaEntry",
    "EventFilter", "LedgerEntryData", "LedgerKey",
    "ScAddress", "ScBool", "ScBytes", "ScInt", "ScMap", "ScMapEntry",
    "ScOther", "ScString", "ScSymbol", "ScVal", "ScVec", "ScVoid",
    "AttestationCacheEntry", "WatchedContract",
    "ContractStatus",
]
