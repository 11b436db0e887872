"""Internal record types for persistence and cached responses."""

from __future__ import annotations

from dataclasses import dataclass, field

from stellar_leaderboard.models.status import ContractStatus


@dataclass
class WatchedContract:
    """A contract on the leaderboard watch-list."""

    address: str
    name: str
    short_address: str
    status: ContractStatus | None = None
    last_updated: str | None = None  # ISO 8601
    added_at: str = ""


@dataclass(frozen=True)
class AttestationCacheEntry:
    """A stored upstream attestation response, keyed by its lookup URL."""

    url: str
    body: bytes = field(repr=False)
    status: int
    headers: tuple[tuple[str, str], ...] = ()
    stored_at: float = 0.0  # monotonic seconds
