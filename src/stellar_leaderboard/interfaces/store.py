"""WatchListStore protocol - persists the leaderboard watch-list."""

from __future__ import annotations

from typing import Protocol

from stellar_leaderboard.models.records import WatchedContract
from stellar_leaderboard.models.status import ContractStatus


class WatchListStore(Protocol):
    """Persists watched contracts and their last computed status."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Contracts ──────────────────────────────────────────

    async def add_contract(self, address: str, name: str, short_address: str) -> WatchedContract:
        ...

    async def remove_contract(self, address: str) -> bool:
        ...

    async def get_contract(self, address: str) -> WatchedContract | None:
        ...

    async def list_contracts(self) -> list[WatchedContract]:
        ...

    # ── Status ─────────────────────────────────────────────

    async def save_status(self, address: str, status: ContractStatus, updated_at: str) -> None:
        ...
