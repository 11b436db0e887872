"""SQLite implementation of the WatchListStore protocol."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from stellar_leaderboard.errors import WatchListError
from stellar_leaderboard.models.records import WatchedContract
from stellar_leaderboard.models.status import ContractStatus

SCHEMA = """
-- Watched contracts, in the order they were added
CREATE TABLE IF NOT EXISTS contracts (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    address TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    short_address TEXT NOT NULL,
    status TEXT,
    last_updated TEXT,
    added_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteWatchListStore:
    """SQLite-backed implementation of the WatchListStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Contracts ──────────────────────────────────────────

    async def add_contract(self, address: str, name: str, short_address: str) -> WatchedContract:
        added_at = _now()
        try:
            await self.db.execute(
                "INSERT INTO contracts (address, name, short_address, added_at)"
                " VALUES (?, ?, ?, ?)",
                (address, name, short_address, added_at),
            )
        except sqlite3.IntegrityError as exc:
            raise WatchListError(
                "Contract is already on the watch-list", details={"address": address}
            ) from exc
        await self.db.commit()
        return WatchedContract(
            address=address, name=name, short_address=short_address, added_at=added_at,
        )

    async def remove_contract(self, address: str) -> bool:
        cur = await self.db.execute("DELETE FROM contracts WHERE address=?", (address,))
        await self.db.commit()
        return cur.rowcount > 0

    async def get_contract(self, address: str) -> WatchedContract | None:
        async with self.db.execute(
            "SELECT * FROM contracts WHERE address=?", (address,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_contract(row) if row else None

    async def list_contracts(self) -> list[WatchedContract]:
        async with self.db.execute("SELECT * FROM contracts ORDER BY seq") as cur:
            return [_row_to_contract(row) async for row in cur]

    # ── Status ─────────────────────────────────────────────

    async def save_status(self, address: str, status: ContractStatus, updated_at: str) -> None:
        cur = await self.db.execute(
            "UPDATE contracts SET status=?, last_updated=? WHERE address=?",
            (json.dumps(status.to_dict()), updated_at, address),
        )
        await self.db.commit()
        if cur.rowcount == 0:
            raise WatchListError("Contract is not on the watch-list", details={"address": address})


# ── Row converters ─────────────────────────────────────────


def _row_to_contract(row: aiosqlite.Row) -> WatchedContract:
    raw_status = row["status"]
    return WatchedContract(
        address=row["address"],
        name=row["name"],
        short_address=row["short_address"],
        status=ContractStatus.from_dict(json.loads(raw_status)) if raw_status else None,
        last_updated=row["last_updated"],
        added_at=row["added_at"],
    )
