"""Codec protocols - translation between ledger models and XDR."""

from __future__ import annotations

from typing import Protocol

from stellar_leaderboard.models.ledger import (
    ContractMetaEntry,
    LedgerEntryData,
    LedgerKey,
    ScVal,
)


class XdrBackend(Protocol):
    """Synchronous XDR capability. Raises on malformed input."""

    def encode_key(self, key: LedgerKey) -> str:
        ...

    def encode_value(self, value: ScVal) -> str:
        ...

    def decode_entry(self, data: str) -> LedgerEntryData:
        ...

    def decode_value(self, data: str) -> ScVal:
        ...

    def decode_meta_stream(self, data: bytes) -> list[ContractMetaEntry]:
        ...


class LedgerCodec(Protocol):
    """Async adapter used by the evidence checks. Raises CodecError."""

    async def encode_key(self, key: LedgerKey) -> str:
        ...

    async def encode_value(self, value: ScVal) -> str:
        ...

    async def decode_entry(self, data: str) -> LedgerEntryData:
        ...

    async def decode_event_value(self, data: str) -> ScVal:
        ...

    async def decode_meta_stream(self, data: bytes) -> list[ContractMetaEntry]:
        ...
