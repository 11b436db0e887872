"""Deployment check - does a contract instance entry exist?"""

from __future__ import annotations

import logging

from stellar_leaderboard.errors import CodecError, NotFoundError
from stellar_leaderboard.interfaces.codec import LedgerCodec
from stellar_leaderboard.models.ledger import ContractInstanceEntry, ContractInstanceKey
from stellar_leaderboard.stellar.queries import LedgerQueries

log = logging.getLogger(__name__)


async def fetch_instance(
    queries: LedgerQueries, codec: LedgerCodec, contract_id: str
) -> ContractInstanceEntry:
    """Load and decode a contract's instance entry. Raises NotFoundError."""
    key = await codec.encode_key(ContractInstanceKey(contract_id))
    entries = await queries.get_ledger_entries([key])
    if not entries:
        raise NotFoundError("contract instance not found", details={"contract": contract_id})
    entry = await codec.decode_entry(entries[0])
    if not isinstance(entry, ContractInstanceEntry):
        raise CodecError(f"expected a contract instance, got {type(entry).__name__}")
    return entry


class DeployedCheck:
    """True iff the ledger holds an instance entry for the contract."""

    field = "deployed"

    def __init__(self, queries: LedgerQueries, codec: LedgerCodec) -> None:
        self._queries = queries
        self._codec = codec

    async def run(self, contract_id: str, start_ledger: int) -> bool:
        try:
            key = await self._codec.encode_key(ContractInstanceKey(contract_id))
            entries = await self._queries.get_ledger_entries([key])
            return len(entries) > 0
        except Exception as exc:
            log.warning("Deployed check failed for %s: %s", contract_id[:16], exc)
            return False
