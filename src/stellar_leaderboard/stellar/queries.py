"""Typed read-only queries on top of the JSON-RPC transport."""

from __future__ import annotations

import logging

from stellar_leaderboard.errors import TransportError
from stellar_leaderboard.interfaces.transport import RpcTransport

log = logging.getLogger(__name__)


class LedgerQueries:
    """``getLatestLedger`` and ``getLedgerEntries`` against the RPC node.

    Errors from the transport propagate unchanged.
    """

    def __init__(self, transport: RpcTransport) -> None:
        self._transport = transport

    async def get_latest_ledger(self) -> int:
        """Current ledger sequence number."""
        result = await self._transport.call("getLatestLedger")
        try:
            return int(result["sequence"])
        except (TypeError, KeyError, ValueError) as exc:
            raise TransportError(f"getLatestLedger: malformed result {result!r}") from exc

    async def get_ledger_entries(self, keys: list[str]) -> list[str]:
        """Return the base64 ``LedgerEntryData`` XDR of every entry found.

        Missing keys are simply absent from the result.
        """
        result = await self._transport.call("getLedgerEntries", {"keys": keys})
        entries = (result or {}).get("entries") or []
        found = [e["xdr"] for e in entries if isinstance(e, dict) and e.get("xdr")]
        log.debug("getLedgerEntries: %d of %d keys found", len(found), len(keys))
        return found
