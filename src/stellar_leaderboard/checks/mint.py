"""Mint check - has the contract emitted ``mint`` events recently?"""

from __future__ import annotations

import logging

from stellar_leaderboard.interfaces.codec import LedgerCodec
from stellar_leaderboard.models.ledger import WILDCARD, EventFilter, ScSymbol
from stellar_leaderboard.stellar.events import PaginatedEventFetcher

log = logging.getLogger(__name__)


class MintedCheck:
    """True iff the contract emitted at least one ``mint`` event in the window.

    Token contracts publish ``("mint", to)`` or ``("mint", admin, to)``
    topics, so both lengths are matched.
    """

    field = "minted"

    def __init__(self, fetcher: PaginatedEventFetcher, codec: LedgerCodec) -> None:
        self._fetcher = fetcher
        self._codec = codec

    async def run(self, contract_id: str, start_ledger: int) -> bool:
        try:
            mint = await self._codec.encode_value(ScSymbol("mint"))
            event_filter = EventFilter(
                contract_ids=(contract_id,),
                topics=((mint, WILDCARD), (mint, WILDCARD, WILDCARD)),
            )
            events = await self._fetcher.fetch_all([event_filter], start_ledger)
            log.debug("Mint check for %s: %d events", contract_id[:16], len(events))
            return len(events) > 0
        except Exception as exc:
            log.warning("Mint check failed for %s: %s", contract_id[:16], exc)
            return False
