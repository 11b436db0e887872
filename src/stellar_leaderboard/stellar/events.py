"""Paginated ``getEvents`` fetcher."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from stellar_leaderboard.interfaces.transport import RpcTransport
from stellar_leaderboard.models.ledger import ContractEvent, EventFilter

log = logging.getLogger(__name__)

MAX_EMPTY_PAGES = 5
DEFAULT_PAGE_LIMIT = 200


def _next_cursor(result: dict) -> str | None:
    """Continuation cursor of a getEvents result, if any."""
    cursor = result.get("cursor")
    if not cursor:
        cursor = (result.get("pagination") or {}).get("cursor")
    return cursor or None


class PaginatedEventFetcher:
    """Walks the ``getEvents`` cursor for one query until it is exhausted.

    The start ledger is sent on the first request only; continuation
    requests carry the cursor returned by the previous page, unmodified.
    Sparse event logs can return empty pages that still carry a cursor, so
    the walk stops after ``max_empty_pages`` consecutive empty pages.
    """

    def __init__(
        self,
        transport: RpcTransport,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        max_empty_pages: int = MAX_EMPTY_PAGES,
    ) -> None:
        self._transport = transport
        self._page_limit = page_limit
        self._max_empty_pages = max_empty_pages

    async def fetch_all(
        self,
        filters: Sequence[EventFilter],
        start_ledger: int,
    ) -> list[ContractEvent]:
        """Fetch every event matching ``filters`` from ``start_ledger`` on.

        Raises TransportError / ProtocolError from the transport. Events are
        returned in server order with no de-duplication.
        """
        base: dict[str, Any] = {"filters": [f.to_params() for f in filters]}
        events: list[ContractEvent] = []
        cursor: str | None = None
        empty_pages = 0
        pages = 0

        while True:
            params = dict(base)
            if cursor is None:
                params["startLedger"] = start_ledger
                params["pagination"] = {"limit": self._page_limit}
            else:
                params["pagination"] = {"cursor": cursor, "limit": self._page_limit}

            result = await self._transport.call("getEvents", params) or {}
            pages += 1
            batch = result.get("events") or []
            cursor = _next_cursor(result)

            if batch:
                events.extend(ContractEvent.from_rpc(raw) for raw in batch)
                empty_pages = 0
                log.debug("getEvents page %d: %d events, cursor %s", pages, len(batch), cursor)
            else:
                empty_pages += 1
                log.debug(
                    "getEvents page %d empty (%d/%d), cursor %s",
                    pages, empty_pages, self._max_empty_pages, cursor,
                )
                if empty_pages >= self._max_empty_pages:
                    log.debug("Stopping after %d consecutive empty pages", empty_pages)
                    break

            if cursor is None:
                break

        log.debug("getEvents: %d events over %d pages", len(events), pages)
        return events
