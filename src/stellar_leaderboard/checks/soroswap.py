"""Soroswap checks - pair creation, liquidity and swaps involving a token."""

from __future__ import annotations

import logging
from typing import Iterable

from stellar_leaderboard.interfaces.codec import LedgerCodec
from stellar_leaderboard.models.ledger import (
    EventFilter,
    ScAddress,
    ScMap,
    ScMapEntry,
    ScString,
    ScSymbol,
    ScVal,
    ScVec,
)
from stellar_leaderboard.stellar.events import PaginatedEventFetcher

log = logging.getLogger(__name__)

# Soroswap publishes events as ("SoroswapFactory" | "SoroswapRouter", action)
FACTORY_TOPIC = "SoroswapFactory"
ROUTER_TOPIC = "SoroswapRouter"


def event_entries(value: ScVal) -> list[ScMapEntry]:
    """Key/value entries of a decoded event body.

    Accepts a map, or a vector of two-element ``[key, value]`` vectors.
    Anything else has no entries.
    """
    if isinstance(value, ScMap):
        return list(value.entries)
    if isinstance(value, ScVec):
        return [
            ScMapEntry(item.items[0], item.items[1])
            for item in value.items
            if isinstance(item, ScVec) and len(item.items) == 2
        ]
    return []


def _key_name(key: ScVal) -> str | None:
    if isinstance(key, (ScSymbol, ScString)):
        return key.value
    return None


def _is_address(value: ScVal, address: str) -> bool:
    return isinstance(value, ScAddress) and value.value == address


class SoroswapEventCheck:
    """True iff the target address participates in at least one matching event.

    Subclasses pick the emitting contract, the topic pair and how a decoded
    event body is searched.
    """

    field = ""
    source_topic = ROUTER_TOPIC
    action = ""

    def __init__(
        self,
        fetcher: PaginatedEventFetcher,
        codec: LedgerCodec,
        emitter_contract: str,
    ) -> None:
        self._fetcher = fetcher
        self._codec = codec
        self._emitter = emitter_contract

    def involves(self, entries: Iterable[ScMapEntry], address: str) -> bool:
        raise NotImplementedError

    async def run(self, contract_id: str, start_ledger: int) -> bool:
        try:
            source = await self._codec.encode_value(ScString(self.source_topic))
            action = await self._codec.encode_value(ScSymbol(self.action))
            event_filter = EventFilter(
                contract_ids=(self._emitter,),
                topics=((source, action),),
            )
            events = await self._fetcher.fetch_all([event_filter], start_ledger)
            log.debug("Soroswap %s: %d events to scan for %s",
                      self.action, len(events), contract_id[:16])

            for event in events:
                try:
                    value = await self._codec.decode_event_value(event.value)
                except Exception as exc:
                    log.debug("Skipping undecodable %s event %s: %s", self.action, event.id, exc)
                    continue
                if self.involves(event_entries(value), contract_id):
                    return True
            return False
        except Exception as exc:
            log.warning("Soroswap %s check failed for %s: %s", self.action, contract_id[:16], exc)
            return False


class _TokenFieldCheck(SoroswapEventCheck):
    token_keys: tuple[str, ...] = ()

    def involves(self, entries: Iterable[ScMapEntry], address: str) -> bool:
        return any(
            _key_name(e.key) in self.token_keys and _is_address(e.val, address)
            for e in entries
        )


class SoroswapPairCheck(_TokenFieldCheck):
    """A pair including the token was created by the factory."""

    field = "soroswap_pair"
    source_topic = FACTORY_TOPIC
    action = "new_pair"
    token_keys = ("token_0", "token_1")


class SoroswapLiquidityCheck(_TokenFieldCheck):
    """Liquidity was added through the router for a pair including the token."""

    field = "soroswap_liquidity"
    source_topic = ROUTER_TOPIC
    action = "add"
    token_keys = ("token_a", "token_b")


class SoroswapSwapCheck(SoroswapEventCheck):
    """The token appears in the path of a router swap."""

    field = "soroswap_swapped"
    source_topic = ROUTER_TOPIC
    action = "swap"

    def involves(self, entries: Iterable[ScMapEntry], address: str) -> bool:
        for e in entries:
            if _key_name(e.key) == "path" and isinstance(e.val, ScVec):
                if any(_is_address(hop, address) for hop in e.val.items):
                    return True
        return False
