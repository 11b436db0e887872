"""Status aggregator - runs the evidence checks and builds ContractStatus."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Sequence

from stellar_leaderboard.interfaces.checks import EvidenceCheck
from stellar_leaderboard.models.status import ContractStatus
from stellar_leaderboard.stellar.queries import LedgerQueries

log = logging.getLogger(__name__)

DEFAULT_LOOKBACK_LEDGERS = 2160  # ~3 hours


class StatusAggregator:
    """Builds one ContractStatus per contract from independent checks.

    The ledger height is read once per run and turned into a single start
    ledger shared by every check, so all event-based checks look at the
    same window. A failing check only clears its own field; a failure to
    read the ledger height yields an all-False record. Never raises.
    """

    def __init__(
        self,
        queries: LedgerQueries,
        checks: Sequence[EvidenceCheck],
        lookback_ledgers: int = DEFAULT_LOOKBACK_LEDGERS,
        concurrent: bool = True,
    ) -> None:
        self._queries = queries
        self._checks = list(checks)
        self._offset = -abs(lookback_ledgers)
        self._concurrent = concurrent
        known = set(ContractStatus.field_names())
        for check in self._checks:
            if check.field not in known:
                raise ValueError(f"check {type(check).__name__} fills unknown field {check.field!r}")

    async def resolve_start_ledger(self) -> int:
        """First ledger of the lookback window: max(1, latest + offset)."""
        latest = await self._queries.get_latest_ledger()
        return max(1, latest + self._offset)

    async def get_full_status(self, contract_id: str) -> ContractStatus:
        start = time.monotonic()
        try:
            start_ledger = await self.resolve_start_ledger()
        except Exception as exc:
            log.warning("Could not resolve ledger height for %s: %s", contract_id[:16], exc)
            return ContractStatus()

        if self._concurrent:
            verdicts = await asyncio.gather(
                *(self._run_check(c, contract_id, start_ledger) for c in self._checks)
            )
        else:
            verdicts = [
                await self._run_check(c, contract_id, start_ledger) for c in self._checks
            ]

        values = {name: False for name in ContractStatus.field_names()}
        for check, verdict in zip(self._checks, verdicts):
            values[check.field] = verdict
        status = ContractStatus(**values)

        duration = int((time.monotonic() - start) * 1000)
        log.info(
            "Status for %s (from ledger %d) in %dms: %s",
            contract_id[:16], start_ledger, duration,
            ", ".join(f"{k}={v}" for k, v in status.to_dict().items()),
        )
        return status

    async def _run_check(self, check: EvidenceCheck, contract_id: str, start_ledger: int) -> bool:
        try:
            return (await check.run(contract_id, start_ledger)) is True
        except Exception as exc:
            log.warning("%s failed for %s: %s", type(check).__name__, contract_id[:16], exc)
            return False
