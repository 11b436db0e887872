"""EvidenceCheck protocol - one boolean probe of one contract fact."""

from __future__ import annotations

from typing import Protocol


class EvidenceCheck(Protocol):
    """Produces the verdict for one ContractStatus field."""

    field: str  # ContractStatus attribute this check fills

    async def run(self, contract_id: str, start_ledger: int) -> bool:
        ...
