"""AttestationLookup protocol - does a build attestation exist?"""

from __future__ import annotations

from typing import Protocol


class AttestationLookup(Protocol):

    async def exists(self, repo: str, wasm_hash: str) -> bool:
        """True iff the attestation lookup returned HTTP 200."""
        ...
