"""Build verification check - source_repo metadata + build attestation."""

from __future__ import annotations

import logging

from stellar_leaderboard.checks.deployment import fetch_instance
from stellar_leaderboard.errors import CodecError, NotFoundError
from stellar_leaderboard.interfaces.attestation import AttestationLookup
from stellar_leaderboard.interfaces.codec import LedgerCodec
from stellar_leaderboard.models.ledger import ContractCodeEntry, ContractCodeKey
from stellar_leaderboard.stellar.queries import LedgerQueries
from stellar_leaderboard.stellar.wasm import CONTRACT_META_SECTION, custom_sections

log = logging.getLogger(__name__)

SOURCE_REPO_KEY = "source_repo"


class BuildVerifiedCheck:
    """Checks whether a contract's Wasm build is attested.

    1. Resolve the Wasm hash from the contract instance.
    2. Load the Wasm code for that hash.
    3. Read ``source_repo`` from the ``contractmetav0`` custom sections.
    4. No entry: False. Entry without the repository prefix: True (the
       metadata alone is accepted). Prefixed entry: ask the attestation
       proxy for (repo, wasm hash); True iff it answered 200.

    Failures in steps 1-2 yield False. Later failures (malformed Wasm or
    metadata, attestation transport errors) propagate to the aggregator.
    """

    field = "build_verified"

    def __init__(
        self,
        queries: LedgerQueries,
        codec: LedgerCodec,
        attestations: AttestationLookup,
        repo_prefix: str = "github:",
    ) -> None:
        self._queries = queries
        self._codec = codec
        self._attestations = attestations
        self._repo_prefix = repo_prefix

    async def run(self, contract_id: str, start_ledger: int) -> bool:
        try:
            wasm_hash = await self._wasm_hash(contract_id)
            code = await self._wasm_code(wasm_hash)
        except Exception as exc:
            log.info("Build check: no wasm for %s: %s", contract_id[:16], exc)
            return False

        source_repo = await self._source_repo(code)
        if source_repo is None:
            log.debug("Build check: %s has no %s metadata", contract_id[:16], SOURCE_REPO_KEY)
            return False

        if not source_repo.startswith(self._repo_prefix):
            return True

        repo = source_repo[len(self._repo_prefix):]
        verified = await self._attestations.exists(repo, wasm_hash)
        log.debug("Build check: %s attestation for %s@%s: %s",
                  contract_id[:16], repo, wasm_hash[:12], verified)
        return verified

    async def _wasm_hash(self, contract_id: str) -> str:
        instance = await fetch_instance(self._queries, self._codec, contract_id)
        if instance.wasm_hash is None:
            raise NotFoundError("contract has no wasm executable", details={"contract": contract_id})
        return instance.wasm_hash

    async def _wasm_code(self, wasm_hash: str) -> bytes:
        key = await self._codec.encode_key(ContractCodeKey(wasm_hash))
        entries = await self._queries.get_ledger_entries([key])
        if not entries:
            raise NotFoundError("contract code not found", details={"hash": wasm_hash})
        entry = await self._codec.decode_entry(entries[0])
        if not isinstance(entry, ContractCodeEntry):
            raise CodecError(f"expected contract code, got {type(entry).__name__}")
        return entry.code

    async def _source_repo(self, code: bytes) -> str | None:
        for section in custom_sections(code, CONTRACT_META_SECTION):
            for meta in await self._codec.decode_meta_stream(section):
                if meta.key == SOURCE_REPO_KEY:
                    return meta.val
        return None
