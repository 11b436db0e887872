"""Evidence checks against the mock ledger."""

from __future__ import annotations

import pytest
from stellar_sdk import Address
from stellar_sdk import xdr as stellar_xdr

from stellar_leaderboard.checks import (
    BuildVerifiedCheck,
    DeployedCheck,
    MintedCheck,
    SoroswapLiquidityCheck,
    SoroswapPairCheck,
    SoroswapSwapCheck,
)
from stellar_leaderboard.checks.soroswap import event_entries
from stellar_leaderboard.errors import CodecError, TransportError
from stellar_leaderboard.models.ledger import (
    ContractCodeKey,
    ContractInstanceKey,
    ContractMetaEntry,
    ScAddress,
    ScInt,
    ScMapEntry,
    ScSymbol,
    ScVec,
)
from stellar_leaderboard.stellar.codec import StellarXdrBackend, XdrLedgerCodec
from stellar_leaderboard.stellar.queries import LedgerQueries

from tests.factories import (
    FACTORY_ID,
    NATIVE_ID,
    OTHER_TOKEN_ID,
    ROUTER_ID,
    TOKEN_ID,
    deploy_contract,
    emit_add_liquidity,
    emit_mint,
    emit_new_pair,
    emit_soroswap_event,
    emit_swap,
    make_wasm,
    token_map,
    wasm_hash_of,
)
from tests.mocks import MockAttestations, MockLedger

START = 100_000 - 2160


# ── Deployed ──────────────────────────────────────────────────────


async def test_deployed_true_when_instance_exists(ledger, codec, queries):
    deploy_contract(ledger, codec, TOKEN_ID, meta=[])
    assert await DeployedCheck(queries, codec).run(TOKEN_ID, START) is True


async def test_deployed_false_when_instance_missing(codec, queries):
    assert await DeployedCheck(queries, codec).run(TOKEN_ID, START) is False


async def test_deployed_false_on_transport_failure(ledger, codec, queries):
    ledger.failures["getLedgerEntries"] = TransportError("boom")
    assert await DeployedCheck(queries, codec).run(TOKEN_ID, START) is False


async def test_deployed_false_on_codec_failure(ledger, codec, queries):
    deploy_contract(ledger, codec, TOKEN_ID, meta=[])
    codec.fail_encode = True
    assert await DeployedCheck(queries, codec).run(TOKEN_ID, START) is False


# ── Build verified ────────────────────────────────────────────────


def build_check(queries, codec, attestations):
    return BuildVerifiedCheck(queries, codec, attestations, "github:")


async def test_build_false_without_source_repo(ledger, codec, queries, attestations):
    deploy_contract(ledger, codec, TOKEN_ID, meta=[("rsver", "1.81.0")])
    assert await build_check(queries, codec, attestations).run(TOKEN_ID, START) is False
    assert attestations.calls == []


async def test_build_true_for_unprefixed_source_repo(ledger, codec, queries, attestations):
    deploy_contract(ledger, codec, TOKEN_ID, meta=[("source_repo", "https://example.org/token")])
    assert await build_check(queries, codec, attestations).run(TOKEN_ID, START) is True
    assert attestations.calls == []


async def test_build_true_when_attested(ledger, codec, queries):
    wasm_hash = deploy_contract(
        ledger, codec, TOKEN_ID, meta=[("source_repo", "github:acme/token")],
    )
    attestations = MockAttestations({("acme/token", wasm_hash)})
    assert await build_check(queries, codec, attestations).run(TOKEN_ID, START) is True
    assert attestations.calls == [("acme/token", wasm_hash)]


async def test_build_false_when_not_attested(ledger, codec, queries, attestations):
    deploy_contract(ledger, codec, TOKEN_ID, meta=[("source_repo", "github:acme/token")])
    assert await build_check(queries, codec, attestations).run(TOKEN_ID, START) is False
    assert len(attestations.calls) == 1


async def test_build_false_for_asset_contract_without_wasm(ledger, codec, queries, attestations):
    deploy_contract(ledger, codec, NATIVE_ID)
    assert await build_check(queries, codec, attestations).run(NATIVE_ID, START) is False


async def test_build_false_when_code_entry_missing(ledger, codec, queries, attestations):
    deploy_contract(ledger, codec, TOKEN_ID, meta=[("source_repo", "x")], upload_code=False)
    assert await build_check(queries, codec, attestations).run(TOKEN_ID, START) is False


async def test_build_false_when_not_deployed(codec, queries, attestations):
    assert await build_check(queries, codec, attestations).run(TOKEN_ID, START) is False


async def test_build_attestation_failure_propagates(ledger, codec, queries):
    deploy_contract(ledger, codec, TOKEN_ID, meta=[("source_repo", "github:acme/token")])
    attestations = MockAttestations(error=TransportError("proxy down"))
    with pytest.raises(TransportError):
        await build_check(queries, codec, attestations).run(TOKEN_ID, START)


async def test_build_malformed_wasm_propagates(ledger, codec, queries, attestations):
    wasm_hash = deploy_contract(ledger, codec, TOKEN_ID, code=b"not a wasm module")
    assert wasm_hash is not None
    with pytest.raises(CodecError):
        await build_check(queries, codec, attestations).run(TOKEN_ID, START)


async def test_build_reads_later_meta_sections(ledger, codec, queries, attestations):
    code = make_wasm(("contractmetav0", b"first"), ("name", b"x"), ("contractmetav0", b"second"))
    codec.meta[b"first"] = []
    codec.meta[b"second"] = [ContractMetaEntry("source_repo", "https://example.org/t")]
    deploy_contract(ledger, codec, TOKEN_ID, code=code)
    assert await build_check(queries, codec, attestations).run(TOKEN_ID, START) is True


def meta_section(*pairs: tuple[str, str]) -> bytes:
    x = stellar_xdr
    return b"".join(
        x.SCMetaEntry(
            kind=x.SCMetaKind.SC_META_V0, v0=x.SCMetaV0(key=k.encode(), val=v.encode()),
        ).to_xdr_bytes()
        for k, v in pairs
    )


def store_xdr_contract(ledger: MockLedger, contract_id: str, code: bytes) -> str:
    """Put real instance and code entries on the ledger; return the wasm hash."""
    x = stellar_xdr
    backend = StellarXdrBackend()
    wasm_hash = wasm_hash_of(code)
    instance = x.LedgerEntryData(
        type=x.LedgerEntryType.CONTRACT_DATA,
        contract_data=x.ContractDataEntry(
            ext=x.ExtensionPoint(0),
            contract=Address(contract_id).to_xdr_sc_address(),
            key=x.SCVal(x.SCValType.SCV_LEDGER_KEY_CONTRACT_INSTANCE),
            durability=x.ContractDataDurability.PERSISTENT,
            val=x.SCVal(
                x.SCValType.SCV_CONTRACT_INSTANCE,
                instance=x.SCContractInstance(
                    executable=x.ContractExecutable(
                        x.ContractExecutableType.CONTRACT_EXECUTABLE_WASM,
                        wasm_hash=x.Hash(bytes.fromhex(wasm_hash)),
                    ),
                    storage=None,
                ),
            ),
        ),
    )
    code_entry = x.LedgerEntryData(
        type=x.LedgerEntryType.CONTRACT_CODE,
        contract_code=x.ContractCodeEntry(
            ext=x.ContractCodeEntryExt(0),
            hash=x.Hash(bytes.fromhex(wasm_hash)),
            code=code,
        ),
    )
    ledger.entries[backend.encode_key(ContractInstanceKey(contract_id))] = instance.to_xdr()
    ledger.entries[backend.encode_key(ContractCodeKey(wasm_hash))] = code_entry.to_xdr()
    return wasm_hash


async def test_build_attested_through_stellar_xdr(ledger):
    code = make_wasm((
        "contractmetav0",
        meta_section(
            ("rsver", "1.81.0"),
            ("rssdkver", "22.0.0#abc"),
            ("source_repo", "github:acme/token"),
        ),
    ))
    wasm_hash = store_xdr_contract(ledger, TOKEN_ID, code)
    attestations = MockAttestations({("acme/token", wasm_hash)})

    check = BuildVerifiedCheck(LedgerQueries(ledger), XdrLedgerCodec(), attestations, "github:")

    assert await check.run(TOKEN_ID, START) is True
    assert attestations.calls == [("acme/token", wasm_hash)]


# ── Minted ────────────────────────────────────────────────────────


async def test_minted_true_for_two_topic_mint(ledger, codec, fetcher):
    emit_mint(ledger, codec, TOKEN_ID)
    assert await MintedCheck(fetcher, codec).run(TOKEN_ID, START) is True


async def test_minted_true_for_three_topic_mint(ledger, codec, fetcher):
    emit_mint(ledger, codec, TOKEN_ID, with_admin=True)
    assert await MintedCheck(fetcher, codec).run(TOKEN_ID, START) is True


async def test_minted_false_for_other_contract(ledger, codec, fetcher):
    emit_mint(ledger, codec, OTHER_TOKEN_ID)
    assert await MintedCheck(fetcher, codec).run(TOKEN_ID, START) is False


async def test_minted_false_for_mint_before_window(ledger, codec, fetcher):
    emit_mint(ledger, codec, TOKEN_ID)
    ledger.events[0]["ledger"] = START - 1
    assert await MintedCheck(fetcher, codec).run(TOKEN_ID, START) is False


async def test_minted_sends_both_topic_shapes(ledger, codec, fetcher):
    await MintedCheck(fetcher, codec).run(TOKEN_ID, START)
    params = ledger.calls_to("getEvents")[0]
    mint = codec.value_token(ScSymbol("mint"))
    assert params["filters"][0]["contractIds"] == [TOKEN_ID]
    assert params["filters"][0]["topics"] == [[mint, "*"], [mint, "*", "*"]]
    assert params["startLedger"] == START


async def test_minted_false_on_rpc_failure(ledger, codec, fetcher):
    ledger.failures["getEvents"] = TransportError("timeout")
    assert await MintedCheck(fetcher, codec).run(TOKEN_ID, START) is False


# ── Soroswap ──────────────────────────────────────────────────────


async def test_pair_true_when_token_is_token_1(ledger, codec, fetcher):
    emit_new_pair(ledger, codec, OTHER_TOKEN_ID, TOKEN_ID)
    check = SoroswapPairCheck(fetcher, codec, FACTORY_ID)
    assert await check.run(TOKEN_ID, START) is True


async def test_pair_false_for_unrelated_pair(ledger, codec, fetcher):
    emit_new_pair(ledger, codec, OTHER_TOKEN_ID, NATIVE_ID)
    check = SoroswapPairCheck(fetcher, codec, FACTORY_ID)
    assert await check.run(TOKEN_ID, START) is False


async def test_pair_ignores_events_from_other_emitters(ledger, codec, fetcher):
    emit_new_pair(ledger, codec, TOKEN_ID, NATIVE_ID, factory=ROUTER_ID)
    check = SoroswapPairCheck(fetcher, codec, FACTORY_ID)
    assert await check.run(TOKEN_ID, START) is False


async def test_liquidity_true_when_token_is_token_b(ledger, codec, fetcher):
    emit_add_liquidity(ledger, codec, NATIVE_ID, TOKEN_ID)
    check = SoroswapLiquidityCheck(fetcher, codec, ROUTER_ID)
    assert await check.run(TOKEN_ID, START) is True


async def test_liquidity_ignores_swap_events(ledger, codec, fetcher):
    emit_swap(ledger, codec, [TOKEN_ID, NATIVE_ID])
    check = SoroswapLiquidityCheck(fetcher, codec, ROUTER_ID)
    assert await check.run(TOKEN_ID, START) is False


async def test_swap_true_when_token_mid_path(ledger, codec, fetcher):
    emit_swap(ledger, codec, [NATIVE_ID, TOKEN_ID, OTHER_TOKEN_ID])
    check = SoroswapSwapCheck(fetcher, codec, ROUTER_ID)
    assert await check.run(TOKEN_ID, START) is True


async def test_swap_false_when_token_not_in_path(ledger, codec, fetcher):
    emit_swap(ledger, codec, [NATIVE_ID, OTHER_TOKEN_ID])
    check = SoroswapSwapCheck(fetcher, codec, ROUTER_ID)
    assert await check.run(TOKEN_ID, START) is False


async def test_swap_requires_address_not_symbol_match(ledger, codec, fetcher):
    value = token_map(path=ScVec((ScSymbol(TOKEN_ID),)))
    emit_soroswap_event(ledger, codec, ROUTER_ID, "SoroswapRouter", "swap", value)
    check = SoroswapSwapCheck(fetcher, codec, ROUTER_ID)
    assert await check.run(TOKEN_ID, START) is False


async def test_undecodable_event_is_skipped(ledger, codec, fetcher):
    emit_add_liquidity(ledger, codec, TOKEN_ID, NATIVE_ID)
    ledger.events[0]["value"] = "garbage"
    emit_add_liquidity(ledger, codec, NATIVE_ID, TOKEN_ID)
    check = SoroswapLiquidityCheck(fetcher, codec, ROUTER_ID)
    assert await check.run(TOKEN_ID, START) is True


async def test_soroswap_false_on_rpc_failure(ledger, codec, fetcher):
    ledger.failures["getEvents"] = TransportError("boom")
    check = SoroswapPairCheck(fetcher, codec, FACTORY_ID)
    assert await check.run(TOKEN_ID, START) is False


def test_event_entries_accepts_vector_of_pairs():
    value = ScVec((
        ScVec((ScSymbol("token_a"), ScAddress(TOKEN_ID))),
        ScVec((ScSymbol("odd"),)),
        ScInt(3),
    ))
    assert event_entries(value) == [ScMapEntry(ScSymbol("token_a"), ScAddress(TOKEN_ID))]


def test_event_entries_of_scalar_is_empty():
    assert event_entries(ScInt(1)) == []


