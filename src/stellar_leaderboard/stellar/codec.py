"""Ledger codec: tagged ledger models <-> base64 XDR via stellar_sdk."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, TypeVar

from stellar_leaderboard.errors import CodecError
from stellar_leaderboard.interfaces.codec import XdrBackend
from stellar_leaderboard.models.ledger import (
    ContractCodeEntry,
    ContractCodeKey,
    ContractInstanceEntry,
    ContractInstanceKey,
    ContractMetaEntry,
    LedgerEntryData,
    LedgerKey,
    ScAddress,
    ScBool,
    ScBytes,
    ScInt,
    ScMap,
    ScMapEntry,
    ScOther,
    ScString,
    ScSymbol,
    ScVal,
    ScVec,
    ScVoid,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


def _text(raw: bytes | str) -> str:
    """XDR strings come back from stellar_sdk as bytes."""
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return str(raw)


class StellarXdrBackend:
    """XDR capability backed by the ``stellar_sdk`` generated XDR classes.

    stellar_sdk is imported on construction so the (heavy) import happens
    on first codec use rather than at process start.
    """

    def __init__(self) -> None:
        from stellar_sdk import Address, scval
        from stellar_sdk import xdr as stellar_xdr
        from xdrlib3 import Unpacker

        self._Address = Address
        self._Unpacker = Unpacker
        self._scval = scval
        self._xdr = stellar_xdr

    # ── Ledger keys ────────────────────────────────────────

    def encode_key(self, key: LedgerKey) -> str:
        x = self._xdr
        if isinstance(key, ContractInstanceKey):
            if key.durability != "persistent":
                raise CodecError(f"contract instances are persistent, not {key.durability}")
            ledger_key = x.LedgerKey(
                type=x.LedgerEntryType.CONTRACT_DATA,
                contract_data=x.LedgerKeyContractData(
                    contract=self._Address(key.contract_id).to_xdr_sc_address(),
                    key=x.SCVal(x.SCValType.SCV_LEDGER_KEY_CONTRACT_INSTANCE),
                    durability=x.ContractDataDurability.PERSISTENT,
                ),
            )
        elif isinstance(key, ContractCodeKey):
            ledger_key = x.LedgerKey(
                type=x.LedgerEntryType.CONTRACT_CODE,
                contract_code=x.LedgerKeyContractCode(hash=x.Hash(bytes.fromhex(key.wasm_hash))),
            )
        else:
            raise CodecError(f"unsupported ledger key: {type(key).__name__}")
        return ledger_key.to_xdr()

    # ── Ledger entries ─────────────────────────────────────

    def decode_entry(self, data: str) -> LedgerEntryData:
        x = self._xdr
        entry = x.LedgerEntryData.from_xdr(data)

        if entry.type == x.LedgerEntryType.CONTRACT_DATA:
            contract_data = entry.contract_data
            val = contract_data.val
            if val.type != x.SCValType.SCV_CONTRACT_INSTANCE:
                raise CodecError(f"contract data entry is not an instance ({val.type.name})")
            contract_id = self._Address.from_xdr_sc_address(contract_data.contract).address
            executable = val.instance.executable
            wasm_hash = None
            if executable.type == x.ContractExecutableType.CONTRACT_EXECUTABLE_WASM:
                wasm_hash = executable.wasm_hash.hash.hex()
            return ContractInstanceEntry(contract_id=contract_id, wasm_hash=wasm_hash)

        if entry.type == x.LedgerEntryType.CONTRACT_CODE:
            code_entry = entry.contract_code
            return ContractCodeEntry(
                wasm_hash=code_entry.hash.hash.hex(),
                code=bytes(code_entry.code),
            )

        raise CodecError(f"unsupported ledger entry type: {entry.type.name}")

    # ── Contract metadata ──────────────────────────────────

    def decode_meta_stream(self, data: bytes) -> list[ContractMetaEntry]:
        """Decode back-to-back ``SCMetaEntry`` values from one unpacker."""
        x = self._xdr
        unpacker = self._Unpacker(data)
        entries: list[ContractMetaEntry] = []
        while unpacker.get_position() < len(data):
            entry = x.SCMetaEntry.unpack(unpacker)
            if entry.kind == x.SCMetaKind.SC_META_V0:
                entries.append(ContractMetaEntry(key=_text(entry.v0.key), val=_text(entry.v0.val)))
        return entries

    # ── Contract values ────────────────────────────────────

    def encode_value(self, value: ScVal) -> str:
        return self._to_scval(value).to_xdr()

    def decode_value(self, data: str) -> ScVal:
        return self._from_scval(self._xdr.SCVal.from_xdr(data))

    def _to_scval(self, value: ScVal) -> Any:
        s = self._scval
        x = self._xdr
        if isinstance(value, ScSymbol):
            return s.to_symbol(value.value)
        if isinstance(value, ScString):
            return s.to_string(value.value)
        if isinstance(value, ScAddress):
            return s.to_address(value.value)
        if isinstance(value, ScBytes):
            return s.to_bytes(value.value)
        if isinstance(value, ScBool):
            return s.to_bool(value.value)
        if isinstance(value, ScVoid):
            return s.to_void()
        if isinstance(value, ScInt):
            encoders = {
                "u32": s.to_uint32, "i32": s.to_int32,
                "u64": s.to_uint64, "i64": s.to_int64,
                "u128": s.to_uint128, "i128": s.to_int128,
            }
            if value.kind not in encoders:
                raise CodecError(f"unsupported integer kind: {value.kind}")
            return encoders[value.kind](value.value)
        if isinstance(value, ScVec):
            return s.to_vec([self._to_scval(item) for item in value.items])
        if isinstance(value, ScMap):
            return x.SCVal(
                x.SCValType.SCV_MAP,
                map=x.SCMap([
                    x.SCMapEntry(key=self._to_scval(e.key), val=self._to_scval(e.val))
                    for e in value.entries
                ]),
            )
        raise CodecError(f"cannot encode {type(value).__name__}")

    def _from_scval(self, val: Any) -> ScVal:
        s = self._scval
        T_ = self._xdr.SCValType
        t = val.type
        if t == T_.SCV_SYMBOL:
            return ScSymbol(_text(s.from_symbol(val)))
        if t == T_.SCV_STRING:
            return ScString(_text(s.from_string(val)))
        if t == T_.SCV_ADDRESS:
            return ScAddress(s.from_address(val).address)
        if t == T_.SCV_BYTES:
            return ScBytes(bytes(s.from_bytes(val)))
        if t == T_.SCV_BOOL:
            return ScBool(s.from_bool(val))
        if t == T_.SCV_VOID:
            return ScVoid()
        int_decoders = {
            T_.SCV_U32: ("u32", s.from_uint32), T_.SCV_I32: ("i32", s.from_int32),
            T_.SCV_U64: ("u64", s.from_uint64), T_.SCV_I64: ("i64", s.from_int64),
            T_.SCV_U128: ("u128", s.from_uint128), T_.SCV_I128: ("i128", s.from_int128),
        }
        if t in int_decoders:
            kind, decode = int_decoders[t]
            return ScInt(int(decode(val)), kind)
        if t == T_.SCV_VEC:
            items = val.vec.sc_vec if val.vec is not None else []
            return ScVec(tuple(self._from_scval(item) for item in items))
        if t == T_.SCV_MAP:
            entries = val.map.sc_map if val.map is not None else []
            return ScMap(tuple(
                ScMapEntry(self._from_scval(e.key), self._from_scval(e.val)) for e in entries
            ))
        return ScOther(t.name)


class XdrLedgerCodec:
    """Async codec adapter used by the evidence checks.

    The backend is created lazily on first use, in a worker thread, and
    memoized. Concurrent first callers await the same pending
    initialization; a failed initialization is forgotten so the next call
    tries again. Every failure surfaces as CodecError.
    """

    def __init__(self, backend_factory: Callable[[], XdrBackend] = StellarXdrBackend) -> None:
        self._factory = backend_factory
        self._backend: XdrBackend | None = None
        self._pending: asyncio.Future | None = None

    @property
    def initialized(self) -> bool:
        return self._backend is not None

    async def _ready(self) -> XdrBackend:
        if self._backend is not None:
            return self._backend
        if self._pending is None:
            log.debug("Initializing XDR codec backend")
            self._pending = asyncio.ensure_future(asyncio.to_thread(self._factory))
        pending = self._pending
        try:
            backend = await asyncio.shield(pending)
        except Exception as exc:
            if self._pending is pending:
                self._pending = None
            raise CodecError(f"XDR codec not available: {exc}") from exc
        self._backend = backend
        return backend

    @staticmethod
    def _translate(what: str, fn: Callable[[Any], T], arg: Any) -> T:
        try:
            return fn(arg)
        except CodecError:
            raise
        except Exception as exc:
            raise CodecError(f"{what}: {type(exc).__name__}: {exc}") from exc

    async def encode_key(self, key: LedgerKey) -> str:
        backend = await self._ready()
        return self._translate("encode LedgerKey", backend.encode_key, key)

    async def encode_value(self, value: ScVal) -> str:
        backend = await self._ready()
        return self._translate("encode ScVal", backend.encode_value, value)

    async def decode_entry(self, data: str) -> LedgerEntryData:
        backend = await self._ready()
        return self._translate("decode LedgerEntryData", backend.decode_entry, data)

    async def decode_event_value(self, data: str) -> ScVal:
        backend = await self._ready()
        return self._translate("decode ScVal", backend.decode_value, data)

    async def decode_meta_stream(self, data: bytes) -> list[ContractMetaEntry]:
        backend = await self._ready()
        return self._translate("decode SCMetaEntry stream", backend.decode_meta_stream, data)
