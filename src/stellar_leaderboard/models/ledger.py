"""Ledger data models: keys, entries, contract values and events.

Keys, entries and values are closed sets of frozen dataclasses. The codec
adapter translates each variant to and from XDR; nothing outside the codec
ever looks at raw XDR.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


# ---------------------------------------------------------------------------
# Contract values (ScVal)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScSymbol:
    value: str


@dataclass(frozen=True)
class ScString:
    value: str


@dataclass(frozen=True)
class ScAddress:
    """An account (G...) or contract (C...) address."""

    value: str


@dataclass(frozen=True)
class ScBytes:
    value: bytes


@dataclass(frozen=True)
class ScBool:
    value: bool


@dataclass(frozen=True)
class ScVoid:
    pass


@dataclass(frozen=True)
class ScInt:
    """Any of the integer kinds; ``kind`` is u32, i32, u64, i64, u128 or i128."""

    value: int
    kind: str = "i128"


@dataclass(frozen=True)
class ScVec:
    items: tuple["ScVal", ...] = ()


@dataclass(frozen=True)
class ScMapEntry:
    key: "ScVal"
    val: "ScVal"


@dataclass(frozen=True)
class ScMap:
    entries: tuple[ScMapEntry, ...] = ()


@dataclass(frozen=True)
class ScOther:
    """A value kind this system decodes but never interprets."""

    type_name: str


ScVal = Union[
    ScSymbol, ScString, ScAddress, ScBytes, ScBool, ScVoid,
    ScInt, ScVec, ScMap, ScOther,
]


# ---------------------------------------------------------------------------
# Ledger keys
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContractInstanceKey:
    """Persistent storage slot holding a deployed contract's instance."""

    contract_id: str
    durability: str = "persistent"


@dataclass(frozen=True)
class ContractCodeKey:
    """Storage slot holding uploaded Wasm code, keyed by its SHA-256."""

    wasm_hash: str  # hex


LedgerKey = Union[ContractInstanceKey, ContractCodeKey]


# ---------------------------------------------------------------------------
# Ledger entry data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContractInstanceEntry:
    contract_id: str
    wasm_hash: str | None  # None for the built-in Stellar asset executable


@dataclass(frozen=True)
class ContractCodeEntry:
    wasm_hash: str  # hex
    code: bytes = field(repr=False)


LedgerEntryData = Union[ContractInstanceEntry, ContractCodeEntry]


@dataclass(frozen=True)
class ContractMetaEntry:
    """One key/value pair from a contract's ``contractmetav0`` section."""

    key: str
    val: str


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContractEvent:
    """A contract event as returned by ``getEvents``.

    Topics and value stay base64 XDR until a check asks the codec for them.
    """

    id: str
    contract_id: str
    topics: tuple[str, ...]
    value: str
    ledger: int
    in_successful_contract_call: bool = True

    @classmethod
    def from_rpc(cls, raw: dict) -> "ContractEvent":
        return cls(
            id=str(raw.get("id", "")),
            contract_id=str(raw.get("contractId", "")),
            topics=tuple(raw.get("topic") or ()),
            value=str(raw.get("value", "")),
            ledger=int(raw.get("ledger", 0)),
            in_successful_contract_call=bool(raw.get("inSuccessfulContractCall", True)),
        )


WILDCARD = "*"


@dataclass(frozen=True)
class EventFilter:
    """A ``getEvents`` contract filter.

    ``topics`` is a list of topic patterns; each pattern is a list of
    base64 XDR ScVals or ``"*"``.
    """

    contract_ids: tuple[str, ...]
    topics: tuple[tuple[str, ...], ...] = ()
    type: str = "contract"

    def to_params(self) -> dict:
        params: dict = {"type": self.type, "contractIds": list(self.contract_ids)}
        if self.topics:
            params["topics"] = [list(pattern) for pattern in self.topics]
        return params
