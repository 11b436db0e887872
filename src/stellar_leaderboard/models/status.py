"""Consolidated per-contract status record."""

from __future__ import annotations

from dataclasses import dataclass, fields

# Field name -> key used by JSON consumers (the browser leaderboard)
_JSON_KEYS = {
    "deployed": "deployed",
    "build_verified": "buildVerified",
    "minted": "minted",
    "soroswap_pair": "soroswapPair",
    "soroswap_liquidity": "soroswapLiquidity",
    "soroswap_swapped": "soroswapSwapped",
}


@dataclass(frozen=True)
class ContractStatus:
    """The six evidence facts for one contract.

    Built fresh on every aggregation run. Unresolved facts are False.
    """

    deployed: bool = False
    build_verified: bool = False
    minted: bool = False
    soroswap_pair: bool = False
    soroswap_liquidity: bool = False
    soroswap_swapped: bool = False

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> dict[str, bool]:
        return {_JSON_KEYS[name]: getattr(self, name) for name in self.field_names()}

    @classmethod
    def from_dict(cls, data: dict) -> "ContractStatus":
        """Accepts either snake_case field names or the camelCase JSON keys."""
        values = {}
        for name, key in _JSON_KEYS.items():
            raw = data.get(key, data.get(name, False))
            values[name] = bool(raw)
        return cls(**values)
