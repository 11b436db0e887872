"""RpcTransport protocol - one JSON-RPC request to the ledger node."""

from __future__ import annotations

from typing import Any, Protocol


class RpcTransport(Protocol):
    """Sends a single JSON-RPC request. Never retries."""

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Return the ``result`` member, or raise TransportError / ProtocolError."""
        ...
