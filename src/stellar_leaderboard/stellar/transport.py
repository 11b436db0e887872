"""JSON-RPC transport for the Soroban RPC node."""

from __future__ import annotations

import itertools
import logging
from typing import Any

import httpx

from stellar_leaderboard.errors import ProtocolError, TransportError

log = logging.getLogger(__name__)


class JsonRpcTransport:
    """Sends single JSON-RPC 2.0 requests over HTTPS POST.

    Transport-level failures (connection errors, timeouts, non-2xx status,
    unparseable bodies) raise TransportError. An ``error`` member in the
    response envelope raises ProtocolError. There are no retries here.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the underlying httpx client if we created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params:
            body["params"] = params

        try:
            resp = await self._get_client().post(self._rpc_url, json=body)
        except httpx.HTTPError as exc:
            log.debug("RPC %s transport failure: %s", method, exc)
            raise TransportError(
                f"{method}: {type(exc).__name__}: {exc}", details={"url": self._rpc_url},
            ) from exc

        if not resp.is_success:
            raise TransportError(
                f"{method}: HTTP {resp.status_code}", status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError(f"{method}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise TransportError(f"{method}: response is not a JSON object")

        if err := data.get("error"):
            if isinstance(err, dict):
                raise ProtocolError(
                    f"RPC error: {err.get('message', 'unknown error')}",
                    code=err.get("code"),
                    details={"method": method},
                )
            raise ProtocolError(f"RPC error: {err}", details={"method": method})

        return data.get("result")
