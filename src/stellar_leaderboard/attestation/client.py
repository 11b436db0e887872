"""HTTP client for a remote attestation proxy."""

from __future__ import annotations

import logging

import httpx

from stellar_leaderboard.errors import TransportError

log = logging.getLogger(__name__)


class ProxyAttestationClient:
    """AttestationLookup backed by ``GET {proxy_url}/attestation``."""

    def __init__(
        self,
        proxy_url: str,
        timeout: float = 15,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._proxy_url = proxy_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def exists(self, repo: str, wasm_hash: str) -> bool:
        url = f"{self._proxy_url}/attestation"
        try:
            resp = await self._get_client().get(url, params={"repo": repo, "hash": wasm_hash})
        except httpx.HTTPError as exc:
            raise TransportError(f"attestation proxy: {type(exc).__name__}: {exc}",
                                 details={"url": url}) from exc
        log.debug("Attestation proxy %s@%s -> HTTP %d", repo, wasm_hash[:12], resp.status_code)
        return resp.status_code == 200
