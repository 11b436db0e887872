"""Attestation lookup proxy: GitHub attestations API behind a shared cache."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from aiohttp import web

from stellar_leaderboard.attestation.cache import AttestationCache
from stellar_leaderboard.errors import TransportError
from stellar_leaderboard.models.records import AttestationCacheEntry

log = logging.getLogger(__name__)

# Not meaningful once httpx has decoded and re-framed the body
_DROPPED_HEADERS = frozenset({
    "connection", "keep-alive", "proxy-authenticate", "proxy-authorization",
    "te", "trailers", "transfer-encoding", "upgrade",
    "content-encoding", "content-length",
})


class GitHubAttestationUpstream:
    """Fetches ``/repos/{repo}/attestations/sha256:{hash}`` from GitHub."""

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: str = "",
        timeout: float = 15,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def url_for(self, repo: str, wasm_hash: str) -> str:
        return f"{self._base_url}/repos/{quote(repo, safe='/')}/attestations/sha256:{quote(wasm_hash)}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, stored_at: float = 0.0) -> AttestationCacheEntry:
        """GET the upstream URL. Any HTTP status is a result; only
        transport failures raise (TransportError)."""
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            resp = await self._get_client().get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"attestation upstream: {type(exc).__name__}: {exc}",
                                 details={"url": url}) from exc

        log.info("Attestation upstream %s -> HTTP %d", url, resp.status_code)
        kept = tuple(
            (k, v) for k, v in resp.headers.multi_items() if k.lower() not in _DROPPED_HEADERS
        )
        return AttestationCacheEntry(
            url=url,
            body=resp.content,
            status=resp.status_code,
            headers=kept,
            stored_at=stored_at,
        )


class AttestationProxy:
    """Serves ``GET /attestation?repo=R&hash=H`` from the cache or upstream."""

    def __init__(self, cache: AttestationCache, upstream: GitHubAttestationUpstream) -> None:
        self._cache = cache
        self._upstream = upstream

    @property
    def cache(self) -> AttestationCache:
        return self._cache

    async def close(self) -> None:
        await self._upstream.close()

    async def lookup(self, repo: str, wasm_hash: str) -> tuple[AttestationCacheEntry, bool]:
        """Return (entry, served_from_cache). Raises TransportError."""
        url = self._upstream.url_for(repo, wasm_hash)
        log.debug("Attestation lookup repo=%s hash=%s url=%s", repo, wasm_hash, url)
        return await self._cache.get_or_fetch(
            url, lambda: self._upstream.fetch(url, stored_at=self._cache.now()),
        )

    async def exists(self, repo: str, wasm_hash: str) -> bool:
        """In-process AttestationLookup: True iff the cached answer is 200."""
        entry, _ = await self.lookup(repo, wasm_hash)
        return entry.status == 200

    async def handle(self, request: web.Request) -> web.Response:
        repo = request.query.get("repo", "").strip()
        wasm_hash = request.query.get("hash", "").strip()
        if not repo or not wasm_hash:
            return web.json_response(
                {"error": "both 'repo' and 'hash' query parameters are required"}, status=400,
            )

        try:
            entry, cached = await self.lookup(repo, wasm_hash)
        except TransportError as exc:
            log.warning("Attestation upstream failed for %s@%s: %s", repo, wasm_hash[:12], exc)
            return web.json_response({"error": str(exc)}, status=502)

        log.info("Attestation %s@%s -> %d (%s)", repo, wasm_hash[:12], entry.status,
                 "cached" if cached else "upstream")
        return web.Response(body=entry.body, status=entry.status, headers=list(entry.headers))
