"""Tier 3 fixtures: live Stellar testnet checks.

Provides timing infrastructure and the reachability gate. Every test in
this tier is read-only against the public testnet RPC.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx
import pytest

from tests.conftest import RPC_URL, stellar_expert_link


# ── Timing infrastructure ────────────────────────────────────────


@dataclass
class TimingRecord:
    """Single timed operation."""

    operation: str
    duration_s: float
    contract_id: str | None = None
    result: str = ""


@dataclass
class TimingCollector:
    """Accumulates timing records for a single test."""

    records: list[TimingRecord] = field(default_factory=list)

    def add(
        self,
        operation: str,
        duration_s: float,
        contract_id: str | None = None,
        result: str = "",
    ) -> None:
        self.records.append(TimingRecord(operation, duration_s, contract_id, result))

    def to_html(self) -> str:
        """Render as an HTML table for pytest-html."""
        if not self.records:
            return ""
        rows = []
        for r in self.records:
            dur = f"{r.duration_s:.3f}s" if r.duration_s >= 1 else f"{r.duration_s * 1000:.0f}ms"
            contract_cell = stellar_expert_link("contract", r.contract_id) if r.contract_id else "-"
            rows.append(
                f"<tr><td>{r.operation}</td><td>{dur}</td>"
                f"<td>{contract_cell}</td><td>{r.result}</td></tr>"
            )
        return (
            '<table border="1" cellpadding="4" cellspacing="0" '
            'style="border-collapse:collapse;font-family:monospace;font-size:12px;margin:8px 0;">'
            "<tr><th>Operation</th><th>Duration</th><th>Contract</th><th>Result</th></tr>"
            + "".join(rows)
            + "</table>"
        )

    def summary(self) -> str:
        """Plain-text summary for console output."""
        lines = []
        for r in self.records:
            dur = f"{r.duration_s:.3f}s" if r.duration_s >= 1 else f"{r.duration_s * 1000:.0f}ms"
            contract = r.contract_id[:12] + "..." if r.contract_id else "-"
            lines.append(f"  {r.operation:<40} {dur:>8}  contract={contract}  {r.result}")
        return "\n".join(lines)


@asynccontextmanager
async def timed_op(timing: TimingCollector, label: str, contract_id: str | None = None):
    """Async context manager that records duration of the wrapped block.

    Usage:
        async with timed_op(timing, "getFullStatus", NATIVE_ID) as rec:
            status = await aggregator.get_full_status(NATIVE_ID)
            rec["result"] = str(status.to_dict())
    """
    rec: dict = {"result": ""}
    start = time.perf_counter()
    try:
        yield rec
    finally:
        elapsed = time.perf_counter() - start
        timing.add(label, elapsed, contract_id, rec.get("result", ""))


# ── pytest-html hook: inject timing tables into report ───────────


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        timing: TimingCollector | None = getattr(item, "_timing", None)
        if timing and timing.records:
            from pytest_html.extras import html as html_extra
            extra = getattr(report, "extras", [])
            extra.append(html_extra(timing.to_html()))
            report.extras = extra


# ── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def testnet_reachable():
    """Gate: skip all tier3 tests if Stellar testnet RPC is unreachable."""
    try:
        r = httpx.post(
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "method": "getHealth"},
            timeout=10,
        )
        data = r.json()
        if data.get("result", {}).get("status") == "healthy":
            return True
        pytest.skip(f"Stellar testnet RPC not healthy: {data}")
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        pytest.skip(f"Stellar testnet RPC unreachable: {exc}")


@pytest.fixture
def timing(request):
    """Per-test TimingCollector. Attaches to the test item for report hook."""
    tc = TimingCollector()
    request.node._timing = tc
    yield tc
    if tc.records:
        print(f"\n--- Timing: {request.node.name} ---")
        print(tc.summary())
