"""Exception types for stellar_leaderboard.

Exception Hierarchy:
    LeaderboardError (base)
    ├── TransportError - network/HTTP failure talking to a remote service
    ├── ProtocolError - JSON-RPC error envelope returned by the ledger node
    ├── CodecError - malformed XDR / ledger data, or codec not ready
    ├── NotFoundError - expected ledger entry or metadata absent
    └── WatchListError - invalid or duplicate watch-list operation
"""

from __future__ import annotations

from typing import Any


class LeaderboardError(Exception):
    """Base exception for all stellar_leaderboard errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class TransportError(LeaderboardError):
    """The network or HTTP layer failed, or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class ProtocolError(LeaderboardError):
    """The JSON-RPC response carried an application-level error object."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.code = code


class CodecError(LeaderboardError):
    """Structured ledger data could not be encoded or decoded."""


class NotFoundError(LeaderboardError):
    """An expected ledger entry or metadata item is absent."""


class WatchListError(LeaderboardError):
    """A watch-list operation was rejected (bad address, duplicate, ...)."""
