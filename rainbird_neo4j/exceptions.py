"""Custom exceptions for the Neo4j transactional HTTP client."""

from __future__ import annotations

from typing import Any


class Neo4jClientError(Exception):
    """Base exception for all client errors."""


class UsageError(Neo4jClientError):
    """Raised when an operation is called with arguments it cannot accept."""


class SubstitutionError(Neo4jClientError):
    """Raised when a template placeholder has no matching substitution."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        names = ", ".join(f"${{{name}}}" for name in missing)
        super().__init__(f"No substitution defined for {names}")


class TransportError(Neo4jClientError):
    """Raised when the HTTP call itself failed and no response was received."""

    def __init__(self, message: str, original: BaseException | None = None):
        self.original = original
        super().__init__(message)


class MalformedResponseError(Neo4jClientError):
    """Raised when a response has no body or an unrecognised commit location."""


class ServerQueryError(Neo4jClientError):
    """Raised when Neo4j ran the request but reported query errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]]):
        self.errors = errors
        super().__init__(message)


class EncodingError(UsageError):
    """Raised when statement parameters cannot be encoded as JSON."""
