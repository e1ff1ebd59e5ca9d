"""Environment-driven defaults for the client and command line."""

from __future__ import annotations

import os

DEFAULT_URI = "http://localhost:7474"
DEFAULT_TIMEOUT = 30.0


def neo4j_uri() -> str:
    """Base URI of the Neo4j server (``NEO4J_HTTP_URI``)."""
    return os.environ.get("NEO4J_HTTP_URI", DEFAULT_URI)


def request_timeout() -> float:
    """HTTP timeout in seconds (``NEO4J_HTTP_TIMEOUT``).

    Raises ValueError if the variable is set but not a number.
    """
    raw = os.environ.get("NEO4J_HTTP_TIMEOUT")
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"NEO4J_HTTP_TIMEOUT must be a number, got {raw!r}") from None
