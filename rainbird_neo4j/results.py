"""Interpret transactional endpoint responses and reshape their results.

Neo4j returns one ``{"columns": [...], "data": [{"row": [...]}, ...]}``
entry per statement. Callers get a list per statement instead, holding one
dict per row keyed by column name::

    [[{"n": {...}, "count": 3}, ...], ...]
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from rainbird_neo4j.exceptions import (
    MalformedResponseError,
    Neo4jClientError,
    ServerQueryError,
    TransportError,
)
from rainbird_neo4j.statements import Statement

log = structlog.get_logger("rainbird_neo4j.results")

# ".../db/data/transaction/42/commit" — location of an open transaction
COMMIT_URI_PATTERN = re.compile(r"/db/data/transaction/(\d+)/commit")

MappedResults = list[list[dict[str, Any]]]


@dataclass
class TransactionInfo:
    """Per-call metadata handed to every callback alongside the results."""

    statements: list[Statement] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    transaction_id: int | None = None
    timeout: str | None = None


class _MalformedResults(Exception):
    """Internal signal that a results payload does not have the expected shape."""


def extract_transaction_id(commit_uri: str) -> int | None:
    """Return the transaction id embedded in a commit URI, if any."""
    match = COMMIT_URI_PATTERN.search(commit_uri)
    return int(match.group(1)) if match else None


def _map_result(result: Any) -> list[dict[str, Any]]:
    if not isinstance(result, dict):
        raise _MalformedResults("result is not an object")
    columns = result.get("columns")
    data = result.get("data")
    if not isinstance(columns, list) or not isinstance(data, list):
        raise _MalformedResults("result has no columns/data lists")
    if not all(isinstance(column, str) for column in columns):
        raise _MalformedResults("column names must be strings")

    rows: list[dict[str, Any]] = []
    for entry in data:
        if not isinstance(entry, dict) or not isinstance(entry.get("row"), list):
            raise _MalformedResults("data entry has no row list")
        # Extra cells or extra columns are dropped: zip stops at the shorter.
        rows.append(dict(zip(columns, entry["row"])))
    return rows


def map_results(results: Any) -> MappedResults:
    """Reshape raw results into one list of row dicts per statement.

    Never raises: any structural problem yields ``[]`` for the whole
    payload. Cell values are passed through unchanged.
    """
    if not isinstance(results, list):
        log.debug("neo4j.results_malformed", reason="results is not a list")
        return []
    try:
        return [_map_result(result) for result in results]
    except _MalformedResults as exc:
        log.debug("neo4j.results_malformed", reason=str(exc))
        return []


def _response_body(response: httpx.Response | None) -> dict[str, Any] | None:
    if response is None or not response.content:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def parse_results(
    error: Neo4jClientError | None,
    response: httpx.Response | None,
    info: TransactionInfo,
    callback: Callable[..., Any],
) -> Any:
    """Deliver a transactional endpoint response to *callback*.

    The callback always receives ``(error, results, info)``; *results* is
    empty whenever *error* is set. Returns whatever the callback returns.
    """
    if error is not None:
        # No response was received, so there are no server errors to report.
        info.errors = []
        if isinstance(error, TransportError):
            log.warning("neo4j.transport_error", error=str(error))
        return callback(error, [], info)

    body = _response_body(response)
    if body is None:
        log.warning(
            "neo4j.malformed_response",
            reason="no body",
            status=response.status_code if response is not None else None,
        )
        return callback(MalformedResponseError("No body in results"), [], info)

    transaction = body.get("transaction")
    if isinstance(transaction, dict) and "expires" in transaction:
        info.timeout = transaction["expires"]

    commit_uri = body.get("commit")
    if commit_uri:
        info.transaction_id = extract_transaction_id(str(commit_uri))
        if info.transaction_id is None:
            log.warning("neo4j.malformed_response", reason="commit location", commit=commit_uri)
            return callback(
                MalformedResponseError(f"Invalid commit location: {commit_uri}"), [], info
            )

    errors = body.get("errors") or []
    if errors:
        info.errors = errors if isinstance(errors, list) else [errors]
        log.info("neo4j.server_errors", count=len(info.errors))
        return callback(ServerQueryError("Error running query", info.errors), [], info)

    return callback(None, map_results(body.get("results")), info)
