"""Thin wrapper around Neo4j's transactional Cypher HTTP endpoint.

Every query-shaped operation takes its arguments in one of the layouts
listed in :data:`rainbird_neo4j.arguments.CALL_SHAPES` and reports back
through a callback ``callback(error, results, info)``. The callback's
return value is returned to the caller::

    db = Neo4j("http://localhost:7474")
    db.query("MATCH (n:${label}) RETURN n", {"label": "Person"}, {}, on_done)
    db.begin("CREATE (n {id: $id})", {"id": 1}, on_begin)
    db.commit(info.transaction_id, on_commit)

Errors are never raised from these operations; they arrive as the
callback's first argument. Calls without a transaction ID are sent to
``.../commit`` so a list of statements succeeds or fails as a whole.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from rainbird_neo4j.arguments import Callback, is_transaction_id, parse
from rainbird_neo4j.core import config
from rainbird_neo4j.exceptions import (
    EncodingError,
    Neo4jClientError,
    TransportError,
    UsageError,
)
from rainbird_neo4j.results import TransactionInfo, parse_results

log = structlog.get_logger("rainbird_neo4j.client")

TRANSACTION_PATH = "db/data/transaction/"

_HEADERS = {
    "Accept": "application/json; charset=UTF-8",
    "Content-Type": "application/json",
}


def transaction_base_uri(uri: str) -> str:
    """Return *uri* ending in exactly one ``/db/data/transaction/``."""
    if uri.endswith("/" + TRANSACTION_PATH):
        return uri
    if uri.endswith("/" + TRANSACTION_PATH.rstrip("/")):
        return uri + "/"
    if not uri.endswith("/"):
        uri += "/"
    return uri + TRANSACTION_PATH


@dataclass
class _Request:
    """A planned call to the endpoint, or the error that prevents it."""

    callback: Callback
    info: TransactionInfo
    method: str = "POST"
    uri: str = ""
    error: Neo4jClientError | None = None

    def encode(self) -> bytes | None:
        """Return the JSON request body; DELETE requests have none."""
        if self.method != "POST":
            return None
        payload = {"statements": [s.to_wire() for s in self.info.statements]}
        try:
            return json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"Cannot encode statement parameters as JSON: {exc}") from exc


def _require_callback(callback: Any) -> None:
    if not callable(callback):
        raise UsageError("The last argument must be a callback")


def _transport_error(exc: httpx.HTTPError) -> TransportError:
    error = TransportError(f"Neo4j request failed: {exc}", original=exc)
    error.__cause__ = exc
    return error


class _TransactionEndpoint:
    """URI handling and request planning shared by the sync and async clients."""

    def __init__(self, uri: str | None = None) -> None:
        self.base_transaction_uri = transaction_base_uri(uri or config.neo4j_uri())
        try:
            httpx.URL(self.base_transaction_uri)
        except httpx.InvalidURL as exc:
            raise UsageError(f"Invalid Neo4j URI {uri!r}: {exc}") from exc

    def _plan(self, args: Sequence[Any]) -> tuple[_Request, int | None]:
        parsed = parse(args)
        request = _Request(
            callback=parsed.callback,
            info=TransactionInfo(statements=parsed.statements),
            error=parsed.error,
        )
        return request, parsed.transaction_id

    def _plan_query(self, args: Sequence[Any]) -> _Request:
        request, transaction_id = self._plan(args)
        if transaction_id is None:
            request.uri = self.base_transaction_uri + "commit"
        else:
            request.uri = f"{self.base_transaction_uri}{transaction_id}"
        return request

    def _plan_begin(self, args: Sequence[Any]) -> _Request:
        request, transaction_id = self._plan(args)
        if request.error is None and transaction_id is not None:
            request.error = UsageError("begin does not take a transaction ID")
        request.uri = self.base_transaction_uri
        return request

    def _plan_commit(self, args: Sequence[Any]) -> _Request:
        request, transaction_id = self._plan(args)
        if request.error is None and transaction_id is None:
            request.error = UsageError("No transaction ID supplied to commit")
        request.uri = f"{self.base_transaction_uri}{transaction_id}/commit"
        return request

    def _plan_rollback(self, transaction_id: Any, callback: Callback) -> _Request:
        _require_callback(callback)
        request = _Request(
            callback=callback,
            info=TransactionInfo(
                transaction_id=transaction_id if is_transaction_id(transaction_id) else None
            ),
            method="DELETE",
            uri=f"{self.base_transaction_uri}{transaction_id}",
        )
        if not is_transaction_id(transaction_id):
            request.error = UsageError("No transaction ID supplied to rollback")
        return request

    @staticmethod
    def _reset_timeout_error(transaction_id: Any, callback: Callback) -> UsageError | None:
        _require_callback(callback)
        if is_transaction_id(transaction_id):
            return None
        return UsageError("No transaction ID supplied to reset timeout")

    @staticmethod
    def _encode(request: _Request) -> bytes | None:
        try:
            return request.encode()
        except EncodingError as exc:
            request.error = exc
            return None

    @staticmethod
    def _log_request(request: _Request) -> None:
        log.debug(
            "neo4j.request",
            method=request.method,
            uri=request.uri,
            statements=len(request.info.statements),
        )


class Neo4j(_TransactionEndpoint):
    """Blocking client over :class:`httpx.Client`.

    Pass *http_client* to share a configured client; it is then left open
    by :meth:`close`.
    """

    def __init__(
        self,
        uri: str | None = None,
        *,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(uri)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=timeout if timeout is not None else config.request_timeout()
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Neo4j:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── public ─────────────────────────────────────────────────────────────

    def query(self, *args: Any) -> Any:
        """Run statements, inside a transaction when an ID leads the arguments."""
        return self._send(self._plan_query(args))

    def begin(self, *args: Any) -> Any:
        """Open a transaction, optionally running statements in it.

        The new transaction's ID is reported in ``info.transaction_id``.
        """
        return self._send(self._plan_begin(args))

    def commit(self, *args: Any) -> Any:
        """Commit a transaction, optionally running statements first."""
        return self._send(self._plan_commit(args))

    def rollback(self, transaction_id: int, callback: Callback) -> Any:
        return self._send(self._plan_rollback(transaction_id, callback))

    def reset_timeout(self, transaction_id: int, callback: Callback) -> Any:
        """Keep a transaction open by sending it an empty statement list."""
        error = self._reset_timeout_error(transaction_id, callback)
        if error is not None:
            return callback(error, [], TransactionInfo())
        return self.query(transaction_id, callback)

    # ── internal ───────────────────────────────────────────────────────────

    def _send(self, request: _Request) -> Any:
        content = self._encode(request) if request.error is None else None
        if request.error is not None:
            return request.callback(request.error, [], request.info)

        self._log_request(request)
        try:
            response = self._client.request(
                request.method, request.uri, content=content, headers=_HEADERS
            )
        except httpx.HTTPError as exc:
            return parse_results(_transport_error(exc), None, request.info, request.callback)
        return parse_results(None, response, request.info, request.callback)


class AsyncNeo4j(_TransactionEndpoint):
    """Async client over :class:`httpx.AsyncClient`.

    Operations are awaitable; a callback may be a plain function or a
    coroutine function.
    """

    def __init__(
        self,
        uri: str | None = None,
        *,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(uri)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else config.request_timeout()
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncNeo4j:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def query(self, *args: Any) -> Any:
        return await self._send(self._plan_query(args))

    async def begin(self, *args: Any) -> Any:
        return await self._send(self._plan_begin(args))

    async def commit(self, *args: Any) -> Any:
        return await self._send(self._plan_commit(args))

    async def rollback(self, transaction_id: int, callback: Callback) -> Any:
        return await self._send(self._plan_rollback(transaction_id, callback))

    async def reset_timeout(self, transaction_id: int, callback: Callback) -> Any:
        error = self._reset_timeout_error(transaction_id, callback)
        if error is not None:
            return await _resolve(callback(error, [], TransactionInfo()))
        return await self.query(transaction_id, callback)

    # ── internal ───────────────────────────────────────────────────────────

    async def _send(self, request: _Request) -> Any:
        content = self._encode(request) if request.error is None else None
        if request.error is not None:
            return await _resolve(request.callback(request.error, [], request.info))

        self._log_request(request)
        try:
            response = await self._client.request(
                request.method, request.uri, content=content, headers=_HEADERS
            )
        except httpx.HTTPError as exc:
            return await _resolve(
                parse_results(_transport_error(exc), None, request.info, request.callback)
            )
        return await _resolve(parse_results(None, response, request.info, request.callback))


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result
