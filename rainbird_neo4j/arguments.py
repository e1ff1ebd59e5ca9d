"""Normalise the variadic call signatures of the query-shaped operations.

``query``, ``begin`` and ``commit`` all accept::

    ([transaction_id,] [payload, [substitutions,] [parameters,]] callback)

where *payload* is a query string, a list of query lines, or a list of
pre-built statements. Every accepted combination is listed in
:data:`CALL_SHAPES`; anything else is a :class:`UsageError`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError

from rainbird_neo4j.exceptions import Neo4jClientError, UsageError
from rainbird_neo4j.statements import Statement, compose_statement, resolve_mappings

Callback = Callable[..., Any]


class PayloadKind(str, Enum):
    NONE = "none"
    STRING = "string"
    ARRAY = "array"
    STATEMENTS = "statements"


@dataclass(frozen=True)
class CallShape:
    """One accepted positional layout of a query-shaped call."""

    transaction: bool
    payload: PayloadKind
    mappings: int = 0

    @property
    def signature(self) -> str:
        parts: list[str] = []
        if self.transaction:
            parts.append("transactionID")
        if self.payload is not PayloadKind.NONE:
            parts.append(self.payload.value)
        if self.mappings == 2:
            parts.append("substitutions")
        if self.mappings >= 1:
            parts.append("parameters")
        parts.append("callback")
        return "(" + ", ".join(parts) + ")"


CALL_SHAPES: tuple[CallShape, ...] = tuple(
    [CallShape(transaction=tx, payload=PayloadKind.NONE) for tx in (False, True)]
    + [CallShape(transaction=tx, payload=PayloadKind.STATEMENTS) for tx in (False, True)]
    + [
        CallShape(transaction=tx, payload=kind, mappings=n)
        for tx in (False, True)
        for kind in (PayloadKind.STRING, PayloadKind.ARRAY)
        for n in (0, 1, 2)
    ]
)


@dataclass
class ParsedArguments:
    """Result of :func:`parse`: what to send, and who to tell."""

    callback: Callback
    transaction_id: int | None = None
    statements: list[Statement] = field(default_factory=list)
    shape: CallShape | None = None
    error: Neo4jClientError | None = None


def is_transaction_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_statement_like(value: Any) -> bool:
    return isinstance(value, Statement) or (isinstance(value, Mapping) and "statement" in value)


def _classify_payload(payload: Any) -> PayloadKind:
    if isinstance(payload, str):
        return PayloadKind.STRING
    if isinstance(payload, Statement):
        return PayloadKind.STATEMENTS
    if isinstance(payload, (list, tuple)):
        statement_like = [_is_statement_like(item) for item in payload]
        if all(statement_like):
            return PayloadKind.STATEMENTS
        if any(statement_like):
            raise UsageError("Cannot mix statement objects and query lines in one list")
        return PayloadKind.ARRAY
    raise UsageError(f"Expected a query string, list or statements, got {type(payload).__name__}")


def _prebuilt_statements(payload: Any) -> list[Statement]:
    items = [payload] if isinstance(payload, Statement) else list(payload)
    try:
        return [
            item if isinstance(item, Statement) else Statement.model_validate(item)
            for item in items
        ]
    except ValidationError as exc:
        raise UsageError(f"Invalid statement object: {exc}") from exc


def parse(args: Sequence[Any]) -> ParsedArguments:
    """Disambiguate the positional arguments of a query-shaped call.

    Raises :class:`UsageError` only when there is no callback to report
    to; every other failure is returned in ``error`` with no statements.
    """
    remaining = list(args)
    transaction_id: int | None = None
    # A leading None is an explicit "no transaction", e.g. commit(None, ...)
    if remaining and (remaining[0] is None or is_transaction_id(remaining[0])):
        transaction_id = remaining.pop(0)

    if not remaining or not callable(remaining[-1]):
        raise UsageError("The last argument must be a callback")
    parsed = ParsedArguments(callback=remaining.pop(), transaction_id=transaction_id)

    try:
        kind = _classify_payload(remaining[0]) if remaining else PayloadKind.NONE
        mappings = remaining[1:]
        shape = CallShape(
            transaction=transaction_id is not None, payload=kind, mappings=len(mappings)
        )
        if shape not in CALL_SHAPES:
            raise UsageError(f"Unsupported call signature {shape.signature}")

        if kind is PayloadKind.NONE:
            statements: list[Statement] = []
        elif kind is PayloadKind.STATEMENTS:
            statements = _prebuilt_statements(remaining[0])
        else:
            substitutions, parameters = resolve_mappings(mappings)
            statements = [compose_statement(remaining[0], substitutions, parameters)]
    except Neo4jClientError as exc:
        parsed.error = exc
        return parsed

    parsed.shape = shape
    parsed.statements = statements
    return parsed
