"""rainbird-neo4j: a thin client for Neo4j's transactional Cypher HTTP endpoint."""

__version__ = "0.3.0"

from rainbird_neo4j.arguments import CALL_SHAPES, CallShape, ParsedArguments, parse
from rainbird_neo4j.client import AsyncNeo4j, Neo4j
from rainbird_neo4j.exceptions import (
    MalformedResponseError,
    Neo4jClientError,
    ServerQueryError,
    SubstitutionError,
    TransportError,
    UsageError,
)
from rainbird_neo4j.results import TransactionInfo, extract_transaction_id, map_results
from rainbird_neo4j.statements import Statement, compose, compose_statement, escape

__all__ = [
    "CALL_SHAPES",
    "AsyncNeo4j",
    "CallShape",
    "MalformedResponseError",
    "Neo4j",
    "Neo4jClientError",
    "ParsedArguments",
    "ServerQueryError",
    "Statement",
    "SubstitutionError",
    "TransactionInfo",
    "TransportError",
    "UsageError",
    "compose",
    "compose_statement",
    "escape",
    "extract_transaction_id",
    "map_results",
    "parse",
]
