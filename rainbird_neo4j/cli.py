"""CLI entry point: rainbird-neo4j.

Subcommands:
    rainbird-neo4j query 'MATCH (n:${label}) RETURN n' -s label=Person
    rainbird-neo4j compose 'MATCH (n {id: $id}) RETURN n' -p id=42
    rainbird-neo4j escape 'odd`name'
    rainbird-neo4j rollback 17
"""

from __future__ import annotations

import json
from typing import Any

import click

from rainbird_neo4j.client import Neo4j
from rainbird_neo4j.core.logging import setup_logging
from rainbird_neo4j.exceptions import Neo4jClientError
from rainbird_neo4j.results import TransactionInfo
from rainbird_neo4j.statements import compose_statement, escape


def _make_client(uri: str | None) -> Neo4j:
    return Neo4j(uri)


def _split_pairs(pairs: tuple[str, ...], *, as_json: bool) -> dict[str, Any]:
    """Turn ``name=value`` options into a dict.

    With *as_json*, values are decoded as JSON when they parse and kept as
    strings otherwise, so ``-p id=42`` binds an integer.
    """
    result: dict[str, Any] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got {pair!r}")
        if as_json:
            try:
                result[name] = json.loads(value)
            except ValueError:
                result[name] = value
        else:
            result[name] = value
    return result


def _report(error: Neo4jClientError | None, results: list, info: TransactionInfo) -> None:
    if error is not None:
        for server_error in info.errors:
            click.echo(
                f"{server_error.get('code', 'Neo4jError')}: {server_error.get('message', '')}",
                err=True,
            )
        raise click.ClickException(str(error))
    click.echo(json.dumps(results, indent=2, default=str))


_substitution_option = click.option(
    "-s", "--sub", "subs", multiple=True, help="Template substitution name=value"
)
_parameter_option = click.option(
    "-p", "--param", "params", multiple=True, help="Bound parameter name=json"
)


@click.group()
@click.option("--uri", default=None, help="Neo4j base URI (default: $NEO4J_HTTP_URI)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: $RAINBIRD_NEO4J_LOG_LEVEL or INFO)",
)
@click.option("-v", "--verbose", is_flag=True, help="Shorthand for --log-level DEBUG")
@click.pass_context
def main(ctx: click.Context, uri: str | None, log_level: str | None, verbose: bool) -> None:
    """Run Cypher against Neo4j's transactional HTTP endpoint."""
    setup_logging("DEBUG" if verbose else log_level)
    ctx.obj = {"uri": uri}


@main.command("query")
@_substitution_option
@_parameter_option
@click.argument("text")
@click.pass_context
def query(ctx: click.Context, subs: tuple[str, ...], params: tuple[str, ...], text: str) -> None:
    """Run one statement in its own transaction and print the rows as JSON."""
    substitutions = _split_pairs(subs, as_json=False)
    parameters = _split_pairs(params, as_json=True)
    with _make_client(ctx.obj["uri"]) as db:
        db.query(text, substitutions, parameters, _report)


@main.command("compose")
@_substitution_option
@_parameter_option
@click.argument("text")
def compose_command(subs: tuple[str, ...], params: tuple[str, ...], text: str) -> None:
    """Print the statement that would be sent, without sending it."""
    try:
        statement = compose_statement(
            text, _split_pairs(subs, as_json=False), _split_pairs(params, as_json=True)
        )
    except Neo4jClientError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(statement.to_wire(), indent=2, default=str))


@main.command("escape")
@click.argument("identifier")
def escape_command(identifier: str) -> None:
    """Print IDENTIFIER quoted for use in Cypher."""
    click.echo(escape(identifier))


@main.command("rollback")
@click.argument("transaction_id", type=int)
@click.pass_context
def rollback(ctx: click.Context, transaction_id: int) -> None:
    """Roll back an open transaction."""

    def _done(error: Neo4jClientError | None, results: list, info: TransactionInfo) -> None:
        _report(error, results, info)
        click.echo(f"Rolled back transaction {transaction_id}", err=True)

    with _make_client(ctx.obj["uri"]) as db:
        db.rollback(transaction_id, _done)
