"""Cypher statements: identifier escaping and template composition."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rainbird_neo4j.exceptions import SubstitutionError, UsageError

# "${label}" — client-side substitution placeholder
PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]+)\}")


class Statement(BaseModel):
    """A Cypher statement paired with its bound parameters.

    On the wire the text is sent under the ``statement`` key, so a
    wire-shaped mapping validates straight into a :class:`Statement`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(alias="statement", min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def _default_parameters(cls, v: Any) -> Any:
        return {} if v is None else v

    def to_wire(self) -> dict[str, Any]:
        return {"statement": self.text, "parameters": self.parameters}


def escape(identifier: str) -> str:
    """Quote *identifier* for use as a Cypher label, type or property name.

    Backticks are doubled and the result wrapped in backticks, so every
    identifier is treated as quoted regardless of its characters.
    """
    return "`" + identifier.replace("`", "``") + "`"


def join_template(template: str | Sequence[Any]) -> str:
    """Return the statement text for a string or a sequence of lines."""
    if isinstance(template, str):
        return template
    if not isinstance(template, (list, tuple)):
        raise UsageError(f"Expected a query string or list of lines, got {type(template).__name__}")
    return "\n".join(str(line) for line in template)


def substitute(text: str, substitutions: Mapping[str, Any] | None = None) -> str:
    """Replace every ``${name}`` in *text* with ``substitutions[name]``.

    Raises :class:`SubstitutionError` naming all missing placeholders;
    keys that no placeholder uses are ignored.
    """
    substitutions = substitutions or {}
    missing: list[str] = []
    for name in PLACEHOLDER_PATTERN.findall(text):
        if name not in substitutions and name not in missing:
            missing.append(name)
    if missing:
        raise SubstitutionError(missing)
    return PLACEHOLDER_PATTERN.sub(lambda m: str(substitutions[m.group(1)]), text)


def compose_statement(
    template: str | Sequence[Any],
    substitutions: Mapping[str, Any] | None = None,
    parameters: Mapping[str, Any] | None = None,
) -> Statement:
    """Build a :class:`Statement` from a template.

    *parameters* are carried alongside the text, never substituted into it.
    """
    text = substitute(join_template(template), substitutions)
    if not text:
        raise UsageError("Statement text must not be empty")
    return Statement(text=text, parameters=dict(parameters or {}))


def resolve_mappings(
    mappings: Sequence[Any],
) -> tuple[Mapping[str, Any] | None, Mapping[str, Any] | None]:
    """Split trailing positional mappings into ``(substitutions, parameters)``.

    A single mapping is taken as parameters; two are substitutions then
    parameters.
    """
    for mapping in mappings:
        if not isinstance(mapping, Mapping):
            raise UsageError(
                f"Expected a substitutions or parameters mapping, got {type(mapping).__name__}"
            )
    if len(mappings) == 0:
        return None, None
    if len(mappings) == 1:
        return None, mappings[0]
    if len(mappings) == 2:
        return mappings[0], mappings[1]
    raise UsageError(f"Expected at most 2 mappings after the query, got {len(mappings)}")


def compose(template: str | Sequence[Any], *args: Any) -> Any:
    """Compose a statement from positional arguments.

    Accepts ``compose(template, [substitutions,] [parameters,] [callback])``.
    With a callback, ``callback(error, statement)`` is invoked and its
    return value returned; without one the :class:`Statement` is returned
    and composition errors are raised.
    """
    callback = args[-1] if args and callable(args[-1]) else None
    mappings = args[:-1] if callback is not None else args
    try:
        substitutions, parameters = resolve_mappings(mappings)
        statement = compose_statement(template, substitutions, parameters)
    except (SubstitutionError, UsageError) as exc:
        if callback is None:
            raise
        return callback(exc, None)
    if callback is None:
        return statement
    return callback(None, statement)
