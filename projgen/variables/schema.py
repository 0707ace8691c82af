"""Typed placeholder definitions parsed from the template manifest.

Each ``[placeholders.<name>]`` table (top-level, or nested inside any number
of ``[conditional.'<expr>']`` tables) becomes one immutable
``PlaceholderDefinition``.  Validation happens here, once, before any file is
touched; every rejection is a ``SchemaError`` with a specific code.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from ..config import TemplateManifest
from ..errors import SchemaError, SchemaErrorCode
from .conditions import ConditionExpr, VisibilityGraph
from .store import Value

RESERVED_NAMES: frozenset[str] = frozenset(
    {"project_name", "package_name", "authors", "os_arch", "is_init"}
)


class VarKind(str, Enum):
    """The two value kinds a placeholder can hold."""

    BOOL = "bool"
    STRING = "string"


def is_reserved(name: str) -> bool:
    """``project-name`` is reserved just like ``project_name``."""
    return name.replace("-", "_") in RESERVED_NAMES


class PlaceholderDefinition(BaseModel):
    """Declarative description of one template variable."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: VarKind = VarKind.STRING
    prompt: str
    default: Value | None = None
    choices: tuple[str, ...] | None = None
    regex: re.Pattern[str] | None = None
    visible_when: ConditionExpr | None = None

    def accepts(self, value: Any) -> str | None:
        """Return why *value* is unacceptable, or ``None`` if it is fine."""
        if self.kind is VarKind.BOOL:
            if not isinstance(value, bool):
                return f"expected a bool, got {value!r}"
            return None
        if not isinstance(value, str):
            return f"expected a string, got {value!r}"
        if self.choices is not None and value not in self.choices:
            return f"{value!r} is not one of: {', '.join(self.choices)}"
        if self.regex is not None and not self.regex.search(value):
            return f"{value!r} does not match the pattern `{self.regex.pattern}`"
        return None


class ConditionalRules(BaseModel):
    """Selection rules that only apply while their guard holds."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    guard: ConditionExpr
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    ignore: tuple[str, ...] = ()


PromptFn = Callable[[PlaceholderDefinition], Value]


class PlaceholderSchema(BaseModel):
    """All placeholders of a template plus their visibility graph."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    placeholders: dict[str, PlaceholderDefinition]
    conditional_rules: list[ConditionalRules]
    graph: VisibilityGraph

    def ordered(self) -> list[PlaceholderDefinition]:
        """Definitions in resolution order (dependencies first)."""
        return [self.placeholders[name] for name in self.graph.order()]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_placeholder(
    name: str, table: Any, guard: ConditionExpr | None = None
) -> PlaceholderDefinition:
    """Validate one ``[placeholders.<name>]`` table.

    Checks run in a fixed order so the first problem reported is stable:
    reserved name, table shape, type, regex, prompt, choices, default.
    """
    if is_reserved(name):
        raise SchemaError(
            SchemaErrorCode.RESERVED_NAME, name, f"`{name}` is a reserved variable name"
        )
    if not isinstance(table, Mapping):
        raise SchemaError(
            SchemaErrorCode.INVALID_FORMAT, name, "a placeholder must be a table"
        )

    kind = _parse_kind(name, table)
    regex = _parse_regex(name, table, kind)

    prompt = table.get("prompt")
    if not isinstance(prompt, str):
        raise SchemaError(
            SchemaErrorCode.MISSING_PROMPT, name, "missing (or non-string) `prompt` field"
        )

    choices = _parse_choices(name, table, kind, regex)
    default = _parse_default(name, table, kind, choices, regex)

    return PlaceholderDefinition(
        name=name,
        kind=kind,
        prompt=prompt,
        default=default,
        choices=choices,
        regex=regex,
        visible_when=guard,
    )


def _parse_kind(name: str, table: Mapping[str, Any]) -> VarKind:
    kind = table.get("type", VarKind.STRING.value)
    if not isinstance(kind, str):
        raise SchemaError(
            SchemaErrorCode.WRONG_TYPE_PARAMETER, name, "`type` must be a string"
        )
    try:
        return VarKind(kind)
    except ValueError:
        raise SchemaError(
            SchemaErrorCode.INVALID_VARIABLE_TYPE,
            name,
            f"`type` must be `bool` or `string`, got `{kind}`",
        ) from None


def _parse_regex(name: str, table: Mapping[str, Any], kind: VarKind) -> re.Pattern[str] | None:
    if "regex" not in table:
        return None
    if kind is VarKind.BOOL:
        raise SchemaError(
            SchemaErrorCode.REGEX_ON_BOOL, name, "`regex` is not allowed on a bool placeholder"
        )
    pattern = table["regex"]
    if not isinstance(pattern, str):
        raise SchemaError(SchemaErrorCode.INVALID_REGEX, name, "`regex` must be a string")
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise SchemaError(
            SchemaErrorCode.INVALID_REGEX, name, f"`regex` does not compile: {exc}"
        ) from exc


def _parse_choices(
    name: str, table: Mapping[str, Any], kind: VarKind, regex: re.Pattern[str] | None
) -> tuple[str, ...] | None:
    if "choices" not in table:
        return None
    if kind is VarKind.BOOL:
        raise SchemaError(
            SchemaErrorCode.CHOICES_ON_BOOL, name, "`choices` is not allowed on a bool placeholder"
        )
    choices = table["choices"]
    if not isinstance(choices, list) or not all(isinstance(c, str) for c in choices):
        raise SchemaError(
            SchemaErrorCode.INVALID_FORMAT, name, "`choices` must be a list of strings"
        )
    if not choices:
        raise SchemaError(SchemaErrorCode.EMPTY_CHOICES, name, "`choices` is empty")
    if regex is not None:
        for choice in choices:
            if not regex.search(choice):
                raise SchemaError(
                    SchemaErrorCode.REGEX_MISMATCH,
                    name,
                    f"choice {choice!r} does not match `regex`",
                )
    return tuple(choices)


def _parse_default(
    name: str,
    table: Mapping[str, Any],
    kind: VarKind,
    choices: tuple[str, ...] | None,
    regex: re.Pattern[str] | None,
) -> Value | None:
    if "default" not in table:
        return None
    default = table["default"]
    if kind is VarKind.BOOL and not isinstance(default, bool):
        raise SchemaError(
            SchemaErrorCode.INVALID_DEFAULT, name, f"default {default!r} is not a bool"
        )
    if kind is VarKind.STRING:
        if not isinstance(default, str):
            raise SchemaError(
                SchemaErrorCode.INVALID_DEFAULT, name, f"default {default!r} is not a string"
            )
        if choices is not None and default not in choices:
            raise SchemaError(
                SchemaErrorCode.INVALID_DEFAULT,
                name,
                f"default {default!r} is not one of the choices",
            )
        if regex is not None and not regex.search(default):
            raise SchemaError(
                SchemaErrorCode.REGEX_MISMATCH,
                name,
                f"default {default!r} does not match `regex`",
            )
    return default


def parse_placeholders(
    table: Mapping[str, Any], *, guard: ConditionExpr | None = None
) -> dict[str, PlaceholderDefinition]:
    """Parse a ``placeholders`` table, keeping declaration order."""
    return {name: parse_placeholder(name, value, guard) for name, value in table.items()}


def parse_schema(manifest: TemplateManifest) -> PlaceholderSchema:
    """Build the full schema from a parsed manifest.

    Walks the top-level placeholders, then every ``conditional`` table
    depth-first, chaining guards for nested tables.  The visibility graph is
    built (and checked for cycles) before returning.

    Raises:
        SchemaError: For an invalid or duplicated placeholder.
        ResolutionError: For a cyclic visibility dependency.
    """
    placeholders: dict[str, PlaceholderDefinition] = {}
    rules: list[ConditionalRules] = []

    def add(definitions: dict[str, PlaceholderDefinition]) -> None:
        for name, definition in definitions.items():
            if name in placeholders:
                raise SchemaError(
                    SchemaErrorCode.DUPLICATE_NAME, name, "declared more than once"
                )
            placeholders[name] = definition

    def walk(conditionals: Mapping[str, Any], parent: ConditionExpr | None) -> None:
        for source, section in conditionals.items():
            guard = ConditionExpr(source, parent)
            add(parse_placeholders(section.placeholders, guard=guard))
            if section.include or section.exclude or section.ignore:
                rules.append(
                    ConditionalRules(
                        guard=guard,
                        include=tuple(section.include),
                        exclude=tuple(section.exclude),
                        ignore=tuple(section.ignore),
                    )
                )
            walk(section.conditional, guard)

    add(parse_placeholders(manifest.placeholders))
    walk(manifest.conditional, None)

    graph = VisibilityGraph(
        placeholders, {name: d.visible_when for name, d in placeholders.items()}
    )
    graph.order()
    return PlaceholderSchema(placeholders=placeholders, conditional_rules=rules, graph=graph)
