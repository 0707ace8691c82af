"""Visibility conditions and the dependency graph between placeholders.

A ``[conditional.'<expr>']`` table in the manifest guards the placeholders and
selection rules declared inside it.  The expression is compiled once with
Jinja2's expression parser; the C-style shorthands ``!``, ``&&`` and ``||``
are accepted and rewritten to ``not``, ``and`` and ``or``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from jinja2 import Environment, TemplateSyntaxError, meta

from ..errors import ResolutionError, ResolutionErrorCode, SchemaError, SchemaErrorCode

_EXPRESSION_ENV = Environment()

_SHORTHAND_OPERATORS = [
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    (re.compile(r"!(?!=)"), " not "),
]


def _translate(source: str) -> str:
    expression = source
    for pattern, replacement in _SHORTHAND_OPERATORS:
        expression = pattern.sub(replacement, expression)
    return expression.strip()


class ConditionExpr:
    """A compiled boolean guard, optionally nested inside a parent guard.

    Nested ``[conditional]`` tables produce a chain: the parent is evaluated
    first and a false parent short-circuits, so names referenced only by the
    child never need to be bound when the parent does not hold.
    """

    def __init__(self, source: str, parent: ConditionExpr | None = None) -> None:
        self.source = source
        self.parent = parent
        expression = _translate(source)
        try:
            self._compiled = _EXPRESSION_ENV.compile_expression(expression)
            parsed = _EXPRESSION_ENV.parse("{{ (" + expression + ") }}")
        except TemplateSyntaxError as exc:
            raise SchemaError(
                SchemaErrorCode.INVALID_CONDITION,
                source,
                f"cannot parse condition: {exc.message}",
            ) from exc
        self.names: frozenset[str] = frozenset(meta.find_undeclared_variables(parsed))

    @property
    def dependencies(self) -> frozenset[str]:
        """Every name this guard, or any enclosing guard, reads."""
        if self.parent is None:
            return self.names
        return self.names | self.parent.dependencies

    def evaluate(self, bindings: Mapping[str, Any], *, missing_is_false: bool = False) -> bool:
        """Evaluate the guard against *bindings*.

        With *missing_is_false* an unbound name makes the guard false; selection
        rules use this, since the placeholder they read may be invisible.

        Raises:
            ResolutionError: If a referenced name is not bound and
                *missing_is_false* is not set.
        """
        if self.parent is not None and not self.parent.evaluate(
            bindings, missing_is_false=missing_is_false
        ):
            return False
        missing = sorted(name for name in self.names if name not in bindings)
        if missing:
            if missing_is_false:
                return False
            raise ResolutionError(
                ResolutionErrorCode.MISSING_DEPENDENCY,
                missing[0],
                f"condition `{self.source}` references `{missing[0]}`, which has no value",
            )
        return bool(self._compiled(**bindings))

    def __repr__(self) -> str:
        if self.parent is None:
            return f"ConditionExpr({self.source!r})"
        return f"ConditionExpr({self.source!r}, parent={self.parent!r})"


class VisibilityGraph:
    """Directed graph of placeholder visibility dependencies.

    There is an edge ``dep -> name`` whenever the guard of placeholder
    ``name`` reads placeholder ``dep``.  Names a guard reads that are not
    placeholders (built-in variables, ad-hoc values) are not graph nodes.
    """

    def __init__(self, names: Iterable[str], guards: Mapping[str, ConditionExpr | None]) -> None:
        self.nodes: list[str] = list(names)
        known = set(self.nodes)
        self.dependencies: dict[str, list[str]] = {}
        for name in self.nodes:
            guard = guards.get(name)
            deps = guard.dependencies if guard is not None else frozenset()
            self.dependencies[name] = [dep for dep in self.nodes if dep in deps and dep in known]

    def order(self) -> list[str]:
        """Return the nodes ordered so every node follows its dependencies.

        The walk is depth-first and seeded in declaration order, so
        placeholders without dependencies keep the order they were declared.

        Raises:
            ResolutionError: If the graph contains a cycle.
        """
        ordered: list[str] = []
        done: set[str] = set()
        stack: list[str] = []

        def visit(name: str) -> None:
            if name in done:
                return
            if name in stack:
                cycle = stack[stack.index(name):] + [name]
                raise ResolutionError(
                    ResolutionErrorCode.CYCLE,
                    name,
                    "cyclic visibility dependency: " + " -> ".join(cycle),
                )
            stack.append(name)
            for dep in self.dependencies[name]:
                visit(dep)
            stack.pop()
            done.add(name)
            ordered.append(name)

        for node in self.nodes:
            visit(node)
        return ordered
