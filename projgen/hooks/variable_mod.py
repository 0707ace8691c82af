"""The ``variable`` module exposed to hook scripts."""

from __future__ import annotations

import re

from ..variables.schema import PlaceholderDefinition, VarKind, is_reserved
from ..variables.store import Value
from .context import HookContext, HookFailure


def _canonical(name: str) -> str:
    """``project-name`` and ``project_name`` name the same built-in."""
    return name.replace("-", "_") if is_reserved(name) else name


class VariableModule:
    """Read and write the run's variable store.

    Example script::

        if not variable.is_set("license"):
            variable.set("license", "MIT")
        variable.set("crate_type", "lib" if variable.get("is_lib") else "bin")
    """

    def __init__(self, context: HookContext) -> None:
        self._context = context

    def is_set(self, name: str) -> bool:
        return _canonical(name) in self._context.store

    def get(self, name: str) -> Value:
        """The value of *name*, or ``""`` when it has none."""
        value = self._context.store.get(_canonical(name))
        return "" if value is None else value

    def set(self, name: str, value: Value) -> None:
        """Set *name*; a bool cannot become a string or vice versa."""
        try:
            self._context.store.set(_canonical(name), value)
        except TypeError as exc:
            raise HookFailure(str(exc)) from exc

    def prompt(
        self,
        text: str,
        default: Value | None = None,
        choices: list[str] | None = None,
        regex: str | None = None,
    ) -> Value:
        """Ask the user a question; a bool *default* makes it a yes/no question.

        In silent mode the default is returned without asking, and a question
        without a default fails the script.
        """
        if not self._context.can_prompt:
            if default is not None:
                return default
            raise HookFailure(f"Cannot prompt for `{text}` in silent mode and no default was given")

        try:
            pattern = re.compile(regex) if regex is not None else None
        except re.error as exc:
            raise HookFailure(f"Invalid regex `{regex}`: {exc}") from exc

        definition = PlaceholderDefinition(
            name="prompt",
            kind=VarKind.BOOL if isinstance(default, bool) else VarKind.STRING,
            prompt=text,
            default=default,
            choices=tuple(choices) if choices else None,
            regex=pattern,
        )
        return self._context.prompt_fn(definition)
