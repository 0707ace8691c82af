"""Terminal prompts for placeholders, built on ``rich.prompt``."""

from __future__ import annotations

from typing import Any

from rich.prompt import Confirm, Prompt

from .utils import console, print_warning
from .variables.schema import PlaceholderDefinition, VarKind
from .variables.store import Value


def prompt_for_variable(definition: PlaceholderDefinition) -> Value:
    """Ask the user for a value that satisfies *definition*.

    Bool placeholders get a yes/no question, placeholders with choices a
    selection among them, and free-text placeholders are asked again until
    the answer matches their regex.  The default is pre-selected.
    """
    if definition.kind is VarKind.BOOL:
        default = definition.default if isinstance(definition.default, bool) else False
        return Confirm.ask(definition.prompt, default=default, console=console)

    kwargs: dict[str, Any] = {"console": console}
    if definition.default is not None:
        kwargs["default"] = definition.default
    if definition.choices:
        return Prompt.ask(definition.prompt, choices=list(definition.choices), **kwargs)

    while True:
        answer = Prompt.ask(definition.prompt, **kwargs)
        if definition.regex is None or definition.regex.search(answer):
            return answer
        print_warning(
            f"{answer!r} is not a valid value for `{definition.name}` "
            f"(must match `{definition.regex.pattern}`)"
        )
