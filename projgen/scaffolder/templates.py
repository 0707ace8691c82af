"""Jinja2 rendering of template file bodies and file names.

Provides the TemplateRenderer class, the narrow adapter between the tree
walker and Jinja2: it renders a string against the variable bindings and
turns every Jinja2 failure into a ``RenderError``.  Case-conversion filters
(``kebab_case``, ``snake_case``, ``pascal_case``, ...) are registered on the
environment.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, TemplateError

from ..errors import RenderError
from ..utils import CASE_CONVERTERS


def _finalize(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class TemplateRenderer:
    """Renders template strings with the resolved variables.

    Names that are not valid Jinja2 identifiers because they contain a
    hyphen (``my-flag``) are also bound with underscores (``my_flag``).
    Unknown names render as empty strings, and bools render as ``true`` and
    ``false`` so they are valid in TOML, JSON and YAML output.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            finalize=_finalize,
        )
        for filter_name, converter in CASE_CONVERTERS.items():
            self.env.filters[filter_name] = converter

    @staticmethod
    def build_context(bindings: Mapping[str, Any]) -> dict[str, Any]:
        """The render context for *bindings*, with underscore aliases added."""
        context = dict(bindings)
        for name, value in bindings.items():
            if "-" in name:
                context.setdefault(name.replace("-", "_"), value)
        return context

    def render_string(
        self,
        template_string: str,
        bindings: Mapping[str, Any],
        path: str | Path = "<string>",
    ) -> str:
        """Render *template_string*; *path* only labels errors.

        Raises:
            RenderError: On a syntax error or a failure during rendering.
        """
        try:
            template = self.env.from_string(template_string)
            return template.render(**self.build_context(bindings))
        except TemplateError as exc:
            raise RenderError(path, exc.message or str(exc)) from exc
        except (TypeError, ValueError, ArithmeticError, LookupError, AttributeError) as exc:
            raise RenderError(path, f"{type(exc).__name__}: {exc}") from exc
