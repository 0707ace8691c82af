"""Shared pytest fixtures for the projgen test suite.

Provides reusable fixtures for:
- Building template directories on disk from a dict of files
- Generation options isolated from the real environment
- Scripted prompt callbacks
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from projgen.config import GenerateOptions
from projgen.variables import PlaceholderDefinition, VariableStore


# ---------------------------------------------------------------------------
# Templates on disk
# ---------------------------------------------------------------------------

def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create *files* (relative path -> content) below *root*."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_template(tmp_path: Path) -> Callable[..., Path]:
    """Factory: ``make_template(files, manifest=None)`` -> template root.

    *manifest* is dedented and written as ``projgen.toml``.
    """
    counter = {"n": 0}

    def _make(files: dict[str, str | bytes] | None = None, manifest: str | None = None) -> Path:
        counter["n"] += 1
        root = tmp_path / f"template-{counter['n']}"
        write_tree(root, files or {})
        if manifest is not None:
            (root / "projgen.toml").write_text(textwrap.dedent(manifest), encoding="utf-8")
        return root

    return _make


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Empty directory projects are generated into."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def make_options(destination: Path) -> Callable[..., GenerateOptions]:
    """Factory for silent ``GenerateOptions`` that ignore the real environment."""

    def _make(template_root: Path, **overrides: Any) -> GenerateOptions:
        settings: dict[str, Any] = {
            "template_root": template_root,
            "destination": destination,
            "name": "demo-app",
            "silent": True,
            "environment": {},
        }
        settings.update(overrides)
        return GenerateOptions(**settings)

    return _make


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

@pytest.fixture
def no_prompt() -> Callable[[PlaceholderDefinition], Any]:
    """Prompt callback that fails the test if it is ever called."""

    def _prompt(definition: PlaceholderDefinition) -> Any:
        raise AssertionError(f"unexpected prompt for {definition.name}")

    return _prompt


class ScriptedPrompt:
    """Prompt callback answering from a dict and recording what was asked."""

    def __init__(self, answers: dict[str, Any]) -> None:
        self.answers = answers
        self.asked: list[str] = []

    def __call__(self, definition: PlaceholderDefinition) -> Any:
        self.asked.append(definition.name)
        return self.answers[definition.name]


@pytest.fixture
def scripted_prompt() -> Callable[[dict[str, Any]], ScriptedPrompt]:
    return ScriptedPrompt


@pytest.fixture
def store() -> VariableStore:
    """A store holding the values a generation run always has."""
    return VariableStore(
        {
            "project_name": "demo-app",
            "package_name": "demo_app",
            "authors": "Test Author <test@example.com>",
            "os_arch": "x86_64-linux",
            "is_init": False,
        }
    )
