"""Shared state handed to the hook-script capability modules."""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..variables.schema import PromptFn
from ..variables.store import VariableStore


class HookPhase(str, Enum):
    """When a hook runs, and therefore which directory it works in."""

    INIT = "init"
    PRE = "pre"
    POST = "post"


class HookFailure(Exception):
    """Raised by a capability (or ``abort``) to fail the running script."""


@dataclass
class HookContext:
    """Everything a phase's scripts may touch.

    ``working_directory`` is the file module's sandbox root and the cwd while
    the phase runs: the template root for ``init`` and ``pre``, the
    destination for ``post``.  Script paths are always resolved against
    ``template_root``.
    """

    store: VariableStore
    template_root: Path
    working_directory: Path
    destination_directory: Path
    allow_commands: bool = False
    silent: bool = False
    prompt_fn: PromptFn | None = None

    @property
    def can_prompt(self) -> bool:
        return not self.silent and self.prompt_fn is not None


@contextmanager
def working_directory(path: str | Path) -> Iterator[Path]:
    """Switch the process cwd to *path*, restoring it on every exit path."""
    previous = Path.cwd()
    os.chdir(path)
    try:
        yield Path(path)
    finally:
        os.chdir(previous)
