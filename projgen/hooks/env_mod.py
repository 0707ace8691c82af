"""The read-only ``env`` module exposed to hook scripts."""

from __future__ import annotations

from .context import HookContext


class EnvModule:
    """Where the running phase works and where the project is being generated."""

    def __init__(self, context: HookContext) -> None:
        self._context = context

    @property
    def working_directory(self) -> str:
        return str(self._context.working_directory)

    @property
    def destination_directory(self) -> str:
        return str(self._context.destination_directory)
