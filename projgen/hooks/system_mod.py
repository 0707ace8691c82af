"""The ``system`` module exposed to hook scripts."""

from __future__ import annotations

import shlex
import subprocess
from datetime import datetime, timezone

from ..variables.schema import PlaceholderDefinition, VarKind
from .context import HookContext, HookFailure


class SystemModule:
    """Run external commands (with consent) and read the current date."""

    def __init__(self, context: HookContext) -> None:
        self._context = context

    def _confirm(self, display: str) -> None:
        if self._context.allow_commands:
            return
        if not self._context.can_prompt:
            raise HookFailure(
                "Cannot prompt for system command confirmation in silent mode. "
                "Use --allow-commands if you want to allow the template to run "
                "system commands in silent mode."
            )
        definition = PlaceholderDefinition(
            name="allow_command",
            kind=VarKind.BOOL,
            prompt=f"The template wants to run `{display}`. Allow it?",
            default=False,
        )
        if not self._context.prompt_fn(definition):
            raise HookFailure(f"User denied execution of system command `{display}`")

    def command(self, name: str, args: list[str] | None = None) -> str | None:
        """Run ``name args...`` (no shell) in the working directory.

        Returns:
            The command's stripped stdout, or ``None`` if it printed nothing.
        """
        argv = [name, *(str(arg) for arg in args or [])]
        display = shlex.join(argv)
        self._confirm(display)

        try:
            result = subprocess.run(
                argv,
                cwd=self._context.working_directory,
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise HookFailure(f"System command `{display}` failed to execute: {exc}") from exc
        if result.returncode != 0:
            raise HookFailure(
                f"System command `{display}` failed to execute: {result.stderr.strip()}"
            )
        return result.stdout.strip() or None

    def date(self) -> dict[str, int]:
        """Today's UTC date as ``{"year": ..., "month": ..., "day": ...}``."""
        today = datetime.now(timezone.utc)
        return {"year": today.year, "month": today.month, "day": today.day}
