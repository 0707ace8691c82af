"""The ``file`` module exposed to hook scripts.

Every path argument is resolved inside the phase's working directory; a path
that would leave it raises ``PathEscape`` and fails the script.
"""

from __future__ import annotations

from pathlib import Path

from ..paths import to_sandboxed_absolute
from ..utils import remove_path, write_atomic
from .context import HookContext, HookFailure


class FileModule:
    def __init__(self, context: HookContext) -> None:
        self._context = context

    def _resolve(self, path: str) -> Path:
        return to_sandboxed_absolute(self._context.working_directory, path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def rename(self, source: str, target: str) -> None:
        """Move *source* to *target*, creating parent directories as needed."""
        source_path = self._resolve(source)
        target_path = self._resolve(target)
        if not source_path.exists():
            raise HookFailure(f"Cannot rename `{source}`: no such file or directory")
        target_path.parent.mkdir(parents=True, exist_ok=True)
        source_path.rename(target_path)

    def delete(self, path: str) -> None:
        """Remove a file or a whole directory tree."""
        target = self._resolve(path)
        if target == self._resolve(""):
            raise HookFailure("Refusing to delete the working directory itself")
        remove_path(target)

    def write(self, path: str, content: str | list[str]) -> None:
        """Write *content* as UTF-8; a list is written one line per item."""
        if isinstance(content, list):
            content = "".join(f"{line}\n" for line in content)
        write_atomic(self._resolve(path), content.encode("utf-8"))

    def listdir(self, path: str = ".") -> list[str]:
        """Sorted absolute paths of the entries of a directory."""
        target = self._resolve(path)
        if not target.is_dir():
            raise HookFailure(f"Cannot list `{path}`: not a directory")
        return sorted(str(entry) for entry in target.iterdir())
