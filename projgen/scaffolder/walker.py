"""Turn a template directory into a rendered project tree.

The walk happens in two passes.  The first builds an index of every file to
write, keyed by its (rendered) destination path; the second resolves
collisions between entries and writes the survivors.  Building the whole
index before writing anything means an override file (``README.md.j2``)
reliably beats its plain sibling (``README.md``) whatever order the
filesystem lists them in.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..config import IGNORE_FILE_NAME, OVERRIDE_SUFFIX
from ..errors import RenderError, TemplateIOError
from ..paths import to_sandboxed_absolute
from ..utils import ensure_dir, print_warning, sanitize_filename, write_atomic
from ..variables.store import VariableStore
from .matcher import PathMatcher, SelectionRuleSet
from .templates import TemplateRenderer

VCS_DIRECTORIES = frozenset({".git", ".hg", ".svn"})

_TEMPLATE_MARKERS = ("{{", "{%", "{#")


@dataclass
class FileEntry:
    """One template file and where it will be written."""

    source: Path
    source_rel: PurePosixPath
    target_rel: PurePosixPath
    render: bool
    override: bool


class TreeWalker:
    """Selects, renders and writes the files of one template."""

    def __init__(
        self,
        template_root: str | Path,
        destination_root: str | Path,
        store: VariableStore,
        rules: SelectionRuleSet | None = None,
        *,
        renderer: TemplateRenderer | None = None,
        overwrite: bool = False,
        continue_on_error: bool = False,
        skip: Iterable[str] = (),
    ) -> None:
        self.template_root = Path(template_root)
        self.destination_root = Path(destination_root)
        self.bindings = store.bindings()
        self.rules = rules or SelectionRuleSet()
        self.renderer = renderer or TemplateRenderer()
        self.overwrite = overwrite
        self.continue_on_error = continue_on_error
        self.skip = {PurePosixPath(p).as_posix() for p in skip} | {IGNORE_FILE_NAME}
        self.warnings: list[str] = []

        ignore_file = self.template_root / IGNORE_FILE_NAME
        self.ignore_file = PathMatcher.from_file(ignore_file) if ignore_file.is_file() else PathMatcher([])

    # -- Pass 1: index -----------------------------------------------------

    def _is_left_out(self, rel: PurePosixPath, is_dir: bool = False) -> bool:
        return (
            rel.as_posix() in self.skip
            or self.ignore_file.matches(rel, is_dir)
            or self.rules.ignore.matches(rel, is_dir)
        )

    def _render_or_keep(self, text: str, rel: PurePosixPath, what: str) -> str | None:
        """Render *text*; ``None`` means keep the original (error tolerated)."""
        try:
            return self.renderer.render_string(text, self.bindings, path=rel)
        except RenderError as exc:
            if not self.continue_on_error:
                raise
            warning = f"Left {what} of `{rel}` unrendered: {exc.message}"
            self.warnings.append(warning)
            print_warning(warning)
            return None

    def _target_for(self, rel: PurePosixPath) -> tuple[PurePosixPath, bool]:
        name = rel.name
        override = name.endswith(OVERRIDE_SUFFIX) and len(name) > len(OVERRIDE_SUFFIX)
        if override:
            name = name[: -len(OVERRIDE_SUFFIX)]

        components: list[str] = []
        for component in [*rel.parent.parts, name]:
            if any(marker in component for marker in _TEMPLATE_MARKERS):
                rendered = self._render_or_keep(component, rel, "the name")
                if rendered is not None:
                    component = rendered
            components.append(sanitize_filename(component))
        return PurePosixPath(*components), override

    def _collect(self) -> list[FileEntry]:
        entries: list[FileEntry] = []
        for dirpath, dirnames, filenames in os.walk(self.template_root):
            rel_dir = PurePosixPath(Path(dirpath).relative_to(self.template_root).as_posix())
            dirnames[:] = sorted(
                d
                for d in dirnames
                if d not in VCS_DIRECTORIES and not self._is_left_out(rel_dir / d, is_dir=True)
            )
            for filename in sorted(filenames):
                rel = rel_dir / filename
                if self._is_left_out(rel):
                    continue
                source = Path(dirpath) / filename
                if self.rules.should_render(rel):
                    target, override = self._target_for(rel)
                    entries.append(FileEntry(source, rel, target, True, override))
                else:
                    entries.append(FileEntry(source, rel, rel, False, False))
        return entries

    def build_index(self) -> dict[PurePosixPath, FileEntry]:
        """Map each destination path to the one entry that will produce it.

        Raises:
            RenderError: If two entries collide and neither is the single
                override-suffixed source of the group.
        """
        groups: dict[PurePosixPath, list[FileEntry]] = {}
        for entry in self._collect():
            groups.setdefault(entry.target_rel, []).append(entry)

        index: dict[PurePosixPath, FileEntry] = {}
        for target, group in groups.items():
            if len(group) == 1:
                index[target] = group[0]
                continue
            overrides = [entry for entry in group if entry.override]
            if len(overrides) == 1:
                index[target] = overrides[0]
                continue
            sources = ", ".join(f"`{entry.source_rel}`" for entry in group)
            raise RenderError(target, f"{sources} would all be written to the same file")
        return index

    # -- Pass 2: write -----------------------------------------------------

    def _content(self, entry: FileEntry) -> bytes:
        try:
            data = entry.source.read_bytes()
        except OSError as exc:
            raise TemplateIOError(entry.source, f"Cannot read template file ({exc.strerror})") from exc
        if not entry.render:
            return data
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            return data
        if not any(marker in text for marker in _TEMPLATE_MARKERS):
            return data
        rendered = self._render_or_keep(text, entry.source_rel, "the content")
        return data if rendered is None else rendered.encode("utf-8")

    def expand(self) -> list[Path]:
        """Write every indexed file below the destination root.

        Existing destination files are only replaced when ``overwrite`` is set
        or the entry is an override; the check covers the whole index before
        the first file is written.

        Returns:
            The written destination paths, sorted.

        Raises:
            RenderError, TemplateIOError, PathEscape
        """
        index = self.build_index()
        planned: list[tuple[Path, FileEntry]] = []
        for target, entry in sorted(index.items()):
            destination = to_sandboxed_absolute(self.destination_root, target.as_posix())
            if destination.exists() and not (self.overwrite or entry.override):
                raise TemplateIOError(
                    destination, "Destination file already exists (pass overwrite to replace it)"
                )
            planned.append((destination, entry))

        ensure_dir(self.destination_root)
        written: list[Path] = []
        for destination, entry in planned:
            data = self._content(entry)
            try:
                write_atomic(destination, data)
                shutil.copymode(entry.source, destination)
            except OSError as exc:
                raise TemplateIOError(destination, f"Cannot write file ({exc.strerror})") from exc
            written.append(destination)
        return written


def expand(
    template_root: str | Path,
    destination_root: str | Path,
    store: VariableStore,
    rules: SelectionRuleSet | None = None,
    **kwargs,
) -> list[Path]:
    """Render *template_root* into *destination_root*; see ``TreeWalker``."""
    return TreeWalker(template_root, destination_root, store, rules, **kwargs).expand()
