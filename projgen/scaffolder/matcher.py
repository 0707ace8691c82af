"""Gitignore-style path matching and the template's selection rules.

Pattern syntax (one pattern per list entry or ignore-file line):

* ``*`` and ``?`` match within one path component, ``**`` across components.
* A pattern without a ``/`` matches a component at any depth; a pattern
  containing a ``/`` (a leading one included) is anchored at the template
  root.
* A trailing ``/`` restricts the pattern to directories.
* A leading ``!`` re-includes what an earlier pattern matched.

A pattern matching a directory matches everything below it.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from ..config import TemplateSection
from ..variables.schema import ConditionalRules


def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        elif pattern[i] == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                parts.append(re.escape("["))
                i += 1
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                parts.append("[" + body.replace("\\", "\\\\") + "]")
                i = end + 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z", re.DOTALL)


@dataclass(frozen=True)
class _Pattern:
    regex: re.Pattern[str]
    negated: bool
    anchored: bool
    dir_only: bool

    @classmethod
    def parse(cls, raw: str) -> _Pattern | None:
        pattern = raw.strip()
        if not pattern or pattern.startswith("#"):
            return None
        negated = pattern.startswith("!")
        if negated:
            pattern = pattern[1:]
        dir_only = pattern.endswith("/")
        pattern = pattern.rstrip("/")
        anchored = "/" in pattern
        pattern = pattern.lstrip("/")
        if pattern.startswith("./"):
            pattern = pattern[2:]
        if not pattern:
            return None
        return cls(_glob_to_regex(pattern), negated, anchored, dir_only)

    def matches(self, path: PurePosixPath, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.anchored:
            return self.regex.match(path.as_posix()) is not None
        return self.regex.match(path.name) is not None


class PathMatcher:
    """An ordered list of gitignore-style patterns; the last match wins."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = [p for p in (_Pattern.parse(raw) for raw in patterns) if p is not None]

    def __bool__(self) -> bool:
        return bool(self.patterns)

    @classmethod
    def from_file(cls, path: str | Path) -> PathMatcher:
        return cls(Path(path).read_text(encoding="utf-8").splitlines())

    def _match_one(self, path: PurePosixPath, is_dir: bool) -> bool:
        result = False
        for pattern in self.patterns:
            if pattern.matches(path, is_dir):
                result = not pattern.negated
        return result

    def matches(self, path: str | PurePosixPath, is_dir: bool = False) -> bool:
        """True if *path* (relative to the template root) or a parent matches."""
        rel = PurePosixPath(path)
        for parent in reversed(rel.parents[:-1]):
            if self._match_one(parent, is_dir=True):
                return True
        return self._match_one(rel, is_dir)


class SelectionRuleSet:
    """Which template files are rendered, copied verbatim, or left out.

    * ``ignore`` -- matched files are not written at all.
    * ``include`` -- when present, only matched files are rendered and
      ``exclude`` is not consulted.
    * ``exclude`` -- matched files are copied without rendering.

    Everything not ignored is written; rendering is the default.
    """

    def __init__(
        self,
        include: Iterable[str] | None = None,
        exclude: Iterable[str] | None = None,
        ignore: Iterable[str] | None = None,
    ) -> None:
        self.include = PathMatcher(include) if include is not None else None
        self.exclude = PathMatcher(exclude or [])
        self.ignore = PathMatcher(ignore or [])

    @classmethod
    def from_manifest(
        cls,
        template: TemplateSection,
        conditional_rules: Iterable[ConditionalRules] = (),
        bindings: Mapping[str, Any] | None = None,
    ) -> SelectionRuleSet:
        """Top-level rules plus those of every conditional whose guard holds.

        A guard reading a name with no value (a placeholder that was not
        visible in this run) does not hold.
        """
        include = list(template.include) if template.include is not None else None
        exclude = list(template.exclude or [])
        ignore = list(template.ignore or [])
        for rule in conditional_rules:
            if not rule.guard.evaluate(bindings or {}, missing_is_false=True):
                continue
            if rule.include:
                include = [*(include or []), *rule.include]
            exclude.extend(rule.exclude)
            ignore.extend(rule.ignore)
        return cls(include=include, exclude=exclude, ignore=ignore)

    def is_ignored(self, path: str | PurePosixPath) -> bool:
        return self.ignore.matches(path)

    def should_render(self, path: str | PurePosixPath) -> bool:
        if self.include is not None:
            return self.include.matches(path)
        return not self.exclude.matches(path)
