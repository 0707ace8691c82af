"""Lexical path normalisation and sandbox containment.

Every path a template or hook script supplies passes through
``to_sandboxed_absolute`` before it touches the filesystem.  Normalisation is
purely lexical: symlinks are never followed and the target does not need to
exist, so the check gives the same answer before and after a file is created.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath

from .errors import PathEscape


def normalize_path(path: str | os.PathLike[str]) -> Path:
    """Collapse ``.``, ``..`` and repeated separators without touching disk.

    ``..`` never climbs above the anchor of an absolute path.  A leading
    ``..`` on a relative path has nothing to pop and is kept.

    Examples::

        normalize_path("/a/b/../c")      -> Path("/a/c")
        normalize_path("/../../etc")     -> Path("/etc")
        normalize_path("//a//b/")        -> Path("/a/b")
    """
    pure = PurePath(path)
    anchor = pure.drive + (os.sep if pure.root else "")
    parts: list[str] = []
    for part in pure.parts[1:] if pure.anchor else pure.parts:
        if part == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not anchor:
                parts.append(part)
        else:
            parts.append(part)
    return Path(anchor, *parts)


def to_absolute(candidate: str | os.PathLike[str], base: str | os.PathLike[str] | None = None) -> Path:
    """Resolve *candidate* against *base* (the cwd by default), unchecked.

    Intended for trusted, user-supplied locations such as the template root
    or the destination directory given on the command line.
    """
    base_path = Path(base) if base is not None else Path.cwd()
    if not base_path.is_absolute():
        base_path = Path.cwd() / base_path
    return normalize_path(base_path / candidate)


def to_sandboxed_absolute(
    root: str | os.PathLike[str], candidate: str | os.PathLike[str]
) -> Path:
    """Resolve *candidate* inside *root* or raise ``PathEscape``.

    Relative candidates are joined to *root*; absolute ones are taken as is.
    The normalised result must be *root* itself or one of its descendants.
    An empty candidate resolves to the root.

    Raises:
        PathEscape: If the normalised path lies outside *root*.
    """
    root_path = to_absolute(root)
    resolved = normalize_path(root_path / candidate)
    if not resolved.is_relative_to(root_path):
        raise PathEscape(root_path, candidate)
    return resolved
