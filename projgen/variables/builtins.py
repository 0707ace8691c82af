"""Variables every template gets without declaring them."""

from __future__ import annotations

import os
import platform
import subprocess
from collections.abc import Mapping

from ..utils import to_kebab_case, to_snake_case
from .store import Value


def _git_config(key: str) -> str | None:
    try:
        result = subprocess.run(
            ["git", "config", "--get", key],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def get_authors(environ: Mapping[str, str] | None = None) -> str:
    """``"Name <email>"`` from the git author environment or git config.

    Falls back to the login name, and drops the ``<email>`` part when no
    address is known.
    """
    env = os.environ if environ is None else environ
    name = (
        env.get("GIT_AUTHOR_NAME")
        or _git_config("user.name")
        or env.get("USER")
        or env.get("USERNAME")
        or ""
    )
    email = env.get("GIT_AUTHOR_EMAIL") or _git_config("user.email")
    if email:
        return f"{name} <{email}>".strip()
    return name


def get_os_arch() -> str:
    """``"<machine>-<system>"``, e.g. ``"x86_64-linux"``."""
    return f"{platform.machine().lower()}-{platform.system().lower()}"


def project_dir_name(name: str, *, force: bool = False) -> str:
    """Directory name for a project: kebab-case unless *force* keeps it verbatim."""
    return name if force else to_kebab_case(name)


def project_variables(name: str, *, force: bool = False) -> dict[str, Value]:
    """``project_name`` and the ``package_name`` derived from it."""
    return {
        "project_name": name,
        "package_name": name.replace("-", "_") if force else to_snake_case(name),
    }


def builtin_variables(
    *, init: bool, environ: Mapping[str, str] | None = None
) -> dict[str, Value]:
    """The name-independent built-ins: ``authors``, ``os_arch`` and ``is_init``."""
    return {
        "authors": get_authors(environ),
        "os_arch": get_os_arch(),
        "is_init": init,
    }
