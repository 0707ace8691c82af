"""Shared utility functions for projgen.

Provides name-case conversion, filename sanitisation, file-system helpers
(atomic writes, retrying tree removal), and Rich-based console reporting.
The case helpers are shared by the Jinja2 filters and the hook-script
namespace so both spell a name the same way.
"""

from __future__ import annotations

import contextlib
import os
import re
import shutil
import tempfile
import time
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def split_words(value: str) -> list[str]:
    """Split an identifier into words on case changes and punctuation.

    Examples::

        split_words("myCoolProject")   -> ["my", "Cool", "Project"]
        split_words("HTTPServer v2")   -> ["HTTP", "Server", "v2"]
        split_words("some-thing_else") -> ["some", "thing", "else"]
    """
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1 \2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", s1)
    return [word for word in re.split(r"[\W_]+", s2) if word]


def to_kebab_case(value: str) -> str:
    """``My Project`` -> ``my-project``."""
    return "-".join(word.lower() for word in split_words(value))


def to_shouty_kebab_case(value: str) -> str:
    """``My Project`` -> ``MY-PROJECT``."""
    return "-".join(word.upper() for word in split_words(value))


def to_snake_case(value: str) -> str:
    """``MyProject`` -> ``my_project``."""
    return "_".join(word.lower() for word in split_words(value))


def to_shouty_snake_case(value: str) -> str:
    """``my-project`` -> ``MY_PROJECT``."""
    return "_".join(word.upper() for word in split_words(value))


def to_pascal_case(value: str) -> str:
    """``my-project`` -> ``MyProject``."""
    return "".join(word.capitalize() for word in split_words(value))


def to_lower_camel_case(value: str) -> str:
    """``my-project`` -> ``myProject``."""
    pascal = to_pascal_case(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def to_title_case(value: str) -> str:
    """``my-project`` -> ``My Project``."""
    return " ".join(word.capitalize() for word in split_words(value))


CASE_CONVERTERS = {
    "kebab_case": to_kebab_case,
    "shouty_kebab_case": to_shouty_kebab_case,
    "snake_case": to_snake_case,
    "shouty_snake_case": to_shouty_snake_case,
    "pascal_case": to_pascal_case,
    "upper_camel_case": to_pascal_case,
    "lower_camel_case": to_lower_camel_case,
    "title_case": to_title_case,
}

_ILLEGAL_FILENAME_CHARS = re.compile(r'[/\\?<>:*|"\x00-\x1f\x80-\x9f]')
_WINDOWS_RESERVED_NAMES = re.compile(
    r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE
)
MAX_FILENAME_BYTES = 255


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """Make a single rendered path component safe to create on disk.

    * Path separators and characters illegal on common filesystems become
      *replacement*, so a rendered value can never introduce a new directory
      level (``"../../etc/passwd"`` -> ``".._.._etc_passwd"``).
    * ``.``, ``..``, an empty result and Windows device names are replaced
      wholesale.
    * The result is truncated to 255 bytes of UTF-8 without splitting a
      character.
    """
    result = _ILLEGAL_FILENAME_CHARS.sub(replacement, name)
    if result in {"", ".", ".."} or _WINDOWS_RESERVED_NAMES.match(result):
        result = replacement
    encoded = result.encode("utf-8")
    if len(encoded) > MAX_FILENAME_BYTES:
        result = encoded[:MAX_FILENAME_BYTES].decode("utf-8", errors="ignore")
    return result


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def write_atomic(path: str | Path, data: bytes) -> None:
    """Write *data* to *path* via a sibling temp file and ``os.replace``.

    Readers of *path* see either the old file or the complete new one,
    never a partial write.  Parent directories are created automatically.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


def remove_path(
    path: str | Path,
    retries: int = 5,
    initial_delay: float = 0.1,
    max_delay: float = 2.0,
) -> None:
    """Delete a file or a directory tree, retrying with exponential backoff.

    Transient ``OSError``s (a virus scanner or indexer holding a handle on
    Windows, for instance) are retried up to *retries* times; the last
    failure is re-raised.  A path that is already gone is not an error.
    """
    target = Path(path)
    delay = initial_delay

    for attempt in range(retries + 1):
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
            return
        except FileNotFoundError:
            return
        except OSError as exc:
            if attempt == retries:
                raise
            console.print(
                f"[dim]Removing {escape(str(target))} failed ({escape(str(exc))}); retrying in {delay:.1f}s[/dim]"
            )
            time.sleep(delay)
            delay = min(delay * 2, max_delay)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, object], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, escape(str(value)))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
