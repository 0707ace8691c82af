"""Exception hierarchy for projgen.

Every failure a generation run can surface derives from ``ProjgenError`` so
the CLI can report it uniformly.  Each subclass carries the context needed to
name the offending variable, file, script, or path in its message.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class SchemaErrorCode(str, Enum):
    """Why a placeholder definition (or the manifest around it) was rejected."""

    INVALID_MANIFEST = "invalid_manifest"
    INVALID_FORMAT = "invalid_format"
    WRONG_TYPE_PARAMETER = "wrong_type_parameter"
    INVALID_VARIABLE_TYPE = "invalid_variable_type"
    MISSING_PROMPT = "missing_prompt"
    EMPTY_CHOICES = "empty_choices"
    INVALID_DEFAULT = "invalid_default"
    CHOICES_ON_BOOL = "choices_on_bool"
    REGEX_ON_BOOL = "regex_on_bool"
    REGEX_MISMATCH = "regex_mismatch"
    INVALID_REGEX = "invalid_regex"
    RESERVED_NAME = "reserved_name"
    DUPLICATE_NAME = "duplicate_name"
    INVALID_CONDITION = "invalid_condition"


class ResolutionErrorCode(str, Enum):
    """Why a variable could not be given a value."""

    MISSING_VALUE = "missing_value"
    INVALID_VALUE = "invalid_value"
    MISSING_DEPENDENCY = "missing_dependency"
    CYCLE = "cycle"


class ProjgenError(Exception):
    """Base class for every error raised by a generation run."""


class SchemaError(ProjgenError):
    """A placeholder definition in the template manifest is invalid."""

    def __init__(self, code: SchemaErrorCode, var_name: str, message: str) -> None:
        self.code = code
        self.var_name = var_name
        self.message = message
        super().__init__(f"Invalid placeholder `{var_name}`: {message}")


class ResolutionError(ProjgenError):
    """A variable has no acceptable value, or its visibility cannot be decided."""

    def __init__(self, code: ResolutionErrorCode, var_name: str, message: str) -> None:
        self.code = code
        self.var_name = var_name
        self.message = message
        super().__init__(f"Cannot resolve `{var_name}`: {message}")


class PathEscape(ProjgenError):
    """A path would land outside of its sandbox root."""

    def __init__(self, root: str | Path, candidate: str | Path) -> None:
        self.root = Path(root)
        self.candidate = str(candidate)
        super().__init__(
            f"Path `{self.candidate}` is outside of the sandbox root `{self.root}`"
        )


class ScriptError(ProjgenError):
    """A hook script failed; the phase and the run are aborted."""

    def __init__(self, phase: str, script: str, message: str) -> None:
        self.phase = phase
        self.script = script
        self.message = message
        super().__init__(f"{phase} hook `{script}` failed: {message}")


class RenderError(ProjgenError):
    """A file name or file body could not be rendered."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"Error rendering `{self.path}`: {message}")


class TemplateIOError(ProjgenError):
    """A filesystem operation failed while reading or writing the tree."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"{message}: {self.path}")
