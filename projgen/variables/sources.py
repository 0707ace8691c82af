"""Where provided (non-prompted) variable values come from.

Four layers, highest precedence first:

1. ``key=value`` definitions given by the caller (``--define``).
2. The environment: ``PROJGEN_VALUE_<NAME>`` variables, over the values file
   named by ``PROJGEN_TEMPLATE_VALUES_FILE``.
3. An explicit values file (``--values-file``).
4. Favorite / application-config defaults.

Values files are TOML with a ``[values]`` table, or YAML with a top-level
``values:`` mapping when the file ends in ``.yaml``/``.yml``.
"""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config import GenerateOptions
from ..errors import ResolutionError, ResolutionErrorCode, TemplateIOError
from .store import Value

VALUE_ENV_PREFIX = "PROJGEN_VALUE_"
VALUES_FILE_ENV = "PROJGEN_TEMPLATE_VALUES_FILE"

_DEFINITION_RE = re.compile(r"^([a-zA-Z]+[a-zA-Z0-9\-_]*)\s*=\s*(.+)$")


def parse_definitions(definitions: Iterable[str]) -> dict[str, str]:
    """Parse ``["name=value", ...]`` into a mapping.

    Raises:
        ResolutionError: For an entry that is not ``name=value``.
    """
    parsed: dict[str, str] = {}
    for definition in definitions:
        match = _DEFINITION_RE.match(definition.strip())
        if match is None:
            raise ResolutionError(
                ResolutionErrorCode.INVALID_VALUE,
                definition,
                "definitions must look like `name=value`",
            )
        parsed[match.group(1)] = match.group(2).strip()
    return parsed


def _check_values(source: str, values: Any) -> dict[str, Value]:
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        raise ResolutionError(
            ResolutionErrorCode.INVALID_VALUE, "values", f"`values` in {source} must be a table"
        )
    checked: dict[str, Value] = {}
    for name, value in values.items():
        if not isinstance(value, (bool, str)):
            raise ResolutionError(
                ResolutionErrorCode.INVALID_VALUE,
                str(name),
                f"value in {source} must be a bool or a string, got {value!r}",
            )
        checked[str(name)] = value
    return checked


def load_values_file(path: str | Path) -> dict[str, Value]:
    """Read the ``values`` table of a TOML or YAML values file.

    Raises:
        TemplateIOError: If the file cannot be read or parsed.
        ResolutionError: If a value is not a bool or a string.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateIOError(file_path, f"Cannot read values file ({exc.strerror})") from exc

    try:
        if file_path.suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = tomllib.loads(text)
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        raise TemplateIOError(file_path, f"Cannot parse values file ({exc})") from exc

    if not isinstance(data, Mapping):
        raise TemplateIOError(file_path, "Values file must contain a mapping")
    return _check_values(str(file_path), data.get("values"))


def load_environment_values(environ: Mapping[str, str] | None = None) -> dict[str, Value]:
    """Collect overrides from the environment.

    ``PROJGEN_VALUE_MY_FLAG=true`` provides ``my_flag``; those win over the
    entries of the file named by ``PROJGEN_TEMPLATE_VALUES_FILE``.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Value] = {}
    values_file = env.get(VALUES_FILE_ENV)
    if values_file:
        values.update(load_values_file(values_file))
    for key, value in env.items():
        if key.startswith(VALUE_ENV_PREFIX) and len(key) > len(VALUE_ENV_PREFIX):
            values[key[len(VALUE_ENV_PREFIX):].lower()] = value
    return values


@dataclass
class ValueSources:
    """The provided-value layers of one run, queried highest first."""

    definitions: dict[str, Value] = field(default_factory=dict)
    environment: dict[str, Value] = field(default_factory=dict)
    values_file: dict[str, Value] = field(default_factory=dict)
    defaults: dict[str, Value] = field(default_factory=dict)

    LAYERS = (
        ("definitions", "command-line definition"),
        ("environment", "environment"),
        ("values_file", "values file"),
        ("defaults", "configured default"),
    )

    @classmethod
    def from_options(cls, options: GenerateOptions) -> ValueSources:
        return cls(
            definitions=dict(options.defines),
            environment=load_environment_values(options.environment),
            values_file=load_values_file(options.values_file) if options.values_file else {},
            defaults=dict(options.default_values),
        )

    def lookup(self, name: str) -> tuple[Value, str] | None:
        """Return ``(value, source label)`` from the highest layer that has *name*."""
        for attr, label in self.LAYERS:
            layer: dict[str, Value] = getattr(self, attr)
            if name in layer:
                return layer[name], label
            if attr == "environment" and name.replace("-", "_") in layer:
                return layer[name.replace("-", "_")], label
        return None

    def provided(self) -> dict[str, tuple[Value, str]]:
        """Every provided name with its winning value and source label."""
        merged: dict[str, tuple[Value, str]] = {}
        for attr, label in reversed(self.LAYERS):
            for name, value in getattr(self, attr).items():
                merged[name] = (value, label)
        return merged
