"""projgen configuration documents.

Typed models for the three documents a generation run reads:

* ``TemplateManifest`` -- the template's own ``projgen.toml``.
* ``AppConfig`` -- the user's application config with global default values
  and named favorites.
* ``GenerateOptions`` -- everything the caller decides for one run.

All settings use Pydantic v2 models so they are validated at construction
time; TOML documents are parsed with ``tomllib``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .errors import SchemaError, SchemaErrorCode

MANIFEST_FILE_NAME = "projgen.toml"
IGNORE_FILE_NAME = ".projgenignore"
OVERRIDE_SUFFIX = ".j2"
CONFIG_PATH_ENV = "PROJGEN_CONFIG"


# ---------------------------------------------------------------------------
# Template manifest (projgen.toml)
# ---------------------------------------------------------------------------


class TemplateSection(BaseModel):
    """The ``[template]`` table: selection rules and generation flags."""

    include: list[str] | None = Field(
        default=None, description="Only these paths are rendered; overrides `exclude`"
    )
    exclude: list[str] | None = Field(
        default=None, description="These paths are copied verbatim instead of rendered"
    )
    ignore: list[str] | None = Field(
        default=None, description="These paths are left out of the project entirely"
    )
    init: bool = Field(default=False, description="Generate into the destination itself")
    vcs: str | None = Field(default=None, description="`git` to initialise a repository")


class HooksSection(BaseModel):
    """The ``[hooks]`` table: script paths per phase, relative to the template root."""

    init: list[str] = Field(default_factory=list)
    pre: list[str] = Field(default_factory=list)
    post: list[str] = Field(default_factory=list)

    def all_scripts(self) -> list[str]:
        return [*self.init, *self.pre, *self.post]


class ConditionalSection(BaseModel):
    """One ``[conditional.'<expr>']`` table; may nest further conditionals."""

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)
    placeholders: dict[str, Any] = Field(default_factory=dict)
    conditional: dict[str, ConditionalSection] = Field(default_factory=dict)


ConditionalSection.model_rebuild()


class TemplateManifest(BaseModel):
    """The parsed ``projgen.toml`` of a template.

    Placeholder tables are kept as raw mappings here; they are validated by
    ``projgen.variables.schema`` so each problem gets a specific error code.
    """

    template: TemplateSection = Field(default_factory=TemplateSection)
    placeholders: dict[str, Any] = Field(default_factory=dict)
    conditional: dict[str, ConditionalSection] = Field(default_factory=dict)
    hooks: HooksSection = Field(default_factory=HooksSection)

    @classmethod
    def from_toml(cls, text: str, source: str = MANIFEST_FILE_NAME) -> TemplateManifest:
        """Parse and validate manifest text.

        Raises:
            SchemaError: If the text is not TOML or does not have the
                expected shape.
        """
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise SchemaError(SchemaErrorCode.INVALID_MANIFEST, source, str(exc)) from exc
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise SchemaError(SchemaErrorCode.INVALID_MANIFEST, source, str(exc)) from exc

    @classmethod
    def load(cls, template_root: str | Path) -> TemplateManifest:
        """Load ``projgen.toml`` from *template_root*; a missing file means defaults."""
        path = Path(template_root) / MANIFEST_FILE_NAME
        if not path.is_file():
            return cls()
        return cls.from_toml(path.read_text(encoding="utf-8"), source=str(path))


def locate_template_configs(base_dir: str | Path) -> list[Path]:
    """Find sub-templates below *base_dir*.

    Returns the directories (relative to *base_dir*, sorted) that hold a
    ``projgen.toml``.  The search does not descend into a directory once a
    manifest is found there, and skips ``.git``.
    """
    base = Path(base_dir)
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(d for d in dirnames if d != ".git")
        if MANIFEST_FILE_NAME in filenames:
            found.append(Path(dirpath).relative_to(base))
            dirnames[:] = []
    return sorted(found)


# ---------------------------------------------------------------------------
# Application config (favorites and default values)
# ---------------------------------------------------------------------------


class FavoriteConfig(BaseModel):
    """A named shortcut to a template plus the values to use with it."""

    description: str | None = None
    path: Path | None = None
    values: dict[str, bool | str] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """The user's projgen configuration file."""

    values: dict[str, bool | str] = Field(default_factory=dict)
    favorites: dict[str, FavoriteConfig] = Field(default_factory=dict)

    @staticmethod
    def default_path() -> Path:
        """``$PROJGEN_CONFIG``, else ``~/.config/projgen/config.toml``."""
        override = os.environ.get(CONFIG_PATH_ENV)
        if override:
            return Path(override)
        return Path.home() / ".config" / "projgen" / "config.toml"

    @classmethod
    def load(cls, path: Path | None = None) -> AppConfig:
        """Load the app config; a missing file yields an empty config.

        Raises:
            SchemaError: If the file exists but is malformed.
        """
        target = path or cls.default_path()
        if not target.is_file():
            return cls()
        try:
            data = tomllib.loads(target.read_text(encoding="utf-8"))
            return cls.model_validate(data)
        except (tomllib.TOMLDecodeError, ValidationError) as exc:
            raise SchemaError(SchemaErrorCode.INVALID_MANIFEST, str(target), str(exc)) from exc

    def default_values(self, favorite: str | None = None) -> dict[str, bool | str]:
        """Global ``[values]`` overlaid with the favorite's own values."""
        merged = dict(self.values)
        if favorite and favorite in self.favorites:
            merged.update(self.favorites[favorite].values)
        return merged


# ---------------------------------------------------------------------------
# Per-run options
# ---------------------------------------------------------------------------


class GenerateOptions(BaseModel):
    """Caller-supplied settings for a single generation run."""

    template_root: Path
    destination: Path = Field(default_factory=Path.cwd)
    name: str | None = Field(default=None, description="Project name; prompted when omitted")
    defines: dict[str, bool | str] = Field(
        default_factory=dict, description="Highest-precedence key=value definitions"
    )
    values_file: Path | None = None
    default_values: dict[str, bool | str] = Field(
        default_factory=dict, description="Favorite / app-config defaults"
    )
    environment: dict[str, str] | None = Field(
        default=None, description="Environment to read overrides from; os.environ when None"
    )
    silent: bool = False
    allow_commands: bool = False
    overwrite: bool = False
    init: bool = False
    force: bool = Field(default=False, description="Keep the project name exactly as given")
    continue_on_error: bool = False
