"""Main generation orchestrator.

Takes ``GenerateOptions`` and a template directory on disk and produces the
project: manifest and schema first, then hooks and variable resolution, then
the tree walk, then the post hooks.  Validation problems surface before the
destination is touched.
"""

from __future__ import annotations

import re
import subprocess
import time
from pathlib import Path, PurePosixPath

from ..config import MANIFEST_FILE_NAME, GenerateOptions, TemplateManifest
from ..errors import ResolutionError, ResolutionErrorCode, TemplateIOError
from ..hooks import HookContext, HookPhase, execute_hooks
from ..interactive import prompt_for_variable
from ..paths import to_absolute
from ..utils import console, format_duration, print_success, print_summary_table, print_warning
from ..variables import (
    PlaceholderDefinition,
    PromptFn,
    ValueSources,
    VariableStore,
    parse_schema,
    resolve_variables,
)
from ..variables.builtins import builtin_variables, project_dir_name, project_variables
from .matcher import SelectionRuleSet
from .walker import TreeWalker


class ProjectGenerator:
    """Generates one project from one template.

    The project directory is ``<destination>/<kebab-case name>`` (or the
    name verbatim with ``force``), or ``<destination>`` itself in init mode.
    It is fixed once the project name is known, before pre hooks run, so a
    pre hook that changes ``project_name`` only changes rendered content.
    """

    def __init__(
        self,
        options: GenerateOptions,
        prompt_fn: PromptFn | None = prompt_for_variable,
    ) -> None:
        self.options = options
        self.prompt_fn = None if options.silent else prompt_fn
        self.template_root = to_absolute(options.template_root)
        self.store = VariableStore()

    # -- Public API --------------------------------------------------------

    def generate(self) -> Path:
        """Run every step and return the project directory.

        Raises:
            ProjgenError: Any schema, resolution, script, render or I/O
                failure.  Files already written stay on disk.
        """
        started = time.monotonic()
        if not self.template_root.is_dir():
            raise TemplateIOError(self.template_root, "Template directory does not exist")

        manifest = TemplateManifest.load(self.template_root)
        schema = parse_schema(manifest)
        sources = ValueSources.from_options(self.options)
        init = self.options.init or manifest.template.init

        for name, value in builtin_variables(init=init, environ=self.options.environment).items():
            self.store.insert(name, value)
        if self.options.name:
            for name, value in project_variables(self.options.name, force=self.options.force).items():
                self.store.set(name, value)

        destination_root = to_absolute(self.options.destination)
        # The project directory is not known yet; init hooks see the root.
        execute_hooks(
            self._hook_context(self.template_root, destination_root),
            manifest.hooks.init,
            HookPhase.INIT,
        )

        name = self._project_name()
        for key, value in project_variables(name, force=self.options.force).items():
            self.store.insert(key, value)
        project_dir = self._project_dir(destination_root, name, init)

        resolve_variables(self.store, schema, sources, self.prompt_fn, silent=self.options.silent)

        execute_hooks(
            self._hook_context(self.template_root, project_dir), manifest.hooks.pre, HookPhase.PRE
        )

        rules = SelectionRuleSet.from_manifest(
            manifest.template, schema.conditional_rules, self.store.bindings()
        )
        console.print(f"[bold]Generating[/bold] {project_dir}")
        walker = TreeWalker(
            self.template_root,
            project_dir,
            self.store,
            rules,
            overwrite=self.options.overwrite,
            continue_on_error=self.options.continue_on_error,
            skip=self._housekeeping_files(manifest),
        )
        written = walker.expand()
        print_summary_table(
            {
                "Project": project_dir,
                "Template": self.template_root,
                "Files written": len(written),
                "Left unrendered": len(walker.warnings),
            },
            title="Generated",
        )

        execute_hooks(
            self._hook_context(project_dir, project_dir), manifest.hooks.post, HookPhase.POST
        )
        if manifest.template.vcs == "git" and not init:
            self._init_git(project_dir)

        print_success(f"Done in {format_duration(time.monotonic() - started)}: {project_dir}")
        return project_dir

    # -- Steps -------------------------------------------------------------

    def _hook_context(self, working_directory: Path, destination: Path) -> HookContext:
        return HookContext(
            store=self.store,
            template_root=self.template_root,
            working_directory=working_directory,
            destination_directory=destination,
            allow_commands=self.options.allow_commands,
            silent=self.options.silent,
            prompt_fn=self.prompt_fn,
        )

    def _project_name(self) -> str:
        if self.options.name:
            return self.options.name
        existing = self.store.get("project_name")
        if isinstance(existing, str) and existing:
            return existing
        if self.prompt_fn is None:
            raise ResolutionError(
                ResolutionErrorCode.MISSING_VALUE,
                "project_name",
                "a project name is required when running non-interactively",
            )
        definition = PlaceholderDefinition(
            name="project_name", prompt="Project Name", regex=re.compile(r"\S")
        )
        return str(self.prompt_fn(definition)).strip()

    def _project_dir(self, destination_root: Path, name: str, init: bool) -> Path:
        if init:
            return destination_root
        dir_name = project_dir_name(name, force=self.options.force)
        if dir_name != name:
            console.print(f"[dim]Project directory renamed to `{dir_name}`[/dim]")
        project_dir = destination_root / dir_name
        if project_dir.exists() and not self.options.overwrite:
            raise TemplateIOError(project_dir, "Target directory already exists, aborting")
        return project_dir

    def _init_git(self, project_dir: Path) -> None:
        try:
            result = subprocess.run(
                ["git", "init", "--quiet"], cwd=project_dir, capture_output=True, text=True
            )
        except OSError as exc:
            print_warning(f"Could not initialise a git repository: {exc}")
            return
        if result.returncode != 0:
            print_warning(f"Could not initialise a git repository: {result.stderr.strip()}")

    def _housekeeping_files(self, manifest: TemplateManifest) -> set[str]:
        """Template files that are never copied into the project."""
        skip = {MANIFEST_FILE_NAME}
        for script in manifest.hooks.all_scripts():
            skip.add(PurePosixPath(script.replace("\\", "/")).as_posix().lstrip("/"))
        return skip


def generate(
    options: GenerateOptions, prompt_fn: PromptFn | None = prompt_for_variable
) -> Path:
    """Generate a project; see ``ProjectGenerator``."""
    return ProjectGenerator(options, prompt_fn).generate()
