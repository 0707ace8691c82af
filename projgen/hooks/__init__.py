"""Hook scripts: Python files a template runs around generation.

Scripts are executed with ``exec`` in a namespace that binds exactly four
capability modules (``variable``, ``file``, ``system`` and the read-only
``env``), the case-conversion helpers and ``abort``.  ``open`` and
``import`` are not available; everything a script does to the outside world
goes through a capability.  This is a capability boundary for well-behaved
templates, not a defence against hostile Python code.

Quick usage::

    from projgen.hooks import HookContext, HookPhase, execute_hooks

    context = HookContext(store, template_root, template_root, destination)
    execute_hooks(context, manifest.hooks.pre, HookPhase.PRE)
"""

from __future__ import annotations

import builtins
from collections.abc import Sequence
from typing import Any, NoReturn

from projgen.errors import ScriptError
from projgen.hooks.context import HookContext, HookFailure, HookPhase, working_directory
from projgen.hooks.env_mod import EnvModule
from projgen.hooks.file_mod import FileModule
from projgen.hooks.system_mod import SystemModule
from projgen.hooks.variable_mod import VariableModule
from projgen.paths import to_sandboxed_absolute
from projgen.utils import CASE_CONVERTERS, console

_BLOCKED_BUILTINS = frozenset(
    {
        "__import__",
        "breakpoint",
        "compile",
        "eval",
        "exec",
        "exit",
        "globals",
        "input",
        "locals",
        "open",
        "quit",
        "vars",
    }
)


def _restricted_builtins() -> dict[str, Any]:
    return {
        name: value
        for name, value in vars(builtins).items()
        if name not in _BLOCKED_BUILTINS
    }


def abort(message: str) -> NoReturn:
    """Stop the script (and the generation run) with *message*."""
    raise HookFailure(message)


def build_namespace(context: HookContext) -> dict[str, Any]:
    """Fresh globals for one phase's scripts."""
    namespace: dict[str, Any] = {
        "__builtins__": _restricted_builtins(),
        "__name__": "__hook__",
        "variable": VariableModule(context),
        "file": FileModule(context),
        "system": SystemModule(context),
        "env": EnvModule(context),
        "abort": abort,
    }
    for case_name, converter in CASE_CONVERTERS.items():
        namespace[f"to_{case_name}"] = converter
    return namespace


def execute_hooks(
    context: HookContext, scripts: Sequence[str], phase: HookPhase
) -> None:
    """Run *scripts* in order; the first failure aborts the phase.

    Each script path is resolved against ``context.template_root`` through
    the path sandbox.  The process cwd is ``context.working_directory``
    while the phase runs and is restored afterwards, whatever happens.

    Raises:
        ScriptError: Naming the phase and script that failed, chained to the
            underlying exception.
    """
    if not scripts:
        return

    namespace = build_namespace(context)
    with working_directory(context.working_directory):
        for script in scripts:
            try:
                path = to_sandboxed_absolute(context.template_root, script)
                source = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ScriptError(phase.value, script, f"cannot read script ({exc})") from exc
            except Exception as exc:
                raise ScriptError(phase.value, script, str(exc)) from exc

            console.print(f"[dim]Running {phase.value} hook {script}[/dim]")
            script_globals = dict(namespace)
            try:
                exec(compile(source, str(path), "exec"), script_globals)
            except HookFailure as exc:
                raise ScriptError(phase.value, script, str(exc)) from exc
            except (Exception, SystemExit) as exc:
                raise ScriptError(phase.value, script, f"{type(exc).__name__}: {exc}") from exc


__all__ = [
    "HookContext",
    "HookFailure",
    "HookPhase",
    "abort",
    "build_namespace",
    "execute_hooks",
    "working_directory",
]
