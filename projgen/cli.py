"""Command-line entry point: ``projgen`` / ``python -m projgen``.

Copies a local template directory to a scratch location (so hook scripts can
modify it freely), generates the project from the copy, and removes the copy
afterwards.
"""

from __future__ import annotations

import argparse
import shutil
import sys
import tempfile
from pathlib import Path

from .config import MANIFEST_FILE_NAME, AppConfig, GenerateOptions, locate_template_configs
from .errors import ProjgenError, TemplateIOError
from .paths import to_absolute, to_sandboxed_absolute
from .scaffolder import generate
from .utils import console, print_error, remove_path
from .variables import parse_definitions


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projgen",
        description="Generate a new project from a template directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  projgen ./templates/cli-app --name my-tool\n"
            "  projgen ./templates/web --name site -d license=MIT --silent\n"
            "  projgen --favorite web --name site\n"
        ),
    )
    parser.add_argument("template", nargs="?", help="Path to the template directory")
    parser.add_argument(
        "subfolder", nargs="?", help="Sub-template inside the template directory"
    )
    parser.add_argument("--name", "-n", default=None, help="Project name")
    parser.add_argument(
        "--destination", default=".", help="Directory to create the project in (default: .)"
    )
    parser.add_argument(
        "--define", "-d", action="append", default=[], metavar="NAME=VALUE",
        help="Provide a placeholder value (repeatable)",
    )
    parser.add_argument("--values-file", default=None, help="TOML or YAML file with a values table")
    parser.add_argument("--favorite", default=None, help="Favorite from the app config to use")
    parser.add_argument("--config", default=None, help="App config file (default: ~/.config/projgen/config.toml)")
    parser.add_argument("--silent", "-s", action="store_true", help="Never prompt; use defaults")
    parser.add_argument(
        "--allow-commands", action="store_true", help="Let hook scripts run system commands"
    )
    parser.add_argument(
        "--overwrite", action="store_true", help="Replace files that already exist"
    )
    parser.add_argument(
        "--init", action="store_true", help="Generate into the destination directory itself"
    )
    parser.add_argument(
        "--force", "-f", action="store_true", help="Use the project name verbatim for the directory"
    )
    parser.add_argument(
        "--continue-on-error", action="store_true",
        help="Copy files that fail to render unrendered instead of aborting",
    )
    return parser


def _template_location(args: argparse.Namespace, app_config: AppConfig) -> Path:
    if args.template:
        return to_absolute(args.template)
    favorite = app_config.favorites.get(args.favorite or "")
    if favorite is not None and favorite.path is not None:
        return to_absolute(favorite.path.expanduser())
    raise TemplateIOError(
        Path(args.favorite or "."), "No template given and no favorite with a path found"
    )


def _copy_template(source: Path, scratch: Path) -> Path:
    if not source.is_dir():
        raise TemplateIOError(source, "Template directory does not exist")
    target = scratch / "template"
    try:
        shutil.copytree(source, target, symlinks=True, ignore=shutil.ignore_patterns(".git"))
    except OSError as exc:
        raise TemplateIOError(source, f"Cannot copy template ({exc})") from exc
    return target


def _select_template_root(root: Path, subfolder: str | None) -> Path:
    if subfolder:
        selected = to_sandboxed_absolute(root, subfolder)
        if not selected.is_dir():
            raise TemplateIOError(Path(subfolder), "Sub-template not found")
        return selected
    if (root / MANIFEST_FILE_NAME).is_file():
        return root
    candidates = locate_template_configs(root)
    if len(candidates) == 1:
        return root / candidates[0]
    if candidates:
        listing = ", ".join(p.as_posix() for p in candidates)
        raise TemplateIOError(root, f"Several templates found; pick one of: {listing}")
    return root


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m projgen``."""
    args = _build_parser().parse_args(argv)

    scratch: Path | None = None
    try:
        app_config = AppConfig.load(Path(args.config) if args.config else None)
        source = _template_location(args, app_config)
        defines = parse_definitions(args.define)

        scratch = Path(tempfile.mkdtemp(prefix="projgen-"))
        template_root = _select_template_root(_copy_template(source, scratch), args.subfolder)

        options = GenerateOptions(
            template_root=template_root,
            destination=to_absolute(args.destination),
            name=args.name,
            defines=defines,
            values_file=Path(args.values_file) if args.values_file else None,
            default_values=app_config.default_values(args.favorite),
            silent=args.silent,
            allow_commands=args.allow_commands,
            overwrite=args.overwrite,
            init=args.init,
            force=args.force,
            continue_on_error=args.continue_on_error,
        )
        generate(options)
    except ProjgenError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)
    finally:
        if scratch is not None:
            remove_path(scratch)


if __name__ == "__main__":
    main()
