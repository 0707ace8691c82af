"""Tests for the template tree walker (projgen.scaffolder.walker).

Covers:
- Rendering of contents and path components
- Override (.j2) entries and destination collisions
- Ignore file, selection rules and VCS directories
- Binary passthrough, file modes and overwrite protection
- Tolerated render errors
"""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from projgen.errors import RenderError, TemplateIOError
from projgen.scaffolder.matcher import SelectionRuleSet
from projgen.scaffolder.walker import TreeWalker, expand
from projgen.variables import VariableStore


def _files(root: Path) -> dict[str, str]:
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8", errors="replace")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestRendering:
    def test_contents_and_names_are_rendered(self, make_template, destination, store: VariableStore):
        template = make_template(
            {
                "README.md": "# {{ project_name }}\n",
                "src/{{ package_name }}/__init__.py": "NAME = '{{ project_name | pascal_case }}'\n",
                "LICENSE": "plain text\n",
            }
        )
        written = expand(template, destination, store)
        assert _files(destination) == {
            "LICENSE": "plain text\n",
            "README.md": "# demo-app\n",
            "src/demo_app/__init__.py": "NAME = 'DemoApp'\n",
        }
        assert written == sorted(written)
        assert len(written) == 3

    def test_rendered_name_is_sanitized(self, make_template, destination, store: VariableStore):
        store.set("title", "a/b:c")
        template = make_template({"{{ title }}.txt": "x"})
        expand(template, destination, store)
        assert (destination / "a_b_c.txt").is_file()

    def test_excluded_files_are_copied_verbatim(self, make_template, destination, store: VariableStore):
        template = make_template({"snippets/{{ keep }}.txt": "{{ raw }}"})
        expand(template, destination, store, SelectionRuleSet(exclude=["snippets/"]))
        assert (destination / "snippets" / "{{ keep }}.txt").read_text() == "{{ raw }}"

    def test_binary_files_pass_through(self, make_template, destination, store: VariableStore):
        payload = b"\x89PNG\r\n\x1a\n{{ project_name }}\xff\xfe"
        template = make_template({"logo.png": payload})
        expand(template, destination, store)
        assert (destination / "logo.png").read_bytes() == payload

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX file modes")
    def test_file_mode_is_preserved(self, make_template, destination, store: VariableStore):
        template = make_template({"run.sh": "#!/bin/sh\necho {{ project_name }}\n"})
        os.chmod(template / "run.sh", 0o755)
        expand(template, destination, store)
        assert (destination / "run.sh").stat().st_mode & stat.S_IXUSR


# ---------------------------------------------------------------------------
# Overrides and collisions
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestOverrides:
    def test_override_beats_plain_sibling(self, make_template, destination, store: VariableStore):
        template = make_template({"README.md": "plain", "README.md.j2": "override {{ project_name }}"})
        expand(template, destination, store)
        assert _files(destination) == {"README.md": "override demo-app"}

    def test_override_replaces_existing_destination(self, make_template, destination, store: VariableStore):
        (destination / "README.md").write_text("old")
        template = make_template({"README.md.j2": "new"})
        expand(template, destination, store)
        assert (destination / "README.md").read_text() == "new"

    def test_bare_suffix_is_a_normal_file(self, make_template, destination, store: VariableStore):
        template = make_template({".j2": "x"})
        expand(template, destination, store)
        assert (destination / ".j2").is_file()

    def test_plain_collision_is_an_error(self, make_template, destination, store: VariableStore):
        store.set("a", "same")
        store.set("b", "same")
        template = make_template({"{{ a }}.txt": "1", "{{ b }}.txt": "2"})
        with pytest.raises(RenderError, match="same file"):
            expand(template, destination, store)
        assert _files(destination) == {}


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSelection:
    def test_ignore_file(self, make_template, destination, store: VariableStore):
        template = make_template(
            {
                ".projgenignore": "target/\n*.log\n!keep.log\n",
                "target/debug/app": "bin",
                "debug.log": "x",
                "keep.log": "y",
                "main.py": "z",
            }
        )
        expand(template, destination, store)
        assert sorted(_files(destination)) == ["keep.log", "main.py"]

    def test_rules_ignore(self, make_template, destination, store: VariableStore):
        template = make_template({".github/workflows/ci.yml": "on: push", "main.py": ""})
        expand(template, destination, store, SelectionRuleSet(ignore=[".github/"]))
        assert sorted(_files(destination)) == ["main.py"]

    def test_vcs_directories_are_skipped(self, make_template, destination, store: VariableStore):
        template = make_template({".git/HEAD": "ref", ".hg/store": "x", "main.py": ""})
        expand(template, destination, store)
        assert sorted(_files(destination)) == ["main.py"]

    def test_skip_list(self, make_template, destination, store: VariableStore):
        template = make_template({"projgen.toml": "", "hooks/pre.py": "", "main.py": ""})
        expand(template, destination, store, skip=["projgen.toml", "hooks/pre.py"])
        assert sorted(_files(destination)) == ["main.py"]


# ---------------------------------------------------------------------------
# Destination safety and errors
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestDestination:
    def test_existing_file_blocks_the_whole_run(self, make_template, destination, store: VariableStore):
        (destination / "b.txt").write_text("mine")
        template = make_template({"a.txt": "new a", "b.txt": "new b"})
        with pytest.raises(TemplateIOError, match="already exists"):
            expand(template, destination, store)
        assert not (destination / "a.txt").exists()
        assert (destination / "b.txt").read_text() == "mine"

    def test_overwrite(self, make_template, destination, store: VariableStore):
        (destination / "b.txt").write_text("mine")
        template = make_template({"b.txt": "new b"})
        expand(template, destination, store, overwrite=True)
        assert (destination / "b.txt").read_text() == "new b"

    def test_render_error_aborts(self, make_template, destination, store: VariableStore):
        template = make_template({"bad.txt": "{% if %}"})
        with pytest.raises(RenderError):
            expand(template, destination, store)

    def test_continue_on_error_keeps_original(self, make_template, destination, store: VariableStore):
        template = make_template({"bad.txt": "{% if %}", "{% oops %}.txt": "ok", "good.txt": "{{ project_name }}"})
        walker = TreeWalker(template, destination, store, continue_on_error=True)
        walker.expand()
        assert (destination / "bad.txt").read_text() == "{% if %}"
        assert (destination / "good.txt").read_text() == "demo-app"
        assert (destination / "{% oops %}.txt").read_text() == "ok"
        assert len(walker.warnings) == 2

    def test_index_is_built_before_writing(self, make_template, destination, store: VariableStore):
        template = make_template({"a.txt": "", "b/c.txt": ""})
        index = TreeWalker(template, destination, store).build_index()
        assert sorted(str(target) for target in index) == ["a.txt", "b/c.txt"]
        assert _files(destination) == {}
