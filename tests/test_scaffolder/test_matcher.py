"""Tests for gitignore-style matching and selection rules (projgen.scaffolder.matcher)."""

from __future__ import annotations

from pathlib import Path

import pytest

from projgen.config import TemplateSection
from projgen.scaffolder.matcher import PathMatcher, SelectionRuleSet
from projgen.variables import ConditionExpr, ConditionalRules

pytestmark = pytest.mark.unit


class TestPathMatcher:
    @pytest.mark.parametrize(
        "pattern, path, expected",
        [
            ("*.md", "README.md", True),
            ("*.md", "docs/guide.md", True),
            ("*.md", "README.txt", False),
            ("/README.md", "README.md", True),
            ("/README.md", "docs/README.md", False),
            ("docs/*.md", "docs/guide.md", True),
            ("docs/*.md", "docs/deep/guide.md", False),
            ("docs/**", "docs/deep/guide.md", True),
            ("**/*.md", "a/b/c.md", True),
            ("**/*.md", "c.md", True),
            ("file?.txt", "file1.txt", True),
            ("file?.txt", "file10.txt", False),
            ("[abc].txt", "b.txt", True),
            ("[!abc].txt", "b.txt", False),
        ],
    )
    def test_glob_semantics(self, pattern, path, expected):
        assert PathMatcher([pattern]).matches(path) is expected

    def test_directory_match_covers_descendants(self):
        matcher = PathMatcher(["build"])
        assert matcher.matches("build/out/app.bin")
        assert matcher.matches("src/build/x.o")

    def test_dir_only_pattern(self):
        matcher = PathMatcher(["cache/"])
        assert matcher.matches("cache", is_dir=True)
        assert not matcher.matches("cache")
        assert matcher.matches("cache/entry")

    def test_negation_last_match_wins(self):
        matcher = PathMatcher(["*.log", "!keep.log"])
        assert matcher.matches("debug.log")
        assert not matcher.matches("keep.log")

    def test_comments_and_blank_lines(self):
        matcher = PathMatcher(["# comment", "", "   "])
        assert not matcher
        assert not matcher.matches("anything")

    def test_from_file(self, tmp_path: Path):
        ignore_file = tmp_path / ".projgenignore"
        ignore_file.write_text("# generated\ntarget/\n*.tmp\n")
        matcher = PathMatcher.from_file(ignore_file)
        assert matcher.matches("target/debug/app")
        assert matcher.matches("notes.tmp")
        assert not matcher.matches("src/main.rs")


class TestSelectionRuleSet:
    def test_defaults_render_everything(self):
        rules = SelectionRuleSet()
        assert rules.should_render("any/file.txt")
        assert not rules.is_ignored("any/file.txt")

    def test_exclude_copies_verbatim(self):
        rules = SelectionRuleSet(exclude=["assets/"])
        assert not rules.should_render("assets/logo.svg")
        assert rules.should_render("src/main.py")

    def test_include_takes_precedence_over_exclude(self):
        rules = SelectionRuleSet(include=["*.py"], exclude=["*.py"])
        assert rules.should_render("main.py")
        assert not rules.should_render("README.md")

    def test_ignore(self):
        rules = SelectionRuleSet(ignore=["secrets/"])
        assert rules.is_ignored("secrets/key.pem")

    def test_from_manifest_merges_active_conditionals(self):
        template = TemplateSection(exclude=["vendor/"], ignore=["*.bak"])
        conditionals = [
            ConditionalRules(guard=ConditionExpr("!ci"), ignore=(".github/",)),
            ConditionalRules(guard=ConditionExpr("docs"), include=("docs/*",)),
        ]
        rules = SelectionRuleSet.from_manifest(template, conditionals, {"ci": False, "docs": False})
        assert rules.is_ignored(".github/workflows/ci.yml")
        assert rules.is_ignored("old.bak")
        assert rules.include is None
        assert not rules.should_render("vendor/lib.js")

    def test_conditional_include_switches_to_include_mode(self):
        rules = SelectionRuleSet.from_manifest(
            TemplateSection(),
            [ConditionalRules(guard=ConditionExpr("docs"), include=("docs/*",))],
            {"docs": True},
        )
        assert rules.should_render("docs/index.md")
        assert not rules.should_render("src/main.py")

    def test_guard_on_unbound_placeholder_does_not_hold(self):
        rules = SelectionRuleSet.from_manifest(
            TemplateSection(),
            [ConditionalRules(guard=ConditionExpr('db_kind == "postgres"'), ignore=("mysql/",))],
            {"use_db": False},
        )
        assert not rules.is_ignored("mysql/schema.sql")
