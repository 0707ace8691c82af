"""Unit tests for utility functions (projgen.utils).

Tests cover:
- case conversion helpers and split_words
- sanitize_filename (separators, reserved names, truncation)
- write_atomic / remove_path / ensure_dir (use tmp_path)
- format_duration
- Rich output helpers
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from projgen.utils import (
    CASE_CONVERTERS,
    ensure_dir,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    remove_path,
    sanitize_filename,
    split_words,
    to_kebab_case,
    to_lower_camel_case,
    to_pascal_case,
    to_shouty_kebab_case,
    to_shouty_snake_case,
    to_snake_case,
    to_title_case,
    write_atomic,
)


# ---------------------------------------------------------------------------
# Case conversion
# ---------------------------------------------------------------------------


class TestCaseConversion:
    @pytest.mark.unit
    def test_split_words(self):
        assert split_words("myCoolProject") == ["my", "Cool", "Project"]
        assert split_words("HTTPServer v2") == ["HTTP", "Server", "v2"]
        assert split_words("some-thing_else") == ["some", "thing", "else"]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "func, expected",
        [
            (to_kebab_case, "my-cool-project"),
            (to_shouty_kebab_case, "MY-COOL-PROJECT"),
            (to_snake_case, "my_cool_project"),
            (to_shouty_snake_case, "MY_COOL_PROJECT"),
            (to_pascal_case, "MyCoolProject"),
            (to_lower_camel_case, "myCoolProject"),
            (to_title_case, "My Cool Project"),
        ],
    )
    def test_converters(self, func, expected):
        assert func("My cool-project") == expected

    @pytest.mark.unit
    def test_empty_input(self):
        assert to_kebab_case("") == ""
        assert to_lower_camel_case("") == ""

    @pytest.mark.unit
    def test_filter_table_has_aliases(self):
        assert CASE_CONVERTERS["upper_camel_case"] is to_pascal_case
        assert CASE_CONVERTERS["kebab_case"] is to_kebab_case


# ---------------------------------------------------------------------------
# sanitize_filename
# ---------------------------------------------------------------------------


class TestSanitizeFilename:
    @pytest.mark.unit
    def test_separators_become_underscores(self):
        assert sanitize_filename("../../etc/passwd") == ".._.._etc_passwd"
        assert sanitize_filename("a\\b") == "a_b"

    @pytest.mark.unit
    def test_illegal_characters(self):
        assert sanitize_filename('a<b>c:d"e|f?g*h') == "a_b_c_d_e_f_g_h"

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["", ".", "..", "CON", "nul.txt", "com1"])
    def test_reserved_names_replaced(self, name):
        assert sanitize_filename(name) == "_"

    @pytest.mark.unit
    def test_ordinary_names_untouched(self):
        assert sanitize_filename("main.rs") == "main.rs"
        assert sanitize_filename(".gitignore") == ".gitignore"

    @pytest.mark.unit
    def test_truncates_to_255_bytes(self):
        assert len(sanitize_filename("a" * 300).encode()) == 255

    @pytest.mark.unit
    def test_truncation_does_not_split_characters(self):
        result = sanitize_filename("é" * 200)
        assert len(result.encode("utf-8")) <= 255
        assert set(result) == {"é"}


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


class TestFileSystemHelpers:
    @pytest.mark.unit
    def test_ensure_dir(self, tmp_path: Path):
        created = ensure_dir(tmp_path / "a" / "b")
        assert created.is_dir()
        assert ensure_dir(created) == created

    @pytest.mark.unit
    def test_write_atomic_creates_parents(self, tmp_path: Path):
        target = tmp_path / "x" / "y.txt"
        write_atomic(target, b"hello")
        assert target.read_bytes() == b"hello"

    @pytest.mark.unit
    def test_write_atomic_replaces_and_leaves_no_temp_files(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("old")
        write_atomic(target, b"new")
        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    @pytest.mark.unit
    def test_write_atomic_failure_keeps_old_file(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("old")
        with patch("projgen.utils.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_atomic(target, b"new")
        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    @pytest.mark.unit
    def test_remove_path_file_and_tree(self, tmp_path: Path):
        (tmp_path / "tree" / "sub").mkdir(parents=True)
        (tmp_path / "tree" / "sub" / "f.txt").write_text("x")
        (tmp_path / "single.txt").write_text("x")
        remove_path(tmp_path / "tree")
        remove_path(tmp_path / "single.txt")
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.unit
    def test_remove_missing_path_is_fine(self, tmp_path: Path):
        remove_path(tmp_path / "missing")

    @pytest.mark.unit
    def test_remove_path_retries_with_backoff(self, tmp_path: Path):
        target = tmp_path / "tree"
        target.mkdir()
        calls = {"n": 0}

        def flaky_rmtree(path):
            calls["n"] += 1
            if calls["n"] < 3:
                raise PermissionError("busy")
            Path(path).rmdir()

        with patch("projgen.utils.shutil.rmtree", side_effect=flaky_rmtree), patch(
            "projgen.utils.time.sleep"
        ) as sleep:
            remove_path(target, initial_delay=0.1)

        assert not target.exists()
        assert [c.args[0] for c in sleep.call_args_list] == [0.1, 0.2]

    @pytest.mark.unit
    def test_remove_path_gives_up(self, tmp_path: Path):
        target = tmp_path / "tree"
        target.mkdir()
        with patch("projgen.utils.shutil.rmtree", side_effect=PermissionError("busy")), patch(
            "projgen.utils.time.sleep"
        ):
            with pytest.raises(PermissionError):
                remove_path(target, retries=2)


# ---------------------------------------------------------------------------
# Formatting and output
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-1) == "0.0s"


class TestRichHelpers:
    @pytest.mark.unit
    def test_print_helpers_escape_markup(self, capsys):
        print_success("created [values] table")
        print_warning("careful")
        print_error("failed [/oops]")
        out = capsys.readouterr().out
        assert "[values]" in out
        assert "[/oops]" in out
        assert "careful" in out

    @pytest.mark.unit
    def test_print_summary_table(self, capsys):
        print_summary_table({"project_name": "demo"}, title="Variables")
        out = capsys.readouterr().out
        assert "project_name" in out
        assert "demo" in out
