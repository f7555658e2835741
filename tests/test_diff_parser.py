"""Tests for the unified diff parser.

Covers:
- Single hunk (header counts, body lines kept verbatim)
- Multi-hunk file with section headers
- Malformed hunk header (dropped, parsing continues)
- No newline at end of file markers
- Hunk-count awareness (trailing blank lines, --- lines inside a body)
- Multi-file splitting (added, removed, renamed, binary)
- Revision pair extraction
- Empty diff
"""

from __future__ import annotations

from pathlib import Path

import pytest

from diffpane.core.diff_parser import (
    RevisionPair,
    detect_language,
    extract_revision_pair,
    parse_hunks,
    split_diff_lines,
    split_file_sections,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "diffs"


def _load_fixture(name: str) -> str:
    """Load a diff fixture file."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


# =============================================================================
#  Hunk parsing
# =============================================================================


class TestSingleHunk:
    """A one-hunk diff with file headers."""

    def test_parses_one_hunk(self) -> None:
        hunks = parse_hunks(_load_fixture("single_hunk.diff"))
        assert len(hunks) == 1

    def test_header_counts(self) -> None:
        hunk = parse_hunks(_load_fixture("single_hunk.diff"))[0]
        assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (1, 3, 1, 3)

    def test_body_lines_verbatim(self) -> None:
        hunk = parse_hunks(_load_fixture("single_hunk.diff"))[0]
        assert hunk.lines == [" a", "-b", "+B", " c"]

    def test_file_headers_not_in_body(self) -> None:
        hunk = parse_hunks(_load_fixture("single_hunk.diff"))[0]
        assert not any(line.startswith(("---", "+++", "index", "diff")) for line in hunk.lines)

    def test_no_section_header(self) -> None:
        hunk = parse_hunks(_load_fixture("single_hunk.diff"))[0]
        assert hunk.header is None

    def test_omitted_counts_default_to_one(self) -> None:
        hunks = parse_hunks("@@ -7 +7 @@\n-x\n+y\n")
        assert (hunks[0].old_count, hunks[0].new_count) == (1, 1)


class TestMultiHunk:
    """Three hunks, two carrying a section header."""

    def test_has_three_hunks(self) -> None:
        assert len(parse_hunks(_load_fixture("multi_hunk.diff"))) == 3

    def test_section_headers(self) -> None:
        hunks = parse_hunks(_load_fixture("multi_hunk.diff"))
        assert hunks[0].header is None
        assert hunks[1].header == "export function total(items) {"
        assert hunks[2].header == "export function clear(cart) {"

    def test_blank_context_line_kept(self) -> None:
        hunks = parse_hunks(_load_fixture("multi_hunk.diff"))
        assert " " in hunks[0].lines

    def test_line_counts_match_headers(self) -> None:
        for hunk in parse_hunks(_load_fixture("multi_hunk.diff")):
            old = sum(1 for line in hunk.lines if not line.startswith("+"))
            new = sum(1 for line in hunk.lines if not line.startswith("-"))
            assert (old, new) == (hunk.old_count, hunk.new_count)


class TestMalformedHeader:
    """An unparsable @@ line drops only its own hunk."""

    def test_other_hunks_survive(self) -> None:
        hunks = parse_hunks(_load_fixture("malformed_header.diff"))
        assert [h.old_start for h in hunks] == [1, 20]

    def test_dropped_hunk_body_not_attached_elsewhere(self) -> None:
        hunks = parse_hunks(_load_fixture("malformed_header.diff"))
        body = [line for h in hunks for line in h.lines]
        assert "-gamma" not in body
        assert "+GAMMA" not in body

    def test_does_not_raise_on_garbage_header(self) -> None:
        assert parse_hunks("@@ nonsense @@\n+x\n") == []


class TestNoNewline:
    """'\\ No newline at end of file' markers are not body lines."""

    def test_marker_not_in_lines(self) -> None:
        hunk = parse_hunks(_load_fixture("no_newline.diff"))[0]
        assert hunk.lines == ["-1.0.0", "+1.1.0"]


class TestCountAwareness:
    """Blank and ---/+++ lines are judged against the declared counts."""

    def test_trailing_blank_line_after_hunk_ignored(self) -> None:
        hunks = parse_hunks("@@ -1,1 +1,1 @@\n-a\n+b\n\n\n")
        assert hunks[0].lines == ["-a", "+b"]

    def test_blank_line_inside_hunk_is_context(self) -> None:
        hunks = parse_hunks("@@ -1,3 +1,3 @@\n a\n\n c\n")
        assert hunks[0].lines == [" a", "", " c"]

    def test_removed_dashes_line_inside_hunk_kept(self) -> None:
        hunks = parse_hunks("@@ -1,2 +1,1 @@\n---- heading\n keep\n")
        assert hunks[0].lines == ["---- heading", " keep"]

    def test_crlf_normalized(self) -> None:
        hunks = parse_hunks("@@ -1,2 +1,2 @@\r\n a\r\n-b\r\n+c\r\n")
        assert hunks[0].lines == [" a", "-b", "+c"]


class TestEmptyDiff:
    def test_empty_string(self) -> None:
        assert parse_hunks("") == []

    def test_whitespace_only(self) -> None:
        assert parse_hunks("   \n\n  ") == []

    def test_no_hunk_markers(self) -> None:
        assert parse_hunks("+added\n-removed\n") == []


# =============================================================================
#  File sections
# =============================================================================


class TestSplitFileSections:
    """A five-file git diff."""

    @pytest.fixture()
    def sections(self):
        return split_file_sections(_load_fixture("multi_file.diff"))

    def test_five_sections(self, sections) -> None:
        assert len(sections) == 5

    def test_statuses(self, sections) -> None:
        assert [s.status for s in sections] == ["modified", "added", "removed", "renamed", "modified"]

    def test_paths(self, sections) -> None:
        assert [s.path for s in sections] == [
            "src/app.py",
            "docs/new.md",
            "old.txt",
            "lib/b.ts",
            "logo.png",
        ]

    def test_rename_keeps_old_path(self, sections) -> None:
        assert sections[3].old_path == "lib/a.ts"
        assert sections[0].old_path is None

    def test_binary_detected(self, sections) -> None:
        assert sections[4].is_binary is True
        assert parse_hunks(sections[4].text) == []

    def test_language(self, sections) -> None:
        assert sections[0].language == "python"
        assert sections[3].language == "typescript"

    def test_each_section_parses_on_its_own(self, sections) -> None:
        assert len(parse_hunks(sections[0].text)) == 1
        assert parse_hunks(sections[1].text)[0].lines == ["+# New", "+text"]

    def test_headerless_text_is_one_section(self) -> None:
        sections = split_file_sections(_load_fixture("no_newline.diff"))
        assert len(sections) == 1
        assert sections[0].path == "version.txt"

    def test_empty(self) -> None:
        assert split_file_sections("") == []


class TestRevisionPair:
    def test_from_index_line(self) -> None:
        assert extract_revision_pair(_load_fixture("single_hunk.diff")) == RevisionPair("1a2b3c4", "5d6e7f8")

    def test_from_full_shas(self) -> None:
        base = "a" * 40
        head = "b" * 40
        text = f"Comparing {base} with {head}\n@@ -1 +1 @@\n-x\n+y\n"
        assert extract_revision_pair(text) == RevisionPair(base, head)

    def test_none_when_absent(self) -> None:
        assert extract_revision_pair("@@ -1 +1 @@\n-x\n+y\n") is None


class TestHelpers:
    def test_split_lines_trailing_newline(self) -> None:
        assert split_diff_lines("a\nb\n") == ["a", "b"]

    def test_split_lines_empty(self) -> None:
        assert split_diff_lines("") == []

    def test_split_lines_keeps_inner_blank(self) -> None:
        assert split_diff_lines("a\n\nb") == ["a", "", "b"]

    @pytest.mark.parametrize(
        "path,language",
        [("a/b.py", "python"), ("x.TSX", "typescript"), ("Makefile", None), ("style.scss", "scss")],
    )
    def test_detect_language(self, path: str, language: str | None) -> None:
        assert detect_language(path) == language
