"""Unified diff parser: turns raw diff text into hunks and file sections.

Key concepts:
- The engine reconstructs one file at a time.  ``split_file_sections`` cuts a
  multi-file ``git diff`` into per-file slices; ``parse_hunks`` then turns one
  slice into ``Hunk`` objects whose ``lines`` are the raw body lines, still
  carrying their leading ``' '``/``'+'``/``'-'`` marker.
- The @@ header may include an optional section name after the second @@
  (e.g. a function signature emitted by ``git diff``); it is kept so the
  reconstructor can show it as a context header row.
- A malformed @@ line drops only its own hunk.  Parsing never aborts.

Pure functions, no I/O.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Literal

from diffpane.core.exceptions import MalformedHunkHeaderError

logger = logging.getLogger(__name__)


# =============================================================================
#  Data classes
# =============================================================================


@dataclass
class Hunk:
    """One @@-block of a single file's diff."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    header: str | None = None             # text after the closing @@, if any
    lines: list[str] = field(default_factory=list)  # raw body lines with marker


@dataclass
class FileSection:
    """One file's slice of a multi-file diff."""

    path: str
    old_path: str | None                  # set only when the file was renamed
    status: Literal["added", "modified", "removed", "renamed"]
    language: str | None
    text: str
    is_binary: bool = False


@dataclass(frozen=True)
class RevisionPair:
    """The two revisions a diff was computed between."""

    base: str
    head: str


# =============================================================================
#  Regexes
# =============================================================================

# Matches: @@ -10,5 +10,7 @@ optional section header
_HUNK_HEADER_RE = re.compile(
    r"^@@\s+-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@(.*)$"
)

_GIT_HEADER_RE = re.compile(r"^diff --git a/(.*) b/(.*)$")

_INDEX_LINE_RE = re.compile(r"^index ([0-9a-f]{7,40})\.\.([0-9a-f]{7,40})", re.MULTILINE)

_FULL_SHA_RE = re.compile(r"\b[0-9a-f]{40}\b")

_LANGUAGES: dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".kt": "kotlin",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".swift": "swift",
    ".php": "php",
    ".rb": "ruby",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".sql": "sql",
    ".sh": "bash",
}


def detect_language(path: str) -> str | None:
    """Guess the language of ``path`` from its extension."""
    _, ext = os.path.splitext(path)
    return _LANGUAGES.get(ext.lower())


def split_diff_lines(text: str) -> list[str]:
    """Split text on newlines, normalizing CRLF.

    A trailing newline terminates the last line instead of opening a new,
    empty one.  Empty text has no lines.
    """
    if not text:
        return []
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


# =============================================================================
#  Hunk parsing
# =============================================================================


def _parse_hunk_header(line: str) -> Hunk:
    match = _HUNK_HEADER_RE.match(line)
    if match is None:
        raise MalformedHunkHeaderError(line)
    header = match.group(5).strip()
    return Hunk(
        old_start=int(match.group(1)),
        old_count=int(match.group(2)) if match.group(2) is not None else 1,
        new_start=int(match.group(3)),
        new_count=int(match.group(4)) if match.group(4) is not None else 1,
        header=header or None,
    )


def parse_hunks(diff_text: str) -> list[Hunk]:
    """Parse one file's unified diff into an ordered list of hunks.

    File header lines (``diff --git``, ``index``, ``---``, ``+++``) are
    skipped.  Body lines are kept verbatim.  Once a hunk has consumed the
    line counts its header declared, trailing blank lines and ``---``/``+++``
    lines are no longer treated as body; inside the declared range they are
    (a removed line whose text starts with ``--`` looks like ``---``).

    Args:
        diff_text: Unified diff text for a single file.

    Returns:
        Hunks in input order.  Hunks with malformed headers are dropped.
    """
    if not diff_text or not diff_text.strip():
        return []

    hunks: list[Hunk] = []
    current: Hunk | None = None
    old_seen = 0
    new_seen = 0
    dropped = 0

    for line in split_diff_lines(diff_text):
        # --- Hunk header ---
        if line.startswith("@@"):
            try:
                current = _parse_hunk_header(line)
            except MalformedHunkHeaderError as exc:
                # Drop this hunk's body too: without a header its line
                # numbers are unknown.
                logger.warning("Skipping hunk: %s", exc)
                current = None
                dropped += 1
                continue
            hunks.append(current)
            old_seen = new_seen = 0
            continue

        if line.startswith("diff --git "):
            current = None
            continue

        if current is None:
            continue

        exhausted = old_seen >= current.old_count and new_seen >= current.new_count

        # --- Body lines ---
        if line.startswith("\\"):
            # "\ No newline at end of file"
            continue

        if line == "":
            if not exhausted:
                current.lines.append(line)
                old_seen += 1
                new_seen += 1
            continue

        if exhausted and line.startswith(("---", "+++", "index ")):
            continue

        marker = line[0]
        if marker == " ":
            old_seen += 1
            new_seen += 1
        elif marker == "-":
            old_seen += 1
        elif marker == "+":
            new_seen += 1
        else:
            # Metadata such as "new file mode" or stray prose.
            continue
        current.lines.append(line)

    logger.debug(
        "Parsed %d hunks (%d dropped, %d body lines)",
        len(hunks),
        dropped,
        sum(len(h.lines) for h in hunks),
    )
    return hunks


# =============================================================================
#  File sections
# =============================================================================


def _section_from_lines(lines: list[str]) -> FileSection:
    """Build a ``FileSection`` from the lines of one file's diff."""
    path = ""
    old_path: str | None = None
    status: Literal["added", "modified", "removed", "renamed"] = "modified"
    is_binary = False

    header_match = _GIT_HEADER_RE.match(lines[0]) if lines else None
    if header_match:
        old, path = header_match.group(1), header_match.group(2)
        if old != path:
            old_path = old
            status = "renamed"

    # Metadata lives between the file header and the first hunk.
    for line in lines:
        if line.startswith("@@"):
            break
        if line.startswith("new file mode") or line == "--- /dev/null":
            status = "added"
        elif line.startswith("deleted file mode") or line == "+++ /dev/null":
            status = "removed"
        elif line.startswith("rename from "):
            status = "renamed"
            old_path = line[len("rename from "):]
        elif line.startswith("rename to "):
            path = line[len("rename to "):]
        elif line.startswith("Binary files"):
            is_binary = True
        elif line.startswith("+++ b/"):
            path = line[len("+++ b/"):]
        elif line.startswith("--- a/") and not path:
            path = line[len("--- a/"):]

    return FileSection(
        path=path,
        old_path=old_path,
        status=status,
        language=detect_language(path),
        text="\n".join(lines),
        is_binary=is_binary,
    )


def split_file_sections(diff_text: str) -> list[FileSection]:
    """Split a multi-file diff into one section per file.

    Sections start at ``diff --git`` headers; anything before the first
    header (commit message, stat block) is ignored.  Text with no
    ``diff --git`` header at all is returned as a single section.
    """
    if not diff_text or not diff_text.strip():
        return []

    lines = split_diff_lines(diff_text)
    if not any(line.startswith("diff --git ") for line in lines):
        return [_section_from_lines(lines)]

    sections: list[FileSection] = []
    current: list[str] | None = None
    for line in lines:
        if line.startswith("diff --git "):
            if current is not None:
                sections.append(_section_from_lines(current))
            current = [line]
        elif current is not None:
            current.append(line)
    if current is not None:
        sections.append(_section_from_lines(current))

    logger.debug(
        "Split diff into %d file sections (%d binary)",
        len(sections),
        sum(1 for s in sections if s.is_binary),
    )
    return sections


def extract_revision_pair(diff_text: str) -> RevisionPair | None:
    """Read the base/head revisions a diff was produced from.

    Uses the ``index <base>..<head>`` line git emits; failing that, the
    first two distinct full 40-character SHAs in the text.
    """
    if not diff_text:
        return None

    match = _INDEX_LINE_RE.search(diff_text)
    if match:
        return RevisionPair(base=match.group(1), head=match.group(2))

    shas: list[str] = []
    for sha in _FULL_SHA_RE.findall(diff_text):
        if sha not in shas:
            shas.append(sha)
        if len(shas) == 2:
            return RevisionPair(base=shas[0], head=shas[1])
    return None
