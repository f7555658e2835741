"""Domain-specific exceptions for diffpane.

Every failure inside the engine or its collaborators raises one of these
so that the strategy selector can degrade precisely instead of guessing.
None of them is allowed to escape ``reconstruct()``; they exist to be
caught at the fallback seams.  Never raise bare Exception.
"""

from __future__ import annotations


# =============================================================================
# Diff Parsing
# =============================================================================


class DiffParseError(Exception):
    """Failed to parse part of a unified diff into structured data."""


class MalformedHunkHeaderError(DiffParseError):
    """A line starting with ``@@`` did not match the hunk header grammar."""

    def __init__(self, line: str) -> None:
        self.line = line
        super().__init__(f"Malformed hunk header: {line[:120]!r}")


# =============================================================================
# Alignment
# =============================================================================


class AlignmentError(Exception):
    """An aligned line pair could not be produced or violates its invariant."""


class AlignmentUnavailableError(AlignmentError):
    """Full-content alignment cannot run for these inputs (e.g. size cap)."""


# =============================================================================
# Content Fetching
# =============================================================================


class ContentFetchError(Exception):
    """Base exception for all content-fetcher failures."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        self.status_code = status_code
        super().__init__(message)


class ContentFetchAuthError(ContentFetchError):
    """Credentials were rejected; check GITHUB_TOKEN / AZURE_DEVOPS_PAT."""


class ContentFetchTimeoutError(ContentFetchError):
    """The provider did not answer within the configured timeout."""


class ContentFetchRateLimitError(ContentFetchError):
    """Provider API rate limit exceeded."""

    def __init__(self, message: str = "Rate limit exceeded", reset_at: str = "") -> None:
        self.reset_at = reset_at
        super().__init__(message, status_code=403)
