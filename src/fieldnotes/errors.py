"""Error types shared across the content toolkit."""

from __future__ import annotations

from pathlib import Path


class FieldnotesError(Exception):
    """Base error for everything the toolkit raises on purpose."""


class ContentError(FieldnotesError):
    """A content file could not be read or interpreted."""


class FrontMatterError(ContentError):
    """Front-matter block is missing, unterminated, or malformed.

    Carries the offending line number (1-based, counted from the top of
    the file) when one can be pinned down.
    """

    def __init__(self, message: str, *, path: Path | None = None, line: int | None = None) -> None:
        self.message = message
        self.path = path
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        where = ""
        if self.path is not None:
            where = str(self.path)
            if self.line is not None:
                where += f":{self.line}"
            where += ": "
        elif self.line is not None:
            where = f"line {self.line}: "
        return f"{where}{self.message}"

    def with_path(self, path: Path) -> FrontMatterError:
        """Return a copy of this error bound to a file path."""
        return FrontMatterError(self.message, path=path, line=self.line)


class ScaffoldError(FieldnotesError):
    """A new content file could not be created."""
