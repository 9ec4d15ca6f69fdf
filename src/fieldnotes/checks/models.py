"""Pure data models for content checks."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class IssueCode(StrEnum):
    """Every kind of problem the checker can report."""

    LOAD_ERROR = "load-error"
    MISSING_TITLE = "missing-title"
    MISSING_DATE = "missing-date"
    INVALID_DATE = "invalid-date"
    INVALID_FIELD = "invalid-field"
    UNKNOWN_KEY = "unknown-key"
    FILENAME_DATE_MISMATCH = "filename-date-mismatch"
    BAD_FILENAME = "bad-filename"
    DUPLICATE_POST = "duplicate-post"
    DUPLICATE_PERMALINK = "duplicate-permalink"
    DUPLICATE_ORDER = "duplicate-order"
    EMPTY_BODY = "empty-body"
    BROKEN_LINK = "broken-link"


DEFAULT_SEVERITY: dict[IssueCode, Severity] = {
    IssueCode.LOAD_ERROR: Severity.ERROR,
    IssueCode.MISSING_TITLE: Severity.ERROR,
    IssueCode.MISSING_DATE: Severity.ERROR,
    IssueCode.INVALID_DATE: Severity.ERROR,
    IssueCode.INVALID_FIELD: Severity.ERROR,
    IssueCode.UNKNOWN_KEY: Severity.WARNING,
    IssueCode.FILENAME_DATE_MISMATCH: Severity.WARNING,
    IssueCode.BAD_FILENAME: Severity.WARNING,
    IssueCode.DUPLICATE_POST: Severity.ERROR,
    IssueCode.DUPLICATE_PERMALINK: Severity.ERROR,
    IssueCode.DUPLICATE_ORDER: Severity.WARNING,
    IssueCode.EMPTY_BODY: Severity.WARNING,
    IssueCode.BROKEN_LINK: Severity.ERROR,
}


class Issue(BaseModel):
    """A single problem found in a content file."""

    code: IssueCode
    severity: Severity
    path: Path
    message: str
    line: int | None = None

    @property
    def location(self) -> str:
        return f"{self.path}:{self.line}" if self.line is not None else str(self.path)


class CheckReport(BaseModel):
    """Outcome of running every check over a store."""

    issues: list[Issue] = Field(default_factory=list)
    files_checked: int = 0
    strict: bool = False

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        """No errors, and no warnings either when strict."""
        if self.errors:
            return False
        return not (self.strict and self.warnings)

    def by_code(self, code: IssueCode) -> list[Issue]:
        return [i for i in self.issues if i.code == code]
