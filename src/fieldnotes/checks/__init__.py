"""Authoring-quality checks: front-matter, duplicates, and internal links."""

from fieldnotes.checks.models import CheckReport, Issue, IssueCode, Severity
from fieldnotes.checks.services import (
    check_duplicates,
    check_front_matter,
    check_links,
    check_load_errors,
    run_checks,
)

__all__ = [
    "CheckReport",
    "Issue",
    "IssueCode",
    "Severity",
    "check_duplicates",
    "check_front_matter",
    "check_links",
    "check_load_errors",
    "run_checks",
]
