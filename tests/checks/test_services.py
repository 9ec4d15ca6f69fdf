"""Tests for content checks — front-matter, duplicates, and links."""

from pathlib import Path

import pytest
from fieldnotes.checks import (
    CheckReport,
    Issue,
    IssueCode,
    Severity,
    check_duplicates,
    check_front_matter,
    check_links,
    check_load_errors,
    run_checks,
)
from fieldnotes.config import FieldnotesConfig
from fieldnotes.content.store import ContentStore


def _write(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _post(title: str, date: str, body: str = "Body text.\n", extra: str = "") -> str:
    return f"---\ntitle: {title}\ndate: {date}\n{extra}---\n\n{body}"


@pytest.fixture()
def site(tmp_path: Path) -> Path:
    _write(
        tmp_path,
        "_posts/2025-03-01-retries.md",
        _post(
            "Retries are a product decision",
            "2025-03-01",
            body=(
                "Builds on [tool dispatch]({% post_url 2025-01-10-tool-dispatch %}).\n"
                "See the [about page](/about/) and [the archive](/tags/agents/).\n"
                "![loop](/assets/img/loop.png) and [Python](https://python.org).\n"
            ),
            extra="tags: [agents]\n",
        ),
    )
    _write(tmp_path, "_posts/2025-01-10-tool-dispatch.md", _post("Tool dispatch", "2025-01-10"))
    _write(tmp_path, "_tabs/about.md", "---\ntitle: About\norder: 1\n---\n\nHello.\n")
    return tmp_path


def _codes(issues: list[Issue]) -> list[IssueCode]:
    return [i.code for i in issues]


class TestCleanSite:
    def test_no_issues(self, site: Path):
        report = run_checks(ContentStore(site))
        assert report.issues == []
        assert report.ok is True
        assert report.files_checked == 3


class TestLoadErrors:
    def test_front_matter_error_reported_with_line(self, site: Path):
        _write(site, "_posts/2025-02-01-broken.md", "---\ntitle: Broken\noops\n---\n")
        issues = check_load_errors(ContentStore(site))
        assert _codes(issues) == [IssueCode.LOAD_ERROR]
        assert issues[0].line == 3
        assert issues[0].severity == Severity.ERROR

    def test_specific_codes_preserved(self, site: Path):
        _write(site, "_posts/2025-02-01-untitled.md", "---\ndate: 2025-02-01\n---\n")
        _write(site, "_posts/2025-02-02-when.md", "---\ntitle: When\ndate: someday\n---\n")
        codes = set(_codes(check_load_errors(ContentStore(site))))
        assert codes == {IssueCode.MISSING_TITLE, IssueCode.INVALID_DATE}

    def test_load_errors_count_as_checked_files(self, site: Path):
        _write(site, "_posts/2025-02-01-broken.md", "no front-matter at all\n")
        report = run_checks(ContentStore(site))
        assert report.files_checked == 4
        assert report.ok is False


class TestFrontMatterChecks:
    def test_unknown_key_warns(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", extra="pin: true\n"))
        issues = check_front_matter(ContentStore(site))
        assert _codes(issues) == [IssueCode.UNKNOWN_KEY]
        assert issues[0].severity == Severity.WARNING
        assert "'pin'" in issues[0].message

    def test_allowed_unknown_key(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", extra="pin: true\n"))
        assert check_front_matter(ContentStore(site), ["pin"]) == []

    def test_filename_date_mismatch(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-03"))
        issues = check_front_matter(ContentStore(site))
        assert _codes(issues) == [IssueCode.FILENAME_DATE_MISMATCH]

    def test_offset_date_compared_in_its_own_zone(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01 23:30:00 -0500"))
        assert check_front_matter(ContentStore(site)) == []

    def test_bad_filename(self, site: Path):
        _write(site, "_posts/undated.md", _post("Undated", "2025-02-01"))
        issues = check_front_matter(ContentStore(site))
        assert _codes(issues) == [IssueCode.BAD_FILENAME]

    def test_empty_body(self, site: Path):
        _write(site, "_tabs/empty.md", "---\ntitle: Empty\n---\n\n")
        issues = check_front_matter(ContentStore(site))
        assert _codes(issues) == [IssueCode.EMPTY_BODY]


class TestDuplicates:
    def test_same_date_and_title(self, site: Path):
        _write(site, "_posts/2025-03-01-retries-again.md", _post("Retries are a product decision", "2025-03-01"))
        issues = check_duplicates(ContentStore(site))
        assert _codes(issues) == [IssueCode.DUPLICATE_POST, IssueCode.DUPLICATE_POST]
        assert "2025-03-01-retries-again.md" in issues[0].message

    def test_same_title_different_day_is_fine(self, site: Path):
        _write(site, "_posts/2025-03-02-retries-again.md", _post("Retries are a product decision", "2025-03-02"))
        assert check_duplicates(ContentStore(site)) == []

    def test_permalink_clash(self, site: Path):
        _write(site, "_posts/2024-06-01-retries.md", _post("Older retries", "2024-06-01"))
        issues = check_duplicates(ContentStore(site))
        assert _codes(issues) == [IssueCode.DUPLICATE_PERMALINK, IssueCode.DUPLICATE_PERMALINK]
        assert "/posts/retries/" in issues[0].message

    def test_page_order_clash(self, site: Path):
        _write(site, "_tabs/archives.md", "---\ntitle: Archives\norder: 1\n---\n\nAll posts.\n")
        issues = check_duplicates(ContentStore(site))
        assert _codes(issues) == [IssueCode.DUPLICATE_ORDER, IssueCode.DUPLICATE_ORDER]
        assert all(i.severity == Severity.WARNING for i in issues)


class TestLinks:
    def test_broken_internal_link(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body="Intro.\n\nSee [gone](/posts/gone/).\n"))
        issues = check_links(ContentStore(site))
        assert _codes(issues) == [IssueCode.BROKEN_LINK]
        # line numbers count from the top of the file, not the body
        assert issues[0].line == 8
        assert "/posts/gone/" in issues[0].message

    def test_broken_post_url(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body="{% post_url 2024-01-01-nope %}\n"))
        issues = check_links(ContentStore(site))
        assert _codes(issues) == [IssueCode.BROKEN_LINK]
        assert "post_url" in issues[0].message

    def test_relative_link_resolves(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body="[r](../retries/)\n"))
        assert check_links(ContentStore(site)) == []

    def test_html_suffix_link_resolves(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body='<a href="/about.html">a</a>\n'))
        assert check_links(ContentStore(site)) == []

    def test_unused_tag_archive_is_broken(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body="[t](/tags/nothing/)\n"))
        assert _codes(check_links(ContentStore(site))) == [IssueCode.BROKEN_LINK]

    def test_code_blocks_are_not_checked(self, site: Path):
        body = "```python\nhandler = TOOLS[name](/not/a/link/)\n```\n"
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body=body))
        assert check_links(ContentStore(site)) == []

    def test_fence_in_list_item_is_not_checked(self, site: Path):
        body = "1. Dispatch the tool:\n\n    ```python\n    result = registry[name](args)\n    ```\n"
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body=body))
        assert check_links(ContentStore(site)) == []

    def test_ignore_prefixes(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body="[d](/drafts/x/)\n"))
        store = ContentStore(site)
        assert _codes(check_links(store)) == [IssueCode.BROKEN_LINK]
        assert check_links(store, ["/drafts/"]) == []

    def test_baseurl_links(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", body="[a](/blog/about/)\n"))
        config = FieldnotesConfig.model_validate({"site": {"baseurl": "/blog"}})
        assert check_links(ContentStore(site, config)) == []


class TestReport:
    def test_warnings_pass_unless_strict(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", extra="pin: true\n"))
        store = ContentStore(site)
        assert run_checks(store).ok is True
        assert run_checks(store, strict=True).ok is False

    def test_strict_from_config(self, site: Path):
        _write(site, "_posts/2025-02-01-x.md", _post("X", "2025-02-01", extra="pin: true\n"))
        config = FieldnotesConfig.model_validate({"check": {"strict": True}})
        assert run_checks(ContentStore(site, config)).strict is True

    def test_issues_sorted_by_path(self, site: Path):
        _write(site, "_posts/2025-02-01-b.md", _post("B", "2025-02-01", extra="pin: true\n"))
        _write(site, "_posts/2025-01-01-a.md", _post("A", "2025-01-01", extra="pin: true\n"))
        names = [i.path.name for i in run_checks(ContentStore(site)).issues]
        assert names == sorted(names)

    def test_by_code(self):
        report = CheckReport(
            issues=[
                Issue(code=IssueCode.EMPTY_BODY, severity=Severity.WARNING, path=Path("a.md"), message="m"),
                Issue(code=IssueCode.BROKEN_LINK, severity=Severity.ERROR, path=Path("b.md"), message="m", line=2),
            ]
        )
        assert len(report.by_code(IssueCode.BROKEN_LINK)) == 1
        assert report.errors[0].location == "b.md:2"
        assert report.warnings[0].location == "a.md"
        assert report.ok is False
