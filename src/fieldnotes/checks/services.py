"""Authoring-quality checks over a loaded content store.

Each check walks the store and appends Issues to a shared list. Nothing
here touches the files on disk beyond what ContentStore already read.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from urllib.parse import urlsplit

from fieldnotes.checks.models import DEFAULT_SEVERITY, CheckReport, Issue, IssueCode
from fieldnotes.config import FieldnotesConfig
from fieldnotes.content.links import LinkKind, extract_links, is_external, normalize_url
from fieldnotes.content.models import RECOGNIZED_KEYS, ContentRecord, Page, Post
from fieldnotes.content.store import ContentStore

logger = logging.getLogger(__name__)


def _issue(code: IssueCode, record_or_path: object, message: str, line: int | None = None) -> Issue:
    path = getattr(record_or_path, "source_path", record_or_path)
    return Issue(code=code, severity=DEFAULT_SEVERITY[code], path=path, message=message, line=line)


def check_load_errors(store: ContentStore) -> list[Issue]:
    """Files whose front-matter did not parse or lacked required fields."""
    issues: list[Issue] = []
    for err in store.load_errors:
        try:
            code = IssueCode(err.code)
        except ValueError:
            code = IssueCode.LOAD_ERROR
        issues.append(_issue(code, err.path, err.message, err.line))
    return issues


def check_front_matter(store: ContentStore, allowed_extra: list[str] | None = None) -> list[Issue]:
    """Unknown keys, filename/date agreement, and empty bodies."""
    allowed = RECOGNIZED_KEYS | set(allowed_extra or [])
    issues: list[Issue] = []
    for record in store.records():
        for key in record.extra:
            if key not in allowed:
                issues.append(_issue(IssueCode.UNKNOWN_KEY, record, f"unrecognized front-matter key {key!r}"))

        if isinstance(record, Post):
            if record.file_date is None:
                issues.append(
                    _issue(
                        IssueCode.BAD_FILENAME,
                        record,
                        "post filename should start with YYYY-MM-DD-",
                    )
                )
            elif record.file_date != record.date.date():
                issues.append(
                    _issue(
                        IssueCode.FILENAME_DATE_MISMATCH,
                        record,
                        f"front-matter date {record.date.date()} differs from filename date "
                        f"{record.file_date}",
                    )
                )

        if not record.body.strip():
            issues.append(_issue(IssueCode.EMPTY_BODY, record, "body is empty"))
    return issues


def check_duplicates(store: ContentStore) -> list[Issue]:
    """Same (date, title) posts, clashing permalinks, and clashing page orders."""
    issues: list[Issue] = []

    by_identity: dict[tuple[date, str], list[Post]] = defaultdict(list)
    for post in store.posts():
        by_identity[post.identity].append(post)
    for (day, _), posts in by_identity.items():
        if len(posts) < 2:
            continue
        names = ", ".join(sorted(p.source_path.name for p in posts))
        for post in posts:
            issues.append(
                _issue(
                    IssueCode.DUPLICATE_POST,
                    post,
                    f"{post.title!r} on {day} is published more than once ({names})",
                )
            )

    for url, records in store.permalinks().items():
        if len(records) < 2:
            continue
        names = ", ".join(sorted(r.source_path.name for r in records))
        for record in records:
            issues.append(
                _issue(IssueCode.DUPLICATE_PERMALINK, record, f"permalink {url} is shared by {names}")
            )

    by_order: dict[int, list[Page]] = defaultdict(list)
    for page in store.pages():
        if page.order is not None:
            by_order[page.order].append(page)
    for order, pages in by_order.items():
        if len(pages) < 2:
            continue
        names = ", ".join(sorted(p.source_path.name for p in pages))
        for page in pages:
            issues.append(_issue(IssueCode.DUPLICATE_ORDER, page, f"order {order} is shared by {names}"))

    return issues


def check_links(store: ContentStore, ignore_prefixes: list[str] | None = None) -> list[Issue]:
    """Every internal link and ``post_url`` must land on a post or page."""
    prefixes = tuple(ignore_prefixes or ())
    baseurl = store.config.site.baseurl
    issues: list[Issue] = []

    for record in store.records():
        base = store.site_path(record)
        for link in extract_links(record.body):
            line = record.body_line + link.line - 1
            if link.kind == LinkKind.POST_URL:
                if store.post_by_stem(link.target) is None:
                    issues.append(
                        _issue(IssueCode.BROKEN_LINK, record, f"post_url {link.target!r} matches no post", line)
                    )
                continue

            if is_external(link.target) or _ignored(link.target, prefixes, baseurl):
                continue
            url = normalize_url(link.target, base=base, baseurl=baseurl)
            if url is None:
                continue
            if store.resolve(url) is None and not store.is_generated_path(url):
                issues.append(
                    _issue(
                        IssueCode.BROKEN_LINK,
                        record,
                        f"link {link.target!r} resolves to {url}, which is not a post or page",
                        line,
                    )
                )
    return issues


def _ignored(target: str, prefixes: tuple[str, ...], baseurl: str) -> bool:
    path = urlsplit(target).path
    if baseurl and path.startswith(baseurl + "/"):
        path = path[len(baseurl) :]
    return bool(prefixes) and path.startswith(prefixes)


def run_checks(
    store: ContentStore,
    config: FieldnotesConfig | None = None,
    *,
    strict: bool | None = None,
) -> CheckReport:
    """Run every check and collect the results.

    Args:
        store: Loaded content store.
        config: Defaults to the store's own config.
        strict: Treat warnings as failures; defaults to ``check.strict``.
    """
    config = config or store.config
    issues: list[Issue] = []
    issues.extend(check_load_errors(store))
    issues.extend(check_front_matter(store, config.check.allow_unknown_keys))
    issues.extend(check_duplicates(store))
    issues.extend(check_links(store, config.links.ignore_prefixes))

    issues.sort(key=lambda i: (str(i.path), i.line or 0, i.code))
    records: list[ContentRecord] = list(store.records())
    report = CheckReport(
        issues=issues,
        files_checked=len(records) + len(store.load_errors),
        strict=config.check.strict if strict is None else strict,
    )
    logger.info(
        "Checked %d files: %d errors, %d warnings",
        report.files_checked, len(report.errors), len(report.warnings),
    )
    return report
