"""File-backed, read-only content store.

Loads every post under the posts directory and every page under the
pages directory on init. Nothing here writes to the content files; a
file that fails to parse is recorded as a LoadError so the checker can
report it, and loading carries on with the rest.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterator
from datetime import UTC, date, datetime, tzinfo
from pathlib import Path

from pydantic import ValidationError

from fieldnotes.config import FieldnotesConfig
from fieldnotes.content.frontmatter import FrontMatter, split_front_matter
from fieldnotes.content.links import build_permalink, normalize_url
from fieldnotes.content.models import (
    RECOGNIZED_KEYS,
    Catalog,
    CatalogEntry,
    ContentKind,
    ContentRecord,
    LoadError,
    Page,
    Post,
    slugify,
)
from fieldnotes.errors import ContentError, FrontMatterError

logger = logging.getLogger(__name__)

POST_SUFFIXES = (".md", ".markdown")
PAGE_SUFFIXES = (".md", ".markdown", ".html")

POST_FILENAME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})-(.+)$")

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)

# Alias to avoid shadowing by ContentStore methods
_list = list


def parse_date(value: str, tz: tzinfo = UTC) -> datetime:
    """Parse a front-matter date; naive values are placed in ``tz``.

    Raises:
        ValueError: If the value matches none of the accepted formats.
    """
    value = value.strip()
    parsed: datetime | None = None
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
            break
        except ValueError:
            continue
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            raise ValueError(f"unrecognized date {value!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def split_post_filename(stem: str) -> tuple[date | None, str]:
    """Split ``2025-03-01-some-title`` into its date and slug parts."""
    match = POST_FILENAME_RE.match(stem)
    if not match:
        return None, stem
    try:
        return date.fromisoformat(match.group(1)), match.group(2)
    except ValueError:
        return None, stem


class _RecordError(Exception):
    """Internal: a file parsed but could not become a record."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)


class ContentStore:
    """Read-only view over a site's posts and pages."""

    def __init__(self, site_dir: Path | str | None = None, config: FieldnotesConfig | None = None) -> None:
        self.config = config or FieldnotesConfig()
        self.site_dir = Path(site_dir) if site_dir is not None else self.config.site_dir
        self.posts_dir = self.site_dir / self.config.site.posts_dir
        self.pages_dir = self.site_dir / self.config.site.pages_dir
        self._posts: _list[Post] = []
        self._pages: _list[Page] = []
        self._errors: _list[LoadError] = []
        self._permalinks: dict[str, _list[ContentRecord]] = {}
        self._load()

    # ── Loading ──────────────────────────────────────────────────

    def _load(self) -> None:
        if not self.site_dir.is_dir():
            raise ContentError(f"Site directory not found: {self.site_dir}")

        for path in self._discover(self.posts_dir, POST_SUFFIXES):
            record = self._load_file(path, ContentKind.POST)
            if record is not None:
                self._posts.append(record)

        for path in self._discover(self.pages_dir, PAGE_SUFFIXES):
            record = self._load_file(path, ContentKind.PAGE)
            if record is not None:
                self._pages.append(record)

        self._posts.sort(key=lambda p: (p.date, p.slug), reverse=True)
        self._pages.sort(key=lambda p: (p.order is None, p.order or 0, p.title.casefold()))

        for record in self.records():
            self._permalinks.setdefault(self.site_path(record), []).append(record)

        logger.debug(
            "Loaded %d posts, %d pages, %d errors from %s",
            len(self._posts), len(self._pages), len(self._errors), self.site_dir,
        )

    @staticmethod
    def _discover(directory: Path, suffixes: tuple[str, ...]) -> _list[Path]:
        if not directory.is_dir():
            logger.info("No content directory at %s", directory)
            return []
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix in suffixes and not p.name.startswith(".")
        )

    def _load_file(self, path: Path, kind: ContentKind) -> Post | Page | None:
        try:
            text = path.read_text(encoding="utf-8")
            meta, body = split_front_matter(text)
            body_line = text[: len(text) - len(body)].count("\n") + 1
            if kind == ContentKind.POST:
                return self._build_post(path, meta, body, body_line)
            return self._build_page(path, meta, body, body_line)
        except FrontMatterError as exc:
            self._errors.append(
                LoadError(path=path, kind=kind, code="load-error", message=exc.message, line=exc.line)
            )
        except _RecordError as exc:
            self._errors.append(LoadError(path=path, kind=kind, code=exc.code, message=str(exc)))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            self._errors.append(LoadError(path=path, kind=kind, code="load-error", message=str(exc)))
        return None

    def _build_post(self, path: Path, meta: FrontMatter, body: str, body_line: int = 1) -> Post:
        file_date, file_slug = split_post_filename(path.stem)
        title = _scalar(meta.get("title"))
        if not title:
            raise _RecordError("missing-title", "post has no title")

        raw_date = _scalar(meta.get("date"))
        if raw_date:
            try:
                post_date = parse_date(raw_date, self.config.site.tz)
            except ValueError as exc:
                raise _RecordError("invalid-date", str(exc)) from exc
        elif file_date is not None:
            post_date = datetime.combine(file_date, datetime.min.time(), tzinfo=self.config.site.tz)
        else:
            raise _RecordError("missing-date", "post has no date in front-matter or filename")

        slug = file_slug if file_date is not None else slugify(title) or path.stem
        fields: dict[str, object] = {
            "title": title,
            "date": post_date,
            "slug": slug,
            "body": body,
            "body_line": body_line,
            "source_path": path,
            "file_date": file_date,
            "extra": _extra(meta),
        }
        for key in ("layout", "categories", "tags", "comments"):
            if key in meta and meta[key] != "":
                fields[key] = meta[key]
        return _validate(Post, fields)

    def _build_page(self, path: Path, meta: FrontMatter, body: str, body_line: int = 1) -> Page:
        title = _scalar(meta.get("title"))
        if not title:
            raise _RecordError("missing-title", "page has no title")
        fields: dict[str, object] = {
            "title": title,
            "slug": path.stem,
            "body": body,
            "body_line": body_line,
            "source_path": path,
            "extra": _extra(meta),
        }
        for key in ("layout", "icon", "order"):
            if key in meta and meta[key] != "":
                fields[key] = meta[key]
        return _validate(Page, fields)

    # ── Read operations ──────────────────────────────────────────

    @property
    def load_errors(self) -> _list[LoadError]:
        return _list(self._errors)

    def records(self) -> Iterator[ContentRecord]:
        """Iterate posts (newest first) then pages (by order)."""
        yield from self._posts
        yield from self._pages

    def posts(self, category: str | None = None, tag: str | None = None) -> _list[Post]:
        """Return posts newest first, optionally filtered (case-insensitive)."""
        results = self._posts
        if category is not None:
            wanted = category.casefold()
            results = [p for p in results if any(c.casefold() == wanted for c in p.categories)]
        if tag is not None:
            wanted = tag.casefold()
            results = [p for p in results if any(t.casefold() == wanted for t in p.tags)]
        return _list(results)

    def pages(self) -> _list[Page]:
        """Return pages by ``order``, unordered pages last, then by title."""
        return _list(self._pages)

    def get_post(self, slug: str) -> Post | None:
        for post in self._posts:
            if post.slug == slug:
                return post
        return None

    def get_page(self, slug: str) -> Page | None:
        for page in self._pages:
            if page.slug == slug:
                return page
        return None

    def post_by_stem(self, stem: str) -> Post | None:
        """Find a post by file stem, as ``{% post_url %}`` names it."""
        stem = stem.removesuffix(".md").removesuffix(".markdown")
        for post in self._posts:
            if post.source_path.stem == stem:
                return post
        return None

    def tags(self) -> dict[str, int]:
        """Tag → post count, most used first."""
        return _ranked(Counter(t for p in self._posts for t in p.tags))

    def categories(self) -> dict[str, int]:
        """Category → post count, most used first."""
        return _ranked(Counter(c for p in self._posts for c in p.categories))

    # ── Permalinks ───────────────────────────────────────────────

    def site_path(self, record: ContentRecord) -> str:
        if isinstance(record, Post):
            url = build_permalink(
                self.config.permalinks.post,
                slug=record.slug,
                year=record.date.year,
                month=record.date.month,
                day=record.date.day,
            )
        else:
            url = build_permalink(self.config.permalinks.page, slug=record.slug)
        return normalize_url(url) or url

    def permalink(self, record: ContentRecord) -> str:
        """Public URL of a record, baseurl included."""
        return self.config.site.baseurl + self.site_path(record)

    def permalinks(self) -> dict[str, _list[ContentRecord]]:
        """Site path → records published there (more than one is a clash)."""
        return {url: _list(records) for url, records in self._permalinks.items()}

    def resolve(self, url: str) -> ContentRecord | None:
        """Return the record published at a normalised site path, if any."""
        records = self._permalinks.get(url)
        return records[0] if records else None

    def is_generated_path(self, url: str) -> bool:
        """Paths the generator produces without a content file.

        The home page, and the per-tag and per-category archive pages for
        terms in use.
        """
        if url == "/":
            return True
        for prefix, terms in (("/tags/", self.tags()), ("/categories/", self.categories())):
            if url.startswith(prefix):
                term = url[len(prefix) :].strip("/")
                if term and any(slugify(t) == term for t in terms):
                    return True
        return False

    # ── Export ───────────────────────────────────────────────────

    def catalog(self) -> Catalog:
        """Serializable snapshot of every record."""
        return Catalog(
            generated_at=datetime.now(tz=UTC),
            site_dir=str(self.site_dir),
            posts=[self._entry(p) for p in self._posts],
            pages=[self._entry(p) for p in self._pages],
            tags=self.tags(),
            categories=self.categories(),
        )

    def _entry(self, record: ContentRecord) -> CatalogEntry:
        fields: dict[str, object] = {
            "kind": record.kind,
            "title": record.title,
            "slug": record.slug,
            "permalink": self.permalink(record),
            "word_count": record.word_count,
            "source_path": _relative(record.source_path, self.site_dir),
        }
        if isinstance(record, Post):
            fields.update(date=record.date, categories=record.categories, tags=record.tags)
        else:
            fields.update(icon=record.icon, order=record.order)
        return CatalogEntry.model_validate(fields)


def _scalar(value: str | list[str] | None) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value).strip()
    return value.strip()


def _extra(meta: FrontMatter) -> dict[str, str | list[str]]:
    return {k: v for k, v in meta.items() if k not in RECOGNIZED_KEYS}


def _validate(model: type[Post] | type[Page], fields: dict[str, object]) -> Post | Page:
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise _RecordError("invalid-field", problems) from exc


def _ranked(counter: Counter[str]) -> dict[str, int]:
    return dict(sorted(counter.items(), key=lambda item: (-item[1], item[0].casefold())))


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)
