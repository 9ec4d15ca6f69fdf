"""Content domain models — pure Pydantic v2 data types.

Posts and pages are parsed out of the site's content files and never
written back. These models hold the typed view of a file's front-matter
plus its body; loading and indexing live in ``fieldnotes.content.store``.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

RECOGNIZED_KEYS = frozenset(
    {"layout", "title", "date", "categories", "comments", "tags", "icon", "order"}
)


class ContentKind(StrEnum):
    """Kind of content record."""

    POST = "post"
    PAGE = "page"


def slugify(text: str) -> str:
    """Turn a title into a URL slug (ASCII, lowercase, hyphenated)."""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower())
    return slug.strip("-")


def _normalize_terms(value: object) -> list[str]:
    """Coerce categories/tags into a de-duplicated list.

    A plain string is split on whitespace, matching how the site
    generator treats ``tags: ai agents``.
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        raw = value.split()
    elif isinstance(value, (list, tuple, set)):
        raw = [str(v).strip() for v in value]
    else:
        raise ValueError(f"expected a string or list, got {type(value).__name__}")

    seen: set[str] = set()
    terms: list[str] = []
    for term in raw:
        if term and term not in seen:
            seen.add(term)
            terms.append(term)
    return terms


class Post(BaseModel):
    """A dated blog post."""

    title: str = Field(min_length=1)
    date: datetime
    slug: str
    layout: str = "post"
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    comments: bool = True
    body: str = ""
    body_line: int = 1
    source_path: Path = Path(".")
    file_date: date | None = None
    extra: dict[str, str | list[str]] = Field(default_factory=dict)

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def _terms(cls, value: object) -> list[str]:
        return _normalize_terms(value)

    @field_validator("date")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("post date must be timezone-aware")
        return value

    @property
    def kind(self) -> ContentKind:
        return ContentKind.POST

    @property
    def identity(self) -> tuple[date, str]:
        """The (publish date, title) pair that must be unique per store."""
        return (self.date.date(), self.title.strip().casefold())

    @property
    def word_count(self) -> int:
        return len(self.body.split())


class Page(BaseModel):
    """A standalone page such as "About"."""

    title: str = Field(min_length=1)
    slug: str
    layout: str = "page"
    icon: str = ""
    order: int | None = None
    body: str = ""
    body_line: int = 1
    source_path: Path = Path(".")
    extra: dict[str, str | list[str]] = Field(default_factory=dict)

    @property
    def kind(self) -> ContentKind:
        return ContentKind.PAGE

    @property
    def word_count(self) -> int:
        return len(self.body.split())


ContentRecord = Post | Page


class LoadError(BaseModel):
    """A content file that could not be turned into a record."""

    path: Path
    kind: ContentKind
    code: str
    message: str
    line: int | None = None


class CatalogEntry(BaseModel):
    """Serializable summary of one record for ``export``."""

    kind: ContentKind
    title: str
    slug: str
    permalink: str
    date: datetime | None = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    icon: str = ""
    order: int | None = None
    word_count: int = 0
    source_path: str = ""


class Catalog(BaseModel):
    """Snapshot of the whole content store."""

    generated_at: datetime
    site_dir: str
    posts: list[CatalogEntry] = Field(default_factory=list)
    pages: list[CatalogEntry] = Field(default_factory=list)
    tags: dict[str, int] = Field(default_factory=dict)
    categories: dict[str, int] = Field(default_factory=dict)
