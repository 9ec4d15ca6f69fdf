"""Content domain — posts, pages, and the read-only store that loads them.

Posts and pages live as Markdown files with a front-matter block. The
store parses them into typed records; the site generator renders them.
"""

from fieldnotes.content.frontmatter import render_front_matter, split_front_matter
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
from fieldnotes.content.store import ContentStore

__all__ = [
    "RECOGNIZED_KEYS",
    "Catalog",
    "CatalogEntry",
    "ContentKind",
    "ContentRecord",
    "ContentStore",
    "LoadError",
    "Page",
    "Post",
    "render_front_matter",
    "slugify",
    "split_front_matter",
]
