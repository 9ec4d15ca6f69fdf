"""Scaffolding for new posts and pages.

Creates a fresh content file with well-formed front-matter. Never
touches an existing file: if the target path is taken, or a post with
the same date and title already exists, nothing is written.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from fieldnotes.config import FieldnotesConfig
from fieldnotes.content.frontmatter import render_front_matter
from fieldnotes.content.models import slugify
from fieldnotes.content.store import ContentStore
from fieldnotes.errors import ScaffoldError

logger = logging.getLogger(__name__)

# Written when no body is given, so a fresh file passes `check --strict`
PLACEHOLDER_BODY = "Draft."


def _atomic_write(path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then link it into place.

    ``os.link`` fails if the target already exists, so a file created by
    someone else in the meantime is never replaced.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        try:
            os.link(tmp_name, path)
        except FileExistsError as exc:
            raise ScaffoldError(f"Refusing to overwrite {path}") from exc
    finally:
        Path(tmp_name).unlink(missing_ok=True)


def new_post(
    site_dir: Path,
    config: FieldnotesConfig,
    title: str,
    *,
    categories: list[str] | None = None,
    tags: list[str] | None = None,
    post_date: datetime | None = None,
    comments: bool | None = None,
    body: str = "",
) -> Path:
    """Create ``<posts_dir>/<YYYY-MM-DD>-<slug>.md``.

    Args:
        site_dir: Site root.
        config: Toolkit configuration (directories, timezone, defaults).
        title: Post title; also the source of the slug.
        categories: Defaults to ``authoring.default_categories``.
        tags: Optional tags.
        post_date: Publish timestamp; defaults to now in the site timezone.
        comments: Defaults to ``authoring.comments``.
        body: Initial body text; ``PLACEHOLDER_BODY`` when blank.

    Returns:
        Path of the new file.

    Raises:
        ScaffoldError: If the title yields no slug, the file exists, or a
            post with the same date and title is already in the store.
    """
    title = title.strip()
    slug = slugify(title)
    if not slug:
        raise ScaffoldError(f"Cannot derive a filename from title {title!r}")

    tz = config.site.tz
    if post_date is None:
        post_date = datetime.now(tz=tz).replace(microsecond=0)
    elif post_date.tzinfo is None:
        post_date = post_date.replace(tzinfo=tz)

    store = ContentStore(site_dir, config)
    path = store.posts_dir / f"{post_date.date().isoformat()}-{slug}.md"
    if path.exists():
        raise ScaffoldError(f"Refusing to overwrite {path}")

    identity = (post_date.date(), title.casefold())
    for post in store.posts():
        if post.identity == identity:
            raise ScaffoldError(
                f"A post titled {title!r} is already published on {post_date.date()}: "
                f"{post.source_path}"
            )

    front_matter = render_front_matter(
        {
            "layout": "post",
            "title": title,
            "date": post_date,
            "categories": categories if categories is not None else config.authoring.default_categories,
            "tags": tags or [],
            "comments": config.authoring.comments if comments is None else comments,
        }
    )
    _atomic_write(path, _compose(front_matter, body))
    logger.info("Created post %s", path)
    return path


def new_page(
    site_dir: Path,
    config: FieldnotesConfig,
    title: str,
    *,
    icon: str = "",
    order: int | None = None,
    slug: str | None = None,
    body: str = "",
) -> Path:
    """Create ``<pages_dir>/<slug>.md``.

    Raises:
        ScaffoldError: If no slug can be derived or the file exists.
    """
    title = title.strip()
    slug = slugify(slug or title)
    if not slug:
        raise ScaffoldError(f"Cannot derive a filename from title {title!r}")

    path = Path(site_dir) / config.site.pages_dir / f"{slug}.md"
    if path.exists():
        raise ScaffoldError(f"Refusing to overwrite {path}")

    front_matter = render_front_matter(
        {
            "layout": "page",
            "title": title,
            "icon": icon or None,
            "order": order,
        }
    )
    _atomic_write(path, _compose(front_matter, body))
    logger.info("Created page %s", path)
    return path


def _compose(front_matter: str, body: str) -> str:
    return front_matter + "\n" + (body.strip() or PLACEHOLDER_BODY) + "\n"
