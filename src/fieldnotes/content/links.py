"""Internal link extraction and URL normalisation.

Finds every link a post or page body points at, so the checker can tell
which ones stay inside the site. Code blocks and inline code spans are
blanked out first: posts quote plenty of code whose brackets would
otherwise look like Markdown links.
"""

from __future__ import annotations

import posixpath
import re
from enum import StrEnum
from urllib.parse import urlsplit

from pydantic import BaseModel

_FENCE_RE = re.compile(r"^(\s*)(`{3,}|~{3,})")
_INLINE_CODE_RE = re.compile(r"(`+)(?:(?!\1).)+?\1")
_MD_LINK_RE = re.compile(r"!?\[(?:[^\]\\]|\\.)*\]\(\s*<?([^)\s>]+)>?(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)")
_REF_DEF_RE = re.compile(r"^ {0,3}\[(?!\^)[^\]]+\]:\s*<?([^\s>]+)>?")
_HTML_ATTR_RE = re.compile(r"""\b(?:href|src)\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_POST_URL_RE = re.compile(r"\{%-?\s*post_url\s+([^\s%]+)\s*-?%\}")
_RELATIVE_URL_RE = re.compile(
    r"""\{\{-?\s*["']([^"']+)["']\s*\|\s*(?:relative_url|absolute_url)\s*-?\}\}"""
)
_BASEURL_RE = re.compile(r"\{\{-?\s*site\.baseurl\s*-?\}\}")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


class LinkKind(StrEnum):
    """How a link was written."""

    URL = "url"
    POST_URL = "post_url"


class Link(BaseModel):
    """A link target found in a body, with its 1-based line within the body."""

    target: str
    line: int
    kind: LinkKind = LinkKind.URL


def mask_code(body: str) -> str:
    """Blank out fenced code blocks and inline code, keeping line numbers."""
    out: list[str] = []
    fence: str | None = None
    for line in body.split("\n"):
        match = _FENCE_RE.match(line)
        if fence is None:
            if match:
                fence = match.group(2)
                out.append("")
                continue
            out.append(_INLINE_CODE_RE.sub(lambda m: " " * len(m.group(0)), line))
        else:
            if match and match.group(2)[0] == fence[0] and len(match.group(2)) >= len(fence):
                fence = None
            out.append("")
    return "\n".join(out)


def extract_links(body: str) -> list[Link]:
    """Return every link target in a body, in reading order."""
    links: list[Link] = []
    for lineno, line in enumerate(mask_code(body).split("\n"), start=1):
        # Liquid first so its expansion feeds the Markdown patterns
        for match in _POST_URL_RE.finditer(line):
            links.append(Link(target=match.group(1), line=lineno, kind=LinkKind.POST_URL))
        line = _POST_URL_RE.sub("", line)
        line = _RELATIVE_URL_RE.sub(lambda m: m.group(1), line)
        line = _BASEURL_RE.sub("", line)

        ref = _REF_DEF_RE.match(line)
        if ref:
            links.append(Link(target=ref.group(1), line=lineno))
            continue
        for pattern in (_MD_LINK_RE, _HTML_ATTR_RE):
            for match in pattern.finditer(line):
                target = match.group(1).strip()
                if target:
                    links.append(Link(target=target, line=lineno))
    return links


def is_external(target: str) -> bool:
    """True for links that leave the site (any scheme, or ``//host``)."""
    return target.startswith("//") or bool(_SCHEME_RE.match(target))


def normalize_url(target: str, *, base: str = "/", baseurl: str = "") -> str | None:
    """Reduce an internal link to the permalink form it should resolve to.

    Returns None for links that do not point at a post or page: pure
    fragments, and static files (anything with an extension other than
    ``.html``).

    Args:
        target: Link target as written.
        base: Permalink of the record containing the link, for relative
            targets.
        baseurl: Site baseurl to strip from absolute targets.
    """
    parts = urlsplit(target)
    path = parts.path
    if not path:
        return None

    if baseurl and (path == baseurl or path.startswith(baseurl + "/")):
        path = path[len(baseurl) :] or "/"

    if not path.startswith("/"):
        base_dir = base if base.endswith("/") else posixpath.dirname(base) + "/"
        path = posixpath.join(base_dir, path)

    trailing = path.endswith("/")
    path = posixpath.normpath(path)
    if path.startswith("//"):
        path = "/" + path.lstrip("/")

    leaf = posixpath.basename(path)
    if leaf == "index.html":
        path = posixpath.dirname(path)
    elif leaf.endswith(".html"):
        path = path[: -len(".html")]
    elif "." in leaf and not trailing:
        return None

    return path.rstrip("/") + "/"


def build_permalink(pattern: str, *, slug: str, baseurl: str = "", year: int | None = None,
                    month: int | None = None, day: int | None = None) -> str:
    """Expand a permalink pattern such as ``/posts/:slug/``."""
    url = pattern.replace(":slug", slug).replace(":title", slug)
    if year is not None:
        url = url.replace(":year", f"{year:04d}")
    if month is not None:
        url = url.replace(":month", f"{month:02d}")
    if day is not None:
        url = url.replace(":day", f"{day:02d}")
    if not url.startswith("/"):
        url = "/" + url
    return baseurl + url
