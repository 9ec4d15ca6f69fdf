"""Front-matter parsing and rendering.

Handles the subset of YAML that blog front-matter actually uses: scalar
``key: value`` pairs, inline ``[a, b]`` lists, and block lists of
``- item`` lines. Everything is returned as strings (or lists of strings);
type coercion is left to the content models.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from fieldnotes.errors import FrontMatterError

DELIMITER = "---"

FrontMatter = dict[str, str | list[str]]

_KEY_RE = re.compile(r"^[A-Za-z_][\w-]*$")
_RESERVED_SCALARS = {"true", "false", "yes", "no", "on", "off", "null", "~"}
_SPECIAL_LEADING = tuple("[]{}&*!|>'\"%@`#,?-")
# Plain scalars a YAML reader would load as numbers or dates
_TYPED_SCALAR_RE = re.compile(r"^[-+]?(?:\.\d+|\d[\d_]*(?:\.\d*)?)(?:[eE][-+]?\d+)?$|^\d{4}-\d{2}-\d{2}")
_TRAILING_COMMENT_RE = re.compile(r"^\s+#")


def split_front_matter(text: str) -> tuple[FrontMatter, str]:
    """Split a content file into its front-matter mapping and body.

    The block must open on the first line with ``---`` and close at the
    next line consisting solely of ``---``.

    Raises:
        FrontMatterError: If the block is missing, unterminated, or has a
            line that cannot be parsed.
    """
    lines = text.removeprefix("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].rstrip() != DELIMITER:
        raise FrontMatterError("missing front-matter block (first line must be '---')", line=1)

    end: int | None = None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == DELIMITER:
            end = idx
            break
    if end is None:
        raise FrontMatterError("unterminated front-matter block", line=1)

    block = [line.rstrip("\r\n") for line in lines[1:end]]
    meta = parse_front_matter_block(block, first_line=2)
    body = "".join(lines[end + 1 :])
    return meta, body


def parse_front_matter_block(lines: list[str], first_line: int = 1) -> FrontMatter:
    """Parse the lines between the delimiters into a mapping.

    Args:
        lines: Raw lines without trailing newlines.
        first_line: File line number of ``lines[0]``, used in errors.
    """
    result: FrontMatter = {}
    list_key: str | None = None
    list_items: list[str] = []
    headers: set[str] = set()

    for offset, raw in enumerate(lines):
        lineno = first_line + offset
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if stripped == "-" or stripped.startswith("- "):
            if list_key is None:
                raise FrontMatterError("list item without a preceding key", line=lineno)
            item = _unquote(_strip_comment(stripped[1:].strip(), lineno))
            if item:
                list_items.append(item)
            continue

        if raw[:1].isspace():
            raise FrontMatterError(f"unexpected indentation: {stripped!r}", line=lineno)

        key, sep, value = raw.partition(":")
        key = key.strip()
        if not sep or not _KEY_RE.match(key):
            raise FrontMatterError(f"expected 'key: value', got {stripped!r}", line=lineno)
        if key in result:
            raise FrontMatterError(f"duplicate key {key!r}", line=lineno)

        value = _strip_comment(value.strip(), lineno)
        list_key = None
        if not value:
            list_items = []
            result[key] = list_items
            headers.add(key)
            list_key = key
        elif value.startswith("["):
            if not value.endswith("]"):
                raise FrontMatterError(f"unterminated inline list for {key!r}", line=lineno)
            result[key] = _split_inline_list(value[1:-1])
        else:
            result[key] = _unquote(value)

    # A key with nothing under it is an empty scalar, not an empty list
    for key in headers:
        if result[key] == []:
            result[key] = ""

    return result


def render_front_matter(mapping: dict[str, object]) -> str:
    """Render a mapping as a front-matter block, delimiters included.

    Lists render inline, booleans as ``true``/``false``, datetimes as
    ``YYYY-MM-DD HH:MM:SS +ZZZZ``. ``None`` values are skipped.
    """
    lines = [DELIMITER]
    for key, value in mapping.items():
        if value is None:
            continue
        lines.append(f"{key}: {_render_value(value)}")
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n"


def _render_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S %z").strip()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (list, tuple, set)):
        items = [_quote(str(v), in_list=True) for v in value]
        return "[" + ", ".join(items) + "]"
    return _quote(str(value))


def _quote(value: str, *, in_list: bool = False) -> str:
    needs_quotes = (
        not value
        or value != value.strip()
        or value.lower() in _RESERVED_SCALARS
        or _TYPED_SCALAR_RE.match(value) is not None
        or value.startswith(_SPECIAL_LEADING)
        or ": " in value
        or " #" in value
        or value.endswith(":")
        or (in_list and any(ch in value for ch in ",[]{}"))
    )
    if not needs_quotes:
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    return value


def _strip_comment(value: str, line: int) -> str:
    """Drop a trailing ``# comment`` outside of quotes.

    A quoted scalar may only be followed by whitespace or a comment.
    """
    if not value.startswith(("'", '"')):
        idx = value.find(" #")
        return value[:idx].rstrip() if idx != -1 else value

    end = _closing_quote(value)
    if end is None:
        raise FrontMatterError(f"unterminated quoted value {value!r}", line=line)
    rest = value[end + 1 :]
    if rest.strip() and not _TRAILING_COMMENT_RE.match(rest):
        raise FrontMatterError(f"unexpected text after quoted value: {rest.strip()!r}", line=line)
    return value[: end + 1]


def _closing_quote(value: str) -> int | None:
    """Index of the quote that closes ``value[0]``, honouring escapes."""
    quote = value[0]
    idx = 1
    while idx < len(value):
        ch = value[idx]
        if quote == '"' and ch == "\\":
            idx += 2
            continue
        if ch == quote:
            if quote == "'" and value[idx + 1 : idx + 2] == "'":
                idx += 2
                continue
            return idx
        idx += 1
    return None


def _split_inline_list(inner: str) -> list[str]:
    items: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    for ch in inner:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            buf.append(ch)
        elif ch == ",":
            items.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    items.append("".join(buf))
    return [_unquote(item.strip()) for item in items if item.strip()]
