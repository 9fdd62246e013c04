"""Derive a plain-text body from a note.

The body is taken from the first strategy that yields non-empty text:
    1. the HTML body, with unicode escapes decoded and markup stripped
    2. the plain description (sound and movie notes)
    3. the picture captions, one per line (image notes)
"""

import re
from collections.abc import Callable

from bs4 import BeautifulSoup
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)

from .models import Note

# Maximum number of characters in a single Excel cell
CELL_CHAR_LIMIT = 32767

BLOCK_TAGS = {
    "address",
    "article",
    "aside",
    "blockquote",
    "dd",
    "div",
    "dl",
    "dt",
    "figcaption",
    "figure",
    "footer",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "header",
    "hr",
    "ol",
    "p",
    "section",
    "table",
    "tr",
    "ul",
}
SKIPPED_TAGS = {"head", "img", "noscript", "script", "style", "svg"}
# Containers whose direct text children are only ever indentation
LIST_CONTAINERS = {"dl", "ol", "table", "tbody", "tfoot", "thead", "tr", "ul"}

# HTML whitespace only; U+3000 and &nbsp; are content
HTML_WHITESPACE = " \t\r\n\f\u200b"

_UNICODE_ESCAPE_RE = re.compile(r"\\u\{([0-9a-fA-F]{1,6})\}|\\u([0-9a-fA-F]{4})")
_SPACES_RE = re.compile(f"[{HTML_WHITESPACE}]+")


def decode_unicode_escapes(text: str) -> str:
    """Replace ``\\uXXXX`` and ``\\u{X...}`` escapes with the characters they name.

    Escaped UTF-16 surrogate pairs (as produced for emoji) are joined into a
    single character; unpaired surrogates become U+FFFD.
    """

    def _replace(match: re.Match) -> str:
        code = int(match.group(1) or match.group(2), 16)
        if code > 0x10FFFF:
            return match.group(0)
        return chr(code)

    decoded = _UNICODE_ESCAPE_RE.sub(_replace, text)
    if decoded == text:
        return text
    return decoded.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def html_to_text(html: str) -> str:
    """Convert HTML markup to plain text.

    Block elements are separated by blank lines, <br> becomes a line break,
    list items are prefixed with "* " (or "1. ", "2. ", ... inside <ol>) and
    links keep their target as "text [href]". Images and scripts are dropped.
    Only HTML whitespace is collapsed, so ideographic spaces and &nbsp;
    survive.
    """
    soup = BeautifulSoup(html, "html.parser")
    parts: list[str] = []
    _render(soup, parts, preformatted=False)
    text = "".join(parts)
    # Drop the spaces left around line breaks by whitespace collapsing
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n (?! )", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip(HTML_WHITESPACE)


def _ends_with_space(parts: list[str]) -> bool:
    for part in reversed(parts):
        if part:
            return part[-1] in HTML_WHITESPACE
    return True


def _list_marker(item: Tag) -> str:
    parent = item.parent
    if parent is not None and parent.name == "ol":
        index = len(item.find_previous_siblings("li")) + 1
        return f"\n{index}. "
    return "\n* "


def _render(node: Tag, parts: list[str], preformatted: bool) -> None:
    for child in node.children:
        if isinstance(child, (Comment, Declaration, Doctype, ProcessingInstruction)):
            continue
        if isinstance(child, NavigableString):
            text = str(child)
            if not preformatted:
                if not text.strip(HTML_WHITESPACE):
                    # indentation between tags, or a word gap between inline tags
                    if node.name in LIST_CONTAINERS or _ends_with_space(parts):
                        continue
                    text = " "
                else:
                    text = _SPACES_RE.sub(" ", text)
            parts.append(text)
            continue
        if not isinstance(child, Tag):
            continue

        name = child.name
        if name in SKIPPED_TAGS:
            continue
        if name == "br":
            parts.append("\n")
        elif name == "li":
            parts.append(_list_marker(child))
            _render(child, parts, preformatted)
        elif name == "a":
            inner: list[str] = []
            _render(child, inner, preformatted)
            label = "".join(inner)
            href = child.get("href")
            if href and href != label.strip():
                parts.append(f"{label} [{href}]" if label.strip() else f"[{href}]")
            else:
                parts.append(label)
        elif name == "pre":
            parts.append("\n\n")
            _render(child, parts, preformatted=True)
            parts.append("\n\n")
        elif name in BLOCK_TAGS:
            parts.append("\n\n")
            _render(child, parts, preformatted)
            parts.append("\n\n")
        else:
            _render(child, parts, preformatted)


def normalize_newlines(text: str) -> str:
    """Collapse 3+ line breaks to 2 and strip leading/trailing line breaks."""
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"\A\n+", "", text)
    return re.sub(r"\n+\Z", "", text)


# ── Body strategies ─────────────────────────────────────────────


def from_html_body(note: Note) -> str | None:
    if not note.body:
        return None
    return html_to_text(decode_unicode_escapes(note.body))


def from_description(note: Note) -> str | None:
    return note.description or None


def from_picture_captions(note: Note) -> str | None:
    return "\n".join(note.picture_captions)


BodyStrategy = Callable[[Note], str | None]

BODY_STRATEGIES: tuple[BodyStrategy, ...] = (
    from_html_body,
    from_description,
    from_picture_captions,
)


def extract_body(
    note: Note, strategies: tuple[BodyStrategy, ...] = BODY_STRATEGIES
) -> str:
    """Return the normalized body from the first strategy with non-empty text."""
    for strategy in strategies:
        text = strategy(note)
        if not text:
            continue
        text = normalize_newlines(text)
        if text:
            return text
    return ""


# ── Chunking ────────────────────────────────────────────────────


def split_text(text: str, size: int = CELL_CHAR_LIMIT) -> list[str]:
    """Split text into consecutive pieces of at most `size` characters."""
    if size <= 0:
        raise ValueError("size must be positive")
    return [text[i : i + size] for i in range(0, len(text), size)]


def chunk_body(
    text: str, columns: int, size: int = CELL_CHAR_LIMIT
) -> tuple[list[str], int]:
    """Split text into exactly `columns` cells, padding with empty strings.

    Returns the cells and the number of chunks the full text needed. When
    that number exceeds `columns` the text past the last cell is dropped.
    """
    chunks = split_text(text, size)
    cells = chunks[:columns]
    cells.extend([""] * (columns - len(cells)))
    return cells, len(chunks)
