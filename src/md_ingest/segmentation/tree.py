"""Immutable top-level block tree parsed with markdown-it-py.

Only the ordered sequence of top-level blocks matters for segmentation, so
the tree is flat: a tuple of :class:`MarkdownBlock` values, each owning the
markdown source it was parsed from.  Nested structure (list items, quote
contents, table cells) stays inside the block's ``source``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterator

from markdown_it import MarkdownIt
from markdown_it.token import Token

logger = logging.getLogger(__name__)

_NEWLINES_RE = re.compile(r"\r\n?")

# markdown-it token type → block kind
_BLOCK_KINDS: dict[str, str] = {
    "heading_open": "heading",
    "paragraph_open": "paragraph",
    "bullet_list_open": "list",
    "ordered_list_open": "list",
    "blockquote_open": "blockquote",
    "table_open": "table",
    "fence": "code",
    "code_block": "code",
    "html_block": "html",
    "hr": "thematic_break",
}


@dataclass(frozen=True)
class MarkdownBlock:
    """One top-level block of a markdown document.

    Attributes
    ----------
    kind:
        ``heading``, ``paragraph``, ``list``, ``blockquote``, ``table``,
        ``code``, ``html``, ``thematic_break`` or ``other``.
    source:
        Markdown source of the block with surrounding blank lines trimmed.
        Lines that produce no token of their own (link reference
        definitions) belong to the block they follow.
    level:
        Heading depth (1–6); ``None`` for non-headings.
    text:
        Plain text of a heading, markup stripped; ``None`` otherwise.
    """

    kind: str
    source: str
    level: int | None = None
    text: str | None = None

    @property
    def is_heading(self) -> bool:
        return self.kind == "heading"


@dataclass(frozen=True)
class MarkdownTree:
    """Ordered, immutable sequence of top-level blocks."""

    blocks: tuple[MarkdownBlock, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[MarkdownBlock]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    def __bool__(self) -> bool:
        return bool(self.blocks)

    @property
    def first(self) -> MarkdownBlock | None:
        return self.blocks[0] if self.blocks else None

    def append(self, block: MarkdownBlock) -> MarkdownTree:
        """Return a new tree with *block* added at the end."""
        return MarkdownTree(self.blocks + (block,))

    def to_markdown(self) -> str:
        """Serialise back to markdown: blocks separated by a blank line."""
        if not self.blocks:
            return ""
        return "\n\n".join(block.source for block in self.blocks) + "\n"


BlockPredicate = Callable[[MarkdownBlock], bool]


def _new_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable(["table", "strikethrough"])


def _trim_blank_lines(lines: list[str]) -> str:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])


def _inline_text(inline: Token | None) -> str:
    """Plain text of an inline token (text, code spans, image alt text and raw inline HTML)."""
    if inline is None:
        return ""
    if not inline.children:
        return inline.content
    parts: list[str] = []
    for child in inline.children:
        if child.type in ("text", "code_inline", "image", "html_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append("\n")
    return "".join(parts)


def parse_markdown(content: str) -> MarkdownTree:
    """Parse *content* into a :class:`MarkdownTree` of top-level blocks.

    Parser errors propagate unchanged.
    """
    if not content or not content.strip():
        return MarkdownTree()

    normalised = _NEWLINES_RE.sub("\n", content)
    tokens = _new_parser().parse(normalised)
    lines = normalised.split("\n")

    # (token index, start line) of every top-level block opener
    starts: list[tuple[int, int]] = [
        (idx, tok.map[0])
        for idx, tok in enumerate(tokens)
        if tok.level == 0 and tok.nesting >= 0 and tok.map is not None
    ]

    if not starts:
        # Only token-less content, e.g. link reference definitions.
        return MarkdownTree((MarkdownBlock(kind="other", source=_trim_blank_lines(lines)),))

    blocks: list[MarkdownBlock] = []
    for position, (idx, start_line) in enumerate(starts):
        token = tokens[idx]
        begin = 0 if position == 0 else start_line
        end = starts[position + 1][1] if position + 1 < len(starts) else len(lines)
        source = _trim_blank_lines(lines[begin:end])

        kind = _BLOCK_KINDS.get(token.type, "other")
        if kind == "heading":
            inline = tokens[idx + 1] if idx + 1 < len(tokens) else None
            blocks.append(
                MarkdownBlock(
                    kind=kind,
                    source=source,
                    level=int(token.tag[1:]) if token.tag[1:].isdigit() else 1,
                    text=_inline_text(inline),
                )
            )
        else:
            blocks.append(MarkdownBlock(kind=kind, source=source))

    logger.debug("Parsed %d top-level blocks", len(blocks))
    return MarkdownTree(tuple(blocks))
