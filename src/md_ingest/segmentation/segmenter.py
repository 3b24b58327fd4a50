"""Heading-aware markdown segmentation.

Three passes turn a markdown document into retrieval-sized sections:

1. split the top-level block sequence at every heading;
2. merge sections shorter than ``min_section_length`` into their successor;
3. cut sections longer than ``max_section_length`` into even character
   chunks tagged with ``part`` / ``total``.

Chunking is by characters, not tokens or words, so a boundary may fall
inside a word.

Usage::

    from md_ingest.segmentation import segment

    for section in segment(markdown_text):
        print(section.heading, len(section.content))
"""

from __future__ import annotations

import logging
from typing import Iterable

from md_ingest.segmentation.models import ProcessedMarkdown, Section
from md_ingest.segmentation.tree import BlockPredicate, MarkdownBlock, MarkdownTree, parse_markdown

logger = logging.getLogger(__name__)

DEFAULT_MAX_SECTION_LENGTH = 2500
DEFAULT_MIN_SECTION_LENGTH = 200

MERGE_SEPARATOR = "\n\n"


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def split_tree_by(tree: MarkdownTree, predicate: BlockPredicate) -> list[MarkdownTree]:
    """Split *tree* into consecutive sub-trees.

    A new sub-tree starts at every block matching *predicate*, and that
    block leads it.  Blocks before the first match form the first sub-tree.
    """
    trees: list[MarkdownTree] = []
    for block in tree:
        if not trees or predicate(block):
            trees.append(MarkdownTree((block,)))
        else:
            trees[-1] = trees[-1].append(block)
    return trees


def _is_heading(block: MarkdownBlock) -> bool:
    return block.is_heading


def _raw_sections(tree: MarkdownTree) -> list[Section]:
    sections: list[Section] = []
    for sub_tree in split_tree_by(tree, _is_heading):
        first = sub_tree.first
        heading = first.text if first is not None and first.is_heading else None
        sections.append(Section(content=sub_tree.to_markdown(), heading=heading))
    return sections


def merge_small_sections(sections: Iterable[Section], min_section_length: int) -> list[Section]:
    """Fold each section shorter than *min_section_length* into the next one.

    The last section is emitted even when it stays below the threshold.
    """
    merged: list[Section] = []
    current: Section | None = None

    for section in sections:
        if current is None:
            current = section
            continue

        if len(current.content) < min_section_length:
            current = Section(
                content=current.content + MERGE_SEPARATOR + section.content,
                heading=current.heading or section.heading,
            )
        else:
            merged.append(current)
            current = section

    if current is not None:
        merged.append(current)
    return merged


def split_large_section(section: Section, max_section_length: int) -> list[Section]:
    """Cut *section* into even character chunks when it exceeds the limit.

    ``number_chunks = ceil(len / max)`` and ``chunk_size = ceil(len / number_chunks)``;
    the last chunk may be shorter than the others.
    """
    length = len(section.content)
    if length <= max_section_length:
        return [section]

    number_chunks = _ceil_div(length, max_section_length)
    chunk_size = _ceil_div(length, number_chunks)
    chunks = [
        section.content[i * chunk_size : (i + 1) * chunk_size]
        for i in range(number_chunks)
    ]
    return [
        Section(content=chunk, heading=section.heading, part=i + 1, total=number_chunks)
        for i, chunk in enumerate(chunks)
    ]


def segment(
    content: str,
    max_section_length: int = DEFAULT_MAX_SECTION_LENGTH,
    min_section_length: int = DEFAULT_MIN_SECTION_LENGTH,
) -> list[Section]:
    """Split markdown *content* into bounded, heading-tagged sections.

    Parameters
    ----------
    content:
        Markdown source.
    max_section_length:
        Sections longer than this many characters are subdivided.
    min_section_length:
        Sections shorter than this many characters are merged forward.

    Returns
    -------
    list[Section]
        Sections in document order; empty for empty input.
    """
    if max_section_length < 1:
        raise ValueError(f"max_section_length must be >= 1, got {max_section_length}")
    if min_section_length < 0:
        raise ValueError(f"min_section_length must be >= 0, got {min_section_length}")

    tree = parse_markdown(content)
    if not tree:
        return []

    raw = _raw_sections(tree)
    merged = merge_small_sections(raw, min_section_length)
    sections = [
        piece for section in merged for piece in split_large_section(section, max_section_length)
    ]

    logger.debug(
        "Segmented %d chars: %d blocks → %d raw → %d merged → %d sections",
        len(content),
        len(tree),
        len(raw),
        len(merged),
        len(sections),
    )
    return sections


def process_markdown(
    content: str,
    max_section_length: int = DEFAULT_MAX_SECTION_LENGTH,
    min_section_length: int = DEFAULT_MIN_SECTION_LENGTH,
) -> ProcessedMarkdown:
    """Same as :func:`segment`, wrapped in a :class:`ProcessedMarkdown`."""
    return ProcessedMarkdown(sections=segment(content, max_section_length, min_section_length))
