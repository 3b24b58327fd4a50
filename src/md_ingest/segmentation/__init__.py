"""
Segmentation — split markdown into retrieval-sized, heading-tagged sections.

Pure computation with no I/O; safe to run in parallel across documents.
"""

from md_ingest.segmentation.models import ProcessedMarkdown, Section
from md_ingest.segmentation.segmenter import process_markdown, segment, split_tree_by
from md_ingest.segmentation.tree import MarkdownBlock, MarkdownTree, parse_markdown

__all__ = [
    "MarkdownBlock",
    "MarkdownTree",
    "ProcessedMarkdown",
    "Section",
    "parse_markdown",
    "process_markdown",
    "segment",
    "split_tree_by",
]
