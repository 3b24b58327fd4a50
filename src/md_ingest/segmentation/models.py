"""Section models produced by the segmenter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Section(BaseModel):
    """A bounded, heading-tagged fragment of a markdown document.

    Attributes
    ----------
    content:
        Markdown source of the section. Never empty.
    heading:
        Text of the nearest preceding heading, inherited across merges and
        splits. ``None`` for content before the first heading.
    part:
        1-based index when the section is one piece of an oversized section.
    total:
        Number of pieces the oversized section was cut into.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(min_length=1)
    heading: str | None = None
    part: int | None = Field(default=None, ge=1)
    total: int | None = Field(default=None, ge=1)

    @property
    def is_part(self) -> bool:
        return self.part is not None


class ProcessedMarkdown(BaseModel):
    """Result of :func:`~md_ingest.segmentation.segmenter.process_markdown`."""

    sections: list[Section] = Field(default_factory=list)
