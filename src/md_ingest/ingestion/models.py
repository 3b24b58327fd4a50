"""Request / outcome models for embedding ingestion."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class IngestRequest(BaseModel):
    """Which rows to embed and where their content / embedding live.

    Accepts both snake_case field names and the camelCase wire names
    (``contentColumn``, ``embeddingColumn``).
    """

    model_config = ConfigDict(populate_by_name=True)

    ids: list[int | str] = Field(default_factory=list)
    table: str
    content_column: str = Field(alias="contentColumn")
    embedding_column: str = Field(alias="embeddingColumn")

    @field_validator("table", "content_column", "embedding_column")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(f"{value!r} is not a valid table or column name")
        return value

    @field_validator("ids")
    @classmethod
    def _dedupe_ids(cls, value: list[int | str]) -> list[int | str]:
        return list(dict.fromkeys(value))


class IngestStatus(str, Enum):
    NO_ELIGIBLE_ROWS = "no_eligible_rows"
    COMPLETED = "completed"
    FAILED = "failed"


class RowWriteResult(BaseModel):
    """Outcome of writing one row's embedding."""

    id: int | str
    ok: bool
    error: str | None = None


class IngestOutcome(BaseModel):
    """Result of one ``ingest`` call.

    ``completed`` does not guarantee every row was written; inspect
    :attr:`rows` (or :attr:`failed`) for per-row results.

    Attributes
    ----------
    status:
        ``no_eligible_rows``, ``completed`` or ``failed``.
    table:
        Target table.
    selected:
        Rows returned by the select step (embedding still NULL).
    submitted:
        Rows with content that were sent to the embedding service.
    rows:
        One :class:`RowWriteResult` per submitted row, in submission order.
    error:
        Failure description when ``status`` is ``failed``.
    """

    status: IngestStatus
    table: str
    selected: int = 0
    submitted: int = 0
    rows: list[RowWriteResult] = Field(default_factory=list)
    error: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.rows if r.ok)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return sum(1 for r in self.rows if not r.ok)
