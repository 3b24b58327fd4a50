"""Embedding ingestion — fill in missing embeddings for a set of rows.

Flow of one :meth:`EmbeddingIngestor.ingest` call:

1. select rows in the id set whose embedding column is NULL;
2. drop rows with empty content;
3. return ``no_eligible_rows`` if nothing is left;
4. embed every remaining text in one batch;
5. write vector *i* back to row *i*, one update per row.

Steps 1 and 4 are all-or-nothing: a failure raises and nothing is written.
Step 5 is best-effort: a failed row is logged and recorded in the outcome,
later rows are still written and earlier writes are kept.  Re-running with
the same ids only picks up rows that still have no embedding.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Sequence

from md_ingest.embedding.base import EmbeddingServiceBase, EmbeddingVector
from md_ingest.errors import EmbeddingServiceError, StoreWriteError
from md_ingest.ingestion.models import IngestOutcome, IngestRequest, IngestStatus, RowWriteResult
from md_ingest.storage.base import RowId, RowStoreBase

logger = logging.getLogger(__name__)

ID_COLUMN = "id"


def serialize_embedding(vector: EmbeddingVector) -> str:
    """Compact JSON text form of *vector*, e.g. ``"[0.1,-0.2]"``."""
    return json.dumps(vector, separators=(",", ":"))


class EmbeddingIngestor:
    """Reconciles rows missing embeddings with an embedding backend.

    Parameters
    ----------
    store:
        Row store holding the content and embedding columns.
    embedder:
        Backend that turns texts into vectors.
    """

    def __init__(self, store: RowStoreBase, embedder: EmbeddingServiceBase) -> None:
        self._store = store
        self._embedder = embedder

    def ingest(self, request: IngestRequest) -> IngestOutcome:
        """Embed every row of *request* that has content but no embedding yet.

        Raises
        ------
        StoreReadError
            The select failed.
        EmbeddingServiceError
            The embedding call failed; no row was updated.
        """
        table = request.table
        content_column = request.content_column

        rows = self._store.select_missing(
            table,
            ids=request.ids,
            content_column=content_column,
            embedding_column=request.embedding_column,
            id_column=ID_COLUMN,
        )
        eligible = [row for row in rows if row.get(content_column)]
        if len(eligible) < len(rows):
            logger.debug("Skipping %d rows with empty '%s'", len(rows) - len(eligible), content_column)
        logger.info(
            "Selected %d rows missing '%s' in '%s' (%d with content, %d ids requested)",
            len(rows),
            request.embedding_column,
            table,
            len(eligible),
            len(request.ids),
        )

        if not eligible:
            return IngestOutcome(status=IngestStatus.NO_ELIGIBLE_ROWS, table=table, selected=len(rows))

        texts = [str(row[content_column]) for row in eligible]
        vectors = self._embedder.embed(texts)
        if len(vectors) != len(texts):
            raise EmbeddingServiceError(
                "Embedding backend returned a different number of vectors than texts",
                detail={"expected": len(texts), "received": len(vectors)},
            )

        results = list(self._write_back(request, eligible, vectors))
        outcome = IngestOutcome(
            status=IngestStatus.COMPLETED,
            table=table,
            selected=len(rows),
            submitted=len(eligible),
            rows=results,
        )

        if outcome.failed:
            logger.warning(
                "Saved %d/%d embeddings on '%s' (%d failed)",
                outcome.succeeded,
                outcome.submitted,
                table,
                outcome.failed,
            )
        else:
            logger.info("Saved %d embeddings on '%s'", outcome.succeeded, table)
        return outcome

    def _write_back(
        self,
        request: IngestRequest,
        rows: Sequence[dict[str, Any]],
        vectors: Sequence[EmbeddingVector],
    ) -> Iterable[RowWriteResult]:
        for row, vector in zip(rows, vectors):
            row_id: RowId = row[ID_COLUMN]
            try:
                self._store.update(
                    request.table,
                    row_id=row_id,
                    values={request.embedding_column: serialize_embedding(vector)},
                    id_column=ID_COLUMN,
                )
            except StoreWriteError as exc:
                logger.error("Failed to save embedding on '%s' table with id %s: %s", request.table, row_id, exc)
                yield RowWriteResult(id=row_id, ok=False, error=str(exc))
                continue

            logger.info(
                "Generated embedding %s",
                json.dumps(
                    {
                        "table": request.table,
                        "id": row_id,
                        "contentColumn": request.content_column,
                        "embeddingColumn": request.embedding_column,
                    }
                ),
            )
            yield RowWriteResult(id=row_id, ok=True)


def ingest(
    record_ids: Iterable[RowId],
    table: str,
    content_column: str,
    embedding_column: str,
    *,
    store: RowStoreBase,
    embedder: EmbeddingServiceBase,
) -> IngestOutcome:
    """Functional shortcut for ``EmbeddingIngestor(store, embedder).ingest(...)``."""
    request = IngestRequest(
        ids=list(record_ids),
        table=table,
        content_column=content_column,
        embedding_column=embedding_column,
    )
    return EmbeddingIngestor(store, embedder).ingest(request)
