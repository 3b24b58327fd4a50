"""
Ingestion — populate missing embeddings for rows in a row store.

The orchestrator talks to its collaborators only through
:class:`~md_ingest.storage.base.RowStoreBase` and
:class:`~md_ingest.embedding.base.EmbeddingServiceBase`, so it can be tested
with in-memory fakes.
"""

from md_ingest.ingestion.models import IngestOutcome, IngestRequest, IngestStatus, RowWriteResult
from md_ingest.ingestion.orchestrator import EmbeddingIngestor, ingest, serialize_embedding

__all__ = [
    "EmbeddingIngestor",
    "IngestOutcome",
    "IngestRequest",
    "IngestStatus",
    "RowWriteResult",
    "ingest",
    "serialize_embedding",
]
