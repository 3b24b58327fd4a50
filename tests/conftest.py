"""Shared pytest configuration, fakes and fixtures."""

from __future__ import annotations

from typing import Any, Sequence

import pytest

from md_ingest.embedding.base import EmbeddingServiceBase, EmbeddingVector
from md_ingest.errors import EmbeddingServiceError, StoreReadError, StoreWriteError
from md_ingest.storage.base import RowId, RowStoreBase


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── In-memory fakes for the ingestion collaborators ─────────────────────


class FakeRowStore(RowStoreBase):
    """Dict-backed row store: ``{id: {column: value}}``."""

    def __init__(
        self,
        rows: dict[RowId, dict[str, Any]] | None = None,
        *,
        fail_select: bool = False,
        fail_update_ids: Sequence[RowId] = (),
    ) -> None:
        self.rows: dict[RowId, dict[str, Any]] = rows or {}
        self.fail_select = fail_select
        self.fail_update_ids = set(fail_update_ids)
        self.select_calls: list[dict[str, Any]] = []
        self.updates: list[tuple[RowId, dict[str, Any]]] = []
        self.closed = False

    def select_missing(
        self,
        table: str,
        *,
        ids: Sequence[RowId],
        content_column: str,
        embedding_column: str,
        id_column: str = "id",
    ) -> list[dict[str, Any]]:
        self.select_calls.append({"table": table, "ids": list(ids)})
        if self.fail_select:
            raise StoreReadError(f"Failed to select rows from '{table}'", detail={"table": table})
        return [
            {id_column: row_id, content_column: self.rows[row_id].get(content_column)}
            for row_id in ids
            if row_id in self.rows and self.rows[row_id].get(embedding_column) is None
        ]

    def update(
        self,
        table: str,
        *,
        row_id: RowId,
        values: dict[str, Any],
        id_column: str = "id",
    ) -> None:
        if row_id in self.fail_update_ids:
            raise StoreWriteError(f"Failed to update row {row_id!r} in '{table}'", detail={"id": row_id})
        self.updates.append((row_id, values))
        self.rows[row_id].update(values)

    def close(self) -> None:
        self.closed = True


class FakeEmbeddingService(EmbeddingServiceBase):
    """Returns ``[position, len(text)]`` for each text; records every call."""

    def __init__(self, *, fail: bool = False, drop_last: bool = False) -> None:
        self.fail = fail
        self.drop_last = drop_last
        self.calls: list[list[str]] = []

    def embed(self, texts: Sequence[str]) -> list[EmbeddingVector]:
        self.calls.append(list(texts))
        if self.fail:
            raise EmbeddingServiceError("Failed to generate embeddings", detail={"status_code": 503})
        vectors = [[float(i), float(len(text))] for i, text in enumerate(texts)]
        return vectors[:-1] if self.drop_last else vectors


@pytest.fixture()
def sample_rows() -> dict[RowId, dict[str, Any]]:
    """Three rows; row 2 already has an embedding."""
    return {
        1: {"content": "text one", "embedding": None},
        2: {"content": "text two", "embedding": "[0.5,0.5]"},
        3: {"content": "text three", "embedding": None},
    }


@pytest.fixture()
def fake_store(sample_rows: dict[RowId, dict[str, Any]]) -> FakeRowStore:
    return FakeRowStore(sample_rows)


@pytest.fixture()
def fake_embedder() -> FakeEmbeddingService:
    return FakeEmbeddingService()
