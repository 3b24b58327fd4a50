"""Abstract base class for row-store backends.

The ingestion path needs exactly two operations from a row store: select
rows by id-set membership whose embedding column is still NULL, and set
one column on one row by id.  Adding a backend only requires subclassing
:class:`RowStoreBase` and implementing both.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

RowId = int | str


class RowStoreBase(ABC):
    """Narrow read/update contract over a table-oriented store."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def select_missing(
        self,
        table: str,
        *,
        ids: Sequence[RowId],
        content_column: str,
        embedding_column: str,
        id_column: str = "id",
    ) -> list[dict[str, Any]]:
        """Return rows of *table* whose id is in *ids* and *embedding_column* is NULL.

        Each row dict holds only ``id_column`` and ``content_column``.

        Raises
        ------
        StoreReadError
            When the select cannot be completed.  No partial result is returned.
        """
        ...

    @abstractmethod
    def update(
        self,
        table: str,
        *,
        row_id: RowId,
        values: dict[str, Any],
        id_column: str = "id",
    ) -> None:
        """Set *values* on the single row of *table* identified by *row_id*.

        Raises
        ------
        StoreWriteError
            When the update fails.
        """
        ...

    # -- optional overrides ---------------------------------------------------

    def close(self) -> None:
        """Release connections held by the backend.  No-op by default."""

    def __enter__(self) -> RowStoreBase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
