"""Abstract base class for embedding backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

EmbeddingVector = list[float]


class EmbeddingServiceBase(ABC):
    """Turns an ordered batch of texts into an ordered batch of vectors."""

    @abstractmethod
    def embed(self, texts: Sequence[str]) -> list[EmbeddingVector]:
        """Embed *texts* in one call.

        The result holds exactly one vector per input text, in input order.

        Raises
        ------
        EmbeddingServiceError
            On any non-success response; no partial result is returned.
        """
        ...

    def close(self) -> None:
        """Release connections held by the backend.  No-op by default."""
