"""HTTP client for the external embedding service.

Wire contract::

    POST {base_url}/embed
    {"texts": ["...", "..."]}

    200 OK
    {"embeddings": [[0.01, ...], [0.02, ...]]}
"""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import requests

from md_ingest.config import Settings
from md_ingest.embedding.base import EmbeddingServiceBase, EmbeddingVector
from md_ingest.errors import EmbeddingServiceError

logger = logging.getLogger(__name__)


class HttpEmbeddingService(EmbeddingServiceBase):
    """Embedding backend reached over HTTP.

    Parameters
    ----------
    base_url:
        Service root; the batch endpoint is ``{base_url}/embed``.
    timeout:
        Timeout in seconds for one batch request.
    session:
        Optional pre-built ``requests.Session`` (mainly for tests).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        self._endpoint = base_url.rstrip("/") + "/embed"
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpEmbeddingService:
        settings.require_ingestion_settings()
        return cls(settings.embedding_service_url, timeout=settings.embedding_timeout)

    def embed(self, texts: Sequence[str]) -> list[EmbeddingVector]:
        if not texts:
            return []

        logger.info("Requesting embeddings for %d texts from %s", len(texts), self._endpoint)
        t0 = time.monotonic()
        try:
            response = self._session.post(
                self._endpoint,
                json={"texts": list(texts)},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise EmbeddingServiceError(
                "Failed to generate embeddings",
                detail={"endpoint": self._endpoint, "reason": str(exc)},
            ) from exc

        if not response.ok:
            raise EmbeddingServiceError(
                "Failed to generate embeddings",
                detail={
                    "endpoint": self._endpoint,
                    "status_code": response.status_code,
                    "body": response.text[:500],
                },
            )

        embeddings = self._parse(response)
        if len(embeddings) != len(texts):
            raise EmbeddingServiceError(
                "Embedding service returned a different number of vectors than texts",
                detail={"endpoint": self._endpoint, "expected": len(texts), "received": len(embeddings)},
            )

        logger.info(
            "Received %d embeddings (dim=%d) in %.2fs",
            len(embeddings),
            len(embeddings[0]),
            time.monotonic() - t0,
        )
        return embeddings

    def _parse(self, response: requests.Response) -> list[EmbeddingVector]:
        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise EmbeddingServiceError(
                "Embedding service returned a non-JSON body",
                detail={"endpoint": self._endpoint, "reason": str(exc)},
            ) from exc

        embeddings = payload.get("embeddings") if isinstance(payload, dict) else None
        if not isinstance(embeddings, list) or not all(isinstance(v, list) for v in embeddings):
            raise EmbeddingServiceError(
                "Embedding service response has no 'embeddings' list",
                detail={"endpoint": self._endpoint},
            )
        try:
            return [[float(x) for x in vector] for vector in embeddings]
        except (TypeError, ValueError) as exc:
            raise EmbeddingServiceError(
                "Embedding service returned a non-numeric vector",
                detail={"endpoint": self._endpoint, "reason": str(exc)},
            ) from exc

    def close(self) -> None:
        self._session.close()
