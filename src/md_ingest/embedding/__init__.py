"""
Embedding — clients for the external embedding service.

Public surface
--------------
- :class:`EmbeddingServiceBase` — abstract backend.
- :class:`HttpEmbeddingService` — ``POST /embed`` client over ``requests``.
"""

from md_ingest.embedding.base import EmbeddingServiceBase, EmbeddingVector
from md_ingest.embedding.http_client import HttpEmbeddingService

__all__ = ["EmbeddingServiceBase", "EmbeddingVector", "HttpEmbeddingService"]
