"""KFP v2 components — each file exports one @dsl.component."""

from pipelines.components.embed import request_embeddings
from pipelines.components.segment import segment_documents
from pipelines.components.store import store_sections

__all__ = [
    "request_embeddings",
    "segment_documents",
    "store_sections",
]
