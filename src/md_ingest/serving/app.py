"""FastAPI application exposing segmentation and embedding ingestion."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Iterator

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from md_ingest.config import Settings
from md_ingest.embedding.http_client import HttpEmbeddingService
from md_ingest.errors import AuthorizationError, IngestionError
from md_ingest.ingestion.models import IngestOutcome, IngestRequest, IngestStatus
from md_ingest.ingestion.orchestrator import EmbeddingIngestor
from md_ingest.logging_config import configure_logging
from md_ingest.segmentation.models import ProcessedMarkdown
from md_ingest.segmentation.segmenter import process_markdown
from md_ingest.storage.postgrest_store import PostgrestRowStore

logger = logging.getLogger(__name__)


@lru_cache
def get_app_settings() -> Settings:
    return Settings()


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_app_settings().log_level)
    yield


app = FastAPI(
    title="md-ingest",
    version="0.1.0",
    description="Markdown segmentation and embedding ingestion.",
    lifespan=_lifespan,
)


# ── Request schemas ───────────────────────────────────────────────────
class SegmentRequest(BaseModel):
    """Markdown document to split into sections."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    max_section_length: int | None = Field(default=None, alias="maxSectionLength", ge=1)
    min_section_length: int | None = Field(default=None, alias="minSectionLength", ge=0)


# ── Dependencies ──────────────────────────────────────────────────────
def get_ingestor(
    settings: Settings = Depends(get_app_settings),
    authorization: str | None = Header(default=None),
) -> Iterator[EmbeddingIngestor]:
    """Build per-request collaborators; config is checked before the credential."""
    store = PostgrestRowStore.from_settings(settings, authorization)
    embedder = HttpEmbeddingService.from_settings(settings)
    try:
        yield EmbeddingIngestor(store, embedder)
    finally:
        store.close()
        embedder.close()


# ── Error mapping ─────────────────────────────────────────────────────
@app.exception_handler(IngestionError)
async def _ingestion_error_handler(_: Request, exc: IngestionError) -> JSONResponse:
    status_code = 401 if isinstance(exc, AuthorizationError) else 500
    logger.error("Ingestion failed: %s", exc)
    return JSONResponse(
        status_code=status_code,
        content={**exc.to_payload(), "status": IngestStatus.FAILED.value},
    )


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/segment", response_model=ProcessedMarkdown, response_model_exclude_none=True)
def segment_markdown(
    request: SegmentRequest,
    settings: Settings = Depends(get_app_settings),
) -> ProcessedMarkdown:
    """Split a markdown document into sections."""
    return process_markdown(
        request.content,
        max_section_length=request.max_section_length or settings.max_section_length,
        min_section_length=(
            request.min_section_length
            if request.min_section_length is not None
            else settings.min_section_length
        ),
    )


@app.post(
    "/embed",
    status_code=200,
    response_model=IngestOutcome,
    responses={204: {"description": "No rows need an embedding"}},
)
def embed(
    request: IngestRequest,
    ingestor: EmbeddingIngestor = Depends(get_ingestor),
) -> Response:
    """Embed every requested row whose embedding column is still NULL.

    ``200`` carries per-row results; a row that failed to save does not
    turn the response into an error.
    """
    outcome = ingestor.ingest(request)
    if outcome.status is IngestStatus.NO_ELIGIBLE_ROWS:
        return Response(status_code=204)
    return JSONResponse(content=outcome.model_dump(mode="json"))


def main() -> None:
    import uvicorn

    uvicorn.run("md_ingest.serving.app:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
