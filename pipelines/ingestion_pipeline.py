"""KFP v2 pipeline — Markdown ingestion workflow.

Three discrete stages connected by KFP Dataset artifacts:

    segment → store → embed

Each stage is a standalone ``@dsl.component`` that can be tested locally
through ``component.python_func``.

Build the component image
-------------------------
``segment_documents`` runs on the md-ingest image (see ``Dockerfile``);
build it and push it to a registry the cluster can pull from::

    docker build -t md-ingest:0.1.0 .

Compile
-------
    python -m pipelines.ingestion_pipeline --compile
"""

from kfp import compiler, dsl

from pipelines.components.embed import request_embeddings
from pipelines.components.segment import segment_documents
from pipelines.components.store import store_sections


# ──────────────────────────────────────────────────────────────────────
# Pipeline definition
# ──────────────────────────────────────────────────────────────────────


@dsl.pipeline(
    name="md-ingestion-pipeline",
    description=(
        "Markdown ingestion: segment documents → store sections as rows → "
        "request embeddings for the new rows."
    ),
)
def ingestion_pipeline(
    # ── Source ──────────────────────────────────────────────────────
    documents_dir: str = "/data/documents",
    glob_pattern: str = "**/*.md",
    # ── Segmentation ───────────────────────────────────────────────
    max_section_length: int = 2500,
    min_section_length: int = 200,
    # ── Row store ──────────────────────────────────────────────────
    supabase_url: str = "http://supabase-kong.supabase.svc.cluster.local:8000",
    supabase_key: str = "",
    table: str = "document_sections",
    column_map: str = '{"content": "content", "heading": "heading"}',
    insert_batch_size: int = 500,
    # ── Embedding ──────────────────────────────────────────────────
    embed_url: str = "http://md-ingest.kubeflow-user.svc.cluster.local:8000/embed",
    authorization: str = "",
    content_column: str = "content",
    embedding_column: str = "embedding",
    ids_per_request: int = 64,
) -> None:
    """Three-step ingestion: segment → store → embed.

    Parameters
    ----------
    documents_dir:
        Directory of markdown documents.
    glob_pattern:
        File-matching glob relative to *documents_dir*.
    max_section_length / min_section_length:
        Segmentation bounds in characters.
    supabase_url / supabase_key:
        Row-store connection details used to insert sections.
    table:
        Table receiving one row per section.
    column_map:
        JSON-encoded ``{section_key: column}`` mapping used on insert.
    insert_batch_size:
        Max rows per insert request.
    embed_url:
        URL of the md-ingest ``/embed`` endpoint.
    authorization:
        ``Authorization`` header sent to ``/embed``, e.g. ``"Bearer <jwt>"``.
    content_column / embedding_column:
        Columns read and written by the embedding step.
    ids_per_request:
        Row ids per ``/embed`` call.
    """
    # Step 1: Segment
    segment_task = segment_documents(
        documents_dir=documents_dir,
        glob_pattern=glob_pattern,
        max_section_length=max_section_length,
        min_section_length=min_section_length,
    )

    # Step 2: Store rows (embedding column left NULL)
    store_task = store_sections(
        sections=segment_task.outputs["sections"],
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        table=table,
        column_map=column_map,
        insert_batch_size=insert_batch_size,
    )

    # Step 3: Fill in embeddings
    request_embeddings(
        stored_ids=store_task.outputs["stored_ids"],
        embed_url=embed_url,
        authorization=authorization,
        table=table,
        content_column=content_column,
        embedding_column=embedding_column,
        ids_per_request=ids_per_request,
    )


# ──────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Markdown ingestion pipeline")
    parser.add_argument(
        "--compile",
        action="store_true",
        help="Compile pipeline to YAML",
    )
    parser.add_argument(
        "--output",
        default="pipelines/compiled/ingestion_pipeline.yaml",
        help="Output path for compiled YAML",
    )
    args = parser.parse_args()

    if args.compile:
        compiler.Compiler().compile(ingestion_pipeline, args.output)
        print(f"Pipeline compiled → {args.output}")
