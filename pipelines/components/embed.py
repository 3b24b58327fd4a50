"""KFP v2 component — Request embeddings for stored section rows.

Step 3 of the ingestion pipeline.  Sends the row ids written by
``store_sections`` to the md-ingest ``POST /embed`` endpoint in batches.
The service selects the rows whose embedding column is still NULL, embeds
them in one call and writes each vector back, so re-running this step is
safe.

Local testing
-------------
    from pipelines.components.embed import request_embeddings
    request_embeddings.python_func(
        stored_ids=_FakeArtifact("/tmp/ids.json"),
        embed_url="http://md-ingest:8000/embed",
        authorization="Bearer <key>",
        table="document_sections",
        metrics=_FakeArtifact("/tmp/metrics"),
    )
"""

from kfp import dsl


@dsl.component(
    base_image="python:3.11-slim",
    packages_to_install=[
        "requests>=2.31,<3",
    ],
)
def request_embeddings(
    stored_ids: dsl.Input[dsl.Dataset],
    embed_url: str,
    authorization: str,
    table: str,
    metrics: dsl.Output[dsl.Metrics],
    content_column: str = "content",
    embedding_column: str = "embedding",
    ids_per_request: int = 64,
    request_timeout: int = 300,
) -> str:
    """Ask the ingestion service to embed every stored row.

    Parameters
    ----------
    stored_ids:
        Input Dataset — JSON list of row ids produced by ``store_sections``.
    embed_url:
        Full URL of the ``/embed`` endpoint.
    authorization:
        Value of the ``Authorization`` header forwarded to the row store.
    table / content_column / embedding_column:
        Where the service reads content and writes embeddings.
    metrics:
        Output Metrics artifact with ingestion statistics.
    ids_per_request:
        Number of ids sent per ``/embed`` call (one embedding batch each).
    request_timeout:
        Per-request timeout in seconds.

    Returns
    -------
    str
        Summary, e.g. ``"Embedded 250/256 rows (6 failed writes)"``.
    """
    import json
    import logging

    import requests

    logging.basicConfig(level=logging.INFO)
    log = logging.getLogger("request_embeddings")

    with open(stored_ids.path, encoding="utf-8") as fh:
        ids = json.load(fh)
    if not isinstance(ids, list):
        raise ValueError("stored_ids must contain a JSON list")

    if not ids:
        metrics.log_metric("rows_embedded", 0)
        return "No rows to embed."

    succeeded = 0
    failed = 0
    skipped_batches = 0
    for start in range(0, len(ids), ids_per_request):
        batch = ids[start : start + ids_per_request]
        resp = requests.post(
            embed_url,
            json={
                "ids": batch,
                "table": table,
                "contentColumn": content_column,
                "embeddingColumn": embedding_column,
            },
            headers={"Authorization": authorization},
            timeout=request_timeout,
        )
        if resp.status_code == 204:
            skipped_batches += 1
            log.info("  batch %d-%d: nothing to embed", start, start + len(batch))
            continue
        if not resp.ok:
            raise RuntimeError(
                f"Embedding request failed ({resp.status_code}): {resp.text[:500]}"
            )

        outcome = resp.json()
        succeeded += outcome.get("succeeded", 0)
        failed += outcome.get("failed", 0)
        log.info(
            "  batch %d-%d: %d saved, %d failed",
            start,
            start + len(batch),
            outcome.get("succeeded", 0),
            outcome.get("failed", 0),
        )

    if failed:
        log.warning("%d rows failed to save; re-run to retry them", failed)

    # KFP Metrics
    metrics.log_metric("rows_embedded", succeeded)
    metrics.log_metric("rows_failed", failed)
    metrics.log_metric("batches_without_work", skipped_batches)

    msg = f"Embedded {succeeded}/{len(ids)} rows ({failed} failed writes)"
    log.info(msg)
    return msg
