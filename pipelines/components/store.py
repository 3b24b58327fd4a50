"""KFP v2 component — Insert section records as rows in the row store.

Step 2 of the ingestion pipeline.  Reads the section JSON-Lines Dataset and
inserts one row per section through the Supabase / PostgREST API, leaving
the embedding column NULL for the embed step to fill in.

``column_map`` maps section record keys to table columns, e.g.
``{"content": "content", "heading": "heading"}``.  Keys absent from the map
are not stored.

Output contract — ``stored_ids`` is a JSON list of the inserted row ids,
in insertion order::

    [101, 102, 103]

Local testing
-------------
    from pipelines.components.store import store_sections
    store_sections.python_func(
        sections=_FakeArtifact("/tmp/sections.jsonl"),
        supabase_url="http://localhost:54321",
        supabase_key="<service role key>",
        table="document_sections",
        stored_ids=_FakeArtifact("/tmp/ids.json"),
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
def store_sections(
    sections: dsl.Input[dsl.Dataset],
    supabase_url: str,
    supabase_key: str,
    table: str,
    stored_ids: dsl.Output[dsl.Dataset],
    metrics: dsl.Output[dsl.Metrics],
    column_map: str = '{"content": "content", "heading": "heading"}',
    insert_batch_size: int = 500,
    request_timeout: int = 60,
) -> str:
    """Insert section records and emit the ids of the new rows.

    Parameters
    ----------
    sections:
        Input Dataset — JSON-Lines produced by ``segment_documents``.
    supabase_url / supabase_key:
        Row-store connection details.  The key is sent as both ``apikey``
        and bearer token.
    table:
        Target table.
    stored_ids:
        Output Dataset — JSON list of inserted row ids.
    metrics:
        Output Metrics artifact with insert statistics.
    column_map:
        JSON-encoded ``{record_key: column}`` mapping; must map ``content``.
    insert_batch_size:
        Max rows per insert request.
    request_timeout:
        Per-request timeout in seconds.

    Returns
    -------
    str
        Summary, e.g. ``"Stored 256 sections → table 'document_sections'"``.
    """
    import json
    import logging
    import time
    from pathlib import Path

    import requests

    logging.basicConfig(level=logging.INFO)
    log = logging.getLogger("store_sections")

    mapping = json.loads(column_map)
    if not isinstance(mapping, dict) or "content" not in mapping:
        raise ValueError("column_map must be a JSON object mapping at least 'content'")

    # ── read section records ──────────────────────────────────────
    records: list[dict] = []
    with open(sections.path, encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as exc:
                log.warning("Skipping malformed line %d: %s", lineno, exc)

    out_path = Path(stored_ids.path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    if not records:
        out_path.write_text("[]")
        stored_ids.metadata["num_rows"] = 0
        metrics.log_metric("rows_inserted", 0)
        return "No sections to store."

    rows = [
        {column: rec.get(key) for key, column in mapping.items()}
        for rec in records
    ]

    # ── insert ────────────────────────────────────────────────────
    url = f"{supabase_url.rstrip('/')}/rest/v1/{table}"
    headers = {
        "apikey": supabase_key,
        "Authorization": f"Bearer {supabase_key}",
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }

    ids: list = []
    t0 = time.monotonic()
    batches = 0
    for start in range(0, len(rows), insert_batch_size):
        batch = rows[start : start + insert_batch_size]
        resp = requests.post(
            url,
            params={"select": "id"},
            json=batch,
            headers=headers,
            timeout=request_timeout,
        )
        resp.raise_for_status()
        ids.extend(row["id"] for row in resp.json())
        batches += 1
        log.info("  inserted batch %d (%d-%d)", batches, start, start + len(batch))
    elapsed = time.monotonic() - t0

    out_path.write_text(json.dumps(ids))
    stored_ids.metadata["num_rows"] = len(ids)
    stored_ids.metadata["table"] = table

    # KFP Metrics
    metrics.log_metric("rows_inserted", len(ids))
    metrics.log_metric("insert_batches", batches)
    metrics.log_metric("insert_elapsed_seconds", round(elapsed, 2))

    msg = f"Stored {len(ids)} sections → table '{table}' in {elapsed:.1f}s"
    log.info(msg)
    return msg
