"""
Pipelines — KFP v2 components and the markdown ingestion pipeline.

``segment → store → embed``: documents become section rows, then the
md-ingest service fills in their embeddings.
"""
