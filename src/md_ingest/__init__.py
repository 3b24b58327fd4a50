"""
md-ingest — markdown segmentation and embedding ingestion.

Subpackages
-----------
- :mod:`md_ingest.segmentation` — split markdown into heading-tagged sections.
- :mod:`md_ingest.ingestion` — populate missing embeddings row by row.
- :mod:`md_ingest.storage` — row-store backends.
- :mod:`md_ingest.embedding` — embedding-service clients.
- :mod:`md_ingest.serving` — HTTP surface.
"""

__version__ = "0.1.0"
