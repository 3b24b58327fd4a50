"""
Storage — the narrow row-store contract used by ingestion.

Public surface
--------------
- :class:`RowStoreBase` — abstract backend (subclass for other stores).
- :class:`PostgrestRowStore` — Supabase / PostgREST backend over HTTP.
"""

from md_ingest.storage.base import RowId, RowStoreBase
from md_ingest.storage.postgrest_store import PostgrestRowStore

__all__ = ["PostgrestRowStore", "RowId", "RowStoreBase"]
