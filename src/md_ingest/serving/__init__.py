"""
Serving — FastAPI application for segmentation and embedding ingestion.

Deployable as a standalone container; ``md-ingest-serve`` starts uvicorn.
"""
