"""
Storage layer for outreach pipeline tracking.

Main components:
- PipelineStore: backend-agnostic interface (get / upsert / query_by_status / clear)
- InMemoryPipelineStore: process-local backend used when no database is configured
- SQLitePipelineStore: durable aiosqlite backend
- open_pipeline_store: picks and initializes the backend once

Quick start:
    from storage import pipeline_store

    async with pipeline_store(config) as store:
        await store.upsert("founder-1", investor_email="jane@acme.vc", status="contacted")
        entries = await store.get("founder-1")
"""

from storage.pipeline_store import (
    BackingStoreError,
    DEFAULT_FOUNDER_ID,
    InMemoryPipelineStore,
    PIPELINE_SCHEMA_VERSION,
    PipelineEntry,
    PipelineStatus,
    PipelineStore,
    SQLitePipelineStore,
    open_pipeline_store,
    pipeline_store,
)

__all__ = [
    "BackingStoreError",
    "DEFAULT_FOUNDER_ID",
    "InMemoryPipelineStore",
    "PIPELINE_SCHEMA_VERSION",
    "PipelineEntry",
    "PipelineStatus",
    "PipelineStore",
    "SQLitePipelineStore",
    "open_pipeline_store",
    "pipeline_store",
]

__version__ = "1.0.0"
