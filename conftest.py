"""
Root-level pytest configuration for the investor matching engine.

Configures:
- Custom markers (integration, etc.)
- Shared fixtures: sample investor rows, seeded enricher, pipeline stores

Async tests run under pytest-asyncio (asyncio_mode = "auto" in pyproject).
"""

import random

import pytest
import pytest_asyncio

from matching.enrichment import InvestorEnricher
from matching.models import InvestorRecord
from storage.pipeline_store import InMemoryPipelineStore, SQLitePipelineStore


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (touch the filesystem or SQLite)"
    )


@pytest.fixture(scope="session")
def event_loop_policy():
    """
    Set event loop policy for the test session.

    This ensures consistent async behavior across all tests.
    """
    import asyncio
    return asyncio.get_event_loop_policy()


@pytest.fixture
def complete_investor():
    """An investor record with every enrichable field already populated."""
    return InvestorRecord(
        name="Priya Raman",
        firm="Meridian Ventures",
        role="Partner",
        email="priya@meridian.vc",
        location="Bengaluru, India",
        website="https://meridian.vc",
        sectors=["Fintech", "SaaS"],
        stages=["Seed", "Series A"],
        check_size="$250k - $2M",
        investment_thesis="Payments infrastructure.",
        portfolio_highlights=["Lendwise", "PayGrid"],
    )


@pytest.fixture
def seeded_enricher():
    return InvestorEnricher(rng=random.Random(1234))


@pytest.fixture
def memory_store():
    return InMemoryPipelineStore()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    """An initialized SQLite pipeline store in a temp directory."""
    store = SQLitePipelineStore(tmp_path / "pipeline.db")
    await store.initialize()
    yield store
    await store.close()
