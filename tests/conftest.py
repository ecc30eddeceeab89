"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Every test gets its own SQLite files under tmp_path, so stores never leak
between tests.
"""
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings
from oracle_store.db import DocumentStore, FlatRecordStore
from oracle_store.db.database import create_document_engine, create_flat_engine
from oracle_store.service import OracleService


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (file-backed stores)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings(tmp_path):
    """Settings pointing both stores at tmp_path."""
    return Settings(data_dir=tmp_path, auth_latency_ms=0, session_reward_credits=50)


@pytest.fixture
def flat_store(settings):
    """Isolated flat record store."""
    store = FlatRecordStore(create_flat_engine(settings.flat_store_url))
    yield store
    store.close()


@pytest_asyncio.fixture
async def document_store(settings):
    """Isolated document store."""
    store = DocumentStore(create_document_engine(settings.document_store_url), settings.document_collection)
    yield store
    await store.close()


class FakeClock:
    """Deterministic millisecond clock that advances on every call."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(flat_store, settings, clock):
    """Service over an isolated flat store (document store unused)."""
    document_store = DocumentStore(create_document_engine(settings.document_store_url))
    return OracleService(flat_store, document_store, settings=settings, clock=clock)


@pytest_asyncio.fixture
async def async_service(flat_store, document_store, settings, clock):
    """Service over isolated flat and document stores."""
    return OracleService(flat_store, document_store, settings=settings, clock=clock)


@pytest.fixture
def sample_guide():
    """Opaque study guide payload as produced by the content service."""
    return {
        "title": "Cell Biology",
        "summary": "Organelles and their functions",
        "quiz": [{"question": "Powerhouse of the cell?", "answer": "Mitochondria"}],
    }


@pytest.fixture
def sample_sources():
    """Opaque source metadata stored with a study session."""
    return [
        {"id": "src-1", "category": "syllabus", "name": "syllabus.pdf"},
        {"id": "src-2", "category": "notes", "name": "week3.md"},
    ]
