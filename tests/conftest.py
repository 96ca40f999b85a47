"""
Pytest configuration and fixtures for location-sync tests

This module provides shared fixtures for unit and integration tests.
"""
from typing import Generator

import pytest

from fakes import FakeDocumentStore, FakePoolFactory
from location_sync.core.models import MigrationUnit
from location_sync.core.registry import SourceRegistry
from location_sync.pipeline import Extractor, Loader, MigrationOrchestrator, Purger


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DOCUMENT FIXTURES
# =======================

def build_document(index: int = 0, **overrides) -> dict:
    """A source document using the legacy field names."""
    document = {
        "_id": f"doc-{index:05d}",
        "UserId": f"user-{index % 7}",
        "Lattitude": 10.762622 + index / 1000,
        "Longitude": "106.660172",
        "Address": f"{index} Nguyen Hue, District 1",
        "Type": "checkin",
        "DateTime": "2024-03-01T08:30:00+07:00",
        "Code": f"C{index:03d}",
        "Installmentno": str(index % 12 + 1),
    }
    document.update(overrides)
    return document


@pytest.fixture
def make_document():
    """Factory fixture for source documents"""
    return build_document


@pytest.fixture
def make_documents():
    """Factory fixture for a list of n source documents"""
    def _make(n: int, start: int = 0) -> list[dict]:
        return [build_document(i) for i in range(start, start + n)]
    return _make


@pytest.fixture
def make_unit():
    """Factory fixture for migration units"""
    def _make(unit_id: str = "branch_north", collection: str | None = None, host: str | None = None,
              enabled: bool = True) -> MigrationUnit:
        return MigrationUnit(
            unit_id=unit_id,
            collection_id=collection or f"locations_{unit_id}",
            destination={
                "host": host or f"db-{unit_id}.internal",
                "database": "field_ops",
                "user": "sync",
                "password": "s3cret",
            },
            enabled=enabled,
        )
    return _make


# =======================
# PIPELINE FIXTURES (in-memory)
# =======================

@pytest.fixture
def document_store() -> FakeDocumentStore:
    """Empty in-memory document store"""
    return FakeDocumentStore()


@pytest.fixture
def pool_factory() -> FakePoolFactory:
    """Destination pool factory producing in-memory pools"""
    return FakePoolFactory()


@pytest.fixture
def build_orchestrator(document_store, pool_factory):
    """
    Factory fixture wiring an orchestrator around the in-memory fakes

    Returns:
        Callable taking a list of units (and an optional purge batch size)
    """
    def _build(units: list[MigrationUnit], batch_size: int = 500, **kwargs) -> MigrationOrchestrator:
        return MigrationOrchestrator(
            registry=SourceRegistry(units),
            extractor=Extractor(document_store),
            loader=Loader(pool_factory=pool_factory),
            purger=Purger(document_store, batch_size=batch_size),
            **kwargs,
        )
    return _build


# =======================
# CONTAINER FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_sync",
        password="test_password",
        dbname="test_field_ops",
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def mongo_container() -> Generator:
    """
    Start MongoDB container for integration tests

    Yields:
        MongoDbContainer instance
    """
    from testcontainers.mongodb import MongoDbContainer

    with MongoDbContainer(image="mongo:7.0") as mongo:
        yield mongo
