"""
Integration tests for the full migration against real containers.

MongoDB is the source and PostgreSQL the destination; each test uses its
own source database and destination table.
"""

import uuid
from datetime import datetime, timezone

import pytest
from bson import ObjectId
from psycopg import sql

from location_sync.core.models import DestinationParams, MigrationUnit, RunOutcome, UnitState
from location_sync.core.registry import SourceRegistry
from location_sync.pipeline import Extractor, Loader, MigrationOrchestrator, Purger
from location_sync.source import MongoDocumentStore
from location_sync.warehouse.connection import DatabaseConnectionPool
from location_sync.warehouse.location_table import count_rows, create_location_table

pytestmark = pytest.mark.integration


@pytest.fixture
def destination(postgres_container) -> DestinationParams:
    return DestinationParams(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_field_ops",
        user="test_sync",
        password="test_password",
        table=f"tbl_location_{uuid.uuid4().hex[:8]}",
        sslmode="disable",
    )


@pytest.fixture
def destination_pool(destination):
    with DatabaseConnectionPool(destination) as pool:
        create_location_table(pool, destination.table)
        yield pool
        pool.execute_command(sql.SQL("DROP TABLE IF EXISTS {}").format(sql.Identifier(destination.table)))


@pytest.fixture
def source_store(mongo_container):
    database = f"locations_{uuid.uuid4().hex[:8]}"
    store = MongoDocumentStore(mongo_container.get_connection_url(), database)
    store.open()
    yield store
    store.database.client.drop_database(database)
    store.close()


@pytest.fixture
def unit(destination) -> MigrationUnit:
    return MigrationUnit(unit_id="branch_north", collection_id="locations_north", destination=destination)


@pytest.fixture
def orchestrator(unit, source_store):
    return MigrationOrchestrator(
        registry=SourceRegistry([unit]),
        extractor=Extractor(source_store),
        loader=Loader(connect_timeout=10),
        purger=Purger(source_store, batch_size=500),
    )


def _insert_documents(store: MongoDocumentStore, collection: str, documents: list[dict]) -> None:
    store.database[collection].insert_many(documents)


def _legacy_documents(n: int) -> list[dict]:
    return [
        {
            "_id": ObjectId(),
            "UserId": f"user-{i}",
            "Lattitude": 10.762622,
            "Longitude": "106.660172",
            "Address": "1 Le Loi",
            "Type": "checkin",
            "DateTime": datetime(2024, 3, 1, 8, i % 60, tzinfo=timezone.utc),
            "Code": f"C{i:03d}",
            "Installmentno": str(i + 1),
        }
        for i in range(n)
    ]


def test_full_migration(orchestrator, unit, source_store, destination_pool):
    """Test that documents move to PostgreSQL and disappear from MongoDB"""
    _insert_documents(source_store, unit.collection_id, _legacy_documents(600))

    result = orchestrator.run().results[0]

    assert result.outcome == RunOutcome.SUCCESS
    assert result.state == UnitState.DONE
    assert (result.records_extracted, result.records_loaded, result.records_purged) == (600, 600, 600)
    assert count_rows(destination_pool, unit.destination.table) == 600
    assert source_store.fetch_all(unit.collection_id) == []

    rows = destination_pool.execute_query(
        sql.SQL("SELECT latitude, installment_no, recorded_at FROM {} ORDER BY installment_no LIMIT 1").format(
            sql.Identifier(unit.destination.table)
        )
    )
    assert rows[0]["latitude"] == "10.762622"
    assert rows[0]["installment_no"] == 1
    assert rows[0]["recorded_at"] == datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def test_rerun_is_idempotent(orchestrator, unit, source_store, destination_pool):
    _insert_documents(source_store, unit.collection_id, _legacy_documents(5))

    orchestrator.run()
    second = orchestrator.run().results[0]

    assert second.records_extracted == 0
    assert second.outcome == RunOutcome.SUCCESS
    assert count_rows(destination_pool, unit.destination.table) == 5


def test_failed_insert_is_atomic(orchestrator, unit, source_store, destination_pool):
    """Test that a constraint failure on the 10th row leaves no rows and no deletes"""
    destination_pool.execute_command(
        sql.SQL("ALTER TABLE {} ADD CONSTRAINT reject_c009 CHECK (code <> 'C009')").format(
            sql.Identifier(unit.destination.table)
        )
    )
    _insert_documents(source_store, unit.collection_id, _legacy_documents(10))

    result = orchestrator.run().results[0]

    assert result.outcome == RunOutcome.FAILURE
    assert result.records_loaded == 0
    assert count_rows(destination_pool, unit.destination.table) == 0
    assert len(source_store.fetch_all(unit.collection_id)) == 10


def test_coercion_failure_touches_nothing(orchestrator, unit, source_store, destination_pool):
    documents = _legacy_documents(3)
    documents[1]["Installmentno"] = "abc"
    _insert_documents(source_store, unit.collection_id, documents)

    result = orchestrator.run().results[0]

    assert result.outcome == RunOutcome.FAILURE
    assert str(documents[1]["_id"]) in result.error_detail
    assert count_rows(destination_pool, unit.destination.table) == 0
    assert len(source_store.fetch_all(unit.collection_id)) == 3


def test_unreachable_destination_does_not_stop_next_unit(unit, source_store, destination_pool):
    broken = MigrationUnit(
        unit_id="branch_south",
        collection_id="locations_south",
        destination=unit.destination.model_copy(update={"host": "127.0.0.1", "port": 1}),
    )
    _insert_documents(source_store, broken.collection_id, _legacy_documents(2))
    _insert_documents(source_store, unit.collection_id, _legacy_documents(3))

    orchestrator = MigrationOrchestrator(
        registry=SourceRegistry([broken, unit]),
        extractor=Extractor(source_store),
        loader=Loader(connect_timeout=2),
        purger=Purger(source_store),
    )
    summary = orchestrator.run()

    assert [r.outcome for r in summary.results] == [RunOutcome.FAILURE, RunOutcome.SUCCESS]
    assert len(source_store.fetch_all(broken.collection_id)) == 2
    assert count_rows(destination_pool, unit.destination.table) == 3


def test_integer_ids_are_purged(orchestrator, unit, source_store, destination_pool):
    """Test that non-ObjectId keys are deleted and not loaded a second time"""
    documents = _legacy_documents(3)
    for number, document in enumerate(documents, start=1):
        document["_id"] = number
    _insert_documents(source_store, unit.collection_id, documents)

    first = orchestrator.run().results[0]
    second = orchestrator.run().results[0]

    assert (first.outcome, first.records_purged) == (RunOutcome.SUCCESS, 3)
    assert second.records_extracted == 0
    assert source_store.fetch_all(unit.collection_id) == []
    assert count_rows(destination_pool, unit.destination.table) == 3
