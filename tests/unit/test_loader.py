"""
Unit tests for the Loader (coercion, connect and transactional insert).
"""

import pytest

from fakes import FakeDocumentStore, FakePool
from location_sync.core.errors import DestinationConnectError, DestinationWriteError
from location_sync.pipeline import Extractor, Loader
from location_sync.warehouse.location_table import LOCATION_COLUMNS


def _extract(documents):
    return Extractor(FakeDocumentStore({"locations": documents})).extract("locations")


class TestLoaderPrepare:
    """Tests for Loader.prepare"""

    def test_rows_in_document_order(self, make_documents):
        rows = Loader().prepare(_extract(make_documents(3)))

        assert [row.code for row in rows] == ["C000", "C001", "C002"]
        assert all(len(row.as_params()) == len(LOCATION_COLUMNS) for row in rows)

    def test_coercion_failure_names_documents(self, make_documents, make_document):
        documents = make_documents(2) + [make_document(2, Installmentno="abc")]

        with pytest.raises(DestinationWriteError) as exc_info:
            Loader().prepare(_extract(documents))

        assert exc_info.value.failed_documents == ["doc-00002"]
        assert "installment_number" in str(exc_info.value)

    def test_many_failures_are_summarized(self, make_document):
        documents = [make_document(i, Installmentno="x") for i in range(15)]

        with pytest.raises(DestinationWriteError) as exc_info:
            Loader().prepare(_extract(documents))

        assert len(exc_info.value.failed_documents) == 15
        assert "and 5 more" in str(exc_info.value)


class TestLoaderInsert:
    """Tests for Loader.insert and Loader.load"""

    def test_insert_commits_all_rows(self, make_documents):
        pool = FakePool()
        loader = Loader()
        rows = loader.prepare(_extract(make_documents(10)))

        assert loader.insert(pool, rows, "tbl_location") == 10
        assert len(pool.rows) == 10
        assert pool.commits == 1

    def test_failed_last_row_rolls_back_everything(self, make_documents):
        """Test that one failing insert leaves zero rows"""
        rows = Loader().prepare(_extract(make_documents(10)))
        last_code = rows[-1].code
        pool = FakePool(reject_row=lambda params: params[6] == last_code)

        with pytest.raises(DestinationWriteError):
            Loader().insert(pool, rows, "tbl_location")

        assert pool.rows == []
        assert pool.commits == 0
        assert pool.rollbacks == 1

    def test_insert_nothing(self):
        pool = FakePool()
        assert Loader().insert(pool, [], "tbl_location") == 0
        assert pool.statements == []

    def test_connect_uses_factory(self, pool_factory, make_unit):
        unit = make_unit("u1")

        pool = Loader(pool_factory=pool_factory).connect(unit.destination)

        assert pool.opened is True
        assert pool.destination == unit.destination

    def test_connect_failure(self, pool_factory, make_unit):
        unit = make_unit("u1", host="unreachable.internal")
        pool_factory.unreachable_hosts.add("unreachable.internal")

        with pytest.raises(DestinationConnectError):
            Loader(pool_factory=pool_factory).connect(unit.destination)

    def test_load_closes_pool(self, pool_factory, make_unit, make_documents):
        unit = make_unit("u1")

        loaded = Loader(pool_factory=pool_factory).load(unit.destination, _extract(make_documents(4)))

        assert loaded == 4
        assert pool_factory.pools[0].closed is True
        assert len(pool_factory.rows_for(unit.destination.host)) == 4

    def test_load_coercion_failure_never_connects(self, pool_factory, make_unit, make_document):
        unit = make_unit("u1")

        with pytest.raises(DestinationWriteError):
            Loader(pool_factory=pool_factory).load(
                unit.destination, _extract([make_document(0, DateTime="garbage")])
            )

        assert pool_factory.pools == []
