"""
Unit tests for database connection pool

Tests the PostgreSQL connection pool functionality using testcontainers.
"""
import pytest
from psycopg import sql
from pydantic import SecretStr

from location_sync.core.errors import DestinationConnectError
from location_sync.core.models import DestinationParams
from location_sync.warehouse.connection import DatabaseConnectionPool
from location_sync.warehouse.location_table import (
    build_insert_statement,
    count_rows,
    create_location_table,
)


@pytest.fixture
def destination(postgres_container) -> DestinationParams:
    return DestinationParams(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_field_ops",
        user="test_sync",
        password="test_password",
        table="tbl_location_pool_test",
        sslmode="disable",
    )


def test_conninfo_keeps_password_out_of_describe():
    """Test that the password only appears in the libpq conninfo"""
    destination = DestinationParams(
        host="db.internal", database="field_ops", user="sync", password="p@ss word"
    )
    pool = DatabaseConnectionPool(destination)

    assert "dbname=field_ops" in pool.conninfo
    assert "p@ss word" not in destination.describe()
    assert pool.is_open is False


def test_get_connection_requires_open():
    destination = DestinationParams(host="db.internal", database="d", user="u", password="p")

    with pytest.raises(RuntimeError):
        with DatabaseConnectionPool(destination).get_connection():
            pass


@pytest.mark.integration
def test_connection_pool_initialization(destination):
    """Test that connection pool initializes correctly"""
    pool = DatabaseConnectionPool(destination, min_size=1, max_size=3)

    pool.open()

    assert pool._pool is not None
    assert pool._pool.min_size == 1
    assert pool._pool.max_size == 3

    pool.close()
    assert pool.is_open is False


@pytest.mark.integration
def test_get_connection(destination):
    """Test getting a connection from the pool"""
    with DatabaseConnectionPool(destination) as pool:
        with pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 as test")
                result = cur.fetchone()
                assert result["test"] == 1


@pytest.mark.integration
def test_execute_query(destination):
    """Test executing a query using the pool"""
    with DatabaseConnectionPool(destination) as pool:
        result = pool.execute_query("SELECT 42 as answer")
        assert len(result) == 1
        assert result[0]["answer"] == 42


@pytest.mark.integration
def test_wrong_password_raises_connect_error(destination):
    """Test that authentication failures surface on open()"""
    bad = destination.model_copy(update={"password": SecretStr("wrong")})
    pool = DatabaseConnectionPool(bad, timeout=3)

    with pytest.raises(DestinationConnectError) as exc_info:
        pool.open()

    assert "wrong" not in str(exc_info.value)
    assert pool.is_open is False


@pytest.mark.integration
def test_unreachable_host_raises_connect_error():
    destination = DestinationParams(
        host="127.0.0.1", port=1, database="d", user="u", password="p", sslmode="disable"
    )

    with pytest.raises(DestinationConnectError):
        DatabaseConnectionPool(destination, timeout=2).open()


@pytest.mark.integration
def test_create_location_table_is_idempotent(destination):
    with DatabaseConnectionPool(destination) as pool:
        create_location_table(pool, destination.table)
        create_location_table(pool, destination.table)

        pool.execute_command(
            build_insert_statement(destination.table),
            ("u1", "10.5", "106.7", None, None, "2024-03-01T00:00:00Z", None, 1),
        )
        assert count_rows(pool, destination.table) >= 1

        pool.execute_command(sql.SQL("DROP TABLE {}").format(sql.Identifier(destination.table)))
