"""
PostgreSQL connection pool management using psycopg3

This module provides one connection pool per destination unit with
explicit open/close, translating driver failures into
DestinationConnectError.
"""
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from location_sync.core.errors import DestinationConnectError
from location_sync.core.models import DestinationParams


class DatabaseConnectionPool:
    """
    PostgreSQL connection pool manager using psycopg3

    Wraps a psycopg_pool.ConnectionPool for a single destination. The pool
    is opened explicitly and waits until a connection is usable, so
    authentication and network problems surface on open().
    """

    def __init__(
        self,
        destination: DestinationParams,
        min_size: int = 1,
        max_size: int = 2,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize database connection pool

        Args:
            destination: Destination connection parameters
            min_size: Minimum pool size
            max_size: Maximum pool size
            timeout: Seconds to wait for a connection (also the libpq connect timeout)
        """
        self.destination = destination
        self.min_size = min_size
        self.max_size = max(max_size, min_size)
        self.timeout = timeout

        self.conninfo = make_conninfo(
            host=destination.host,
            port=destination.port,
            dbname=destination.database,
            user=destination.user,
            password=destination.password.get_secret_value(),
            sslmode=destination.sslmode,
            connect_timeout=max(int(timeout), 1),
            application_name="location-sync",
        )

        self._pool: ConnectionPool | None = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> None:
        """
        Open the connection pool and wait until it is ready.

        There is no retry: a failed open aborts the unit for this run.

        Raises:
            DestinationConnectError: If no connection can be established
        """
        if self._pool is not None:
            return

        pool = ConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},  # Return rows as dictionaries
            name=f"location-sync-{self.destination.host}-{self.destination.database}",
            open=False,
        )
        try:
            pool.open(wait=True, timeout=self.timeout)
        except (PoolTimeout, OperationalError) as e:
            pool.close()
            raise DestinationConnectError(
                f"Cannot connect to {self.destination.describe()}: {e}"
            ) from e

        self._pool = pool

    def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Get a connection from the pool

        The connection is returned to the pool on exit; an uncommitted
        transaction is rolled back by the pool at that point.

        Yields:
            psycopg.Connection: Database connection

        Raises:
            RuntimeError: If pool is not open
            DestinationConnectError: If no connection becomes available in time
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        try:
            conn = self._pool.getconn()
        except (PoolTimeout, OperationalError) as e:
            raise DestinationConnectError(
                f"No connection available for {self.destination.describe()}: {e}"
            ) from e

        try:
            yield conn
        finally:
            self._pool.putconn(conn)

    def execute_query(self, query, params: tuple | None = None) -> list[dict]:
        """
        Execute a SELECT query and return results

        Args:
            query: SQL SELECT query (string or psycopg.sql.Composable)
            params: Query parameters (optional)

        Returns:
            List of dictionaries (one per row)
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
            conn.commit()
            return rows

    def execute_command(self, command, params: tuple | None = None) -> int:
        """
        Execute a DDL/INSERT/UPDATE/DELETE command in its own transaction

        Args:
            command: SQL command (string or psycopg.sql.Composable)
            params: Command parameters (optional)

        Returns:
            Number of rows affected
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(command, params)
                rowcount = cur.rowcount
            conn.commit()
            return rowcount

    def __enter__(self):
        """Context manager entry"""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()
        return False
