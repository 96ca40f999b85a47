"""
Loader: coerces extracted records and inserts them at the destination in a
single transaction.

The steps are exposed separately (prepare, connect, insert) so the caller
can keep the pool open while the source is purged; load() composes them
for one-shot use.
"""

from collections.abc import Callable

import psycopg

from location_sync.core.coercion import RecordCoercer
from location_sync.core.errors import DestinationWriteError
from location_sync.core.models import DestinationParams, ExtractedDocument, LocationRow
from location_sync.observability.logger import get_logger
from location_sync.warehouse.connection import DatabaseConnectionPool
from location_sync.warehouse.location_table import build_insert_statement

logger = get_logger(__name__)

# Number of failing documents listed in an error message
MAX_REPORTED_FAILURES = 10

PoolFactory = Callable[[DestinationParams], DatabaseConnectionPool]


class Loader:
    """
    Transactional bulk loader for location rows.

    Args:
        pool_factory: Builds an unopened pool for a destination; defaults to
            DatabaseConnectionPool with the given sizing
        max_pool_size: Maximum connections per destination pool
        connect_timeout: Seconds to wait for the pool to become ready
    """

    def __init__(
        self,
        pool_factory: PoolFactory | None = None,
        max_pool_size: int = 2,
        connect_timeout: float = 30.0,
        coercer: RecordCoercer | None = None,
    ):
        self.max_pool_size = max_pool_size
        self.connect_timeout = connect_timeout
        self.pool_factory = pool_factory or self._default_pool_factory
        self.coercer = coercer or RecordCoercer()

    def _default_pool_factory(self, destination: DestinationParams) -> DatabaseConnectionPool:
        return DatabaseConnectionPool(
            destination,
            min_size=1,
            max_size=self.max_pool_size,
            timeout=self.connect_timeout,
        )

    def prepare(self, documents: list[ExtractedDocument]) -> list[LocationRow]:
        """
        Coerce every document into a typed row. No I/O.

        Raises:
            DestinationWriteError: If any document fails coercion; nothing
                should be written in that case
        """
        results = self.coercer.coerce_batch(documents)
        failures = [r for r in results if not r.passed]

        if failures:
            details = "; ".join(
                f"{r.document_id}: {', '.join(r.error_messages)}"
                for r in failures[:MAX_REPORTED_FAILURES]
            )
            if len(failures) > MAX_REPORTED_FAILURES:
                details += f"; ... and {len(failures) - MAX_REPORTED_FAILURES} more"
            raise DestinationWriteError(
                f"{len(failures)} of {len(results)} records failed coercion: {details}",
                failed_documents=[r.document_id for r in failures],
            )

        return [r.row for r in results]

    def connect(self, destination: DestinationParams) -> DatabaseConnectionPool:
        """
        Open a pool for the destination and wait until it is ready.

        Raises:
            DestinationConnectError: On pool, authentication or network failure
        """
        pool = self.pool_factory(destination)
        pool.open()
        logger.debug("Destination pool ready", extra={"destination": destination.describe()})
        return pool

    def insert(self, pool: DatabaseConnectionPool, rows: list[LocationRow], table: str) -> int:
        """
        Insert all rows in one transaction and commit.

        Args:
            pool: Open destination pool
            rows: Coerced rows
            table: Destination table name

        Returns:
            Number of rows committed

        Raises:
            DestinationWriteError: If any insert or the commit fails; the
                transaction is rolled back and no row is kept
        """
        if not rows:
            return 0

        statement = build_insert_statement(table)
        params = [row.as_params() for row in rows]

        with pool.get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.executemany(statement, params)
                conn.commit()
            except psycopg.Error as e:
                if not conn.closed:
                    conn.rollback()
                raise DestinationWriteError(
                    f"Insert into {table} failed and was rolled back: {e}"
                ) from e

        return len(rows)

    def load(self, destination: DestinationParams, documents: list[ExtractedDocument]) -> int:
        """
        Prepare, connect and insert, closing the pool afterwards.

        Returns:
            Number of rows committed
        """
        rows = self.prepare(documents)
        if not rows:
            return 0

        pool = self.connect(destination)
        try:
            return self.insert(pool, rows, destination.table)
        finally:
            pool.close()
