"""
Destination table for migrated location rows.

Statements are composed with psycopg.sql so the configured table name is
always quoted as an identifier.
"""

from psycopg import sql

from .connection import DatabaseConnectionPool

# Order matches LocationRow.as_params()
LOCATION_COLUMNS = (
    "user_id",
    "latitude",
    "longitude",
    "address",
    "type",
    "recorded_at",
    "code",
    "installment_no",
)


def build_insert_statement(table: str) -> sql.Composed:
    """
    Build the parameterized INSERT for one location row.

    Args:
        table: Destination table name (already validated as an identifier)
    """
    return sql.SQL("INSERT INTO {table} ({columns}) VALUES ({placeholders})").format(
        table=sql.Identifier(table),
        columns=sql.SQL(", ").join(sql.Identifier(c) for c in LOCATION_COLUMNS),
        placeholders=sql.SQL(", ").join(sql.Placeholder() for _ in LOCATION_COLUMNS),
    )


def build_create_statement(table: str) -> sql.Composed:
    """Build the CREATE TABLE IF NOT EXISTS statement for a destination table."""
    return sql.SQL(
        """
        CREATE TABLE IF NOT EXISTS {table} (
            id BIGSERIAL PRIMARY KEY,
            user_id TEXT,
            latitude TEXT NOT NULL,
            longitude TEXT NOT NULL,
            address TEXT,
            type TEXT,
            recorded_at TIMESTAMPTZ NOT NULL,
            code TEXT,
            installment_no INTEGER NOT NULL,
            migrated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    ).format(table=sql.Identifier(table))


def create_location_table(pool: DatabaseConnectionPool, table: str) -> None:
    """
    Create the destination table if it does not exist.

    Args:
        pool: Open pool for the destination database
        table: Destination table name
    """
    pool.execute_command(build_create_statement(table))


def count_rows(pool: DatabaseConnectionPool, table: str) -> int:
    """Number of rows currently in a destination table."""
    result = pool.execute_query(
        sql.SQL("SELECT COUNT(*) AS count FROM {table}").format(table=sql.Identifier(table))
    )
    return result[0]["count"] if result else 0
