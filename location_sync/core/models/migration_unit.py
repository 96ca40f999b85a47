"""
MigrationUnit model: one source collection paired with one destination database.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from location_sync.utils.validation import (
    sanitize_sql_identifier,
    validate_collection_id,
    validate_unit_id,
)


class DestinationParams(BaseModel):
    """
    Connection parameters for a destination PostgreSQL database.

    Attributes:
        host: Database host
        port: Database port
        database: Database name
        user: Login role
        password: Login password (never rendered in logs or reprs)
        table: Destination table for location rows
        sslmode: libpq sslmode
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., min_length=1)
    port: int = Field(5432, ge=1, le=65535)
    database: str = Field(..., min_length=1)
    user: str = Field(..., min_length=1)
    password: SecretStr
    table: str = "tbl_location"
    sslmode: Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"] = "prefer"

    @field_validator("table")
    @classmethod
    def check_table_identifier(cls, v: str) -> str:
        return sanitize_sql_identifier(v, field_name="table")

    def describe(self) -> str:
        """Password-free description for log lines."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}.{self.table}"


class MigrationUnit(BaseModel):
    """
    A configured source-collection-to-destination pairing.

    Immutable for the lifetime of the process.

    Attributes:
        unit_id: Registry key for the unit
        collection_id: Source collection name in the document store
        destination: Destination connection parameters
        enabled: Disabled units are skipped by registry iteration
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "unit_id": "branch_north",
                "collection_id": "locations_north",
                "destination": {
                    "host": "db.internal",
                    "port": 5432,
                    "database": "field_ops_north",
                    "user": "sync",
                    "password": "********",
                    "table": "tbl_location",
                },
                "enabled": True,
            }
        },
    )

    unit_id: str = Field(..., min_length=1, max_length=255)
    collection_id: str = Field(..., min_length=1)
    destination: DestinationParams
    enabled: bool = True

    @field_validator("unit_id")
    @classmethod
    def check_unit_id(cls, v: str) -> str:
        return validate_unit_id(v, field_name="unit_id")

    @field_validator("collection_id")
    @classmethod
    def check_collection_id(cls, v: str) -> str:
        return validate_collection_id(v)
