"""
Process-wide settings read from the environment.

Values come from environment variables, optionally seeded from a .env file
with python-dotenv. Per-unit destination settings live in the unit
registry file instead (see core.registry).
"""

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from location_sync.core.errors import ConfigurationError
from location_sync.utils.validation import validate_batch_size

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class Settings(BaseModel):
    """
    Worker settings.

    Attributes:
        units_config: Path to the unit registry YAML file
        mongo_uri: Document store connection URI
        mongo_database: Database holding the source collections
        mongo_timeout_ms: Server selection timeout for the document store
        sync_interval_hours: Run period; runs fire at minute 0 of every Nth hour
        run_at_startup: Whether to run once immediately on start
        port: Liveness/metrics HTTP port
        purge_batch_size: Maximum documents per delete batch
        db_pool_max_size: Maximum connections per destination pool
        db_connect_timeout: Seconds to wait for a destination connection
        log_level: Root log level
        log_format: "json" or "text"
    """

    units_config: Path = Path("config/units.yaml")
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "locations"
    mongo_timeout_ms: int = Field(5000, gt=0)
    sync_interval_hours: int = Field(2, ge=1, le=24)
    run_at_startup: bool = True
    port: int = Field(3000, ge=1, le=65535)
    purge_batch_size: int = 500
    db_pool_max_size: int = Field(2, ge=1)
    db_connect_timeout: float = Field(30.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("purge_batch_size")
    @classmethod
    def check_purge_batch_size(cls, v: int) -> int:
        return validate_batch_size(v, field_name="purge_batch_size")

    @field_validator("sync_interval_hours")
    @classmethod
    def check_interval_divides_day(cls, v: int) -> int:
        # Cron-style "every Nth hour" only stays evenly spaced when N divides 24
        if 24 % v != 0:
            raise ValueError(f"sync_interval_hours must divide 24, got {v}")
        return v

    @classmethod
    def from_env(cls, env_file: str | Path | None = None, environ: dict[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env_file: Optional .env file loaded before reading (existing
                variables win)
            environ: Mapping to read instead of os.environ (for tests)

        Raises:
            ConfigurationError: If a value is malformed
        """
        if environ is None:
            load_dotenv(env_file)
            environ = dict(os.environ)

        raw: dict[str, object] = {}
        mapping = {
            "UNITS_CONFIG": "units_config",
            "MONGO_URI": "mongo_uri",
            "MONGO_DATABASE": "mongo_database",
            "MONGO_TIMEOUT_MS": "mongo_timeout_ms",
            "SYNC_INTERVAL_HOURS": "sync_interval_hours",
            "PORT": "port",
            "PURGE_BATCH_SIZE": "purge_batch_size",
            "DB_POOL_MAX_SIZE": "db_pool_max_size",
            "DB_CONNECT_TIMEOUT": "db_connect_timeout",
        }
        for env_name, field_name in mapping.items():
            value = environ.get(env_name)
            if value not in (None, ""):
                raw[field_name] = value

        if environ.get("LOG_LEVEL"):
            raw["log_level"] = environ["LOG_LEVEL"].upper()
        if environ.get("LOG_FORMAT"):
            raw["log_format"] = environ["LOG_FORMAT"].lower()
        if environ.get("RUN_AT_STARTUP"):
            raw["run_at_startup"] = _parse_bool("RUN_AT_STARTUP", environ["RUN_AT_STARTUP"])

        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {value!r}")
