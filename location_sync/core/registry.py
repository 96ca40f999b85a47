"""
Source registry: the configured migration units.

Units are loaded from a YAML file. Expected format:
```yaml
units:
  branch_north:
    collection: locations_north
    destination:
      host: db-north.internal
      port: 5432
      database: field_ops
      user: sync
      password_env: NORTH_DB_PASSWORD
      table: tbl_location

  branch_south:
    collection: locations_south
    enabled: false
    destination:
      host: db-south.internal
      database: field_ops
      user: sync
      password: not-a-real-secret
```
Either `password` or `password_env` (the name of an environment variable
holding the password) must be given.
"""

import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from location_sync.core.errors import ConfigurationError
from location_sync.core.models import MigrationUnit


class SourceRegistry:
    """
    Ordered, immutable set of migration units.

    Iteration yields enabled units in configuration order.
    """

    def __init__(self, units: list[MigrationUnit]):
        seen: set[str] = set()
        for unit in units:
            if unit.unit_id in seen:
                raise ConfigurationError(f"Duplicate unit id '{unit.unit_id}'")
            seen.add(unit.unit_id)
        self._units = tuple(units)

    @classmethod
    def from_yaml(cls, config_path: str | Path, environ: Mapping[str, str] | None = None) -> "SourceRegistry":
        """
        Load units from a YAML registry file.

        Args:
            config_path: Path to the YAML file
            environ: Mapping used to resolve password_env (defaults to os.environ)

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Unit registry file not found: {config_path}")

        try:
            with open(path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Unit registry {config_path} is not valid YAML: {e}") from e

        return cls.from_dict(config, environ=environ)

    @classmethod
    def from_dict(cls, config: Any, environ: Mapping[str, str] | None = None) -> "SourceRegistry":
        """Build a registry from an already-parsed configuration mapping."""
        if not isinstance(config, dict) or "units" not in config:
            raise ConfigurationError("Unit registry must contain a 'units' section")

        unit_defs = config["units"]
        if not isinstance(unit_defs, dict) or not unit_defs:
            raise ConfigurationError("'units' must be a non-empty mapping of unit id to definition")

        environ = os.environ if environ is None else environ
        units = [
            cls._parse_unit(str(unit_id), unit_def, environ)
            for unit_id, unit_def in unit_defs.items()
        ]
        return cls(units)

    @staticmethod
    def _parse_unit(unit_id: str, unit_def: Any, environ: Mapping[str, str]) -> MigrationUnit:
        if not isinstance(unit_def, dict):
            raise ConfigurationError(f"Unit '{unit_id}' must be a mapping")

        if "collection" not in unit_def:
            raise ConfigurationError(f"Unit '{unit_id}' is missing 'collection'")

        destination = unit_def.get("destination")
        if not isinstance(destination, dict):
            raise ConfigurationError(f"Unit '{unit_id}' is missing a 'destination' mapping")

        destination = dict(destination)
        password_env = destination.pop("password_env", None)
        if password_env:
            if "password" in destination:
                raise ConfigurationError(
                    f"Unit '{unit_id}' sets both 'password' and 'password_env'"
                )
            password = environ.get(password_env)
            if not password:
                raise ConfigurationError(
                    f"Unit '{unit_id}': environment variable {password_env} is not set"
                )
            destination["password"] = password
        elif not destination.get("password"):
            raise ConfigurationError(
                f"Unit '{unit_id}' needs 'password' or 'password_env' in its destination"
            )

        try:
            return MigrationUnit(
                unit_id=unit_id,
                collection_id=unit_def["collection"],
                destination=destination,
                enabled=unit_def.get("enabled", True),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Unit '{unit_id}' is invalid: {e}") from e

    def __iter__(self) -> Iterator[MigrationUnit]:
        return (unit for unit in self._units if unit.enabled)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def all_units(self) -> tuple[MigrationUnit, ...]:
        """All units, including disabled ones."""
        return self._units

    def get(self, unit_id: str) -> MigrationUnit:
        """
        Look up a unit by id (enabled or not).

        Raises:
            KeyError: If no unit has that id
        """
        for unit in self._units:
            if unit.unit_id == unit_id:
                return unit
        available = ", ".join(u.unit_id for u in self._units)
        raise KeyError(f"Unit '{unit_id}' is not configured. Available units: {available}")
