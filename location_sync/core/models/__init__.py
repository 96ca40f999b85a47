"""
Core data models for the location migration pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .coercion_result import CoercionResult
from .location_record import ExtractedDocument, LocationRecord, LocationRow, SourceDocumentRef
from .migration_unit import DestinationParams, MigrationUnit
from .run_result import RunOutcome, RunResult, RunSummary, UnitState

__all__ = [
    "DestinationParams",
    "MigrationUnit",
    "SourceDocumentRef",
    "LocationRecord",
    "ExtractedDocument",
    "LocationRow",
    "CoercionResult",
    "UnitState",
    "RunOutcome",
    "RunResult",
    "RunSummary",
]
