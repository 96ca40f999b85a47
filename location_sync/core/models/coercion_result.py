"""
CoercionResult model: tagged outcome of coercing one record (ephemeral).
"""

from pydantic import BaseModel, Field, field_validator, model_validator

from .location_record import LocationRow


class CoercionResult(BaseModel):
    """
    Outcome of coercing one LocationRecord into a LocationRow.

    Attributes:
        document_id: Source document the record came from
        passed: Whether every field coerced
        row: The typed row (only when passed)
        failed_fields: Fields that could not be coerced
        error_messages: One message per failed field
    """

    document_id: str
    passed: bool
    row: LocationRow | None = None
    failed_fields: list[str] = Field(default_factory=list)
    error_messages: list[str] = Field(default_factory=list)

    @field_validator("failed_fields")
    @classmethod
    def check_passed_consistency(cls, v, info):
        """Validate that passed=True implies failed_fields is empty."""
        if info.data.get("passed") and len(v) > 0:
            raise ValueError("passed=True but failed_fields is not empty")
        return v

    @model_validator(mode="after")
    def check_row_matches_outcome(self) -> "CoercionResult":
        if self.passed and self.row is None:
            raise ValueError("passed=True but row is missing")
        if not self.passed and self.row is not None:
            raise ValueError("passed=False but a row was produced")
        return self
