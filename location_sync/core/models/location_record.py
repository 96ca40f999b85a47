"""
Location record models.

LocationRecord holds the fields of a source document as found (ephemeral).
LocationRow is the typed form bound to the destination insert.
"""

from datetime import datetime
from typing import Any, NamedTuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SourceDocumentRef(BaseModel):
    """
    Identity of a source document, kept only until it is purged.

    Attributes:
        document_id: Document id in the source store (stringified, for logs)
        collection_id: Collection the document was read from
        raw_id: The id exactly as stored (int, ObjectId, UUID, ...); deletes
            match on it
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    document_id: str = Field(..., min_length=1)
    collection_id: str = Field(..., min_length=1)
    raw_id: Any = Field(default=None, repr=False)

    @property
    def source_key(self) -> Any:
        """Id to delete by: the raw id when known, else the string form."""
        return self.document_id if self.raw_id is None else self.raw_id


class LocationRecord(BaseModel):
    """
    A location document as extracted from the source (ephemeral).

    Values are kept untyped; coercion into a LocationRow happens before any
    destination I/O. Source documents use the legacy keys (UserId, Lattitude,
    DateTime, Installmentno, ...); the canonical keys are accepted too.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: Any = Field(None, validation_alias=AliasChoices("user_id", "UserId"))
    latitude: Any = Field(None, validation_alias=AliasChoices("latitude", "Lattitude", "Latitude"))
    longitude: Any = Field(None, validation_alias=AliasChoices("longitude", "Longitude"))
    address: Any = Field(None, validation_alias=AliasChoices("address", "Address"))
    type: Any = Field(None, validation_alias=AliasChoices("type", "Type"))
    timestamp: Any = Field(None, validation_alias=AliasChoices("timestamp", "DateTime", "Timestamp"))
    code: Any = Field(None, validation_alias=AliasChoices("code", "Code"))
    installment_number: Any = Field(
        None,
        validation_alias=AliasChoices("installment_number", "Installmentno", "InstallmentNumber"),
    )

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "LocationRecord":
        """Build a record from a raw source document."""
        return cls.model_validate(document)


class ExtractedDocument(NamedTuple):
    """A source document reference paired with its record."""

    ref: SourceDocumentRef
    record: LocationRecord


class LocationRow(BaseModel):
    """
    Coerced, typed row ready for a parameterized insert.

    Latitude and longitude are text to avoid float precision drift.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str | None
    latitude: str
    longitude: str
    address: str | None
    type: str | None
    timestamp: datetime
    code: str | None
    installment_number: int

    def as_params(self) -> tuple:
        """Insert parameters in destination column order."""
        return (
            self.user_id,
            self.latitude,
            self.longitude,
            self.address,
            self.type,
            self.timestamp,
            self.code,
            self.installment_number,
        )
