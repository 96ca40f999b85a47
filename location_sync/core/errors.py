"""
Error taxonomy for the migration pipeline.

Extraction and loading errors abort the current unit only. Purge errors
are reported but never fail a unit, since the data is already committed
at the destination.
"""


class MigrationError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, unit_id: str | None = None, collection_id: str | None = None):
        self.message = message
        self.unit_id = unit_id
        self.collection_id = collection_id
        super().__init__(message)

    def __str__(self) -> str:
        context = []
        if self.unit_id:
            context.append(f"unit={self.unit_id}")
        if self.collection_id:
            context.append(f"collection={self.collection_id}")
        if context:
            return f"[{', '.join(context)}] {self.message}"
        return self.message


class ConfigurationError(MigrationError):
    """Raised for invalid settings or registry files."""


class SourceReadError(MigrationError):
    """The document store is unreachable or the collection reference is invalid."""


class DestinationConnectError(MigrationError):
    """Pool, authentication or network failure on the destination database."""


class DestinationWriteError(MigrationError):
    """
    An insert failed or a record could not be coerced.

    Attributes:
        failed_documents: Source document ids that failed coercion (empty
            when the failure came from the database itself)
    """

    def __init__(
        self,
        message: str,
        unit_id: str | None = None,
        collection_id: str | None = None,
        failed_documents: list[str] | None = None,
    ):
        super().__init__(message, unit_id=unit_id, collection_id=collection_id)
        self.failed_documents = failed_documents or []


class SourcePurgeError(MigrationError):
    """
    A purge batch failed.

    Attributes:
        batch_number: 1-based number of the batch that failed
        deleted_count: Documents deleted by the batches before it
    """

    def __init__(
        self,
        message: str,
        batch_number: int,
        deleted_count: int,
        unit_id: str | None = None,
        collection_id: str | None = None,
    ):
        super().__init__(message, unit_id=unit_id, collection_id=collection_id)
        self.batch_number = batch_number
        self.deleted_count = deleted_count
