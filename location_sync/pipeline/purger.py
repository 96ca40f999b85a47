"""
Purger: removes migrated documents from the source in bounded batches.
"""

from location_sync.core.errors import SourcePurgeError, SourceReadError
from location_sync.core.models import SourceDocumentRef
from location_sync.observability.logger import get_logger
from location_sync.source.document_store import DocumentStore
from location_sync.utils.validation import validate_batch_size

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 500


def chunk(items: list, size: int) -> list[list]:
    """Split a list into consecutive slices of at most `size` items."""
    return [items[i:i + size] for i in range(0, len(items), size)]


class Purger:
    """
    Deletes the exact set of loaded documents, one batch at a time.

    Must only be called after the load transaction has committed. Batches
    run sequentially; the first failing batch stops the purge, and batches
    before it stay deleted.
    """

    def __init__(self, store: DocumentStore, batch_size: int = DEFAULT_BATCH_SIZE):
        self.store = store
        self.batch_size = validate_batch_size(batch_size, field_name="batch_size")

    def purge(self, collection_id: str, refs: list[SourceDocumentRef]) -> int:
        """
        Delete the referenced documents.

        Args:
            collection_id: Collection the documents were read from
            refs: References of the committed documents

        Returns:
            Number of documents deleted

        Raises:
            ValueError: If a reference belongs to another collection
            SourcePurgeError: If a batch fails (carries the batch number and
                the count deleted by earlier batches)
        """
        foreign = [r.document_id for r in refs if r.collection_id != collection_id]
        if foreign:
            raise ValueError(
                f"{len(foreign)} references do not belong to collection '{collection_id}'"
            )

        batches = chunk([r.source_key for r in refs], self.batch_size)
        deleted_count = 0

        for batch_number, batch in enumerate(batches, start=1):
            try:
                deleted = self.store.delete_batch(collection_id, batch)
            except SourceReadError as e:
                logger.error(
                    f"Purge batch {batch_number}/{len(batches)} failed",
                    extra={
                        "collection_id": collection_id,
                        "batch_number": batch_number,
                        "batch_size": len(batch),
                        "deleted_so_far": deleted_count,
                    },
                )
                raise SourcePurgeError(
                    f"Purge batch {batch_number} of {len(batches)} failed: {e.message}",
                    batch_number=batch_number,
                    deleted_count=deleted_count,
                    collection_id=collection_id,
                ) from e

            if deleted < len(batch):
                logger.warning(
                    f"Purge batch {batch_number} deleted {deleted} of {len(batch)} documents",
                    extra={"collection_id": collection_id, "batch_number": batch_number},
                )
            deleted_count += deleted

        return deleted_count
