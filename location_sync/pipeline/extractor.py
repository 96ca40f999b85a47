"""
Extractor: reads every current document of a source collection.
"""

from pydantic import ValidationError

from location_sync.core.errors import SourceReadError
from location_sync.core.models import ExtractedDocument, LocationRecord, SourceDocumentRef
from location_sync.observability.logger import get_logger
from location_sync.source.document_store import DocumentStore

logger = get_logger(__name__)


class Extractor:
    """
    Reads a whole collection into memory on every call.

    There is no filter, cursor or watermark: whatever is in the collection
    when extract() runs is the batch for this run.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def extract(self, collection_id: str) -> list[ExtractedDocument]:
        """
        Read all documents of a collection.

        Args:
            collection_id: Source collection name

        Returns:
            (ref, record) pairs in the order the store returned them

        Raises:
            SourceReadError: If the store is unreachable, the collection
                reference is invalid or a document has no id
        """
        documents = self.store.fetch_all(collection_id)

        extracted = []
        for document in documents:
            document_id = document.get("_id")
            if document_id is None:
                raise SourceReadError("Document without an _id", collection_id=collection_id)

            try:
                record = LocationRecord.from_document(document)
            except ValidationError as e:
                raise SourceReadError(
                    f"Document {document_id} is not a mapping of fields: {e}",
                    collection_id=collection_id,
                ) from e

            ref = SourceDocumentRef(
                document_id=str(document_id), collection_id=collection_id, raw_id=document_id
            )
            extracted.append(ExtractedDocument(ref=ref, record=record))

        logger.debug(
            f"Extracted {len(extracted)} documents",
            extra={"collection_id": collection_id, "record_count": len(extracted)},
        )
        return extracted
