"""
Document store interface used by the extractor and purger.
"""

from abc import ABC, abstractmethod
from typing import Any


class DocumentStore(ABC):
    """
    Abstract document store.

    Implementations translate driver failures into SourceReadError. The
    store is opened once for the process and injected into the pipeline
    components.
    """

    @abstractmethod
    def open(self) -> None:
        """Create the client. An unreachable store is not an error here; reads fail instead."""

    @abstractmethod
    def close(self) -> None:
        """Release the client."""

    @abstractmethod
    def fetch_all(self, collection_id: str) -> list[dict[str, Any]]:
        """
        Read every document currently in a collection.

        Args:
            collection_id: Source collection name

        Returns:
            Raw documents, each carrying its "_id"

        Raises:
            SourceReadError: If the store or the collection is unavailable
        """

    @abstractmethod
    def delete_batch(self, collection_id: str, document_ids: list[Any]) -> int:
        """
        Delete a batch of documents by id.

        Args:
            collection_id: Source collection name
            document_ids: Document ids as read from the store

        Returns:
            Number of documents actually deleted

        Raises:
            SourceReadError: If the delete could not be executed
        """

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
