"""
MongoDB document store using pymongo.
"""

from typing import Any

from bson import ObjectId
from pymongo import MongoClient
from pymongo.errors import InvalidName, PyMongoError

from location_sync.core.errors import SourceReadError
from location_sync.observability.logger import get_logger

from .document_store import DocumentStore

logger = get_logger(__name__)


class MongoDocumentStore(DocumentStore):
    """
    Document store backed by one MongoDB database.

    Deletes match ids exactly as they were read (ObjectId, int, UUID, ...).
    A string id that is a valid ObjectId hex string is also matched as the
    ObjectId, so refs built from string ids still purge ObjectId-keyed
    documents.
    """

    def __init__(
        self,
        uri: str,
        database: str,
        server_selection_timeout_ms: int = 5000,
        client: MongoClient | None = None,
    ):
        """
        Args:
            uri: MongoDB connection URI
            database: Database holding the source collections
            server_selection_timeout_ms: How long to wait for a reachable server
            client: Pre-built client (tests); opened lazily otherwise
        """
        self.uri = uri
        self.database_name = database
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client = client
        self._owns_client = client is None

    @property
    def database(self):
        if self._client is None:
            raise RuntimeError("Document store is not open. Call open() first.")
        return self._client[self.database_name]

    def open(self) -> None:
        """
        Create the client and ping the server.

        An unreachable server is logged, not raised: the client reconnects
        on its own, and reads fail per unit until the server is back.

        Raises:
            SourceReadError: If the client cannot be created (e.g. a malformed URI)
        """
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.uri,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    tz_aware=True,
                )
            except PyMongoError as e:
                raise SourceReadError(f"Cannot create document store client: {e}") from e
            self._owns_client = True

        try:
            self._client.admin.command("ping")
        except PyMongoError as e:
            logger.warning(
                f"Document store is not reachable yet: {e}",
                extra={"database": self.database_name},
            )
            return

        logger.info("Connected to document store", extra={"database": self.database_name})

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None

    def fetch_all(self, collection_id: str) -> list[dict[str, Any]]:
        try:
            collection = self.database[collection_id]
            return list(collection.find({}))
        except (InvalidName, PyMongoError) as e:
            raise SourceReadError(
                f"Failed to read collection: {e}", collection_id=collection_id
            ) from e

    def delete_batch(self, collection_id: str, document_ids: list[Any]) -> int:
        if not document_ids:
            return 0

        match_ids: list[Any] = list(document_ids)
        match_ids.extend(
            ObjectId(doc_id)
            for doc_id in document_ids
            if isinstance(doc_id, str) and ObjectId.is_valid(doc_id)
        )

        try:
            result = self.database[collection_id].delete_many({"_id": {"$in": match_ids}})
        except (InvalidName, PyMongoError) as e:
            raise SourceReadError(
                f"Failed to delete documents: {e}", collection_id=collection_id
            ) from e
        return result.deleted_count
