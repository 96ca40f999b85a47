"""
Source document stores.
"""

from .document_store import DocumentStore
from .mongo_store import MongoDocumentStore

__all__ = ["DocumentStore", "MongoDocumentStore"]
