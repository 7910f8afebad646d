"""Document storage for vibeIn.

- ``MemoryDocumentStore`` for tests and single-process runs
- ``SqlDocumentStore`` for SQLAlchemy-backed deployments
"""

from vibein.storage.documents import DocRef, Document, DocumentStore, Transaction
from vibein.storage.memory import MemoryDocumentStore
from vibein.storage.sql_store import SqlDocumentStore

__all__ = [
    "DocRef",
    "Document",
    "DocumentStore",
    "MemoryDocumentStore",
    "SqlDocumentStore",
    "Transaction",
]
