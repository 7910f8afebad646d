"""In-process document store."""

import copy
import threading
from typing import Any, Iterable, Iterator

from vibein.storage.documents import DocRef, Document, DocumentStore, Filter, apply_query


class MemoryDocumentStore(DocumentStore):
    """Thread-safe dict-backed store.

    Reads and commits take the same lock, so a commit's version check and its
    writes are atomic with respect to every other commit.
    """

    def __init__(self, max_attempts: int = 5):
        super().__init__(max_attempts=max_attempts)
        self._collections: dict[str, dict[str, Document]] = {}
        self._lock = threading.RLock()

    def _bucket(self, collection: str) -> dict[str, Document]:
        return self._collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            doc = self._bucket(collection).get(doc_id)
            return doc.copy() if doc else None

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Iterator[Document]:
        with self._lock:
            documents = [doc.copy() for doc in self._bucket(collection).values()]
        yield from apply_query(documents, filters, order_by, descending, limit)

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> Document:
        with self._lock:
            bucket = self._bucket(collection)
            existing = bucket.get(doc_id)
            version = existing.version + 1 if existing else 1
            doc = Document(collection, doc_id, copy.deepcopy(data), version)
            bucket[doc_id] = doc
            return doc.copy()

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document:
        with self._lock:
            existing = self._bucket(collection).get(doc_id)
            if existing is None:
                raise KeyError(f"{collection}/{doc_id}")
            data = copy.deepcopy(existing.data)
            data.update(copy.deepcopy(fields))
            return self.set(collection, doc_id, data)

    def _read(self, refs: Iterable[DocRef]) -> dict[DocRef, Document | None]:
        with self._lock:
            return {ref: self.get(ref.collection, ref.id) for ref in refs}

    def _commit(
        self,
        snapshot: dict[DocRef, Document | None],
        writes: dict[DocRef, dict[str, Any]],
    ) -> bool:
        with self._lock:
            for ref, seen in snapshot.items():
                current = self._bucket(ref.collection).get(ref.id)
                if seen is None and current is not None:
                    return False
                if seen is not None and (current is None or current.version != seen.version):
                    return False

            for ref, data in writes.items():
                self.set(ref.collection, ref.id, data)
            return True
