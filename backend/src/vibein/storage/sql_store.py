"""Document store on top of SQLAlchemy."""

import copy
from contextlib import contextmanager
from typing import Any, Generator, Iterable, Iterator

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from vibein.errors import TransientStoreError
from vibein.logging_config import get_logger
from vibein.storage.db import Database
from vibein.storage.documents import DocRef, Document, DocumentStore, Filter, apply_query
from vibein.storage.models import DocumentRecord

logger = get_logger(__name__)


class _Conflict(Exception):
    """A document changed between read and commit."""


def _to_document(record: DocumentRecord) -> Document:
    return Document(record.collection, record.doc_id, copy.deepcopy(record.data), record.version)


class SqlDocumentStore(DocumentStore):
    """Documents stored as JSON rows in a single ``documents`` table.

    Transactional commits run inside one database transaction and use
    ``UPDATE ... WHERE version = :seen`` so a concurrent writer turns the
    commit into a conflict instead of a lost update.
    """

    def __init__(self, database: Database, max_attempts: int = 5):
        super().__init__(max_attempts=max_attempts)
        self.database = database

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        try:
            with self.database.session() as session:
                yield session
        except IntegrityError:
            raise
        except DBAPIError as e:
            logger.error("document_store_error", error=str(e), exc_info=True)
            raise TransientStoreError() from e

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._session() as session:
            record = session.get(DocumentRecord, (collection, doc_id))
            return _to_document(record) if record else None

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Iterator[Document]:
        with self._session() as session:
            records = session.scalars(
                select(DocumentRecord).where(DocumentRecord.collection == collection)
            ).all()
            documents = [_to_document(record) for record in records]
        yield from apply_query(documents, filters, order_by, descending, limit)

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> Document:
        with self._session() as session:
            record = session.get(DocumentRecord, (collection, doc_id))
            if record is None:
                record = DocumentRecord(collection=collection, doc_id=doc_id, data=copy.deepcopy(data), version=1)
                session.add(record)
            else:
                record.data = copy.deepcopy(data)
                record.version += 1
            session.flush()
            return _to_document(record)

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document:
        with self._session() as session:
            record = session.get(DocumentRecord, (collection, doc_id))
            if record is None:
                raise KeyError(f"{collection}/{doc_id}")
            data = copy.deepcopy(record.data)
            data.update(copy.deepcopy(fields))
            record.data = data
            record.version += 1
            session.flush()
            return _to_document(record)

    def _read(self, refs: Iterable[DocRef]) -> dict[DocRef, Document | None]:
        with self._session() as session:
            snapshot: dict[DocRef, Document | None] = {}
            for ref in refs:
                record = session.get(DocumentRecord, (ref.collection, ref.id))
                snapshot[ref] = _to_document(record) if record else None
            return snapshot

    def _commit(
        self,
        snapshot: dict[DocRef, Document | None],
        writes: dict[DocRef, dict[str, Any]],
    ) -> bool:
        try:
            with self._session() as session:
                for ref, seen in snapshot.items():
                    if ref in writes:
                        continue
                    # Read-only members of the read set must still be unchanged
                    record = session.scalars(
                        select(DocumentRecord)
                        .where(
                            DocumentRecord.collection == ref.collection,
                            DocumentRecord.doc_id == ref.id,
                        )
                        .with_for_update()
                    ).first()
                    if (record is None) != (seen is None):
                        raise _Conflict(str(ref))
                    if record is not None and record.version != seen.version:
                        raise _Conflict(str(ref))

                for ref, data in writes.items():
                    seen = snapshot[ref]
                    if seen is None:
                        session.add(
                            DocumentRecord(
                                collection=ref.collection,
                                doc_id=ref.id,
                                data=copy.deepcopy(data),
                                version=1,
                            )
                        )
                        session.flush()
                        continue

                    result = session.execute(
                        update(DocumentRecord)
                        .where(
                            DocumentRecord.collection == ref.collection,
                            DocumentRecord.doc_id == ref.id,
                            DocumentRecord.version == seen.version,
                        )
                        .values(
                            data=copy.deepcopy(data),
                            version=seen.version + 1,
                            updated_at=func.now(),
                        )
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        raise _Conflict(str(ref))
            return True
        except (_Conflict, IntegrityError) as e:
            logger.debug("document_commit_conflict", ref=str(e))
            return False
