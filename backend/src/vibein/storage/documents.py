"""Document store abstraction.

Collections of JSON-like documents addressed by ``(collection, id)``. Every
document carries a ``version`` that increases on each write; transactions use
it as the compare-and-swap condition at commit time.
"""

import copy
import secrets
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator, TypeVar

from vibein.errors import TransactionConflictError
from vibein.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Filter = tuple[str, str, Any]

_AUTO_ID_ALPHABET = string.ascii_letters + string.digits
_FILTER_OPS = {"==", "!=", "<", "<=", ">", ">=", "in", "array_contains"}


def generate_document_id(length: int = 20) -> str:
    """Generate a random document id (Firestore auto-id style)."""
    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class DocRef:
    """Address of a document."""
    collection: str
    id: str

    def __str__(self) -> str:
        return f"{self.collection}/{self.id}"


@dataclass
class Document:
    """A stored document snapshot."""
    collection: str
    id: str
    data: dict[str, Any] = field(default_factory=dict)
    version: int = 1

    @property
    def ref(self) -> DocRef:
        return DocRef(self.collection, self.id)

    def copy(self) -> "Document":
        return Document(self.collection, self.id, copy.deepcopy(self.data), self.version)


def _coerce(stored: Any, wanted: Any) -> Any:
    """Bring a stored JSON value to the type of the filter value."""
    if isinstance(wanted, datetime) and isinstance(stored, str):
        try:
            return datetime.fromisoformat(stored)
        except ValueError:
            return stored
    return stored


def _compare(op: str, stored: Any, wanted: Any) -> bool:
    if op == "in":
        return stored in wanted
    if op == "array_contains":
        return isinstance(stored, list) and wanted in stored

    stored = _coerce(stored, wanted)
    if op == "==":
        return stored == wanted
    if op == "!=":
        return stored != wanted

    if stored is None or wanted is None:
        return False
    try:
        if op == "<":
            return stored < wanted
        if op == "<=":
            return stored <= wanted
        if op == ">":
            return stored > wanted
        if op == ">=":
            return stored >= wanted
    except TypeError:
        return False
    raise ValueError(f"Unsupported filter operator: {op}")


def matches(data: dict[str, Any], filters: Iterable[Filter]) -> bool:
    """Check whether document data satisfies every filter."""
    for field_name, op, wanted in filters:
        if op not in _FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {op}")
        if not _compare(op, data.get(field_name), wanted):
            return False
    return True


def apply_query(
    documents: Iterable[Document],
    filters: Iterable[Filter] = (),
    order_by: str | None = None,
    descending: bool = False,
    limit: int | None = None,
) -> Iterator[Document]:
    """Filter, sort and limit a batch of documents."""
    filters = list(filters)
    selected = [doc for doc in documents if matches(doc.data, filters)]

    if order_by:
        # Missing values sort last regardless of direction
        present = [doc for doc in selected if doc.data.get(order_by) is not None]
        missing = [doc for doc in selected if doc.data.get(order_by) is None]
        present.sort(key=lambda doc: doc.data[order_by], reverse=descending)
        selected = present + missing

    if limit is not None:
        selected = selected[:limit]

    yield from selected


class Transaction:
    """Buffered writes made inside :meth:`DocumentStore.transact`.

    Writes may only target documents in the transaction's read set, so the
    commit can check each of them against the version that was read.
    """

    def __init__(self, snapshot: dict[DocRef, Document | None]):
        self.snapshot = snapshot
        self.writes: dict[DocRef, dict[str, Any]] = {}

    def _check_ref(self, ref: DocRef) -> None:
        if ref not in self.snapshot:
            raise ValueError(f"{ref} is not part of the transaction read set")

    def _current(self, ref: DocRef) -> dict[str, Any] | None:
        if ref in self.writes:
            return self.writes[ref]
        doc = self.snapshot[ref]
        return copy.deepcopy(doc.data) if doc else None

    def create(self, ref: DocRef, data: dict[str, Any]) -> None:
        """Create a document that was read as missing."""
        self._check_ref(ref)
        if self._current(ref) is not None:
            raise ValueError(f"{ref} already exists")
        self.writes[ref] = copy.deepcopy(data)

    def set(self, ref: DocRef, data: dict[str, Any]) -> None:
        """Replace (or create) a document."""
        self._check_ref(ref)
        self.writes[ref] = copy.deepcopy(data)

    def update(self, ref: DocRef, fields: dict[str, Any]) -> None:
        """Merge fields into an existing document."""
        self._check_ref(ref)
        current = self._current(ref)
        if current is None:
            raise ValueError(f"Cannot update missing document {ref}")
        current.update(copy.deepcopy(fields))
        self.writes[ref] = current

    def increment(self, ref: DocRef, field_name: str, amount: int = 1) -> None:
        """Add ``amount`` to a numeric field."""
        self._check_ref(ref)
        current = self._current(ref) or {}
        self.update(ref, {field_name: (current.get(field_name) or 0) + amount})


class DocumentStore(ABC):
    """Abstract document store with optimistic transactions."""

    def __init__(self, max_attempts: int = 5):
        self.max_attempts = max_attempts

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Document | None:
        """Fetch one document, or None when it does not exist."""

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Iterator[Document]:
        """Lazily iterate documents matching all filters."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> Document:
        """Create or replace a document without any precondition."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document:
        """Merge fields into an existing document (KeyError when missing)."""

    @abstractmethod
    def _read(self, refs: Iterable[DocRef]) -> dict[DocRef, Document | None]:
        """Read a consistent snapshot of the given documents."""

    @abstractmethod
    def _commit(
        self,
        snapshot: dict[DocRef, Document | None],
        writes: dict[DocRef, dict[str, Any]],
    ) -> bool:
        """Apply writes if nothing in the snapshot changed. Returns False on conflict."""

    def add(self, collection: str, data: dict[str, Any]) -> Document:
        """Create a document with a store-generated id."""
        return self.set(collection, generate_document_id(), data)

    def transact(
        self,
        read_set: Iterable[DocRef],
        write_fn: Callable[[dict[DocRef, Document | None], Transaction], T],
    ) -> T:
        """Run ``write_fn`` against a snapshot of ``read_set`` and commit atomically.

        The commit only succeeds if none of the read documents changed in
        between; otherwise the function is re-run on a fresh snapshot. Errors
        raised by ``write_fn`` abort the transaction with nothing written.

        Raises:
            TransactionConflictError: when every attempt collided
        """
        refs = list(dict.fromkeys(read_set))

        for attempt in range(1, self.max_attempts + 1):
            snapshot = self._read(refs)
            tx = Transaction(snapshot)
            result = write_fn(snapshot, tx)

            if not tx.writes or self._commit(snapshot, tx.writes):
                return result

            logger.debug(
                "transaction_conflict",
                refs=[str(ref) for ref in refs],
                attempt=attempt,
            )

        logger.warning(
            "transaction_aborted",
            refs=[str(ref) for ref in refs],
            attempts=self.max_attempts,
        )
        raise TransactionConflictError()
