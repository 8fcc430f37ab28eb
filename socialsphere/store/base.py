"""Document store contract consumed by the social services.

Documents are addressed by ``(collection, id)`` and hold a JSON object. The
services only ever talk to a :class:`DocumentStore`, so any backend that honours
these semantics can replace the SQL implementation:

* ``set_document`` overwrites, ``create_document`` refuses to overwrite.
* ``update_document`` fails with :class:`~socialsphere.errors.NotFound` when the
  document is absent; ``delete_document`` is idempotent.
* ``subscribe`` delivers the full result set immediately and again after every
  write on the collection until the returned subscription is cancelled.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence


class _ServerTimestamp:
    """Sentinel replaced by the store with the commit time (ISO-8601, UTC)."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class ArrayUnion:
    """Update transform adding values to an array field (set-union semantics)."""

    __slots__ = ("values",)

    def __init__(self, *values: Any) -> None:
        self.values = tuple(values)

    def __repr__(self) -> str:
        return f"ArrayUnion{self.values!r}"

    def apply(self, current: Any) -> list[Any]:
        result = list(current) if isinstance(current, list) else []
        for value in self.values:
            if value not in result:
                result.append(value)
        return result


class ArrayRemove:
    """Update transform removing every occurrence of the values from an array field."""

    __slots__ = ("values",)

    def __init__(self, *values: Any) -> None:
        self.values = tuple(values)

    def __repr__(self) -> str:
        return f"ArrayRemove{self.values!r}"

    def apply(self, current: Any) -> list[Any]:
        if not isinstance(current, list):
            return []
        return [item for item in current if item not in self.values]


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda left, right: left == right,
    "!=": lambda left, right: left != right,
    "<": lambda left, right: left is not None and left < right,
    "<=": lambda left, right: left is not None and left <= right,
    ">": lambda left, right: left is not None and left > right,
    ">=": lambda left, right: left is not None and left >= right,
    "in": lambda left, right: left in right,
    "not-in": lambda left, right: left not in right,
    "array-contains": lambda left, right: isinstance(left, list) and right in left,
}


@dataclass(frozen=True, slots=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")

    def matches(self, data: dict[str, Any]) -> bool:
        try:
            return _OPERATORS[self.op](data.get(self.field), self.value)
        except TypeError:
            return False


@dataclass(frozen=True, slots=True)
class OrderBy:
    field: str
    descending: bool = False


@dataclass(slots=True)
class Document:
    collection: str
    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Return the payload merged with its id, the shape handed to callers."""

        return {"id": self.id, **self.data}


SnapshotCallback = Callable[[list[Document]], None]


class Subscription(ABC):
    """Handle for a live query; ``cancel`` is idempotent."""

    @property
    @abstractmethod
    def active(self) -> bool: ...

    @abstractmethod
    def cancel(self) -> None: ...

    def __call__(self) -> None:
        self.cancel()


def apply_filters(documents: Iterable[Document], filters: Sequence[Filter]) -> list[Document]:
    return [doc for doc in documents if all(item.matches(doc.data) for item in filters)]


def sort_documents(documents: list[Document], order_by: OrderBy | None) -> list[Document]:
    if order_by is None:
        return documents
    present = [doc for doc in documents if doc.data.get(order_by.field) is not None]
    missing = [doc for doc in documents if doc.data.get(order_by.field) is None]
    # sorted() is stable, so equal keys keep insertion order.
    present = sorted(present, key=lambda doc: doc.data[order_by.field], reverse=order_by.descending)
    return present + missing


class DocumentStore(ABC):
    """Abstract collection/id addressed document storage."""

    @abstractmethod
    def get_document(self, collection: str, doc_id: str) -> Document: ...

    @abstractmethod
    def find_document(self, collection: str, doc_id: str) -> Document | None: ...

    @abstractmethod
    def set_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document: ...

    @abstractmethod
    def create_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document: ...

    @abstractmethod
    def update_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document: ...

    @abstractmethod
    def delete_document(self, collection: str, doc_id: str) -> None: ...

    @abstractmethod
    def query_documents(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]: ...

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        filters: Sequence[Filter] = (),
        order_by: OrderBy | None = None,
    ) -> Subscription: ...

    def count_documents(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        return len(self.query_documents(collection, filters))

    def document_exists(self, collection: str, doc_id: str) -> bool:
        return self.find_document(collection, doc_id) is not None

    def array_field_add(self, collection: str, doc_id: str, field_name: str, *values: Any) -> Document:
        return self.update_document(collection, doc_id, {field_name: ArrayUnion(*values)})

    def array_field_remove(self, collection: str, doc_id: str, field_name: str, *values: Any) -> Document:
        return self.update_document(collection, doc_id, {field_name: ArrayRemove(*values)})


__all__ = [
    "SERVER_TIMESTAMP",
    "ArrayRemove",
    "ArrayUnion",
    "Document",
    "DocumentStore",
    "Filter",
    "OrderBy",
    "SnapshotCallback",
    "Subscription",
    "apply_filters",
    "sort_documents",
]
