"""Document store persisted as JSON rows through SQLAlchemy."""
from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from ..errors import DocumentExists, NotFound, RemoteUnavailable
from ..models import StoredDocument
from .base import (
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    Document,
    DocumentStore,
    Filter,
    OrderBy,
    SnapshotCallback,
    Subscription,
    apply_filters,
    sort_documents,
)
from .subscriptions import SubscriptionHub

logger = logging.getLogger(__name__)


def _server_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _resolve_value(value: Any, current: Any, now: str) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, (ArrayUnion, ArrayRemove)):
        return value.apply(current)
    return value


class SqlDocumentStore(DocumentStore):
    """:class:`DocumentStore` backed by the ``documents`` table.

    Every call runs in its own session and commits before returning, so a
    multi-step service operation is a sequence of independent writes. Live
    queries registered through :meth:`subscribe` are refreshed after each
    committed write on their collection.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self._hub = SubscriptionHub(self._load_snapshot)

    @property
    def subscriptions(self) -> SubscriptionHub:
        return self._hub

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Document store failed while %s", action)
            raise RemoteUnavailable(f"Storage backend unavailable while {action}") from exc
        finally:
            session.close()

    @staticmethod
    def _row(session: Session, collection: str, doc_id: str) -> StoredDocument | None:
        stmt = select(StoredDocument).where(
            StoredDocument.collection == collection,
            StoredDocument.doc_id == doc_id,
        )
        return session.scalars(stmt).first()

    @staticmethod
    def _to_document(row: StoredDocument) -> Document:
        return Document(collection=str(row.collection), id=str(row.doc_id), data=copy.deepcopy(dict(row.data or {})))

    @staticmethod
    def _materialize(fields: dict[str, Any], now: str) -> dict[str, Any]:
        return {key: _resolve_value(value, None, now) for key, value in fields.items()}

    def get_document(self, collection: str, doc_id: str) -> Document:
        document = self.find_document(collection, doc_id)
        if document is None:
            raise NotFound(f"{collection}/{doc_id} not found")
        return document

    def find_document(self, collection: str, doc_id: str) -> Document | None:
        with self._session("reading a document") as session:
            row = self._row(session, collection, doc_id)
            return self._to_document(row) if row is not None else None

    def set_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document:
        data = self._materialize(fields, _server_now())
        with self._session("writing a document") as session:
            row = self._row(session, collection, doc_id)
            if row is None:
                row = StoredDocument(collection=collection, doc_id=doc_id, data=data)
                session.add(row)
            else:
                row.data = data
                flag_modified(row, "data")
            session.commit()
            document = self._to_document(row)
        self._hub.notify(collection)
        return document

    def create_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document:
        data = self._materialize(fields, _server_now())
        with self._session("creating a document") as session:
            if self._row(session, collection, doc_id) is not None:
                raise DocumentExists(f"{collection}/{doc_id} already exists")
            row = StoredDocument(collection=collection, doc_id=doc_id, data=data)
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                # Another writer inserted the same id between the read and the commit.
                session.rollback()
                raise DocumentExists(f"{collection}/{doc_id} already exists") from exc
            document = self._to_document(row)
        self._hub.notify(collection)
        return document

    def update_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Document:
        now = _server_now()
        with self._session("updating a document") as session:
            row = self._row(session, collection, doc_id)
            if row is None:
                raise NotFound(f"{collection}/{doc_id} not found")
            data = copy.deepcopy(dict(row.data or {}))
            for key, value in fields.items():
                data[key] = _resolve_value(value, data.get(key), now)
            row.data = data
            flag_modified(row, "data")
            session.commit()
            document = self._to_document(row)
        self._hub.notify(collection)
        return document

    def delete_document(self, collection: str, doc_id: str) -> None:
        with self._session("deleting a document") as session:
            result = session.execute(
                delete(StoredDocument).where(
                    StoredDocument.collection == collection,
                    StoredDocument.doc_id == doc_id,
                )
            )
            session.commit()
            removed = result.rowcount or 0
        if removed:
            self._hub.notify(collection)

    def query_documents(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        documents = self._load_snapshot(collection, filters, order_by)
        if limit is not None:
            documents = documents[: max(limit, 0)]
        return documents

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        filters: Sequence[Filter] = (),
        order_by: OrderBy | None = None,
    ) -> Subscription:
        return self._hub.register(collection, callback, filters, order_by)

    def _load_snapshot(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: OrderBy | None,
    ) -> list[Document]:
        stmt = select(StoredDocument).where(StoredDocument.collection == collection)
        for item in filters:
            # String equality can be pushed down to the JSON column; everything
            # else is evaluated on the loaded payloads below.
            if item.op == "==" and isinstance(item.value, str):
                stmt = stmt.where(StoredDocument.data[item.field].as_string() == item.value)
        stmt = stmt.order_by(StoredDocument.id.asc())
        with self._session("querying documents") as session:
            documents = [self._to_document(row) for row in session.scalars(stmt)]
        return sort_documents(apply_filters(documents, filters), order_by)


__all__ = ["SqlDocumentStore"]
