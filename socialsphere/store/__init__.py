"""Document store contract and its SQLAlchemy implementation."""
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
)
from .sql_store import SqlDocumentStore
from .subscriptions import LiveQuery, SubscriptionHub

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
    "LiveQuery",
    "SubscriptionHub",
    "SqlDocumentStore",
]
