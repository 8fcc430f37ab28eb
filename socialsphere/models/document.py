"""ORM model backing the document store: one JSON row per (collection, id)."""
from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from socialsphere.database import Base


class StoredDocument(Base):
    __tablename__ = "documents"

    # Surrogate key; also the insertion order used to break ordering ties.
    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(64), nullable=False, index=True)
    doc_id = Column(String(255), nullable=False)
    data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc"),)

    def __repr__(self) -> str:
        return f"<StoredDocument {self.collection}/{self.doc_id}>"


__all__ = ["StoredDocument"]
