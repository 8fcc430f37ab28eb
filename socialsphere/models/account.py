"""ORM model holding sign-in credentials for the identity provider."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from socialsphere.database import Base


def _generate_uid() -> str:
    return uuid.uuid4().hex


class Account(Base):
    __tablename__ = "accounts"

    uid = Column(String(64), primary_key=True, default=_generate_uid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    display_name = Column(String(150), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)


__all__ = ["Account"]
