"""
Database Models for Accounts Service
====================================

SQLAlchemy models for pseudonymous accounts and durable global settings.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text, Uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()

SALT_SETTING_KEY = "salt"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """
    Accounts table keyed by identity.

    The fingerprint column is the natural key for deduplication: the unique
    index is what makes concurrent inserts for one client address converge on
    a single row. Rows are never updated or deleted by the service.
    """

    __tablename__ = "accounts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    fingerprint = Column(String(128), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, created_at={self.created_at})>"


class GlobalSetting(Base):
    """Durable process-wide settings, read-only to the request path."""

    __tablename__ = "global_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<GlobalSetting(key='{self.key}')>"
