"""ORM model storing keyed JSON documents grouped by collection."""
from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.sql import func

from app.database import Base


class Document(Base):
    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    key = Column(String(255), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (Index("ix_documents_collection_created_at", "collection", "created_at"),)

    def as_dict(self) -> dict:
        return dict(self.data or {})


__all__ = ["Document"]
