"""
Document storage models.

Implements:
- Document: one JSON document per (collection, id)
- DocumentStoreMeta: schema version recorded per collection

The document body is opaque to the store apart from its `id` key.
"""
from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Document(Base):
    """A stored document keyed by id within its collection."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Document {self.collection}/{self.id}>"


class DocumentStoreMeta(Base):
    """Schema version of a collection, written when the collection is created."""

    __tablename__ = "document_store_meta"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
