"""
Document Store: asynchronous, versioned, per-document persistence.

A single collection of JSON documents keyed by their `id` field. Every
operation opens a fresh session, runs exactly one transaction, and returns
once that transaction has settled; there are no partial or streamed results.
Two operations issued concurrently are not ordered relative to each other
unless the caller awaits one before starting the next. In-flight operations
cannot be cancelled.

The first open of a store creates the collection and records its schema
version. Only version 1 exists; opening a database recorded at a newer version
fails.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from oracle_store.db.database import async_session_scope
from oracle_store.db.models import DOCUMENT_TABLES, Base, Document, DocumentStoreMeta
from oracle_store.errors import DocumentExists, StoreUnavailable

DB_VERSION = 1


class DocumentStore:
    """
    Versioned id-keyed document collection.

    Example:
        store = DocumentStore(create_document_engine(url), "study_history")
        await store.add({"id": "abc", "title": "..."})
        docs = await store.get_all()
    """

    def __init__(self, engine: AsyncEngine, collection: str = "study_history", version: int = DB_VERSION):
        self.engine = engine
        self.collection = collection
        self.version = version
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        self._opened = False
        self._open_lock = asyncio.Lock()

    async def _open(self) -> None:
        """Run the upgrade step on first use: create the collection if absent."""
        if self._opened:
            return
        async with self._open_lock:
            if self._opened:
                return
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all, tables=DOCUMENT_TABLES)
                async with async_session_scope(self._session_factory) as session:
                    meta = await session.get(DocumentStoreMeta, self.collection)
                    if meta is None:
                        session.add(DocumentStoreMeta(collection=self.collection, version=self.version))
                        logger.info(f"Created document collection {self.collection} (v{self.version})")
                    elif meta.version > self.version:
                        raise StoreUnavailable(
                            f"Collection {self.collection!r} is at version {meta.version}, "
                            f"newer than supported version {self.version}"
                        )
            except (SQLAlchemyError, OSError) as exc:
                raise StoreUnavailable(f"Document store could not be opened: {exc}") from exc
            self._opened = True

    @staticmethod
    def _doc_id(doc: dict[str, Any]) -> str:
        doc_id = doc.get("id")
        if not doc_id:
            raise ValueError("Document is missing its 'id' key")
        return str(doc_id)

    async def add(self, doc: dict[str, Any]) -> str:
        """Insert a new document. Raises DocumentExists if the id is taken."""
        await self._open()
        doc_id = self._doc_id(doc)
        try:
            async with async_session_scope(self._session_factory) as session:
                session.add(Document(collection=self.collection, id=doc_id, body=json.dumps(doc)))
        except IntegrityError as exc:
            raise DocumentExists(self.collection, doc_id) from exc
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(f"add({doc_id!r}) failed: {exc}") from exc
        logger.debug(f"Added document {self.collection}/{doc_id}")
        return doc_id

    async def put(self, doc: dict[str, Any]) -> str:
        """Insert or fully overwrite a document by id."""
        await self._open()
        doc_id = self._doc_id(doc)
        try:
            async with async_session_scope(self._session_factory) as session:
                await session.merge(Document(collection=self.collection, id=doc_id, body=json.dumps(doc)))
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(f"put({doc_id!r}) failed: {exc}") from exc
        logger.debug(f"Put document {self.collection}/{doc_id}")
        return doc_id

    async def get(self, doc_id: str) -> dict[str, Any] | None:
        """Fetch one document by id."""
        await self._open()
        try:
            async with async_session_scope(self._session_factory) as session:
                row = await session.get(Document, (self.collection, doc_id))
                body = row.body if row is not None else None
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(f"get({doc_id!r}) failed: {exc}") from exc
        return json.loads(body) if body is not None else None

    async def get_all(self) -> list[dict[str, Any]]:
        """Every document in the collection, in key order."""
        await self._open()
        try:
            async with async_session_scope(self._session_factory) as session:
                result = await session.scalars(
                    select(Document.body)
                    .where(Document.collection == self.collection)
                    .order_by(Document.id)
                )
                bodies = result.all()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(f"get_all() failed: {exc}") from exc
        return [json.loads(body) for body in bodies]

    async def delete(self, doc_id: str) -> None:
        """Delete a document by id. Deleting an absent id succeeds."""
        await self._open()
        try:
            async with async_session_scope(self._session_factory) as session:
                await session.execute(
                    delete(Document).where(
                        Document.collection == self.collection,
                        Document.id == doc_id,
                    )
                )
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(f"delete({doc_id!r}) failed: {exc}") from exc
        logger.debug(f"Deleted document {self.collection}/{doc_id}")

    async def close(self) -> None:
        """Release pooled connections."""
        await self.engine.dispose()
