"""
Flat Record Store: synchronous whole-table persistence for small records.

Each logical table is an ordered list of JSON-serializable dicts. Reads return
the whole table, writes replace the whole table inside one transaction, so a
partially written table is never observable. Tables are independent
namespaces; keeping them consistent with each other is the caller's job.

There is no locking and no versioning. Two processes sharing the same database
file get last-writer-wins on concurrent read-modify-write sequences.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger
from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from oracle_store.db.database import session_scope
from oracle_store.db.models import FLAT_TABLES, Base, FlatRecord
from oracle_store.errors import StoreUnavailable

# Logical table names
ACCOUNTS_TABLE = "accounts"
SESSION_TABLE = "current_session"
ATTEMPTS_TABLE = "quiz_attempts"


class FlatRecordStore:
    """
    Table-oriented key-value persistence.

    The store owns its engine; pass a dedicated engine per test to get an
    isolated store.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
        self._initialized = False

    def _ensure_schema(self) -> None:
        if self._initialized:
            return
        try:
            Base.metadata.create_all(bind=self.engine, tables=FLAT_TABLES)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Flat record store could not be opened: {exc}") from exc
        self._initialized = True
        logger.debug("Flat record store schema ready")

    def read_table(self, name: str) -> list[dict[str, Any]]:
        """Return every record of `name` in stored order ([] if the table is absent)."""
        self._ensure_schema()
        try:
            with session_scope(self._session_factory) as session:
                payloads = session.scalars(
                    select(FlatRecord.payload)
                    .where(FlatRecord.table_name == name)
                    .order_by(FlatRecord.position)
                ).all()
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not read table {name!r}: {exc}") from exc
        return [json.loads(payload) for payload in payloads]

    def write_table(self, name: str, records: list[dict[str, Any]]) -> None:
        """Replace the whole of `name` with `records`."""
        self._ensure_schema()
        rows = [
            FlatRecord(table_name=name, position=i, payload=json.dumps(record))
            for i, record in enumerate(records)
        ]
        try:
            with session_scope(self._session_factory) as session:
                session.execute(delete(FlatRecord).where(FlatRecord.table_name == name))
                session.add_all(rows)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not write table {name!r}: {exc}") from exc
        logger.debug(f"Wrote {len(rows)} record(s) to {name}")

    def clear_table(self, name: str) -> None:
        """Remove every record of `name`."""
        self.write_table(name, [])

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
