"""
Flat record storage.

Every logical table (accounts, session pointer, attempt ledger) lives in the
single physical table `flat_records`, one row per record. Rows are ordered by
`position` inside their logical table, and the record itself is the JSON in
`payload`. A logical table is always rewritten as a whole.
"""
from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class FlatRecord(Base):
    """One record of one logical table."""

    __tablename__ = "flat_records"

    table_name: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<FlatRecord {self.table_name}[{self.position}]>"
