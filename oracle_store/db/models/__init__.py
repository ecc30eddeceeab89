# SQLAlchemy models
from .base import Base
from .documents import Document, DocumentStoreMeta
from .flat import FlatRecord

FLAT_TABLES = [FlatRecord.__table__]
DOCUMENT_TABLES = [Document.__table__, DocumentStoreMeta.__table__]

__all__ = [
    "Base",
    # Flat record store
    "FlatRecord",
    "FLAT_TABLES",
    # Document store
    "Document",
    "DocumentStoreMeta",
    "DOCUMENT_TABLES",
]
