from .document_store import DocumentStore
from .flat_store import ACCOUNTS_TABLE, ATTEMPTS_TABLE, SESSION_TABLE, FlatRecordStore

__all__ = [
    "FlatRecordStore",
    "DocumentStore",
    "ACCOUNTS_TABLE",
    "SESSION_TABLE",
    "ATTEMPTS_TABLE",
]
