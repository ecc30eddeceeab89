"""
Error taxonomy for the persistence and ranking layer.

Account Directory errors are raised synchronously to the immediate caller.
Storage failures from either store surface as StoreUnavailable; for the
document store they propagate out of the awaited coroutine. Nothing here is
retried internally.
"""

from __future__ import annotations


class OracleError(Exception):
    """Base class for all oracle-store errors."""


class DuplicateAccount(OracleError):
    """Signup attempted with an email that already has an account."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Account already exists: {email}")


class InvalidCredentials(OracleError):
    """No account matches the given email and password."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials.")


class NoActiveSession(OracleError):
    """A mutating operation was called with nobody logged in."""

    def __init__(self, operation: str = ""):
        self.operation = operation
        message = "No active session"
        if operation:
            message += f" (required by {operation})"
        super().__init__(message)


class StoreUnavailable(OracleError):
    """A store could not be opened or a transaction failed."""


class DocumentExists(StoreUnavailable):
    """add() rejected because a document with the same id is already stored."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document {doc_id!r} already exists in {collection!r}")
