"""
oracle-store: local persistence and ranking for the Oracle study guide app.

Owns accounts, credentials, credits, the friend graph, the quiz attempt
ledger and the archive of generated study sessions.
"""

from oracle_store.errors import (
    DocumentExists,
    DuplicateAccount,
    InvalidCredentials,
    NoActiveSession,
    OracleError,
    StoreUnavailable,
)
from oracle_store.models import Account, QuizAttempt, StudySession

__version__ = "1.0.0"

__all__ = [
    "Account",
    "QuizAttempt",
    "StudySession",
    "OracleError",
    "DuplicateAccount",
    "InvalidCredentials",
    "NoActiveSession",
    "StoreUnavailable",
    "DocumentExists",
]
