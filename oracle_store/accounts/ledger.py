"""
Attempt Ledger: the global append-only log of quiz results.

Attempts are attributed to whoever is logged in when they are saved and are
never updated or removed afterwards.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from oracle_store.accounts.directory import AccountDirectory
from oracle_store.db.flat_store import ATTEMPTS_TABLE
from oracle_store.errors import NoActiveSession
from oracle_store.models import QuizAttempt, new_id, now_ms


class AttemptLedger:
    """Quiz attempt log stored alongside the accounts in the flat record store."""

    def __init__(self, directory: AccountDirectory, clock: Callable[[], int] = now_ms):
        self.directory = directory
        self.store = directory.store
        self.clock = clock

    def save_quiz_attempt(
        self,
        session_id: str,
        quiz_title: str,
        score: float,
        percentage: float,
        time_taken: float,
    ) -> QuizAttempt:
        """Append an attempt for the active user and return it."""
        user = self.directory.get_current_user()
        if user is None:
            raise NoActiveSession("save_quiz_attempt")

        attempt = QuizAttempt(
            id=new_id(),
            user_id=user.id,
            user_name=user.name,
            session_id=session_id,
            quiz_title=quiz_title,
            score=score,
            percentage=percentage,
            time_taken=time_taken,
            timestamp=self.clock(),
        )
        history = self.store.read_table(ATTEMPTS_TABLE)
        history.append(attempt.to_dict())
        self.store.write_table(ATTEMPTS_TABLE, history)

        logger.info(f"Recorded attempt {attempt.id} for {user.id} on session {session_id}: {score}")
        return attempt

    def get_quiz_attempts(self, user_id: str | None = None) -> list[QuizAttempt]:
        """The whole ledger, or only `user_id`'s attempts, in the order saved."""
        attempts = [QuizAttempt.from_dict(r) for r in self.store.read_table(ATTEMPTS_TABLE)]
        if user_id:
            return [a for a in attempts if a.user_id == user_id]
        return attempts
