"""
Study Archive: generated study sessions kept in the document store.

All operations are coroutines; callers suspend until the underlying
transaction settles. Sessions are owned by the user who was logged in when
they were saved.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from oracle_store.accounts.directory import AccountDirectory
from oracle_store.db.document_store import DocumentStore
from oracle_store.errors import NoActiveSession
from oracle_store.models import StudySession, new_id, now_ms


class StudyArchive:
    """Save, list, update and delete study sessions."""

    def __init__(
        self,
        store: DocumentStore,
        directory: AccountDirectory,
        clock: Callable[[], int] = now_ms,
        reward_credits: int = 50,
    ):
        self.store = store
        self.directory = directory
        self.clock = clock
        self.reward_credits = reward_credits

    async def save_study_session(self, sources: list[Any], guide: Any) -> str:
        """Archive a generated guide for the active user; returns the new session id."""
        user = self.directory.get_current_user()
        if user is None:
            raise NoActiveSession("save_study_session")

        session = StudySession(
            id=new_id(),
            user_id=user.id,
            timestamp=self.clock(),
            sources=sources,
            guide=guide,
            reward_claimed=False,
        )
        await self.store.add(session.to_dict())
        logger.info(f"Saved study session {session.id} for {user.id}")
        return session.id

    async def update_study_session(self, session: StudySession) -> None:
        """Overwrite a stored session with `session` (all fields, matched by id)."""
        await self.store.put(session.to_dict())

    async def get_study_history(self, user_id: str) -> list[StudySession]:
        """`user_id`'s sessions, most recent first."""
        documents = await self.store.get_all()
        sessions = [StudySession.from_dict(d) for d in documents if d.get("user_id") == user_id]
        sessions.sort(key=lambda s: s.timestamp, reverse=True)
        return sessions

    async def delete_study_session(self, session_id: str) -> None:
        """Delete a session; deleting one that is already gone succeeds."""
        await self.store.delete(session_id)
        logger.info(f"Deleted study session {session_id}")

    async def claim_session_reward(self, session_id: str, amount: int | None = None) -> StudySession | None:
        """
        Credit the active user once for a study session.

        Returns the updated session, or None when the session does not belong
        to the user or its reward was already claimed. The session is marked
        claimed before the credits are added, so a failure between the two
        writes loses the reward rather than granting it twice.
        """
        user = self.directory.get_current_user()
        if user is None:
            raise NoActiveSession("claim_session_reward")

        document = await self.store.get(session_id)
        if document is None or document.get("user_id") != user.id:
            logger.warning(f"Reward claim for unknown session {session_id} by {user.id}")
            return None
        session = StudySession.from_dict(document)
        if session.reward_claimed:
            return None

        credits = self.reward_credits if amount is None else amount
        session.reward_claimed = True
        await self.update_study_session(session)
        self.directory.add_credits(credits)

        logger.info(f"Reward of {credits} credited to {user.id} for session {session_id}")
        return session
