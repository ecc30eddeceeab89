"""
OracleService: the operation surface consumed by the UI.

Composes the account directory, attempt ledger and study archive over one
flat record store and one document store, and adds the ranking views that
combine them.

Usage:
    service = OracleService.from_settings()
    service.accounts.signup("ada@example.com", "pw", "Ada")
    session_id = await service.archive.save_study_session(sources, guide)
"""

from __future__ import annotations

from collections.abc import Callable

from config import Settings, get_settings
from oracle_store.accounts import AccountDirectory, AttemptLedger
from oracle_store.archive import StudyArchive
from oracle_store.db import DocumentStore, FlatRecordStore
from oracle_store.db.database import (
    create_document_engine,
    create_flat_engine,
    get_document_engine,
    get_flat_engine,
)
from oracle_store.models import Account, QuizAttempt, now_ms
from oracle_store.ranking import (
    TrajectorySeries,
    compare_trajectories,
    friend_circle,
    performance_trajectory,
    session_rankings,
)


class OracleService:
    """High-level facade over both stores."""

    def __init__(
        self,
        flat_store: FlatRecordStore,
        document_store: DocumentStore,
        settings: Settings | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.settings = settings or get_settings()
        self.flat_store = flat_store
        self.document_store = document_store
        self.accounts = AccountDirectory(flat_store, latency_ms=self.settings.auth_latency_ms)
        self.ledger = AttemptLedger(self.accounts, clock=clock)
        self.archive = StudyArchive(
            document_store,
            self.accounts,
            clock=clock,
            reward_credits=self.settings.session_reward_credits,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "OracleService":
        """Build a service with its own engines from settings."""
        settings = settings or get_settings()
        flat_store = FlatRecordStore(create_flat_engine(settings.flat_store_url, echo=settings.sql_echo))
        document_store = DocumentStore(
            create_document_engine(settings.document_store_url, echo=settings.sql_echo),
            collection=settings.document_collection,
            version=settings.document_store_version,
        )
        return cls(flat_store, document_store, settings=settings)

    # ------------------------------------------------------------------
    # Rankings
    # ------------------------------------------------------------------

    def get_friend_circle_ranking(self) -> list[Account]:
        """The active user and the accounts they list as friends, by credits."""
        viewer = self.accounts.get_current_user()
        if viewer is None:
            return []
        return friend_circle(viewer, self.accounts.get_all_users())

    def get_session_rankings(self, session_id: str) -> list[QuizAttempt]:
        """Attempts on one study session: best score first, then fastest."""
        return session_rankings(self.ledger.get_quiz_attempts(), session_id)

    def get_performance_trajectory(self, user_id: str | None = None) -> list[float]:
        """Recent quiz percentages for `user_id` (default: the active user)."""
        if user_id is None:
            viewer = self.accounts.get_current_user()
            if viewer is None:
                return []
            user_id = viewer.id
        attempts = self.ledger.get_quiz_attempts(user_id)
        return performance_trajectory(attempts, self.settings.trajectory_points)

    def get_circle_trajectories(self) -> list[TrajectorySeries]:
        """A trajectory for each member of the active user's friend circle."""
        members = self.get_friend_circle_ranking()
        return compare_trajectories(members, self.ledger.get_quiz_attempts(), self.settings.trajectory_points)

    async def close(self) -> None:
        """Dispose both engines."""
        self.flat_store.close()
        await self.document_store.close()


_service: OracleService | None = None


def get_service() -> OracleService:
    """Process-wide service over the default engines. Created on first access."""
    global _service
    if _service is None:
        settings = get_settings()
        _service = OracleService(
            FlatRecordStore(get_flat_engine()),
            DocumentStore(
                get_document_engine(),
                collection=settings.document_collection,
                version=settings.document_store_version,
            ),
            settings=settings,
        )
    return _service
