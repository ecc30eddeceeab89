"""
Record types shared by the directory, the ledger and the archive.

Records are plain dataclasses persisted through to_dict()/from_dict().
from_dict() accepts legacy records written before credits and friends
existed, and ignores fields it does not know.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any


def new_id() -> str:
    """Short random identifier used for accounts, attempts and sessions."""
    return uuid.uuid4().hex[:9]


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Account:
    """An account as returned to callers (never carries the password)."""

    id: str
    email: str
    name: str
    friends: list[str] = field(default_factory=list)
    credits: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        """Create from a stored record, dropping the password field."""
        return cls(
            id=data["id"],
            email=data["email"],
            name=data["name"],
            friends=list(data.get("friends") or []),
            credits=data.get("credits") or 0,
        )


@dataclass
class QuizAttempt:
    """One entry of the append-only attempt ledger."""

    id: str
    user_id: str
    user_name: str
    session_id: str
    quiz_title: str
    score: float
    percentage: float
    time_taken: float  # seconds
    timestamp: int  # epoch ms

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "QuizAttempt":
        """Create from a ledger record, ignoring fields this version does not know."""
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            user_name=data.get("user_name", ""),
            session_id=data["session_id"],
            quiz_title=data.get("quiz_title", ""),
            score=data.get("score", 0),
            percentage=data.get("percentage", 0),
            time_taken=data.get("time_taken", 0),
            timestamp=data.get("timestamp", 0),
        )


@dataclass
class StudySession:
    """
    An archived study session.

    `sources` and `guide` come from the content-generation service and are
    passed through untouched.
    """

    id: str
    user_id: str
    timestamp: int  # epoch ms
    sources: list[Any] = field(default_factory=list)
    guide: Any = None
    reward_claimed: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StudySession":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            timestamp=data["timestamp"],
            sources=data.get("sources") or [],
            guide=data.get("guide"),
            reward_claimed=bool(data.get("reward_claimed", False)),
        )
