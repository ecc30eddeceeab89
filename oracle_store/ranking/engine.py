"""
Ranking Engine: pure computation over accounts and the attempt ledger.

Nothing here touches storage. Every sort is stable, so records that compare
equal keep the order they had in the input (the stored table order).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from oracle_store.models import Account, QuizAttempt


@dataclass
class TrajectorySeries:
    """A labelled run of recent quiz percentages for one user."""

    user_id: str
    label: str
    points: list[float] = field(default_factory=list)


def rank_by_credits(accounts: Iterable[Account]) -> list[Account]:
    """Accounts sorted by credits, highest first; ties keep input order."""
    return sorted(accounts, key=lambda a: a.credits or 0, reverse=True)


def friend_circle(viewer: Account, accounts: Iterable[Account]) -> list[Account]:
    """
    The viewer plus the accounts the viewer lists as friends, ranked by credits.

    The friend graph is directed: someone who lists the viewer is left out
    unless the viewer lists them back. Friend ids with no matching account
    are skipped.
    """
    members = {viewer.id, *viewer.friends}
    return rank_by_credits(a for a in accounts if a.id in members)


def session_rankings(attempts: Iterable[QuizAttempt], session_id: str) -> list[QuizAttempt]:
    """
    Attempts for one study session, best first.

    Higher score ranks first; on equal score the faster attempt (lower
    time_taken) ranks first.
    """
    matching = [a for a in attempts if a.session_id == session_id]
    return sorted(matching, key=lambda a: (-a.score, a.time_taken))


def performance_trajectory(attempts: Iterable[QuizAttempt], limit: int = 10) -> list[float]:
    """Percentages of the most recent `limit` attempts, oldest first."""
    ordered = sorted(attempts, key=lambda a: a.timestamp)
    if limit <= 0:
        return []
    return [a.percentage for a in ordered[-limit:]]


def compare_trajectories(
    members: Iterable[Account],
    attempts: Iterable[QuizAttempt],
    limit: int = 10,
) -> list[TrajectorySeries]:
    """One trajectory per member, for side-by-side comparison."""
    by_user: dict[str, list[QuizAttempt]] = {}
    for attempt in attempts:
        by_user.setdefault(attempt.user_id, []).append(attempt)

    return [
        TrajectorySeries(
            user_id=member.id,
            label=member.name,
            points=performance_trajectory(by_user.get(member.id, []), limit),
        )
        for member in members
    ]
