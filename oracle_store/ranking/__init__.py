"""Leaderboards and per-session rankings."""

from .engine import (
    TrajectorySeries,
    compare_trajectories,
    friend_circle,
    performance_trajectory,
    rank_by_credits,
    session_rankings,
)

__all__ = [
    "TrajectorySeries",
    "compare_trajectories",
    "friend_circle",
    "performance_trajectory",
    "rank_by_credits",
    "session_rankings",
]
