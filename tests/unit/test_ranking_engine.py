"""
Unit tests for the ranking engine.

Tests:
- Credit leaderboard ordering and tie stability
- Directed friend circle membership
- Session rankings (score, then speed)
- Performance trajectories
"""

import pytest

from oracle_store.models import Account, QuizAttempt
from oracle_store.ranking import (
    compare_trajectories,
    friend_circle,
    performance_trajectory,
    rank_by_credits,
    session_rankings,
)


def make_account(id, credits=0, friends=None):
    return Account(id=id, email=f"{id}@example.com", name=id.title(), friends=friends or [], credits=credits)


def make_attempt(id, score=0, time_taken=0, session_id="S", user_id="u1", percentage=0, timestamp=0):
    return QuizAttempt(
        id=id,
        user_id=user_id,
        user_name=user_id,
        session_id=session_id,
        quiz_title="Quiz",
        score=score,
        percentage=percentage,
        time_taken=time_taken,
        timestamp=timestamp,
    )


class TestRankByCredits:
    """Tests for the credit leaderboard."""

    def test_sorted_descending(self):
        accounts = [make_account("a", 5), make_account("b", 20), make_account("c", 10)]

        ranked = rank_by_credits(accounts)

        assert [a.id for a in ranked] == ["b", "c", "a"]

    def test_ties_keep_table_order(self):
        accounts = [
            make_account("a", 10),
            make_account("b", 30),
            make_account("c", 10),
            make_account("d", 10),
        ]

        ranked = rank_by_credits(accounts)

        assert [a.id for a in ranked] == ["b", "a", "c", "d"]

    @pytest.mark.parametrize(
        "credits",
        [[], [0], [3, 3, 3], [1, 2, 3, 4], [9, -1, 0, 9, 4, -1]],
    )
    def test_any_multiset_is_descending_and_stable(self, credits):
        accounts = [make_account(f"u{i}", c) for i, c in enumerate(credits)]

        ranked = rank_by_credits(accounts)

        values = [a.credits for a in ranked]
        assert values == sorted(values, reverse=True)
        for value in set(credits):
            original = [a.id for a in accounts if a.credits == value]
            assert [a.id for a in ranked if a.credits == value] == original


class TestFriendCircle:
    """Tests for the directed friend circle."""

    def test_viewer_and_friends_by_credits(self):
        viewer = make_account("me", 10, friends=["x", "y"])
        accounts = [viewer, make_account("x", 50), make_account("y", 5), make_account("z", 100)]

        circle = friend_circle(viewer, accounts)

        assert [a.id for a in circle] == ["x", "me", "y"]

    def test_excludes_accounts_that_only_list_the_viewer(self):
        viewer = make_account("me", 10, friends=[])
        admirer = make_account("fan", 99, friends=["me"])

        circle = friend_circle(viewer, [viewer, admirer])

        assert [a.id for a in circle] == ["me"]

    def test_dangling_friend_ids_are_skipped(self):
        viewer = make_account("me", 1, friends=["ghost"])

        circle = friend_circle(viewer, [viewer])

        assert [a.id for a in circle] == ["me"]

    def test_viewer_missing_from_table(self):
        viewer = make_account("me", 1, friends=["x"])

        circle = friend_circle(viewer, [make_account("x", 3)])

        assert [a.id for a in circle] == ["x"]


class TestSessionRankings:
    """Tests for per-session attempt rankings."""

    def test_score_then_time(self):
        attempts = [
            make_attempt("a", score=80, time_taken=120),
            make_attempt("b", score=90, time_taken=300),
            make_attempt("c", score=90, time_taken=100),
        ]

        ranked = session_rankings(attempts, "S")

        assert [(a.score, a.time_taken) for a in ranked] == [(90, 100), (90, 300), (80, 120)]

    def test_filters_other_sessions(self):
        attempts = [
            make_attempt("a", score=50, session_id="S"),
            make_attempt("b", score=100, session_id="T"),
        ]

        ranked = session_rankings(attempts, "S")

        assert [a.id for a in ranked] == ["a"]

    def test_full_ties_keep_ledger_order(self):
        attempts = [make_attempt(str(i), score=70, time_taken=60) for i in range(4)]

        ranked = session_rankings(attempts, "S")

        assert [a.id for a in ranked] == ["0", "1", "2", "3"]

    def test_unknown_session_is_empty(self):
        assert session_rankings([make_attempt("a")], "missing") == []


class TestTrajectory:
    """Tests for performance trajectories."""

    def test_last_points_in_chronological_order(self):
        attempts = [make_attempt(str(i), percentage=i * 10, timestamp=i) for i in range(12)]

        points = performance_trajectory(reversed(attempts), limit=10)

        assert points == [20, 30, 40, 50, 60, 70, 80, 90, 100, 110]

    def test_zero_limit(self):
        assert performance_trajectory([make_attempt("a", percentage=50)], limit=0) == []

    def test_compare_builds_one_series_per_member(self):
        members = [make_account("u1"), make_account("u2")]
        attempts = [
            make_attempt("a", user_id="u1", percentage=40, timestamp=1),
            make_attempt("b", user_id="u1", percentage=60, timestamp=2),
            make_attempt("c", user_id="u3", percentage=99, timestamp=3),
        ]

        series = compare_trajectories(members, attempts)

        assert [s.user_id for s in series] == ["u1", "u2"]
        assert series[0].points == [40, 60]
        assert series[0].label == "U1"
        assert series[1].points == []
