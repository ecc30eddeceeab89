"""
Account Directory: signup/login/logout, credits and the friend graph.

All state lives in the flat record store:
- `accounts`: every account record, including the obfuscated password
- `current_session`: zero or one redacted account, the active user

Every operation that changes the active user's account also rewrites the
session pointer so the two agree. The two writes are separate transactions;
a crash or a second writer between them can leave them out of step.
"""

from __future__ import annotations

import base64
import time
from typing import Any

from loguru import logger

from oracle_store.db.flat_store import ACCOUNTS_TABLE, SESSION_TABLE, FlatRecordStore
from oracle_store.errors import DuplicateAccount, InvalidCredentials, NoActiveSession
from oracle_store.models import Account, new_id
from oracle_store.ranking import rank_by_credits


def obfuscate_password(password: str) -> str:
    """Reversible base64 obfuscation. This is not a password hash."""
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


def _redact(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if k != "password"}


class AccountDirectory:
    """Account operations over a FlatRecordStore."""

    def __init__(self, store: FlatRecordStore, latency_ms: int = 0):
        self.store = store
        self.latency_ms = latency_ms

    # ------------------------------------------------------------------
    # Table helpers
    # ------------------------------------------------------------------

    def _read_accounts(self) -> list[dict[str, Any]]:
        return self.store.read_table(ACCOUNTS_TABLE)

    def _write_accounts(self, records: list[dict[str, Any]]) -> None:
        self.store.write_table(ACCOUNTS_TABLE, records)

    def _set_session(self, account: Account) -> None:
        self.store.write_table(SESSION_TABLE, [account.to_dict()])

    def _simulate_latency(self) -> None:
        if self.latency_ms > 0:
            time.sleep(self.latency_ms / 1000)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def signup(self, email: str, password: str, name: str) -> Account:
        """Create an account, make it the active user and return it."""
        self._simulate_latency()
        records = self._read_accounts()
        if any(r.get("email") == email for r in records):
            raise DuplicateAccount(email)

        account = Account(id=new_id(), email=email, name=name, friends=[], credits=0)
        records.append({**account.to_dict(), "password": obfuscate_password(password)})
        self._write_accounts(records)
        self._set_session(account)

        logger.info(f"Account created: {account.id} ({email})")
        return account

    def login(self, email: str, password: str) -> Account:
        """Make the account matching email and password the active user."""
        self._simulate_latency()
        token = obfuscate_password(password)
        record = next(
            (r for r in self._read_accounts() if r.get("email") == email and r.get("password") == token),
            None,
        )
        if record is None:
            logger.info(f"Login rejected for {email}")
            raise InvalidCredentials()

        account = Account.from_dict(record)
        self._set_session(account)
        logger.info(f"Logged in: {account.id}")
        return account

    def logout(self) -> None:
        """Clear the session pointer. Safe to call with nobody logged in."""
        self.store.clear_table(SESSION_TABLE)
        logger.info("Logged out")

    def get_current_user(self) -> Account | None:
        """The active account from the session pointer, or None."""
        pointer = self.store.read_table(SESSION_TABLE)
        if not pointer:
            return None
        return Account.from_dict(pointer[0])

    # ------------------------------------------------------------------
    # Credits
    # ------------------------------------------------------------------

    def add_credits(self, amount: int) -> Account | None:
        """
        Add `amount` to the active account's credits.

        Returns the updated account, or None with nobody logged in. The sign
        of `amount` is not checked, so a negative value debits.
        """
        current = self.get_current_user()
        if current is None:
            return None

        new_total = (current.credits or 0) + amount
        records = self._read_accounts()
        found = False
        for record in records:
            if record.get("id") == current.id:
                record["credits"] = new_total
                found = True
        if not found:
            logger.warning(f"Active account {current.id} is missing from the account table")
        self._write_accounts(records)

        current.credits = new_total
        self._set_session(current)
        logger.info(f"Credits for {current.id}: {amount:+d} -> {new_total}")
        return current

    # ------------------------------------------------------------------
    # Directory & friend graph
    # ------------------------------------------------------------------

    def get_all_users(self) -> list[Account]:
        """Every account without its password, highest credits first."""
        return rank_by_credits(Account.from_dict(r) for r in self._read_accounts())

    def _update_friends(self, operation: str, friend_id: str, add: bool) -> Account | None:
        current = self.get_current_user()
        if current is None:
            raise NoActiveSession(operation)

        records = self._read_accounts()
        updated: dict[str, Any] | None = None
        for record in records:
            if record.get("id") != current.id:
                continue
            friends = list(record.get("friends") or [])
            if add and friend_id not in friends:
                friends.append(friend_id)
            elif not add:
                friends = [f for f in friends if f != friend_id]
            record["friends"] = friends
            updated = record

        if updated is None:
            logger.warning(f"{operation}: active account {current.id} is missing from the account table")
            return None

        self._write_accounts(records)
        account = Account.from_dict(_redact(updated))
        self._set_session(account)
        return account

    def add_friend(self, friend_id: str) -> Account | None:
        """
        Add `friend_id` to the active account's friends (idempotent).

        The id is not checked against the account table. Returns the updated
        account, or None if the active account no longer exists.
        """
        account = self._update_friends("add_friend", friend_id, add=True)
        if account is not None:
            logger.info(f"{account.id} added friend {friend_id}")
        return account

    def remove_friend(self, friend_id: str) -> Account | None:
        """Remove `friend_id` from the active account's friends. One-directional."""
        account = self._update_friends("remove_friend", friend_id, add=False)
        if account is not None:
            logger.info(f"{account.id} removed friend {friend_id}")
        return account

    def get_friends(self) -> list[Account]:
        """
        The active account's friends that still exist, in leaderboard order
        (credits descending) rather than the order they were added.
        """
        current = self.get_current_user()
        if current is None or not current.friends:
            return []
        friend_ids = set(current.friends)
        return [a for a in self.get_all_users() if a.id in friend_ids]
