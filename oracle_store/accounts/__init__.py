"""Accounts, credits, the friend graph and the attempt ledger."""

from .directory import AccountDirectory, obfuscate_password
from .ledger import AttemptLedger

__all__ = ["AccountDirectory", "AttemptLedger", "obfuscate_password"]
