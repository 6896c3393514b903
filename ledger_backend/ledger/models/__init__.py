# ledger/models/__init__.py

"""
LEDGER MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from ledger.models.account import Account
from ledger.models.journal import JournalEntry
from ledger.models.item import JournalItem

__all__ = [
    "Account",
    "JournalEntry",
    "JournalItem",
]
