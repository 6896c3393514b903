# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite (fast, isolated)
- Ledger roles pinned to the default chart codes, independent of any .env
- Quiet ledger logging
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LEDGER_ACCOUNT_ROLES = {
    "ACCOUNTS_RECEIVABLE": "1100",
    "SALES_REVENUE": "4000",
    "SALES_TAX_PAYABLE": "2100",
    "ACCOUNTS_PAYABLE": "2000",
    "CASH_ON_HAND": "1010",
}
LEDGER_FALLBACK_ROLES = {}
LEDGER_REVERSAL_PREFIX_MATCH = False

LOGGING["loggers"]["ledger"]["level"] = "CRITICAL"
