# PATH: ledger/services/account_registry.py

"""
PATH: ledger/services/account_registry.py

CHART-OF-ACCOUNTS REGISTRY (AUTHORITATIVE)

This module answers ONE question:
"Which account should be used for this role?"

Roles are semantic names ("ACCOUNTS_RECEIVABLE", "SALES_REVENUE", ...).
The role -> code mapping is configuration (settings.LEDGER_ACCOUNT_ROLES),
handed to the registry once; posting rules never carry account codes.

Design goals:
- deterministic (exact code match, active accounts only)
- read-only (never creates or mutates accounts)
- hard-fail on missing setup, so we never post to the wrong account
- fallback codes are explicit configuration, never invented
"""

from __future__ import annotations

import logging
from functools import lru_cache

from django.conf import settings

from ledger.models.account import Account
from ledger.services.exceptions import RequiredAccountNotFound

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# SEMANTIC ROLES
# ------------------------------------------------------------

ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
SALES_REVENUE = "SALES_REVENUE"
SALES_TAX_PAYABLE = "SALES_TAX_PAYABLE"
ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
CASH_ON_HAND = "CASH_ON_HAND"

ROLES = (
    ACCOUNTS_RECEIVABLE,
    SALES_REVENUE,
    SALES_TAX_PAYABLE,
    ACCOUNTS_PAYABLE,
    CASH_ON_HAND,
)


def _norm_role(role: str) -> str:
    return (role or "").strip().upper()


def _norm_code(code) -> str:
    if code is None:
        return ""
    return str(code).strip()


class AccountRegistry:
    """
    Resolves roles and codes to active Account rows.

    role_codes:     {"ACCOUNTS_RECEIVABLE": "1100", ...}
    fallback_codes: {"CASH_ON_HAND": "1000", ...}  (optional, POS only)
    """

    def __init__(self, role_codes: dict, fallback_codes: dict | None = None):
        self.role_codes = {
            _norm_role(role): _norm_code(code)
            for role, code in (role_codes or {}).items()
            if _norm_code(code)
        }
        self.fallback_codes = {
            _norm_role(role): _norm_code(code)
            for role, code in (fallback_codes or {}).items()
            if _norm_code(code)
        }

    @classmethod
    def from_settings(cls) -> "AccountRegistry":
        return cls(
            role_codes=getattr(settings, "LEDGER_ACCOUNT_ROLES", {}),
            fallback_codes=getattr(settings, "LEDGER_FALLBACK_ROLES", {}),
        )

    def __repr__(self):
        return f"AccountRegistry(roles={self.role_codes!r}, fallbacks={self.fallback_codes!r})"

    # --------------------------------------------------------
    # CODE LOOKUPS
    # --------------------------------------------------------

    def find(self, code) -> Account | None:
        code = _norm_code(code)
        if not code:
            return None
        return Account.objects.filter(code=code, is_active=True).first()

    def resolve(self, code, *, role: str | None = None) -> Account:
        code = _norm_code(code)
        if not code:
            raise RequiredAccountNotFound("Account code is required", role=role)

        account = self.find(code)
        if account is None:
            logger.error(
                "Account resolution failed: account not found",
                extra={"account_code": code, "role": role},
            )
            label = f" for role {role}" if role else ""
            raise RequiredAccountNotFound(
                f"Account with code={code}{label} not found (or inactive). "
                "Run seed_default_chart (or add the account) and ensure is_active=True.",
                role=role,
                code=code,
            )
        return account

    # --------------------------------------------------------
    # ROLE LOOKUPS
    # --------------------------------------------------------

    def code_for(self, role: str) -> str | None:
        return self.role_codes.get(_norm_role(role))

    def resolve_role(self, role: str, *, required: bool = True) -> Account | None:
        """
        Required roles raise RequiredAccountNotFound when unmapped or missing.
        Optional roles return None instead.
        """
        role = _norm_role(role)
        code = self.code_for(role)

        if not code:
            if not required:
                return None
            raise RequiredAccountNotFound(
                f"No account code configured for role '{role}'. "
                "Update LEDGER_ACCOUNT_ROLES.",
                role=role,
            )

        if not required:
            return self.find(code)
        return self.resolve(code, role=role)

    def resolve_role_with_fallback(self, role: str) -> Account:
        """
        Primary role code first; then the configured fallback code for the
        role. With no fallback configured this is exactly resolve_role().
        """
        role = _norm_role(role)
        code = self.code_for(role)
        account = self.find(code) if code else None
        if account is not None:
            return account

        fallback_code = self.fallback_codes.get(role)
        if not fallback_code:
            return self.resolve_role(role, required=True)

        account = self.find(fallback_code)
        if account is None:
            raise RequiredAccountNotFound(
                f"Neither primary code={code or '-'} nor fallback code={fallback_code} "
                f"resolves for role '{role}'.",
                role=role,
                code=fallback_code,
            )

        logger.warning(
            "Using fallback account for role",
            extra={"role": role, "primary_code": code, "fallback_code": fallback_code},
        )
        return account


# ------------------------------------------------------------
# DEFAULT REGISTRY (from settings)
# ------------------------------------------------------------


@lru_cache(maxsize=1)
def get_default_registry() -> AccountRegistry:
    """
    Registry built from settings once per process.

    NOTE:
    If you change LEDGER_* settings at runtime (tests), call
    clear_registry_cache(); the app config does this on setting_changed.
    """
    return AccountRegistry.from_settings()


def clear_registry_cache() -> None:
    get_default_registry.cache_clear()
