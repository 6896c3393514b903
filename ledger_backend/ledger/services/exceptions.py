# ledger/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for the posting engine.
Every error aborts the current post()/reverse() call; none are retried here.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service failures."""


# ------------------------------------------------------------
# ACCOUNT RESOLUTION
# ------------------------------------------------------------


class AccountResolutionError(LedgerServiceError):
    """Raised when an expected account cannot be resolved."""


class RequiredAccountNotFound(AccountResolutionError):
    """A mandatory role (or caller-supplied code) has no active account."""

    def __init__(self, message: str, *, role: str | None = None, code: str | None = None):
        super().__init__(message)
        self.role = role
        self.code = code


# ------------------------------------------------------------
# POSTING RULES
# ------------------------------------------------------------


class PostingRuleError(LedgerServiceError):
    """Raised when a posting rule cannot be applied."""


class UnknownEventType(PostingRuleError):
    """No posting strategy is registered for the event type."""


class InvalidSnapshot(PostingRuleError):
    """The business-event snapshot failed validation."""

    def __init__(self, message: str, *, errors=None):
        super().__init__(message)
        self.errors = errors or {}


# ------------------------------------------------------------
# JOURNAL ENTRY CREATION
# ------------------------------------------------------------


class JournalEntryCreationError(LedgerServiceError):
    """Raised when a journal entry cannot be created."""


class UnbalancedEntry(JournalEntryCreationError):
    """Total debits differ from total credits."""

    def __init__(self, message: str, *, debit=None, credit=None):
        super().__init__(message)
        self.debit = debit
        self.credit = credit


class InsufficientLineItems(JournalEntryCreationError):
    """Fewer than two line items; an entry cannot balance non-trivially."""


class InvalidLineItem(JournalEntryCreationError):
    """A line is negative, empty, or carries both a debit and a credit."""


# ------------------------------------------------------------
# IDEMPOTENCY / STORAGE
# ------------------------------------------------------------


class IdempotencyError(LedgerServiceError):
    """Raised on duplicate or retried accounting events."""


class DuplicatePosting(IdempotencyError):
    """An entry already exists for this reference or source document."""


class StorageFailure(LedgerServiceError):
    """The storage transaction could not complete; all writes rolled back."""
