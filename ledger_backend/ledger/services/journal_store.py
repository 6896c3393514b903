# ledger/services/journal_store.py

"""
======================================================
PATH: ledger/services/journal_store.py
======================================================
JOURNAL ENTRY STORE

This module is the ONLY place allowed to:
- Create JournalEntry / JournalItem rows
- Delete them (reversal path)
- Enforce debit == credit at write time

It does not open the posting transaction; the posting service owns it.
Every write helper here is still wrapped in atomic() (a savepoint when
nested) so a failed step never leaves a half-written entry behind.

Signatures work on ORM objects rather than bare ids and codes:
- create_entry() returns the JournalEntry row (its .id is the entry id)
- add_item() takes a resolved, active Account instead of an account code;
  code -> account resolution belongs to the AccountRegistry
"""

from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Q, Sum

from ledger.models.account import Account
from ledger.models.item import JournalItem
from ledger.models.journal import JournalEntry
from ledger.services.exceptions import (
    DuplicatePosting,
    InsufficientLineItems,
    InvalidLineItem,
    JournalEntryCreationError,
    UnbalancedEntry,
)
from ledger.services.money import ZERO, to_money

MIN_LINES = 2


# ------------------------------------------------------------
# VALIDATION (pre-write)
# ------------------------------------------------------------


def normalize_postings(postings: list) -> tuple[list[dict], Decimal, Decimal]:
    """
    Validate resolved postings ({"account", "debit", "credit"}).

    Returns (normalized postings, total debit, total credit).
    Raises InvalidLineItem / InsufficientLineItems / UnbalancedEntry.
    """
    if not postings or len(postings) < MIN_LINES:
        raise InsufficientLineItems(
            f"A journal entry needs at least {MIN_LINES} line items, got {len(postings or [])}"
        )

    total_debit = ZERO
    total_credit = ZERO
    normalized: list[dict] = []

    for index, line in enumerate(postings, start=1):
        if not isinstance(line, dict):
            raise InvalidLineItem(f"Line {index} must be an object/dict")

        account = line.get("account")
        if not isinstance(account, Account):
            raise InvalidLineItem(f"Line {index} is missing a resolved account")

        if not account.is_active:
            raise InvalidLineItem(f"Account {account.code} is inactive")

        debit = to_money(line.get("debit"))
        credit = to_money(line.get("credit"))

        if debit < 0 or credit < 0:
            raise InvalidLineItem(f"Line {index}: debit or credit cannot be negative")
        if debit > 0 and credit > 0:
            raise InvalidLineItem(f"Line {index}: a line cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise InvalidLineItem(f"Line {index}: a line must have either debit or credit")

        total_debit += debit
        total_credit += credit
        normalized.append({"account": account, "debit": debit, "credit": credit})

    assert_totals_balance(total_debit, total_credit)
    return normalized, total_debit, total_credit


def assert_totals_balance(total_debit: Decimal, total_credit: Decimal) -> None:
    if total_debit != total_credit:
        raise UnbalancedEntry(
            f"Journal entry not balanced: debits={total_debit} credits={total_credit}",
            debit=total_debit,
            credit=total_credit,
        )


# ------------------------------------------------------------
# WRITES
# ------------------------------------------------------------


def create_entry(
    *,
    date: date_type,
    reference: str | None = None,
    description: str = "",
    status: str = JournalEntry.STATUS_POSTED,
    source_type: str = "",
    source_id: str = "",
) -> JournalEntry:
    if date is None:
        raise JournalEntryCreationError("Journal entry date is required")

    if status not in (JournalEntry.STATUS_DRAFT, JournalEntry.STATUS_POSTED):
        raise JournalEntryCreationError(f"Invalid journal entry status: {status!r}")

    reference = (reference or "").strip() or None
    source_type = (source_type or "").strip()
    source_id = (source_id or "").strip()

    # Clear error before DB constraint race handling
    _raise_if_duplicate(reference=reference, source_type=source_type, source_id=source_id)

    try:
        with transaction.atomic():
            return JournalEntry.objects.create(
                date=date,
                reference=reference,
                description=description or "",
                status=status,
                source_type=source_type,
                source_id=source_id,
            )
    except IntegrityError as exc:
        _raise_if_duplicate(
            reference=reference,
            source_type=source_type,
            source_id=source_id,
            cause=exc,
        )
        raise


def add_item(entry_id: int, *, account: Account, debit, credit, line_no: int | None = None) -> JournalItem:
    if line_no is None:
        line_no = JournalItem.objects.filter(journal_entry_id=entry_id).count() + 1

    return JournalItem.objects.create(
        journal_entry_id=entry_id,
        account=account,
        line_no=line_no,
        debit=to_money(debit),
        credit=to_money(credit),
    )


def write_entry(
    *,
    date: date_type,
    postings: list,
    reference: str | None = None,
    description: str = "",
    status: str = JournalEntry.STATUS_POSTED,
    source_type: str = "",
    source_id: str = "",
) -> JournalEntry:
    """
    Validate, write header + items, then re-verify the stored totals.
    Any failure rolls the whole entry back.
    """
    normalized, _, _ = normalize_postings(postings)

    with transaction.atomic():
        entry = create_entry(
            date=date,
            reference=reference,
            description=description,
            status=status,
            source_type=source_type,
            source_id=source_id,
        )

        for line_no, line in enumerate(normalized, start=1):
            add_item(
                entry.id,
                account=line["account"],
                debit=line["debit"],
                credit=line["credit"],
                line_no=line_no,
            )

        assert_entry_balanced(entry.id)

    return entry


def delete_entry(entry_id: int) -> bool:
    """
    Delete one entry together with all of its items.
    Returns False when the entry no longer exists.
    """
    with transaction.atomic():
        JournalItem.objects.filter(journal_entry_id=entry_id).delete()
        deleted, _ = JournalEntry.objects.filter(pk=entry_id).delete()
    return deleted > 0


# ------------------------------------------------------------
# READS
# ------------------------------------------------------------


def get_entry(entry_id: int) -> JournalEntry | None:
    return (
        JournalEntry.objects.prefetch_related("items__account")
        .filter(pk=entry_id)
        .first()
    )


def find_by_reference(reference: str, *, for_update: bool = False) -> JournalEntry | None:
    reference = (reference or "").strip()
    if not reference:
        return None
    qs = JournalEntry.objects.filter(reference=reference)
    if for_update:
        qs = qs.select_for_update()
    return qs.first()


def find_by_reference_prefix(prefix: str, *, for_update: bool = False) -> JournalEntry | None:
    """
    Legacy lookup: first entry (lowest id) whose reference starts with prefix.
    """
    prefix = (prefix or "").strip()
    if not prefix:
        return None
    qs = JournalEntry.objects.filter(reference__startswith=prefix).order_by("id")
    if for_update:
        qs = qs.select_for_update()
    return qs.first()


def find_by_source(source_type: str, source_id, *, for_update: bool = False) -> JournalEntry | None:
    source_type = (source_type or "").strip()
    source_id = str(source_id or "").strip()
    if not source_type or not source_id:
        return None
    qs = JournalEntry.objects.filter(source_type=source_type, source_id=source_id)
    if for_update:
        qs = qs.select_for_update()
    return qs.first()


def list_entries(*, keyword: str | None = None, start_date=None, end_date=None):
    qs = JournalEntry.objects.prefetch_related("items__account").order_by("-date", "-id")

    keyword = (keyword or "").strip()
    if keyword:
        qs = qs.filter(Q(reference__icontains=keyword) | Q(description__icontains=keyword))
    if start_date:
        qs = qs.filter(date__gte=start_date)
    if end_date:
        qs = qs.filter(date__lte=end_date)

    return qs


def entry_totals(entry_id: int) -> tuple[Decimal, Decimal]:
    agg = JournalItem.objects.filter(journal_entry_id=entry_id).aggregate(
        debit=Sum("debit"), credit=Sum("credit")
    )
    return (
        to_money(agg["debit"] or ZERO),
        to_money(agg["credit"] or ZERO),
    )


def assert_entry_balanced(entry_id: int) -> None:
    """Post-write check against what the database actually holds."""
    count = JournalItem.objects.filter(journal_entry_id=entry_id).count()
    if count < MIN_LINES:
        raise InsufficientLineItems(
            f"Journal entry {entry_id} has {count} line items; at least {MIN_LINES} required"
        )

    debit, credit = entry_totals(entry_id)
    assert_totals_balance(debit, credit)


# ------------------------------------------------------------
# INTERNALS
# ------------------------------------------------------------


def _raise_if_duplicate(*, reference, source_type, source_id, cause=None) -> None:
    if reference and JournalEntry.objects.filter(reference=reference).exists():
        raise DuplicatePosting(
            f"Journal entry already exists for reference {reference}"
        ) from cause

    if source_id and JournalEntry.objects.filter(
        source_type=source_type, source_id=source_id
    ).exists():
        raise DuplicatePosting(
            f"Journal entry already exists for {source_type or 'source'} {source_id}"
        ) from cause
