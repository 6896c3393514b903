# ledger/services/posting_service.py

"""
======================================================
PATH: ledger/services/posting_service.py
======================================================
LEDGER POSTING SERVICE (ORCHESTRATOR)

This service is the ONLY bridge between the business modules
(invoices, vendor bills, POS sales, manual journals) and the ledger.

Flow for post():
1. validate the snapshot (serializers)        -> InvalidSnapshot
2. apply the posting rule for the event type  -> PostingPlan
3. verify the plan balances                   -> Unbalanced / Insufficient
4. resolve every account via the registry     -> RequiredAccountNotFound
5. ONE transaction: write header + items, re-verify stored totals
6. on commit: emit journal_posted (audit)

Nothing is written before step 5, and any failure inside step 5 rolls
the whole entry back. Errors always propagate to the caller.

Ownership rule:
- Only this service opens/closes the posting transaction.
- Posting rules are pure; the registry is read-only.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import lru_cache, partial

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from ledger.models.journal import JournalEntry
from ledger.serializers.journal_entries import JournalEntrySerializer
from ledger.serializers.snapshots import (
    BillSnapshotSerializer,
    InvoiceSnapshotSerializer,
    ManualJournalSerializer,
    PosSaleSnapshotSerializer,
)
from ledger.services import journal_store
from ledger.services.account_registry import AccountRegistry, get_default_registry
from ledger.services.exceptions import (
    DuplicatePosting,
    InvalidSnapshot,
    JournalEntryCreationError,
    StorageFailure,
    UnknownEventType,
)
from ledger.services.posting_rules import (
    EVENT_BILL,
    EVENT_INVOICE,
    EVENT_MANUAL,
    EVENT_POS_SALE,
    PostingPlan,
    bill_posting,
    invoice_posting,
    manual_posting,
    pos_sale_posting,
    validate_plan,
)
from ledger.signals import journal_posted, journal_reversed

logger = logging.getLogger(__name__)

STRATEGIES = {
    EVENT_INVOICE: (InvoiceSnapshotSerializer, invoice_posting),
    EVENT_BILL: (BillSnapshotSerializer, bill_posting),
    EVENT_POS_SALE: (PosSaleSnapshotSerializer, pos_sale_posting),
    EVENT_MANUAL: (ManualJournalSerializer, manual_posting),
}


class LedgerPostingService:
    def __init__(self, registry: AccountRegistry, *, reversal_prefix_match: bool = False):
        self.registry = registry
        self.reversal_prefix_match = reversal_prefix_match

    # --------------------------------------------------------
    # PLAN (no side effects)
    # --------------------------------------------------------

    def build_plan(self, event_type: str, snapshot) -> PostingPlan:
        event_type = (event_type or "").strip().lower()
        try:
            serializer_class, rule = STRATEGIES[event_type]
        except KeyError as exc:
            raise UnknownEventType(
                f"No posting rule for event type {event_type!r}. "
                f"Expected one of: {', '.join(sorted(STRATEGIES))}"
            ) from exc

        if not isinstance(snapshot, Mapping):
            raise InvalidSnapshot(f"{event_type} snapshot must be a mapping")

        serializer = serializer_class(data=dict(snapshot))
        if not serializer.is_valid():
            raise InvalidSnapshot(
                f"Invalid {event_type} snapshot: {serializer.errors}",
                errors=serializer.errors,
            )

        return validate_plan(rule(serializer.validated_data))

    def resolve_postings(self, plan: PostingPlan) -> list[dict]:
        postings: list[dict] = []
        for line in plan.lines:
            if line.role and line.allow_fallback:
                account = self.registry.resolve_role_with_fallback(line.role)
            elif line.role:
                account = self.registry.resolve_role(line.role, required=True)
            else:
                account = self.registry.resolve(line.account_code)

            postings.append(
                {"account": account, "debit": line.debit, "credit": line.credit}
            )
        return postings

    # --------------------------------------------------------
    # POST
    # --------------------------------------------------------

    def post(self, event_type: str, snapshot) -> JournalEntry:
        plan = self.build_plan(event_type, snapshot)
        postings = self.resolve_postings(plan)

        try:
            with transaction.atomic():
                entry = self._write(plan, postings)
        except DatabaseError as exc:
            _log_storage_failure(event_type=plan.event_type, reference=plan.reference)
            raise StorageFailure(f"Ledger storage failure: {exc}") from exc

        logger.info(
            "Journal entry posted",
            extra={
                "journal_entry_id": entry.id,
                "event_type": plan.event_type,
                "reference": plan.reference,
            },
        )
        return journal_store.get_entry(entry.id)

    def repost(self, event_type: str, snapshot) -> JournalEntry:
        """
        Replace the entry of an already-posted document (document edited):
        reverse + post in ONE transaction. Works as a plain post when
        nothing was posted yet.

        Documents are matched on (event type, document number) only. An entry
        that merely holds the same reference is never replaced: that raises
        DuplicatePosting. Manual journals replace the manual entry carrying
        their reference.
        """
        plan = self.build_plan(event_type, snapshot)
        postings = self.resolve_postings(plan)

        try:
            with transaction.atomic():
                existing = journal_store.find_by_source(
                    plan.event_type, plan.source_id, for_update=True
                )
                if existing is None:
                    existing = self._replaceable_by_reference(plan)
                if existing is not None:
                    self._delete(existing, event_type=plan.event_type)
                entry = self._write(plan, postings)
        except DatabaseError as exc:
            _log_storage_failure(event_type=plan.event_type, reference=plan.reference)
            raise StorageFailure(f"Ledger storage failure: {exc}") from exc

        logger.info(
            "Journal entry reposted",
            extra={
                "journal_entry_id": entry.id,
                "event_type": plan.event_type,
                "reference": plan.reference,
            },
        )
        return journal_store.get_entry(entry.id)

    # --------------------------------------------------------
    # REVERSE
    # --------------------------------------------------------

    def reverse(self, reference: str, *, match_prefix: bool | None = None) -> bool:
        """
        Delete the entry posted under `reference` (and its items).

        Idempotent: no entry -> no-op, returns False.
        match_prefix (default: settings) also accepts the first entry whose
        reference starts with `reference`.
        """
        use_prefix = self.reversal_prefix_match if match_prefix is None else match_prefix

        try:
            with transaction.atomic():
                entry = journal_store.find_by_reference(reference, for_update=True)
                if entry is None and use_prefix:
                    entry = journal_store.find_by_reference_prefix(reference, for_update=True)
                if entry is not None:
                    self._delete(entry)
        except DatabaseError as exc:
            _log_storage_failure(event_type="reversal", reference=reference)
            raise StorageFailure(f"Ledger storage failure: {exc}") from exc

        if entry is None:
            logger.info(
                "Reversal skipped: no journal entry for reference",
                extra={"reference": reference},
            )
            return False
        return True

    def reverse_document(self, event_type: str, document_id) -> bool:
        """Reverse by correlation key (event type + document number)."""
        event_type = (event_type or "").strip().lower()

        try:
            with transaction.atomic():
                entry = journal_store.find_by_source(event_type, document_id, for_update=True)
                if entry is not None:
                    self._delete(entry, event_type=event_type)
        except DatabaseError as exc:
            _log_storage_failure(event_type=event_type, reference=document_id)
            raise StorageFailure(f"Ledger storage failure: {exc}") from exc

        if entry is None:
            logger.info(
                "Reversal skipped: no journal entry for document",
                extra={"event_type": event_type, "document_id": str(document_id)},
            )
            return False
        return True

    # --------------------------------------------------------
    # INTERNALS
    # --------------------------------------------------------

    def _replaceable_by_reference(self, plan: PostingPlan) -> JournalEntry | None:
        entry = journal_store.find_by_reference(plan.reference, for_update=True)
        if entry is None:
            return None

        if plan.source_id or entry.source_type:
            raise DuplicatePosting(
                f"Reference {plan.reference} belongs to another journal entry "
                f"(#{entry.id}, source={entry.source_type or 'manual'}); not replaced"
            )
        return entry

    def _write(self, plan: PostingPlan, postings: list[dict]) -> JournalEntry:
        try:
            entry = journal_store.write_entry(
                date=plan.date,
                postings=postings,
                reference=plan.reference,
                description=plan.description,
                status=plan.status,
                source_type=plan.event_type if plan.source_id else "",
                source_id=plan.source_id,
            )
        except ValidationError as exc:
            raise JournalEntryCreationError(
                f"Journal entry rejected by model validation: {exc}"
            ) from exc

        transaction.on_commit(
            partial(
                journal_posted.send,
                sender=self.__class__,
                entry=entry,
                event_type=plan.event_type,
                reference=plan.reference,
            )
        )
        return entry

    def _delete(self, entry: JournalEntry, *, event_type: str | None = None) -> None:
        entry_id = entry.id
        reference = entry.reference
        journal_store.delete_entry(entry_id)

        logger.info(
            "Journal entry reversed",
            extra={"journal_entry_id": entry_id, "reference": reference},
        )
        transaction.on_commit(
            partial(
                journal_reversed.send,
                sender=self.__class__,
                entry_id=entry_id,
                reference=reference,
                event_type=event_type or entry.source_type or None,
            )
        )


def _log_storage_failure(*, event_type, reference) -> None:
    """Call from the except block; the atomic block has already rolled back."""
    logger.exception(
        "Ledger storage failure; transaction rolled back",
        extra={"event_type": event_type, "reference": str(reference)},
    )


# ------------------------------------------------------------
# DEFAULT SERVICE (from settings)
# ------------------------------------------------------------


@lru_cache(maxsize=1)
def get_posting_service() -> LedgerPostingService:
    return LedgerPostingService(
        get_default_registry(),
        reversal_prefix_match=getattr(settings, "LEDGER_REVERSAL_PREFIX_MATCH", False),
    )


def clear_posting_service_cache() -> None:
    get_posting_service.cache_clear()


def post(event_type: str, snapshot) -> JournalEntry:
    return get_posting_service().post(event_type, snapshot)


def reverse(reference: str) -> bool:
    return get_posting_service().reverse(reference)


def entry_as_dict(entry: JournalEntry) -> dict:
    return JournalEntrySerializer(entry).data
