# ledger/models/journal.py

"""
======================================================
PATH: ledger/models/journal.py
======================================================
JOURNAL ENTRY MODEL

Represents a single ledger transaction (journal header).

Guarantees:
- Immutable once created (no updates)
- Removed only through the reversal path of the journal store
  (instance delete() is refused)
- One entry per reference (when reference is provided)
- One entry per originating document (source_type + source_id)
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum


class JournalEntry(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_POSTED = "posted"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_POSTED, "Posted"),
    ]

    date = models.DateField(help_text="Accounting effective date")

    reference = models.CharField(
        max_length=100,
        blank=True,
        null=True,
        help_text="Correlation key, e.g. INV-1042, BILL-77, SALE-0009",
    )

    description = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=10,
        choices=STATUSES,
        default=STATUS_POSTED,
    )

    source_type = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Originating business event type (invoice, bill, pos_sale, manual)",
    )
    source_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Originating document number",
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Timestamp when the journal entry was created",
    )

    class Meta:
        db_table = "journal_entries"
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["date"], name="je_date_idx"),
            models.Index(fields=["reference"], name="je_reference_idx"),
            models.Index(fields=["status"], name="je_status_idx"),
            models.Index(fields=["source_type", "source_id"], name="je_source_document_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["reference"],
                condition=Q(reference__isnull=False) & ~Q(reference=""),
                name="uniq_journal_reference_not_blank",
            ),
            models.UniqueConstraint(
                fields=["source_type", "source_id"],
                condition=~Q(source_id=""),
                name="uniq_journal_source_document",
            ),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"JournalEntry #{self.id} – {self.reference or '-'} ({self.date})"

    @property
    def is_posted(self) -> bool:
        return self.status == self.STATUS_POSTED

    def totals(self) -> tuple[Decimal, Decimal]:
        agg = self.items.aggregate(debit=Sum("debit"), credit=Sum("credit"))
        return (
            agg["debit"] or Decimal("0.00"),
            agg["credit"] or Decimal("0.00"),
        )

    @property
    def total_debit(self) -> Decimal:
        return self.totals()[0]

    @property
    def total_credit(self) -> Decimal:
        return self.totals()[1]

    def clean(self):
        if self.reference is not None:
            ref = str(self.reference).strip()
            self.reference = ref or None

        self.description = (self.description or "").strip()
        self.source_type = (self.source_type or "").strip()
        self.source_id = (self.source_id or "").strip()

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalEntry records are immutable once created")

        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "JournalEntry records are removed only by reversal (see journal_store.delete_entry)"
        )
