# ledger/models/item.py

"""
======================================================
PATH: ledger/models/item.py
======================================================
JOURNAL ITEM MODEL

One debit or credit line of a JournalEntry.

Guarantees:
- Immutable once created
- Exactly one side is non-zero (debit XOR credit), both are >= 0
- Owned by its entry (deleted with it); never owns its account
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from ledger.models.account import Account
from ledger.models.journal import JournalEntry

ZERO = Decimal("0.00")


class JournalItem(models.Model):
    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="items",
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_items",
    )

    line_no = models.PositiveIntegerField(default=1)

    debit = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "journal_items"
        ordering = ["journal_entry_id", "line_no"]
        verbose_name = "Journal Item"
        verbose_name_plural = "Journal Items"
        indexes = [
            models.Index(fields=["account"], name="ji_account_idx"),
            models.Index(fields=["journal_entry", "line_no"], name="ji_entry_line_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_journal_item_non_negative",
            ),
            models.CheckConstraint(
                condition=(Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0)),
                name="chk_journal_item_one_side",
            ),
        ]

    def __str__(self):
        side = f"DR {self.debit}" if self.debit else f"CR {self.credit}"
        return f"{side} → {self.account_code}"

    @property
    def account_code(self) -> str:
        return self.account.code

    def clean(self):
        debit = self.debit or ZERO
        credit = self.credit or ZERO

        if debit < 0 or credit < 0:
            raise ValidationError("Debit or credit cannot be negative")
        if debit > 0 and credit > 0:
            raise ValidationError("A journal item cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise ValidationError("A journal item must have either debit or credit")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalItem records are immutable once created")

        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "JournalItem records are removed only together with their journal entry"
        )
