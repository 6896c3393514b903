# ledger/models/account.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum


class Account(models.Model):
    """
    A single account in the chart of accounts.

    Guarantees:
    - Account codes are unique (the code is the stable lookup key)
    - Code + name are normalized (trimmed)
    - An account referenced by any journal item can never be deleted
    """

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    DEBIT_NORMAL_TYPES = (ASSET, EXPENSE)

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)

    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPES,
    )

    sub_type = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Free text, e.g. Current Asset, Long Term Liability",
    )
    description = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    opening_balance = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "chart_of_accounts"
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Chart of Accounts"
        indexes = [
            models.Index(fields=["account_type"], name="coa_account_type_idx"),
            models.Index(fields=["is_active"], name="coa_is_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in self.DEBIT_NORMAL_TYPES

    def balance(self, as_of=None) -> Decimal:
        """
        Opening balance plus the net of every item posted to this account,
        signed by the account's normal side. `as_of` limits the items to
        entries dated on or before that date.
        """
        items = self.journal_items.all()
        if as_of is not None:
            items = items.filter(journal_entry__date__lte=as_of)

        totals = items.aggregate(debit=Sum("debit"), credit=Sum("credit"))
        debit = totals["debit"] or Decimal("0.00")
        credit = totals["credit"] or Decimal("0.00")

        net = debit - credit if self.is_debit_normal else credit - debit
        return (self.opening_balance or Decimal("0.00")) + net

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.pk and self.journal_items.exists():
            raise ValidationError(
                f"Account {self.code} has journal items and cannot be deleted"
            )
        return super().delete(*args, **kwargs)
