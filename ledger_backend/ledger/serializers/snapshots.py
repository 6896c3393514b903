# ledger/serializers/snapshots.py
"""

BUSINESS-EVENT SNAPSHOT SERIALIZERS

Validate + normalize what the business modules hand to the ledger:
- invoice, vendor bill, POS sale, manual journal

Notes:
- Money is 2dp Decimal, never negative.
- A document total of zero is rejected: there is nothing to post.
- The manual-journal minimum line count is NOT enforced here; the posting
  rule raises InsufficientLineItems so callers get a typed ledger error.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from ledger.models.journal import JournalEntry

ZERO = Decimal("0.00")


def _money_field(**kwargs):
    kwargs.setdefault("max_digits", 15)
    kwargs.setdefault("decimal_places", 2)
    kwargs.setdefault("min_value", ZERO)
    return serializers.DecimalField(**kwargs)


def _require_positive_total(value):
    if value <= ZERO:
        raise serializers.ValidationError(
            "Total must be greater than zero; a zero-value document has no ledger effect."
        )
    return value


class InvoiceSnapshotSerializer(serializers.Serializer):
    invoice_number = serializers.CharField(max_length=80)
    invoice_date = serializers.DateField()
    total_amount = _money_field()
    subtotal = _money_field()
    tax_amount = _money_field(required=False, allow_null=True, default=ZERO)

    def validate_total_amount(self, value):
        return _require_positive_total(value)

    def validate(self, attrs):
        attrs["tax_amount"] = attrs.get("tax_amount") or ZERO
        return attrs


class BillLineSerializer(serializers.Serializer):
    account_code = serializers.CharField(
        max_length=20,
        required=False,
        allow_blank=True,
        allow_null=True,
        default="",
    )
    line_total = _money_field()

    def validate(self, attrs):
        attrs["account_code"] = (attrs.get("account_code") or "").strip()
        return attrs


class BillSnapshotSerializer(serializers.Serializer):
    bill_number = serializers.CharField(max_length=80)
    bill_date = serializers.DateField()
    total_amount = _money_field()
    line_items = BillLineSerializer(many=True, allow_empty=True)

    def validate_total_amount(self, value):
        return _require_positive_total(value)


class PosSaleSnapshotSerializer(serializers.Serializer):
    invoice_no = serializers.CharField(max_length=80)
    created_at = serializers.DateTimeField()
    total_amount = _money_field()
    tax_amount = _money_field(required=False, allow_null=True, default=ZERO)

    def validate_total_amount(self, value):
        return _require_positive_total(value)

    def validate(self, attrs):
        tax = attrs.get("tax_amount") or ZERO
        if tax > attrs["total_amount"]:
            raise serializers.ValidationError(
                {"tax_amount": "Tax cannot exceed the sale total."}
            )
        attrs["tax_amount"] = tax
        return attrs


class ManualJournalItemSerializer(serializers.Serializer):
    account_code = serializers.CharField(max_length=20)
    debit = _money_field(required=False, default=ZERO)
    credit = _money_field(required=False, default=ZERO)


class ManualJournalSerializer(serializers.Serializer):
    date = serializers.DateField()
    reference = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        allow_null=True,
        default=None,
    )
    description = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        default="",
    )
    status = serializers.ChoiceField(
        choices=JournalEntry.STATUSES,
        required=False,
        default=JournalEntry.STATUS_POSTED,
    )
    items = ManualJournalItemSerializer(many=True, allow_empty=True)

    def validate(self, attrs):
        attrs["reference"] = (attrs.get("reference") or "").strip() or None
        attrs["description"] = (attrs.get("description") or "").strip()
        return attrs
