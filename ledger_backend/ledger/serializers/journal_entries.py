# ledger/serializers/journal_entries.py

from rest_framework import serializers

from ledger.models.item import JournalItem
from ledger.models.journal import JournalEntry


class JournalItemSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalItem
        fields = ("id", "line_no", "account_code", "account_name", "debit", "credit")
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    """
    What post() hands back to the business modules:
    {id, date, reference, description, status, items[], totals}.
    """

    items = JournalItemSerializer(many=True, read_only=True)
    total_debit = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)
    total_credit = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)

    class Meta:
        model = JournalEntry
        fields = (
            "id",
            "date",
            "reference",
            "description",
            "status",
            "source_type",
            "source_id",
            "items",
            "total_debit",
            "total_credit",
        )
        read_only_fields = fields
