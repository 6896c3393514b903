# ledger/admin.py

from django.contrib import admin

from ledger.models.account import Account
from ledger.models.item import JournalItem
from ledger.models.journal import JournalEntry

# ============================================================
# CHART OF ACCOUNTS
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "sub_type",
        "is_active",
    )
    list_filter = ("account_type", "is_active")
    search_fields = ("code", "name", "sub_type")
    ordering = ("code",)
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("code", "name", "account_type", "sub_type", "description"),
            },
        ),
        (
            "Balance & Status",
            {
                "fields": ("opening_balance", "is_active"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# JOURNAL ENTRY (READ-ONLY, written by the posting service)
# ============================================================


class JournalItemInline(admin.TabularInline):
    model = JournalItem
    extra = 0
    can_delete = False
    fields = ("line_no", "account", "debit", "credit")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "date",
        "reference",
        "description",
        "status",
        "source_type",
        "created_at",
    )
    list_filter = ("status", "source_type", "date")
    search_fields = ("reference", "description", "source_id")
    ordering = ("-date", "-id")
    inlines = (JournalItemInline,)

    readonly_fields = (
        "date",
        "reference",
        "description",
        "status",
        "source_type",
        "source_id",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# JOURNAL ITEM (STRICTLY IMMUTABLE)
# ============================================================


@admin.register(JournalItem)
class JournalItemAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "journal_entry",
        "line_no",
        "account",
        "debit",
        "credit",
    )
    list_filter = ("account__account_type",)
    search_fields = ("journal_entry__reference", "account__code")
    ordering = ("journal_entry", "line_no")

    readonly_fields = (
        "journal_entry",
        "line_no",
        "account",
        "debit",
        "credit",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
