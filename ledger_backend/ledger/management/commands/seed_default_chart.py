# ledger/management/commands/seed_default_chart.py

from django.core.management.base import BaseCommand
from django.db import transaction

from ledger.models.account import Account

DEFAULT_ACCOUNTS = [
    # ASSETS
    ("1000", "Cash", Account.ASSET, "Current Asset"),
    ("1010", "Cash on Hand", Account.ASSET, "Current Asset"),
    ("1100", "Accounts Receivable", Account.ASSET, "Current Asset"),
    ("1200", "Inventory", Account.ASSET, "Current Asset"),
    # LIABILITIES
    ("2000", "Accounts Payable", Account.LIABILITY, "Current Liability"),
    ("2100", "Sales Tax Payable", Account.LIABILITY, "Current Liability"),
    # EQUITY
    ("3000", "Owner Capital", Account.EQUITY, ""),
    # REVENUE
    ("4000", "Sales Revenue", Account.REVENUE, "Operating Revenue"),
    # EXPENSES
    ("5000", "Cost of Goods Sold", Account.EXPENSE, ""),
    ("6000", "Operating Expenses", Account.EXPENSE, ""),
]


class Command(BaseCommand):
    help = "Seed the default chart of accounts (covers every role the posting rules need)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding default chart of accounts...")

        created_count = 0
        updated_count = 0

        for code, name, account_type, sub_type in DEFAULT_ACCOUNTS:
            acc, acc_created = Account.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "account_type": account_type,
                    "sub_type": sub_type,
                    "is_active": True,
                },
            )

            if acc_created:
                created_count += 1
                continue

            # Existing names are left alone; only type and status are enforced.
            needs_update = False
            if acc.account_type != account_type:
                acc.account_type = account_type
                needs_update = True
            if not acc.is_active:
                acc.is_active = True
                needs_update = True

            if needs_update:
                acc.save(update_fields=["account_type", "is_active", "updated_at"])
                updated_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Default chart seeded ({created_count} new accounts, {updated_count} updated)."
            )
        )
