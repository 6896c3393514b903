# ledger/management/commands/verify_ledger.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand
from django.db.models import Count, Sum

from ledger.models.item import JournalItem
from ledger.models.journal import JournalEntry
from ledger.services.journal_store import MIN_LINES
from ledger.services.money import ZERO


def _parse_date(s: str | None):
    """
    Parse YYYY-MM-DD into a date, or None.
    """
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class Command(BaseCommand):
    help = "Verify ledger integrity (every entry balanced with at least two items)."

    def add_arguments(self, parser):
        parser.add_argument("--from", dest="date_from", help="Start date YYYY-MM-DD (optional)")
        parser.add_argument("--to", dest="date_to", help="End date YYYY-MM-DD (optional)")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any problem is found.",
        )

    def handle(self, *args, **options):
        date_from = _parse_date(options.get("date_from"))
        date_to = _parse_date(options.get("date_to"))
        strict = bool(options.get("strict"))

        if options.get("date_from") and not date_from:
            self.stderr.write(self.style.ERROR("Invalid --from date. Use YYYY-MM-DD"))
            return self._exit(strict)

        if options.get("date_to") and not date_to:
            self.stderr.write(self.style.ERROR("Invalid --to date. Use YYYY-MM-DD"))
            return self._exit(strict)

        entries = JournalEntry.objects.all()
        items = JournalItem.objects.all()
        if date_from:
            entries = entries.filter(date__gte=date_from)
            items = items.filter(journal_entry__date__gte=date_from)
        if date_to:
            entries = entries.filter(date__lte=date_to)
            items = items.filter(journal_entry__date__lte=date_to)

        self.stdout.write(self.style.MIGRATE_HEADING("Ledger Verification"))
        self.stdout.write(f"Journal entries in window: {entries.count()}")
        self.stdout.write("")

        errors = 0

        # -----------------------------
        # 1) Per-entry checks
        # -----------------------------
        rows = (
            entries.annotate(
                item_count=Count("items"),
                debit_sum=Sum("items__debit"),
                credit_sum=Sum("items__credit"),
            )
            .order_by("id")
            .values_list("id", "reference", "item_count", "debit_sum", "credit_sum")
        )

        short_entries = []
        unbalanced_entries = []
        for entry_id, reference, item_count, debit, credit in rows:
            label = reference or f"#{entry_id}"
            if item_count < MIN_LINES:
                short_entries.append((label, item_count))
            if (debit or ZERO) != (credit or ZERO):
                unbalanced_entries.append((label, debit or ZERO, credit or ZERO))

        if short_entries:
            errors += len(short_entries)
            self.stderr.write(
                self.style.ERROR(f"[FAIL] Entries with fewer than {MIN_LINES} items: {len(short_entries)}")
            )
            for label, count in short_entries[:10]:
                self.stderr.write(f"  {label} items={count}")

        if unbalanced_entries:
            errors += len(unbalanced_entries)
            self.stderr.write(self.style.ERROR(f"[FAIL] Unbalanced entries: {len(unbalanced_entries)}"))
            for label, debit, credit in unbalanced_entries[:10]:
                self.stderr.write(f"  {label} debit={debit} credit={credit}")

        if not short_entries and not unbalanced_entries:
            self.stdout.write(self.style.SUCCESS("[OK] Every entry is balanced"))

        # -----------------------------
        # 2) Global balance
        # -----------------------------
        totals = items.aggregate(debit=Sum("debit"), credit=Sum("credit"))
        debits = totals["debit"] or ZERO
        credits = totals["credit"] or ZERO

        if debits != credits:
            errors += 1
            self.stderr.write(self.style.ERROR(f"[FAIL] Ledger not balanced: debits={debits} credits={credits}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"[OK] Ledger balanced: debits={debits} credits={credits}"))

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("VERIFICATION PASSED"))
        else:
            self.stderr.write(self.style.ERROR(f"VERIFICATION FOUND ISSUES: {errors} problem(s)"))

        return self._exit(strict and errors > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
