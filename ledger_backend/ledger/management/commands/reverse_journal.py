# ledger/management/commands/reverse_journal.py

from django.core.management.base import BaseCommand, CommandError

from ledger.services.exceptions import LedgerServiceError
from ledger.services.posting_service import get_posting_service


class Command(BaseCommand):
    help = "Reverse (remove) the journal entry posted under a reference."

    def add_arguments(self, parser):
        parser.add_argument("reference", help="Journal reference, e.g. INV-1001")
        parser.add_argument(
            "--prefix",
            action="store_true",
            help="Also match the first entry whose reference starts with the value.",
        )

    def handle(self, *args, **options):
        reference = options["reference"]

        try:
            reversed_ = get_posting_service().reverse(
                reference, match_prefix=True if options["prefix"] else None
            )
        except LedgerServiceError as exc:
            raise CommandError(str(exc)) from exc

        if reversed_:
            self.stdout.write(self.style.SUCCESS(f"Reversed journal entry {reference}"))
        else:
            self.stdout.write(self.style.WARNING(f"No journal entry found for {reference}"))
