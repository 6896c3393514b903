# ledger/tests/test_posting_service.py

from __future__ import annotations

from decimal import Decimal
from io import StringIO
from unittest import mock

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings

from ledger.models.account import Account
from ledger.models.item import JournalItem
from ledger.models.journal import JournalEntry
from ledger.services import journal_store, posting_service
from ledger.services.account_registry import AccountRegistry, get_default_registry
from ledger.services.exceptions import (
    DuplicatePosting,
    InsufficientLineItems,
    InvalidSnapshot,
    JournalEntryCreationError,
    RequiredAccountNotFound,
    StorageFailure,
    UnbalancedEntry,
    UnknownEventType,
)
from ledger.services.posting_service import (
    LedgerPostingService,
    entry_as_dict,
    get_posting_service,
)
from ledger.signals import journal_posted, journal_reversed
from ledger.tests.factories import (
    bill_snapshot,
    invoice_snapshot,
    manual_snapshot,
    pos_sale_snapshot,
)


def _lines(entry):
    return [(i.account_code, i.debit, i.credit) for i in entry.items.all()]


class PostingServiceTestCase(TestCase):
    def setUp(self):
        call_command("seed_default_chart", stdout=StringIO())
        self.service = LedgerPostingService(get_default_registry())

    def _deactivate(self, code):
        account = Account.objects.get(code=code)
        account.is_active = False
        account.save(update_fields=["is_active", "updated_at"])

    def assertNothingWritten(self):
        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(JournalItem.objects.count(), 0)


class InvoicePostingTests(PostingServiceTestCase):
    def test_invoice_with_tax(self):
        entry = self.service.post("invoice", invoice_snapshot())

        self.assertEqual(entry.reference, "INV-1042")
        self.assertEqual(entry.source_type, "invoice")
        self.assertEqual(entry.source_id, "1042")
        self.assertEqual(
            _lines(entry),
            [
                ("1100", Decimal("1100.00"), Decimal("0.00")),
                ("4000", Decimal("0.00"), Decimal("1000.00")),
                ("2100", Decimal("0.00"), Decimal("100.00")),
            ],
        )

    def test_invoice_with_tax_but_no_tax_account_is_refused(self):
        self._deactivate("2100")

        with self.assertRaises(RequiredAccountNotFound) as ctx:
            self.service.post("invoice", invoice_snapshot())

        self.assertEqual(ctx.exception.role, "SALES_TAX_PAYABLE")
        self.assertNothingWritten()

    def test_invoice_without_tax_needs_no_tax_account(self):
        self._deactivate("2100")

        entry = self.service.post(
            "invoice", invoice_snapshot(total_amount="1000.00", tax_amount="0")
        )
        self.assertEqual(entry.items.count(), 2)

    def test_invoice_that_does_not_add_up_is_refused(self):
        with self.assertRaises(UnbalancedEntry):
            self.service.post("invoice", invoice_snapshot(tax_amount="0"))
        self.assertNothingWritten()

    def test_output_representation(self):
        data = entry_as_dict(self.service.post("invoice", invoice_snapshot()))

        self.assertEqual(data["date"], "2024-03-15")
        self.assertEqual(data["status"], "posted")
        self.assertEqual(data["total_debit"], "1100.00")
        self.assertEqual(data["total_credit"], "1100.00")
        self.assertEqual(data["items"][0]["account_code"], "1100")
        self.assertEqual(data["items"][0]["account_name"], "Accounts Receivable")
        self.assertEqual(data["items"][0]["debit"], "1100.00")
        self.assertEqual(data["items"][0]["credit"], "0.00")


class BillPostingTests(PostingServiceTestCase):
    def test_bill_debits_expense_credits_payable(self):
        entry = self.service.post("bill", bill_snapshot())

        self.assertEqual(entry.reference, "BILL-77")
        self.assertEqual(
            sorted(_lines(entry)),
            [
                ("2000", Decimal("0.00"), Decimal("500.00")),
                ("5000", Decimal("500.00"), Decimal("0.00")),
            ],
        )

    def test_unknown_line_account_aborts(self):
        snapshot = bill_snapshot(line_items=[{"account_code": "5999", "line_total": "500.00"}])

        with self.assertRaises(RequiredAccountNotFound) as ctx:
            self.service.post("bill", snapshot)

        self.assertEqual(ctx.exception.code, "5999")
        self.assertNothingWritten()

    def test_unassigned_lines_leave_bill_unbalanced(self):
        snapshot = bill_snapshot(
            line_items=[
                {"account_code": "5000", "line_total": "300.00"},
                {"account_code": None, "line_total": "200.00"},
            ]
        )
        with self.assertRaises(UnbalancedEntry):
            self.service.post("bill", snapshot)


class PosSalePostingTests(PostingServiceTestCase):
    def test_pos_sale(self):
        entry = self.service.post("pos_sale", pos_sale_snapshot())

        self.assertEqual(entry.reference, "SALE-0009")
        self.assertEqual(entry.description, "POS Sale checkout 0009")
        self.assertEqual(entry.date.isoformat(), "2024-03-17")
        self.assertEqual(
            _lines(entry),
            [
                ("1010", Decimal("115.00"), Decimal("0.00")),
                ("4000", Decimal("0.00"), Decimal("100.00")),
                ("2100", Decimal("0.00"), Decimal("15.00")),
            ],
        )

    def test_configured_fallback_used_for_cash(self):
        self._deactivate("1010")
        service = LedgerPostingService(
            AccountRegistry(settings.LEDGER_ACCOUNT_ROLES, {"CASH_ON_HAND": "1000"})
        )

        entry = service.post("pos_sale", pos_sale_snapshot(tax_amount="0"))
        self.assertEqual(_lines(entry)[0], ("1000", Decimal("115.00"), Decimal("0.00")))

    def test_no_fallback_configured_fails(self):
        self._deactivate("1010")

        with self.assertRaises(RequiredAccountNotFound):
            self.service.post("pos_sale", pos_sale_snapshot())
        self.assertNothingWritten()

    def test_tax_above_total_is_invalid(self):
        with self.assertRaises(InvalidSnapshot) as ctx:
            self.service.post("pos_sale", pos_sale_snapshot(tax_amount="200.00"))
        self.assertIn("tax_amount", ctx.exception.errors)


class ManualJournalTests(PostingServiceTestCase):
    def test_manual_journal(self):
        entry = self.service.post(
            "manual",
            manual_snapshot(
                [
                    {"account_code": "1000", "debit": "250.00", "credit": "0"},
                    {"account_code": "3000", "debit": "0", "credit": "250.00"},
                ]
            ),
        )

        self.assertEqual(entry.reference, "JV-1")
        self.assertEqual(entry.source_id, "")
        self.assertEqual(entry.totals(), (Decimal("250.00"), Decimal("250.00")))

    def test_single_item_rejected_before_write(self):
        with self.assertRaises(InsufficientLineItems):
            self.service.post(
                "manual",
                manual_snapshot([{"account_code": "1000", "debit": "100.00", "credit": "0"}]),
            )
        self.assertNothingWritten()

    def test_unbalanced_rejected_store_unchanged(self):
        with self.assertRaises(UnbalancedEntry):
            self.service.post(
                "manual",
                manual_snapshot(
                    [
                        {"account_code": "1000", "debit": "100", "credit": "0"},
                        {"account_code": "3000", "debit": "0", "credit": "90"},
                    ]
                ),
            )
        self.assertNothingWritten()

    def test_draft_status_and_blank_reference(self):
        items = [
            {"account_code": "6000", "debit": "40", "credit": "0"},
            {"account_code": "1000", "debit": "0", "credit": "40"},
        ]
        first = self.service.post("manual", manual_snapshot(items, reference="", status="draft"))
        second = self.service.post("manual", manual_snapshot(items, reference=None))

        self.assertIsNone(first.reference)
        self.assertFalse(first.is_posted)
        self.assertIsNone(second.reference)


class PostingErrorTests(PostingServiceTestCase):
    def test_zero_value_documents_are_invalid(self):
        cases = [
            ("invoice", invoice_snapshot(total_amount="0", subtotal="0", tax_amount="0")),
            ("bill", bill_snapshot(total_amount="0.00", line_items=[])),
            ("pos_sale", pos_sale_snapshot(total_amount="0", tax_amount="0")),
        ]
        for event_type, snapshot in cases:
            with self.subTest(event_type=event_type):
                with self.assertRaises(InvalidSnapshot) as ctx:
                    self.service.post(event_type, snapshot)
                self.assertIn("total_amount", ctx.exception.errors)

        self.assertNothingWritten()

    def test_invoice_without_revenue_is_unbalanced(self):
        with self.assertRaises(UnbalancedEntry):
            self.service.post(
                "invoice", invoice_snapshot(total_amount="100.00", subtotal="0", tax_amount="0")
            )
        self.assertNothingWritten()

    def test_unknown_event_type(self):
        with self.assertRaises(UnknownEventType):
            self.service.post("refund", {})

    def test_snapshot_must_be_mapping(self):
        with self.assertRaises(InvalidSnapshot):
            self.service.post("invoice", ["1042"])

    def test_invalid_snapshot_lists_errors(self):
        snapshot = invoice_snapshot()
        del snapshot["total_amount"]

        with self.assertRaises(InvalidSnapshot) as ctx:
            self.service.post("invoice", snapshot)
        self.assertIn("total_amount", ctx.exception.errors)

    def test_negative_amount_is_invalid(self):
        with self.assertRaises(InvalidSnapshot):
            self.service.post("invoice", invoice_snapshot(subtotal="-1000.00"))

    def test_same_document_posted_twice(self):
        self.service.post("invoice", invoice_snapshot())

        with self.assertRaises(DuplicatePosting):
            self.service.post("invoice", invoice_snapshot())
        self.assertEqual(JournalEntry.objects.count(), 1)

    def test_storage_failure_rolls_back_partial_write(self):
        real_add_item = journal_store.add_item
        calls = []

        def flaky_add_item(*args, **kwargs):
            calls.append(1)
            if len(calls) == 2:
                raise DatabaseError("disk full")
            return real_add_item(*args, **kwargs)

        with mock.patch.object(journal_store, "add_item", side_effect=flaky_add_item):
            with self.assertRaises(StorageFailure) as ctx:
                self.service.post("invoice", invoice_snapshot())

        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
        self.assertNothingWritten()

    def test_model_validation_error_is_wrapped(self):
        with mock.patch.object(
            journal_store, "write_entry", side_effect=ValidationError("bad row")
        ):
            with self.assertRaises(JournalEntryCreationError):
                self.service.post("invoice", invoice_snapshot())


class ReversalTests(PostingServiceTestCase):
    def test_reverse_removes_entry_and_items(self):
        self.service.post("invoice", invoice_snapshot())

        self.assertTrue(self.service.reverse("INV-1042"))
        self.assertNothingWritten()

    def test_reverse_is_idempotent(self):
        self.assertFalse(self.service.reverse("INV-404"))

        self.service.post("invoice", invoice_snapshot())
        self.assertTrue(self.service.reverse("INV-1042"))
        self.assertFalse(self.service.reverse("INV-1042"))

    def test_post_reverse_post_round_trip(self):
        self.service.post("invoice", invoice_snapshot())
        self.service.reverse("INV-1042")
        entry = self.service.post("invoice", invoice_snapshot())

        self.assertEqual(JournalEntry.objects.get().pk, entry.pk)
        self.assertEqual(entry.items.count(), 3)

    def test_exact_reference_does_not_touch_similar_documents(self):
        self.service.post("invoice", invoice_snapshot(invoice_number="10421"))

        self.assertFalse(self.service.reverse("INV-1042"))
        self.assertEqual(JournalEntry.objects.count(), 1)

    def test_prefix_match_is_opt_in(self):
        self.service.post("invoice", invoice_snapshot())

        self.assertFalse(self.service.reverse("INV-10"))
        self.assertTrue(self.service.reverse("INV-10", match_prefix=True))

    @override_settings(LEDGER_REVERSAL_PREFIX_MATCH=True)
    def test_prefix_match_from_settings(self):
        get_posting_service().post("invoice", invoice_snapshot())
        self.assertTrue(posting_service.reverse("INV-10"))

    def test_reverse_document(self):
        self.service.post("bill", bill_snapshot())

        self.assertFalse(self.service.reverse_document("invoice", "77"))
        self.assertTrue(self.service.reverse_document("bill", "77"))
        self.assertNothingWritten()

    def test_repost_replaces_entry(self):
        self.service.post("invoice", invoice_snapshot())

        entry = self.service.repost(
            "invoice",
            invoice_snapshot(total_amount="2200.00", subtotal="2000.00", tax_amount="200.00"),
        )

        self.assertEqual(JournalEntry.objects.count(), 1)
        self.assertEqual(entry.totals(), (Decimal("2200.00"), Decimal("2200.00")))

    def test_repost_failure_keeps_previous_entry(self):
        previous = self.service.post("invoice", invoice_snapshot())
        self._deactivate("2100")

        with self.assertRaises(RequiredAccountNotFound):
            self.service.repost("invoice", invoice_snapshot())

        self.assertTrue(JournalEntry.objects.filter(pk=previous.pk).exists())

    def test_repost_without_previous_entry_posts(self):
        entry = self.service.repost("pos_sale", pos_sale_snapshot())
        self.assertEqual(entry.reference, "SALE-0009")

    def test_repost_leaves_unrelated_entry_with_same_reference(self):
        manual = self.service.post(
            "manual",
            manual_snapshot(
                [
                    {"account_code": "1000", "debit": "50.00", "credit": "0"},
                    {"account_code": "3000", "debit": "0", "credit": "50.00"},
                ],
                reference="INV-1042",
            ),
        )

        with self.assertRaises(DuplicatePosting):
            self.service.repost("invoice", invoice_snapshot())

        self.assertEqual(JournalEntry.objects.get().pk, manual.pk)
        self.assertEqual(manual.items.count(), 2)

    def test_repost_manual_replaces_manual_with_same_reference(self):
        def items(amount):
            return [
                {"account_code": "1000", "debit": amount, "credit": "0"},
                {"account_code": "3000", "debit": "0", "credit": amount},
            ]

        self.service.post("manual", manual_snapshot(items("250.00")))
        entry = self.service.repost("manual", manual_snapshot(items("300.00")))

        self.assertEqual(JournalEntry.objects.count(), 1)
        self.assertEqual(entry.reference, "JV-1")
        self.assertEqual(entry.totals(), (Decimal("300.00"), Decimal("300.00")))

    def test_reverse_storage_failure_keeps_entry(self):
        entry = self.service.post("invoice", invoice_snapshot())

        with mock.patch.object(
            journal_store, "delete_entry", side_effect=DatabaseError("connection lost")
        ):
            with self.assertRaises(StorageFailure) as ctx:
                self.service.reverse("INV-1042")

        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
        self.assertTrue(JournalEntry.objects.filter(pk=entry.pk).exists())
        self.assertEqual(JournalItem.objects.filter(journal_entry_id=entry.pk).count(), 3)

    def test_reverse_document_storage_failure_keeps_entry(self):
        entry = self.service.post("bill", bill_snapshot())

        with mock.patch.object(
            journal_store, "delete_entry", side_effect=DatabaseError("connection lost")
        ):
            with self.assertRaises(StorageFailure) as ctx:
                self.service.reverse_document("bill", "77")

        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
        self.assertTrue(JournalEntry.objects.filter(pk=entry.pk).exists())


class SignalTests(PostingServiceTestCase):
    def setUp(self):
        super().setUp()
        self.posted = []
        self.reversed = []

        def on_posted(sender, **kwargs):
            self.posted.append(kwargs)

        def on_reversed(sender, **kwargs):
            self.reversed.append(kwargs)

        journal_posted.connect(on_posted, weak=False, dispatch_uid="test_on_posted")
        journal_reversed.connect(on_reversed, weak=False, dispatch_uid="test_on_reversed")
        self.addCleanup(journal_posted.disconnect, dispatch_uid="test_on_posted")
        self.addCleanup(journal_reversed.disconnect, dispatch_uid="test_on_reversed")

    def test_posted_and_reversed_fire_on_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            entry = self.service.post("invoice", invoice_snapshot())

        self.assertEqual(len(self.posted), 1)
        self.assertEqual(self.posted[0]["entry"].pk, entry.pk)
        self.assertEqual(self.posted[0]["event_type"], "invoice")
        self.assertEqual(self.posted[0]["reference"], "INV-1042")

        with self.captureOnCommitCallbacks(execute=True):
            self.service.reverse("INV-1042")

        self.assertEqual(
            self.reversed,
            [{"signal": journal_reversed, "entry_id": entry.pk, "reference": "INV-1042", "event_type": "invoice"}],
        )

    def test_failed_post_emits_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(UnbalancedEntry):
                self.service.post("invoice", invoice_snapshot(tax_amount="0"))

        self.assertEqual(callbacks, [])
        self.assertEqual(self.posted, [])


class ModuleLevelApiTests(PostingServiceTestCase):
    def test_post_and_reverse_use_default_service(self):
        entry = posting_service.post("invoice", invoice_snapshot())

        self.assertEqual(entry.reference, "INV-1042")
        self.assertTrue(posting_service.reverse("INV-1042"))
        self.assertIs(get_posting_service(), get_posting_service())
