# ledger/tests/test_posting_rules.py

from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from ledger.services import account_registry as roles
from ledger.services.exceptions import (
    InsufficientLineItems,
    InvalidLineItem,
    UnbalancedEntry,
)
from ledger.services.money import to_money, total
from ledger.services.posting_rules import (
    PlannedLine,
    PostingPlan,
    bill_posting,
    build_reference,
    invoice_posting,
    manual_posting,
    pos_sale_posting,
    validate_plan,
)


class MoneyTests(SimpleTestCase):
    def test_rounds_half_up_to_two_places(self):
        self.assertEqual(to_money("10.005"), Decimal("10.01"))
        self.assertEqual(to_money(7), Decimal("7.00"))

    def test_empty_values_are_zero(self):
        self.assertEqual(to_money(None), Decimal("0.00"))
        self.assertEqual(to_money(""), Decimal("0.00"))

    def test_garbage_and_non_finite_rejected(self):
        with self.assertRaises(InvalidLineItem):
            to_money("abc")
        with self.assertRaises(InvalidLineItem):
            to_money("NaN")

    def test_total(self):
        self.assertEqual(total(["0.10", "0.20", None]), Decimal("0.30"))


class InvoiceRuleTests(SimpleTestCase):
    def _data(self, **overrides):
        data = {
            "invoice_number": "1042",
            "invoice_date": date(2024, 3, 15),
            "total_amount": Decimal("1100.00"),
            "subtotal": Decimal("1000.00"),
            "tax_amount": Decimal("100.00"),
        }
        data.update(overrides)
        return data

    def test_invoice_with_tax_has_three_lines(self):
        plan = validate_plan(invoice_posting(self._data()))

        self.assertEqual(plan.reference, "INV-1042")
        self.assertEqual(plan.source_id, "1042")
        self.assertEqual(plan.description, "Automatic journal entry for invoice 1042")
        self.assertEqual(
            [(l.role, l.debit, l.credit) for l in plan.lines],
            [
                (roles.ACCOUNTS_RECEIVABLE, Decimal("1100.00"), Decimal("0.00")),
                (roles.SALES_REVENUE, Decimal("0.00"), Decimal("1000.00")),
                (roles.SALES_TAX_PAYABLE, Decimal("0.00"), Decimal("100.00")),
            ],
        )

    def test_zero_tax_omits_tax_line(self):
        plan = validate_plan(
            invoice_posting(self._data(total_amount=Decimal("1000.00"), tax_amount=Decimal("0")))
        )
        self.assertEqual(len(plan.lines), 2)
        self.assertNotIn(roles.SALES_TAX_PAYABLE, [l.role for l in plan.lines])

    def test_mismatched_invoice_is_unbalanced(self):
        plan = invoice_posting(self._data(tax_amount=Decimal("0")))
        with self.assertRaises(UnbalancedEntry) as ctx:
            validate_plan(plan)
        self.assertEqual(ctx.exception.debit, Decimal("1100.00"))
        self.assertEqual(ctx.exception.credit, Decimal("1000.00"))


class BillRuleTests(SimpleTestCase):
    def test_payable_first_then_expense_lines(self):
        plan = validate_plan(
            bill_posting(
                {
                    "bill_number": "77",
                    "bill_date": date(2024, 3, 16),
                    "total_amount": Decimal("500.00"),
                    "line_items": [
                        {"account_code": "5000", "line_total": Decimal("300.00")},
                        {"account_code": "6000", "line_total": Decimal("200.00")},
                    ],
                }
            )
        )

        self.assertEqual(plan.reference, "BILL-77")
        self.assertEqual(plan.lines[0].role, roles.ACCOUNTS_PAYABLE)
        self.assertEqual(plan.lines[0].credit, Decimal("500.00"))
        self.assertEqual([l.account_code for l in plan.lines[1:]], ["5000", "6000"])

    def test_lines_without_account_are_skipped(self):
        plan = bill_posting(
            {
                "bill_number": "78",
                "bill_date": date(2024, 3, 16),
                "total_amount": Decimal("500.00"),
                "line_items": [
                    {"account_code": "5000", "line_total": Decimal("300.00")},
                    {"account_code": "", "line_total": Decimal("200.00")},
                ],
            }
        )
        self.assertEqual(len(plan.lines), 2)
        with self.assertRaises(UnbalancedEntry):
            validate_plan(plan)

    def test_bill_with_no_assigned_lines_is_unbalanced(self):
        plan = bill_posting(
            {
                "bill_number": "79",
                "bill_date": date(2024, 3, 16),
                "total_amount": Decimal("200.00"),
                "line_items": [{"account_code": "", "line_total": Decimal("200.00")}],
            }
        )
        self.assertEqual(len(plan.lines), 1)
        with self.assertRaises(UnbalancedEntry):
            validate_plan(plan)


class PosSaleRuleTests(SimpleTestCase):
    def test_revenue_is_net_of_tax(self):
        plan = validate_plan(
            pos_sale_posting(
                {
                    "invoice_no": "0009",
                    "created_at": datetime(2024, 3, 17, 10, 30, tzinfo=dt_timezone.utc),
                    "total_amount": Decimal("115.00"),
                    "tax_amount": Decimal("15.00"),
                }
            )
        )

        self.assertEqual(plan.reference, "SALE-0009")
        self.assertEqual(plan.description, "POS Sale checkout 0009")
        self.assertEqual(plan.date, date(2024, 3, 17))
        self.assertEqual(
            [(l.role, l.debit, l.credit, l.allow_fallback) for l in plan.lines],
            [
                (roles.CASH_ON_HAND, Decimal("115.00"), Decimal("0.00"), True),
                (roles.SALES_REVENUE, Decimal("0.00"), Decimal("100.00"), True),
                (roles.SALES_TAX_PAYABLE, Decimal("0.00"), Decimal("15.00"), False),
            ],
        )


class ManualRuleTests(SimpleTestCase):
    def test_single_item_rejected(self):
        with self.assertRaises(InsufficientLineItems):
            manual_posting(
                {
                    "date": date(2024, 3, 18),
                    "items": [{"account_code": "1000", "debit": Decimal("10"), "credit": Decimal("0")}],
                }
            )

    def test_defaults(self):
        plan = manual_posting(
            {
                "date": date(2024, 3, 18),
                "reference": None,
                "description": "",
                "items": [
                    {"account_code": "1000", "debit": Decimal("10"), "credit": Decimal("0")},
                    {"account_code": "3000", "debit": Decimal("0"), "credit": Decimal("10")},
                ],
            }
        )
        self.assertIsNone(plan.reference)
        self.assertEqual(plan.description, "Manual journal entry")
        self.assertEqual(plan.source_id, "")
        self.assertEqual(plan.status, "posted")


class ValidatePlanTests(SimpleTestCase):
    def _plan(self, *lines):
        return PostingPlan(
            event_type="manual",
            date=date(2024, 1, 1),
            reference=None,
            description="",
            lines=lines,
        )

    def test_line_with_both_sides_rejected(self):
        plan = self._plan(
            PlannedLine(debit=Decimal("5.00"), credit=Decimal("5.00"), account_code="1000"),
            PlannedLine(debit=Decimal("0.00"), credit=Decimal("0.00"), account_code="3000"),
        )
        with self.assertRaises(InvalidLineItem):
            validate_plan(plan)

    def test_zero_line_rejected(self):
        plan = self._plan(
            PlannedLine(debit=Decimal("5.00"), account_code="1000"),
            PlannedLine(credit=Decimal("5.00"), account_code="3000"),
            PlannedLine(account_code="4000"),
        )
        with self.assertRaises(InvalidLineItem):
            validate_plan(plan)

    def test_build_reference(self):
        self.assertEqual(build_reference("invoice", " 1042 "), "INV-1042")
        self.assertEqual(build_reference("bill", 77), "BILL-77")
