# ledger/services/posting_rules.py

"""
POSTING RULES (AUTHORITATIVE)

Defines HOW each business event maps to accounting intent.

One rule per event type:
- invoice   -> DR Accounts Receivable / CR Sales Revenue / CR Sales Tax
- bill      -> CR Accounts Payable / DR caller-supplied expense accounts
- pos_sale  -> DR Cash on Hand / CR Sales Revenue (net) / CR Sales Tax
- manual    -> caller supplies every line

RESPONSIBILITIES:
- Choose roles (or explicit codes) and amounts
- Build reference + description for the entry
- Verify the plan balances before anything touches the database

THIS MODULE DOES NOT:
- Resolve accounts (the registry does)
- Open transactions or write rows (the posting service + store do)

Rules take the *validated* snapshot (see ledger.serializers.snapshots)
and are pure functions of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from django.utils import timezone

from ledger.models.journal import JournalEntry
from ledger.services import account_registry as roles
from ledger.services.exceptions import (
    InsufficientLineItems,
    InvalidLineItem,
    UnbalancedEntry,
)
from ledger.services.money import ZERO, to_money

EVENT_INVOICE = "invoice"
EVENT_BILL = "bill"
EVENT_POS_SALE = "pos_sale"
EVENT_MANUAL = "manual"

EVENT_TYPES = (EVENT_INVOICE, EVENT_BILL, EVENT_POS_SALE, EVENT_MANUAL)

REFERENCE_PREFIXES = {
    EVENT_INVOICE: "INV",
    EVENT_BILL: "BILL",
    EVENT_POS_SALE: "SALE",
}


def build_reference(event_type: str, document_id) -> str:
    return f"{REFERENCE_PREFIXES[event_type]}-{str(document_id).strip()}"


@dataclass(frozen=True)
class PlannedLine:
    """
    One intended line. Exactly one of role / account_code is set.

    allow_fallback: the registry may substitute the configured fallback
    code for this role (POS sales only).
    """

    debit: Decimal = ZERO
    credit: Decimal = ZERO
    role: str | None = None
    account_code: str | None = None
    allow_fallback: bool = False

    @property
    def label(self) -> str:
        return self.role or f"code {self.account_code}"


@dataclass(frozen=True)
class PostingPlan:
    event_type: str
    date: date
    reference: str | None
    description: str
    source_id: str = ""
    status: str = JournalEntry.STATUS_POSTED
    lines: tuple[PlannedLine, ...] = field(default_factory=tuple)

    def totals(self) -> tuple[Decimal, Decimal]:
        debit = sum((line.debit for line in self.lines), ZERO)
        credit = sum((line.credit for line in self.lines), ZERO)
        return to_money(debit), to_money(credit)


def _debit(amount, **kwargs) -> PlannedLine:
    return PlannedLine(debit=to_money(amount), credit=ZERO, **kwargs)


def _credit(amount, **kwargs) -> PlannedLine:
    return PlannedLine(debit=ZERO, credit=to_money(amount), **kwargs)


def _posting_date(value) -> date:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


# ============================================================
# PLAN VALIDATION
# ============================================================


def validate_plan(plan: PostingPlan) -> PostingPlan:
    """
    - each line: non-negative, exactly one side non-zero
    - total debit == total credit (exact, 2dp)
    - at least two lines

    Balance is checked before the line count, so a document whose lines
    were dropped (zero amounts, bill lines without an account) reports
    UnbalancedEntry rather than InsufficientLineItems.
    """
    for index, line in enumerate(plan.lines, start=1):
        if line.debit < 0 or line.credit < 0:
            raise InvalidLineItem(f"Line {index} ({line.label}): negative amount")
        if line.debit > 0 and line.credit > 0:
            raise InvalidLineItem(f"Line {index} ({line.label}): both debit and credit set")
        if line.debit == 0 and line.credit == 0:
            raise InvalidLineItem(f"Line {index} ({line.label}): zero amount")

    debit, credit = plan.totals()
    if debit != credit:
        raise UnbalancedEntry(
            f"{plan.event_type} posting not balanced: debits={debit} credits={credit}",
            debit=debit,
            credit=credit,
        )

    if len(plan.lines) < 2:
        raise InsufficientLineItems(
            f"{plan.event_type} posting produced {len(plan.lines)} line(s); at least 2 required"
        )

    return plan


# ============================================================
# SALES / INVOICE
# ============================================================


def invoice_posting(data: dict) -> PostingPlan:
    """
    Accounting Effect:
    - Debit  Accounts Receivable   (total_amount)
    - Credit Sales Revenue         (subtotal)
    - Credit Sales Tax Payable     (tax_amount, only when > 0)
    """
    number = str(data["invoice_number"]).strip()
    total = to_money(data["total_amount"])
    subtotal = to_money(data["subtotal"])
    tax = to_money(data.get("tax_amount"))

    lines: list[PlannedLine] = []

    if total > ZERO:
        lines.append(_debit(total, role=roles.ACCOUNTS_RECEIVABLE))
    if subtotal > ZERO:
        lines.append(_credit(subtotal, role=roles.SALES_REVENUE))
    if tax > ZERO:
        lines.append(_credit(tax, role=roles.SALES_TAX_PAYABLE))

    return PostingPlan(
        event_type=EVENT_INVOICE,
        date=_posting_date(data["invoice_date"]),
        reference=build_reference(EVENT_INVOICE, number),
        description=f"Automatic journal entry for invoice {number}",
        source_id=number,
        lines=tuple(lines),
    )


# ============================================================
# VENDOR BILL
# ============================================================


def bill_posting(data: dict) -> PostingPlan:
    """
    Accounting Effect:
    - Credit Accounts Payable      (total_amount)
    - Debit  <line account_code>   (line_total) per line that names an account

    Lines without an account code carry no ledger effect; if what is left
    does not add up to the bill total the plan fails validation.
    """
    number = str(data["bill_number"]).strip()
    total = to_money(data["total_amount"])

    lines: list[PlannedLine] = []

    if total > ZERO:
        lines.append(_credit(total, role=roles.ACCOUNTS_PAYABLE))

    for item in data.get("line_items") or []:
        code = (item.get("account_code") or "").strip()
        amount = to_money(item.get("line_total"))
        if not code or amount == ZERO:
            continue
        lines.append(_debit(amount, account_code=code))

    return PostingPlan(
        event_type=EVENT_BILL,
        date=_posting_date(data["bill_date"]),
        reference=build_reference(EVENT_BILL, number),
        description=f"Automatic journal entry for bill {number}",
        source_id=number,
        lines=tuple(lines),
    )


# ============================================================
# POS SALE
# ============================================================


def pos_sale_posting(data: dict) -> PostingPlan:
    """
    Accounting Effect:
    - Debit  Cash on Hand          (total_amount)
    - Credit Sales Revenue         (total_amount - tax_amount)
    - Credit Sales Tax Payable     (tax_amount, only when > 0)

    Cash and revenue may use the configured fallback accounts.
    """
    invoice_no = str(data["invoice_no"]).strip()
    total = to_money(data["total_amount"])
    tax = to_money(data.get("tax_amount"))
    revenue = to_money(total - tax)

    lines: list[PlannedLine] = []

    if total > ZERO:
        lines.append(_debit(total, role=roles.CASH_ON_HAND, allow_fallback=True))
    if revenue > ZERO:
        lines.append(_credit(revenue, role=roles.SALES_REVENUE, allow_fallback=True))
    if tax > ZERO:
        lines.append(_credit(tax, role=roles.SALES_TAX_PAYABLE))

    return PostingPlan(
        event_type=EVENT_POS_SALE,
        date=_posting_date(data["created_at"]),
        reference=build_reference(EVENT_POS_SALE, invoice_no),
        description=f"POS Sale checkout {invoice_no}",
        source_id=invoice_no,
        lines=tuple(lines),
    )


# ============================================================
# MANUAL / GENERIC JOURNAL
# ============================================================


def manual_posting(data: dict) -> PostingPlan:
    """
    Caller supplies every line ({account_code, debit, credit}).
    Only the line-count, one-side and balance rules apply.
    """
    items = data.get("items") or []
    if len(items) < 2:
        raise InsufficientLineItems(
            f"A manual journal needs at least 2 line items, got {len(items)}"
        )

    lines = tuple(
        PlannedLine(
            debit=to_money(item.get("debit")),
            credit=to_money(item.get("credit")),
            account_code=str(item["account_code"]).strip(),
        )
        for item in items
    )

    return PostingPlan(
        event_type=EVENT_MANUAL,
        date=_posting_date(data["date"]),
        reference=data.get("reference") or None,
        description=data.get("description") or "Manual journal entry",
        status=data.get("status") or JournalEntry.STATUS_POSTED,
        lines=lines,
    )
