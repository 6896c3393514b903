# ledger/signals.py

"""
Ledger audit signals.

Sent only after the posting / reversal transaction commits, once per call:
- journal_posted:   entry, event_type, reference
- journal_reversed: entry_id, reference, event_type

The audit-log writer lives outside the ledger and connects a receiver.
"""

from django.dispatch import Signal

journal_posted = Signal()
journal_reversed = Signal()
