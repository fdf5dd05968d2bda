"""ORM models for the ledger kernel."""

from ledger_kernel.domain.values import (
    AccountNature,
    AccountType,
    JournalEntryStatus,
    RecurrenceFrequency,
)
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.models.recurring import RecurringEntry, RecurringEntryLine
from ledger_kernel.models.settings import INTEGRATION_LINK_FIELDS, AccountingSettings

__all__ = [
    "Account",
    "AccountNature",
    "AccountType",
    "AccountingSettings",
    "INTEGRATION_LINK_FIELDS",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryStatus",
    "RecurrenceFrequency",
    "RecurringEntry",
    "RecurringEntryLine",
]
