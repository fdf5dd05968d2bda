"""
Pure domain layer.

Value enumerations, DTOs, validation rules, the entry state machine and
calendar/chart helpers.  No database access and no direct clock reads.
"""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountInput,
    AccountUpdate,
    EntryInput,
    LineInput,
    RecurringTemplateInput,
    SettingsInput,
)
from ledger_kernel.domain.values import (
    AccountNature,
    AccountType,
    JournalEntryStatus,
    RecurrenceFrequency,
)

__all__ = [
    "AccountInput",
    "AccountNature",
    "AccountType",
    "AccountUpdate",
    "Clock",
    "DeterministicClock",
    "EntryInput",
    "JournalEntryStatus",
    "LineInput",
    "RecurrenceFrequency",
    "RecurringTemplateInput",
    "SettingsInput",
    "SystemClock",
]
