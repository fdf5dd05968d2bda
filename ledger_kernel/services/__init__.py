"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.equation_service import EquationService
from ledger_kernel.services.fiscal_close_service import FiscalYearCloseService
from ledger_kernel.services.journal_service import JournalEntryService
from ledger_kernel.services.recurring_service import RecurringEntryService
from ledger_kernel.services.sequence_service import EntryNumberService
from ledger_kernel.services.settings_service import SettingsInfo, SettingsService

__all__ = [
    "AccountService",
    "EntryNumberService",
    "EquationService",
    "FiscalYearCloseService",
    "JournalEntryService",
    "RecurringEntryService",
    "SettingsInfo",
    "SettingsService",
]
