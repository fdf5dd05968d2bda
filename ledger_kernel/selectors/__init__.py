"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.balance_selector import BalanceSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.report_selector import (
    GeneralLedgerAccount,
    IncomeStatement,
    LedgerMovement,
    ReportSelector,
    ReversalPair,
    TrialBalance,
    TrialBalanceRow,
)

__all__ = [
    "AccountSelector",
    "BalanceSelector",
    "GeneralLedgerAccount",
    "IncomeStatement",
    "JournalSelector",
    "LedgerMovement",
    "ReportSelector",
    "ReversalPair",
    "TrialBalance",
    "TrialBalanceRow",
]
