"""
Ledger value enumerations (``ledger_kernel.domain.values``).

Responsibility
--------------
The closed vocabularies of the ledger: account type and nature, entry
status, and recurrence frequency, together with the fixed type-to-nature
table.  Models store these as strings; domain code compares against them.

Architecture position
---------------------
**Kernel domain layer** -- pure values.  ZERO I/O.  Imported by models/,
domain/, services/ and selectors/.

Invariants enforced
-------------------
* ASSET and EXPENSE accounts are DEBIT-natured; LIABILITY, EQUITY and
  REVENUE accounts are CREDIT-natured (``NATURE_BY_TYPE``).
"""

from __future__ import annotations

from enum import Enum


class AccountType(str, Enum):
    """Financial statement class of an account."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AccountNature(str, Enum):
    """Side on which an account's balance normally sits."""

    DEBIT = "debit"
    CREDIT = "credit"


class JournalEntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Transitions are one-way: DRAFT -> POSTED -> REVERSED
    (see ``ledger_kernel.domain.workflow``).
    """

    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


class RecurrenceFrequency(str, Enum):
    """How often a recurring template produces an entry."""

    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


NATURE_BY_TYPE: dict[AccountType, AccountNature] = {
    AccountType.ASSET: AccountNature.DEBIT,
    AccountType.EXPENSE: AccountNature.DEBIT,
    AccountType.LIABILITY: AccountNature.CREDIT,
    AccountType.EQUITY: AccountNature.CREDIT,
    AccountType.REVENUE: AccountNature.CREDIT,
}


def expected_nature(account_type: AccountType | str) -> AccountNature:
    """Nature an account of the given type must carry."""
    return NATURE_BY_TYPE[AccountType(account_type)]


# Statuses whose lines count toward balances and reports.  A REVERSED entry
# drops out; its POSTED reversal carries the opposite effect.
LEDGER_STATUSES: tuple[JournalEntryStatus, ...] = (JournalEntryStatus.POSTED,)
