"""
Module: ledger_kernel.selectors.report_selector
Responsibility: Accounting books over a date range: trial balance, journal
    book, general ledger, income statement and the reversal log.
Architecture position: Kernel > Selectors.  Builds on BalanceSelector for
    aggregated figures.  MUST NOT import from services/.

Invariants enforced:
    - Only POSTED entries appear; drafts and REVERSED originals never do.
    - Date ranges are inclusive at both ends.
    - Report balances are nature-aware: debit-natured accounts show
      debit - credit, credit-natured accounts show credit - debit.

Failure modes:
    - None beyond database errors.  An empty range yields empty reports
      with zero totals.

Audit relevance:
    Trial balance totals must match (total_debit == total_credit) whenever
    every ledger entry is balanced.  A mismatch is a data-integrity signal.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import ZERO, amounts_equal
from ledger_kernel.domain.dtos import JournalEntryInfo
from ledger_kernel.domain.values import (
    LEDGER_STATUSES,
    AccountNature,
    AccountType,
    JournalEntryStatus,
)
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.selectors.balance_selector import BalanceSelector
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class TrialBalanceRow:
    """One account of the trial balance."""

    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal


@dataclass(frozen=True)
class TrialBalance:
    date_from: date
    date_to: date
    rows: tuple[TrialBalanceRow, ...]
    total_debit: Decimal
    total_credit: Decimal

    @property
    def is_balanced(self) -> bool:
        return amounts_equal(self.total_debit, self.total_credit)


@dataclass(frozen=True)
class LedgerMovement:
    """A single line in an account's general ledger, with running balance."""

    entry_id: UUID
    entry_number: int
    entry_date: date
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class GeneralLedgerAccount:
    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature
    movements: tuple[LedgerMovement, ...]
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class IncomeStatement:
    date_from: date
    date_to: date
    revenue: dict[UUID, Decimal] = field(default_factory=dict)
    expense: dict[UUID, Decimal] = field(default_factory=dict)
    total_revenue: Decimal = ZERO
    total_expense: Decimal = ZERO

    @property
    def net_result(self) -> Decimal:
        return self.total_revenue - self.total_expense


@dataclass(frozen=True)
class ReversalPair:
    original: JournalEntryInfo
    reversal: JournalEntryInfo | None


def _natural(nature: AccountNature, debit: Decimal, credit: Decimal) -> Decimal:
    if AccountNature(nature) == AccountNature.DEBIT:
        return debit - credit
    return credit - debit


class ReportSelector(BaseSelector):
    """Read-only accounting books."""

    def _active_accounts(self, company_id: UUID) -> list[Account]:
        return list(
            self.session.execute(
                select(Account)
                .where(Account.company_id == company_id, Account.is_active.is_(True))
                .order_by(Account.code)
            ).scalars()
        )

    def _ledger_entries(self, company_id: UUID, date_from: date, date_to: date) -> list[JournalEntry]:
        return list(
            self.session.execute(
                select(JournalEntry)
                .where(
                    JournalEntry.company_id == company_id,
                    JournalEntry.status.in_(LEDGER_STATUSES),
                    JournalEntry.entry_date >= date_from,
                    JournalEntry.entry_date <= date_to,
                )
                .order_by(JournalEntry.entry_date, JournalEntry.number)
            ).scalars()
        )

    def trial_balance(self, company_id: UUID, date_from: date, date_to: date) -> TrialBalance:
        """
        Debit and credit sums per active account over the range.

        Every active account gets a row, including those without movements.
        """
        balances = BalanceSelector(self.session).period_balances(company_id, date_from, date_to)

        rows = []
        for account in self._active_accounts(company_id):
            totals = balances[account.id]
            rows.append(
                TrialBalanceRow(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    account_type=AccountType(account.account_type),
                    nature=AccountNature(account.nature),
                    debit_total=totals.debit,
                    credit_total=totals.credit,
                    balance=totals.natural_balance(account.nature),
                )
            )

        return TrialBalance(
            date_from=date_from,
            date_to=date_to,
            rows=tuple(rows),
            total_debit=sum((r.debit_total for r in rows), ZERO),
            total_credit=sum((r.credit_total for r in rows), ZERO),
        )

    def journal_book(self, company_id: UUID, date_from: date, date_to: date) -> list[JournalEntryInfo]:
        """Ledger entries with their lines, ordered by date then number."""
        return [
            JournalEntryInfo.from_model(e)
            for e in self._ledger_entries(company_id, date_from, date_to)
        ]

    def general_ledger(
        self,
        company_id: UUID,
        date_from: date,
        date_to: date,
    ) -> list[GeneralLedgerAccount]:
        """
        Movements per active account with a running nature-aware balance.

        The running balance starts at zero on ``date_from``; use
        ``BalanceSelector.opening_balance`` for the carried-in figure.
        """
        movements_by_account: dict[UUID, list[tuple[JournalEntry, JournalEntryLine]]] = {}
        for entry in self._ledger_entries(company_id, date_from, date_to):
            for line in entry.lines:
                movements_by_account.setdefault(line.account_id, []).append((entry, line))

        ledger = []
        for account in self._active_accounts(company_id):
            running = ZERO
            total_debit = ZERO
            total_credit = ZERO
            movements = []
            for entry, line in movements_by_account.get(account.id, []):
                running += _natural(account.nature, line.debit, line.credit)
                total_debit += line.debit
                total_credit += line.credit
                movements.append(
                    LedgerMovement(
                        entry_id=entry.id,
                        entry_number=entry.number,
                        entry_date=entry.entry_date,
                        description=line.description or entry.description,
                        debit=line.debit,
                        credit=line.credit,
                        balance=running,
                    )
                )
            ledger.append(
                GeneralLedgerAccount(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    account_type=AccountType(account.account_type),
                    nature=AccountNature(account.nature),
                    movements=tuple(movements),
                    total_debit=total_debit,
                    total_credit=total_credit,
                    balance=_natural(account.nature, total_debit, total_credit),
                )
            )
        return ledger

    def income_statement(self, company_id: UUID, date_from: date, date_to: date) -> IncomeStatement:
        """Natural balances of revenue and expense accounts over the range."""
        natures = {
            a.id: (AccountType(a.account_type), AccountNature(a.nature))
            for a in self._active_accounts(company_id)
        }
        balances = BalanceSelector(self.session).period_balances(
            company_id,
            date_from,
            date_to,
            account_types=(AccountType.REVENUE, AccountType.EXPENSE),
        )

        revenue: dict[UUID, Decimal] = {}
        expense: dict[UUID, Decimal] = {}
        for account_id, totals in balances.items():
            account_type, nature = natures[account_id]
            amount = totals.natural_balance(nature)
            if account_type == AccountType.REVENUE:
                revenue[account_id] = amount
            else:
                expense[account_id] = amount

        return IncomeStatement(
            date_from=date_from,
            date_to=date_to,
            revenue=revenue,
            expense=expense,
            total_revenue=sum(revenue.values(), ZERO),
            total_expense=sum(expense.values(), ZERO),
        )

    def reversal_log(self, company_id: UUID, date_from: date, date_to: date) -> list[ReversalPair]:
        """REVERSED entries dated in the range, each paired with its reversal."""
        originals = self.session.execute(
            select(JournalEntry)
            .where(
                JournalEntry.company_id == company_id,
                JournalEntry.status == JournalEntryStatus.REVERSED,
                JournalEntry.entry_date >= date_from,
                JournalEntry.entry_date <= date_to,
            )
            .order_by(JournalEntry.entry_date, JournalEntry.number)
        ).scalars().all()

        reversal_ids = [e.reversal_entry_id for e in originals if e.reversal_entry_id is not None]
        reversals = {}
        if reversal_ids:
            reversals = {
                r.id: r
                for r in self.session.execute(
                    select(JournalEntry).where(JournalEntry.id.in_(reversal_ids))
                ).scalars()
            }

        return [
            ReversalPair(
                original=JournalEntryInfo.from_model(e),
                reversal=(
                    JournalEntryInfo.from_model(reversals[e.reversal_entry_id])
                    if e.reversal_entry_id in reversals
                    else None
                ),
            )
            for e in originals
        ]
