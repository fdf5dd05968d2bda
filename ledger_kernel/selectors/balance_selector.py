"""
Module: ledger_kernel.selectors.balance_selector
Responsibility: Debit/credit/net balances for one account, for every account,
    and per account type, as of a cutoff date or over a date range.
Architecture position: Kernel > Selectors.  Read-only; consumed by the
    equation verifier, the fiscal year closer and reporting.

Invariants enforced:
    - Only lines of POSTED entries are counted.  Drafts and REVERSED
      originals never affect a balance; a reversal counts on its own date.
    - balance = debit - credit regardless of nature.  Callers apply the
      nature sign flip (AccountBalance.natural_balance).
    - All-account queries use one grouped aggregation, never a per-account
      query loop.

Failure modes:
    - AccountNotFoundError when a single-account query names an account of
      another company or an unknown id.

Audit relevance:
    Balances are computed from journal lines at query time.  Two reads with
    the same arguments and no intervening writes return identical results.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.db.types import ZERO, round_money
from ledger_kernel.domain.dtos import AccountBalance
from ledger_kernel.domain.values import LEDGER_STATUSES, AccountType
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.selectors.base import BaseSelector


class BalanceSelector(BaseSelector):
    """
    Balance calculator over posted journal lines.

    Dates are inclusive: ``upto_date`` counts entries dated on that day.
    """

    def _totals_query(
        self,
        company_id: UUID,
        upto_date: date | None = None,
        from_date: date | None = None,
        account_ids: Iterable[UUID] | None = None,
    ):
        debit_sum = func.coalesce(func.sum(JournalEntryLine.debit), ZERO).label("debit")
        credit_sum = func.coalesce(func.sum(JournalEntryLine.credit), ZERO).label("credit")

        query = (
            select(JournalEntryLine.account_id, debit_sum, credit_sum)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(JournalEntry.company_id == company_id)
            .where(JournalEntry.status.in_(LEDGER_STATUSES))
            .group_by(JournalEntryLine.account_id)
        )
        if upto_date is not None:
            query = query.where(JournalEntry.entry_date <= upto_date)
        if from_date is not None:
            query = query.where(JournalEntry.entry_date >= from_date)
        if account_ids is not None:
            query = query.where(JournalEntryLine.account_id.in_(list(account_ids)))
        return query

    def _require_account(self, account_id: UUID, company_id: UUID) -> Account:
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.company_id == company_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def account_balance(
        self,
        account_id: UUID,
        company_id: UUID,
        upto_date: date | None = None,
    ) -> AccountBalance:
        """
        Totals for one account up to ``upto_date`` (all time when omitted).

        Raises:
            AccountNotFoundError: account unknown or owned by another company.
        """
        self._require_account(account_id, company_id)
        row = self.session.execute(
            self._totals_query(company_id, upto_date=upto_date, account_ids=[account_id])
        ).one_or_none()
        if row is None:
            return AccountBalance.empty(account_id)
        return AccountBalance(account_id=account_id, debit=row.debit, credit=row.credit)

    def opening_balance(
        self,
        account_id: UUID,
        company_id: UUID,
        period_start: date,
    ) -> AccountBalance:
        """Balance carried into a period: ``account_balance`` at the day before."""
        return self.account_balance(account_id, company_id, period_start - timedelta(days=1))

    def all_account_balances(
        self,
        company_id: UUID,
        upto_date: date | None = None,
    ) -> dict[UUID, AccountBalance]:
        """
        Totals for every active account of the company.

        Accounts without movements map to a zero balance.
        """
        return self._active_balances(
            company_id,
            self._totals_query(company_id, upto_date=upto_date),
        )

    def period_balances(
        self,
        company_id: UUID,
        from_date: date,
        to_date: date,
        account_types: Iterable[AccountType] | None = None,
    ) -> dict[UUID, AccountBalance]:
        """
        Movements of active accounts between two dates, both inclusive.

        Args:
            account_types: Restrict to these account types.
        """
        return self._active_balances(
            company_id,
            self._totals_query(company_id, upto_date=to_date, from_date=from_date),
            account_types,
        )

    def balance_by_type(
        self,
        company_id: UUID,
        upto_date: date | None = None,
    ) -> dict[AccountType, Decimal]:
        """
        Sum of raw (debit - credit) balances per account type.

        Always returns all five types.
        """
        accounts = self._active_accounts(company_id)
        balances = self.all_account_balances(company_id, upto_date)

        totals = {account_type: ZERO for account_type in AccountType}
        for account_id, account_type in accounts.items():
            totals[account_type] += balances[account_id].balance
        return {k: round_money(v) for k, v in totals.items()}

    def _active_accounts(
        self,
        company_id: UUID,
        account_types: Iterable[AccountType] | None = None,
    ) -> dict[UUID, AccountType]:
        query = select(Account.id, Account.account_type).where(
            Account.company_id == company_id,
            Account.is_active.is_(True),
        )
        if account_types is not None:
            query = query.where(Account.account_type.in_(list(account_types)))
        return {
            row.id: AccountType(row.account_type)
            for row in self.session.execute(query)
        }

    def _active_balances(
        self,
        company_id: UUID,
        totals_query,
        account_types: Iterable[AccountType] | None = None,
    ) -> dict[UUID, AccountBalance]:
        accounts = self._active_accounts(company_id, account_types)
        result = {account_id: AccountBalance.empty(account_id) for account_id in accounts}
        for row in self.session.execute(totals_query):
            if row.account_id in result:
                result[row.account_id] = AccountBalance(
                    account_id=row.account_id,
                    debit=row.debit,
                    credit=row.credit,
                )
        return result
