"""
FiscalYearCloseService -- year-end closing of revenue and expense accounts.

Responsibility:
    Builds and posts the closing entry that drives every revenue and expense
    account of the fiscal year to zero against the configured result
    account, and reports whether the year is already closed.

Architecture position:
    Kernel > Services -- imperative shell.  Balances come from
    BalanceSelector; the closing-entry lookup from JournalSelector.

Invariants enforced:
    - One line per revenue/expense account whose fiscal-year balance is at
      least 0.01 away from zero, inverting that balance.
    - A final line on the result account makes the entry balance.
    - The closing entry is dated at the fiscal year end, flagged
      is_closing_entry, born POSTED, and numbered from the shared counter.
    - A year with a POSTED closing entry cannot be closed again.

Failure modes:
    - SettingsNotFoundError: no accounting settings.
    - ResultAccountNotConfiguredError: result_account_id unset.
    - InvalidResultAccountError: result account inactive or of type
      REVENUE/EXPENSE.
    - FiscalYearAlreadyClosedError: a closing entry is already posted.
    - NothingToCloseError: no revenue or expense balance in the year.

Audit relevance:
    The closing entry is the only entry created POSTED without passing
    through post_entry (besides reversals).  It is logged as
    ``fiscal_year_closed`` with its number and net result.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import BALANCE_TOLERANCE, ZERO
from ledger_kernel.domain.dtos import (
    ClosePreview,
    CloseResult,
    ClosingLine,
    FiscalYearStatus,
    JournalEntryInfo,
    LineInput,
)
from ledger_kernel.domain.validation import raise_for_result, validate_lines
from ledger_kernel.domain.values import AccountType, JournalEntryStatus
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    FiscalYearAlreadyClosedError,
    InvalidResultAccountError,
    NothingToCloseError,
    ResultAccountNotConfiguredError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.selectors.balance_selector import BalanceSelector
from ledger_kernel.selectors.journal_selector import (
    CLOSING_DESCRIPTION_PREFIX,
    JournalSelector,
)
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.journal_service import build_lines
from ledger_kernel.services.sequence_service import EntryNumberService
from ledger_kernel.services.settings_service import SettingsService

logger = get_logger("services.fiscal_close")

CLOSING_LINE_DESCRIPTION = "Close - {account_name}"


def closing_description(fiscal_year_start, fiscal_year_end) -> str:
    """Closing entry description, e.g. "Fiscal year close 01/01/2024 - 31/12/2024"."""
    return (
        f"{CLOSING_DESCRIPTION_PREFIX} "
        f"{fiscal_year_start:%d/%m/%Y} - {fiscal_year_end:%d/%m/%Y}"
    )


class FiscalYearCloseService(BaseService):
    """Preview, execute and inspect the fiscal year close."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self._settings = SettingsService(session, self.clock)
        self._numbers = EntryNumberService(session, self.clock)

    def _result_account(self, company_id: UUID, settings) -> Account:
        if settings.result_account_id is None:
            raise ResultAccountNotConfiguredError(str(company_id))
        account = self.session.execute(
            select(Account).where(
                Account.id == settings.result_account_id,
                Account.company_id == company_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(settings.result_account_id))
        if not account.is_active:
            raise InvalidResultAccountError(account.id, "account is inactive")
        account_type = AccountType(account.account_type)
        if account_type in (AccountType.REVENUE, AccountType.EXPENSE):
            raise InvalidResultAccountError(account.id, f"{account_type.value} accounts are themselves closed")
        return account

    def fiscal_year_status(self, company_id: UUID) -> FiscalYearStatus:
        """
        Raises:
            SettingsNotFoundError: no accounting settings.
        """
        settings = self._settings.load(company_id)

        result_name = None
        if settings.result_account_id is not None:
            result_name = self.session.execute(
                select(Account.name).where(Account.id == settings.result_account_id)
            ).scalar_one_or_none()

        closing = JournalSelector(self.session).find_closing_entry(
            company_id, settings.fiscal_year_start, settings.fiscal_year_end
        )
        return FiscalYearStatus(
            fiscal_year_start=settings.fiscal_year_start,
            fiscal_year_end=settings.fiscal_year_end,
            result_account_id=settings.result_account_id,
            result_account_name=result_name,
            is_closed=closing is not None,
            closing_entry_id=closing.id if closing else None,
            closing_entry_number=closing.number if closing else None,
        )

    def preview_close(self, company_id: UUID) -> ClosePreview:
        """
        Compute the closing entry without writing anything.

        Accounts are visited in code order.  A revenue account with a net
        credit balance gets a debit line of that size, an expense account with
        a net debit balance gets a credit line, and vice versa for unusual
        signs.  The result-account line is omitted when the account lines
        already balance.

        Raises:
            SettingsNotFoundError: no accounting settings.
            ResultAccountNotConfiguredError: result account unset.
            InvalidResultAccountError: result account inactive or closable.
        """
        settings = self._settings.load(company_id)
        result_account = self._result_account(company_id, settings)

        closing_types = (AccountType.REVENUE, AccountType.EXPENSE)
        balances = BalanceSelector(self.session).period_balances(
            company_id,
            settings.fiscal_year_start,
            settings.fiscal_year_end,
            account_types=closing_types,
        )
        accounts = self.session.execute(
            select(Account)
            .where(
                Account.company_id == company_id,
                Account.is_active.is_(True),
                Account.account_type.in_(closing_types),
            )
            .order_by(Account.code)
        ).scalars().all()

        lines: list[ClosingLine] = []
        total_revenue = ZERO
        total_expense = ZERO
        for account in accounts:
            balance = balances[account.id].balance
            if abs(balance) < BALANCE_TOLERANCE:
                continue

            if account.account_type == AccountType.REVENUE:
                total_revenue += abs(balance)
            else:
                total_expense += abs(balance)

            lines.append(
                ClosingLine(
                    account_id=account.id,
                    account_code=account.code,
                    account_name=account.name,
                    account_type=AccountType(account.account_type),
                    debit=-balance if balance < ZERO else ZERO,
                    credit=balance if balance > ZERO else ZERO,
                    description=CLOSING_LINE_DESCRIPTION.format(account_name=account.name),
                )
            )

        if lines:
            difference = (
                sum((line.debit for line in lines), ZERO)
                - sum((line.credit for line in lines), ZERO)
            )
            if abs(difference) >= BALANCE_TOLERANCE:
                lines.append(
                    ClosingLine(
                        account_id=result_account.id,
                        account_code=result_account.code,
                        account_name=result_account.name,
                        account_type=None,
                        debit=-difference if difference < ZERO else ZERO,
                        credit=difference if difference > ZERO else ZERO,
                        description=CLOSING_LINE_DESCRIPTION.format(
                            account_name=result_account.name
                        ),
                    )
                )

        return ClosePreview(
            company_id=company_id,
            fiscal_year_start=settings.fiscal_year_start,
            fiscal_year_end=settings.fiscal_year_end,
            result_account_id=result_account.id,
            result_account_name=result_account.name,
            lines=tuple(lines),
            total_revenue=total_revenue,
            total_expense=total_expense,
            net_result=total_revenue - total_expense,
        )

    def close_fiscal_year(self, company_id: UUID, actor: str) -> CloseResult:
        """
        Post the closing entry for the configured fiscal year.

        Raises:
            FiscalYearAlreadyClosedError: a POSTED closing entry exists.
            NothingToCloseError: no revenue or expense balances.
            ResultAccountNotConfiguredError: result account unset.
        """
        settings = self._settings.load(company_id)
        if settings.result_account_id is None:
            raise ResultAccountNotConfiguredError(str(company_id))

        existing = JournalSelector(self.session).find_closing_entry(
            company_id, settings.fiscal_year_start, settings.fiscal_year_end
        )
        if existing is not None:
            raise FiscalYearAlreadyClosedError(existing.id, existing.number)

        preview = self.preview_close(company_id)
        if not preview.lines:
            raise NothingToCloseError(settings.fiscal_year_start, settings.fiscal_year_end)

        line_inputs = [
            LineInput(
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                description=line.description,
            )
            for line in preview.lines
        ]
        raise_for_result(validate_lines(line_inputs))

        number = self._numbers.next_number(company_id)
        entry = JournalEntry(
            company_id=company_id,
            number=number,
            entry_date=settings.fiscal_year_end,
            description=closing_description(settings.fiscal_year_start, settings.fiscal_year_end),
            status=JournalEntryStatus.POSTED,
            post_date=self.clock.now(),
            is_closing_entry=True,
            created_by=actor,
            lines=build_lines(line_inputs),
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "fiscal_year_closed",
            extra={
                "company_id": str(company_id),
                "entry_id": str(entry.id),
                "entry_number": number,
                "fiscal_year_start": settings.fiscal_year_start,
                "fiscal_year_end": settings.fiscal_year_end,
                "net_result": preview.net_result,
            },
        )
        return CloseResult(entry=JournalEntryInfo.from_model(entry), preview=preview)
