"""
EntryNumberService -- per-company journal entry numbering via a locked counter.

Responsibility:
    Reserves the next journal entry number for a company.  The counter is
    ``AccountingSettings.last_entry_number``; the row is locked
    (``SELECT ... FOR UPDATE``), incremented and flushed in one step inside
    the caller's transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by JournalEntryService, FiscalYearCloseService and
    RecurringEntryService whenever they create an entry.

Invariants enforced:
    - Numbers are strictly increasing per company.  MAX(number) + 1 is never
      used; the locked counter row is the sole source of truth.
    - The increment becomes visible only when the caller commits.  A
      rollback returns the number, so committed numbers have no gaps.
    - On SQLite the engine opens every transaction with BEGIN IMMEDIATE,
      which serializes writers the same way the row lock does on PostgreSQL.

Failure modes:
    - SettingsNotFoundError: the company has no AccountingSettings row.
    - Lock wait / database-locked timeout under heavy contention; the
      caller's transaction is aborted and may be retried.

Audit relevance:
    Allocation is logged at DEBUG level as ``entry_number_allocated``.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.exceptions import SettingsNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.settings import AccountingSettings
from ledger_kernel.services.base import BaseService

logger = get_logger("services.sequence")


class EntryNumberService(BaseService):
    """
    Atomic "reserve next number" for journal entries.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT create the settings row; SettingsService owns it.

    Usage:
        with session.begin():
            number = EntryNumberService(session).next_number(company_id)
            # create the entry with this number...
    """

    def _locked_settings(self, company_id: UUID) -> AccountingSettings:
        settings = self.session.execute(
            select(AccountingSettings)
            .where(AccountingSettings.company_id == company_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if settings is None:
            raise SettingsNotFoundError(str(company_id))
        return settings

    def next_number(self, company_id: UUID) -> int:
        """
        Lock the company's counter, increment it and return the new value.

        Postconditions:
            - Returns an integer > 0 strictly greater than any number
              previously returned for this company in a committed transaction.
            - The counter row stays locked until the transaction ends.

        Raises:
            SettingsNotFoundError: no settings row for the company.
        """
        settings = self._locked_settings(company_id)
        settings.last_entry_number = (settings.last_entry_number or 0) + 1
        self.session.flush()

        logger.debug(
            "entry_number_allocated",
            extra={"company_id": str(company_id), "entry_number": settings.last_entry_number},
        )
        return settings.last_entry_number

    def current_number(self, company_id: UUID) -> int:
        """Last allocated number without incrementing (0 when none yet)."""
        value = self.session.execute(
            select(AccountingSettings.last_entry_number).where(
                AccountingSettings.company_id == company_id
            )
        ).scalar_one_or_none()
        if value is None:
            raise SettingsNotFoundError(str(company_id))
        return value
