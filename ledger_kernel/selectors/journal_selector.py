"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to journal entries and their lines.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - DTO convention: public methods return JournalEntryInfo, never ORM rows.
    - Lists are ordered by entry_date, then number.

Failure modes:
    - EntryNotFoundError from get_entry when the id is unknown or owned by
      another company.  List queries return empty lists.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import or_, select

from ledger_kernel.domain.dtos import JournalEntryInfo
from ledger_kernel.domain.values import JournalEntryStatus
from ledger_kernel.exceptions import EntryNotFoundError
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.selectors.base import BaseSelector

# Descriptions of fiscal-year closing entries start with this text.
CLOSING_DESCRIPTION_PREFIX = "Fiscal year close"


class JournalSelector(BaseSelector):
    """Selector for journal entry queries."""

    def get_entry(self, company_id: UUID, entry_id: UUID) -> JournalEntryInfo:
        """
        Raises:
            EntryNotFoundError: unknown id or another company's entry.
        """
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.company_id == company_id,
            )
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return JournalEntryInfo.from_model(entry)

    def list_entries(
        self,
        company_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        status: JournalEntryStatus | None = None,
    ) -> list[JournalEntryInfo]:
        """
        Entries of a company, optionally filtered by date range and status.

        Both dates are inclusive.
        """
        query = select(JournalEntry).where(JournalEntry.company_id == company_id)
        if date_from is not None:
            query = query.where(JournalEntry.entry_date >= date_from)
        if date_to is not None:
            query = query.where(JournalEntry.entry_date <= date_to)
        if status is not None:
            query = query.where(JournalEntry.status == JournalEntryStatus(status))
        query = query.order_by(JournalEntry.entry_date, JournalEntry.number)

        entries = self.session.execute(query).scalars().all()
        return [JournalEntryInfo.from_model(e) for e in entries]

    def find_closing_entry(
        self,
        company_id: UUID,
        fiscal_year_start: date,
        fiscal_year_end: date,
    ) -> JournalEntryInfo | None:
        """
        The POSTED closing entry dated inside the fiscal year, if any.

        An entry counts when it is flagged ``is_closing_entry`` or its
        description carries the closing prefix.  A closing entry that was
        later reversed no longer counts, so the year can be closed again.
        """
        entry = self.session.execute(
            select(JournalEntry)
            .where(
                JournalEntry.company_id == company_id,
                JournalEntry.status == JournalEntryStatus.POSTED,
                JournalEntry.entry_date >= fiscal_year_start,
                JournalEntry.entry_date <= fiscal_year_end,
                or_(
                    JournalEntry.is_closing_entry.is_(True),
                    JournalEntry.description.startswith(CLOSING_DESCRIPTION_PREFIX),
                ),
            )
            .order_by(JournalEntry.number)
            .limit(1)
        ).scalar_one_or_none()
        if entry is None:
            return None
        return JournalEntryInfo.from_model(entry)
