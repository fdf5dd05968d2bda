"""
JournalEntryService -- the journal entry engine.

Responsibility:
    Validates and persists journal entries and drives their lifecycle:
    create (DRAFT), edit and delete while DRAFT, post, and reverse.  Every
    new entry takes its number from EntryNumberService inside the caller's
    transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Pure rules come from
    ``ledger_kernel.domain.validation`` and ``ledger_kernel.domain.workflow``.

Invariants enforced:
    - Creation checks run in a fixed order: (a) every account exists in the
      company and is active, (b) the date lies in the fiscal year, (c) debits
      equal credits within 0.01, (d) every line has exactly one non-negative
      side, (e) nature consistency, advisory only.
    - Posting re-runs the balance and line-amount checks.
    - Status moves only along the workflow table:
      DRAFT -> POSTED -> REVERSED; DRAFT may be edited or deleted.
    - A reversal is a new POSTED entry with every line's sides swapped,
      linked both ways to the entry it undoes.

Failure modes:
    - NotFound: AccountNotFoundError, EntryNotFoundError, SettingsNotFoundError.
    - ValidationFailed: AccountInactiveError, DateOutsideFiscalYearError,
      InsufficientLinesError, ZeroAmountEntryError, UnbalancedEntryError,
      InvalidLineAmountError.
    - InvalidStateTransition: EntryNotDraftError, EntryNotPostedError.

Audit relevance:
    Entry rows are locked (SELECT ... FOR UPDATE) before a status change so
    two concurrent posts or reversals of one entry serialize.  Posted rows
    are frozen by the ORM immutability listeners.
"""

from collections.abc import Sequence
from datetime import timedelta
from uuid import UUID, uuid4

from sqlalchemy import select

from ledger_kernel.domain.dtos import (
    EntryInput,
    EntryResult,
    JournalEntryInfo,
    LineInput,
    NatureWarning,
    ReversalResult,
)
from ledger_kernel.domain.validation import (
    check_entry_date,
    check_nature_consistency,
    raise_for_result,
    validate_lines,
)
from ledger_kernel.domain.values import JournalEntryStatus
from ledger_kernel.domain.workflow import DELETE, EDIT, POST, REVERSE, transition
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    EntryNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import EntryNumberService
from ledger_kernel.services.settings_service import SettingsService

logger = get_logger("services.journal")

# Entries dated further back than this are accepted but logged.
STALE_ENTRY_DAYS = 183

REVERSAL_DESCRIPTION = "Reversal of entry N{number}"


def lines_from_model(entry: JournalEntry) -> tuple[LineInput, ...]:
    return tuple(
        LineInput(
            account_id=line.account_id,
            debit=line.debit,
            credit=line.credit,
            description=line.description,
        )
        for line in entry.lines
    )


def build_lines(lines: Sequence[LineInput]) -> list[JournalEntryLine]:
    """ORM lines numbered from 1 in input order."""
    return [
        JournalEntryLine(
            line_no=index,
            account_id=line.account_id,
            description=line.description,
            debit=line.debit,
            credit=line.credit,
        )
        for index, line in enumerate(lines, start=1)
    ]


class JournalEntryService(BaseService):
    """
    Write side of the journal.

    Contract:
        All methods are company-scoped, flush but never commit, and return
        DTOs.  ``actor`` is the opaque acting-user identifier recorded in
        the audit columns.
    """

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self._numbers = EntryNumberService(session, self.clock)
        self._settings = SettingsService(session, self.clock)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _load(self, company_id: UUID, entry_id: UUID, for_update: bool = False) -> JournalEntry:
        query = select(JournalEntry).where(
            JournalEntry.id == entry_id,
            JournalEntry.company_id == company_id,
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        entry = self.session.execute(query).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _load_accounts(self, company_id: UUID, lines: Sequence[LineInput]) -> dict[UUID, Account]:
        """
        Check (a): every referenced account exists in the company and is active.

        Raises:
            AccountNotFoundError: first unknown or foreign account, in line order.
            AccountInactiveError: first inactive account, in line order.
        """
        account_ids = {line.account_id for line in lines}
        accounts = {
            a.id: a
            for a in self.session.execute(
                select(Account).where(
                    Account.id.in_(account_ids),
                    Account.company_id == company_id,
                )
            ).scalars()
        }
        for line in lines:
            account = accounts.get(line.account_id)
            if account is None:
                raise AccountNotFoundError(str(line.account_id))
            if not account.is_active:
                raise AccountInactiveError(str(account.id), account.code)
        return accounts

    def validate_entry(self, company_id: UUID, data: EntryInput) -> tuple[NatureWarning, ...]:
        """
        Run checks (a) to (e) for a new or edited entry.

        Returns:
            The advisory nature warnings.  Hard failures raise.
        """
        accounts = self._load_accounts(company_id, data.lines)

        settings = self._settings.load(company_id)
        raise_for_result(
            check_entry_date(data.entry_date, settings.fiscal_year_start, settings.fiscal_year_end)
        )

        raise_for_result(validate_lines(data.lines))

        warnings = check_nature_consistency(
            data.lines,
            {a.id: (a.code, a.nature) for a in accounts.values()},
        )
        for warning in warnings:
            logger.warning(
                "entry_nature_warning",
                extra={
                    "company_id": str(company_id),
                    "account_id": str(warning.account_id),
                    "account_code": warning.account_code,
                    "nature": warning.nature,
                    "debit": warning.debit,
                    "credit": warning.credit,
                },
            )

        today = self.clock.today()
        if data.entry_date < today - timedelta(days=STALE_ENTRY_DAYS):
            logger.warning(
                "entry_date_stale",
                extra={
                    "company_id": str(company_id),
                    "entry_date": data.entry_date,
                    "days_old": (today - data.entry_date).days,
                },
            )
        return warnings

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_entry(self, company_id: UUID, data: EntryInput, actor: str) -> EntryResult:
        """
        Validate and persist a DRAFT entry with the next number.

        Postconditions:
            - The entry, its lines and the counter increment are flushed in
              the caller's transaction.

        Raises:
            See module docstring; nothing is written when a check fails.
        """
        warnings = self.validate_entry(company_id, data)

        number = self._numbers.next_number(company_id)
        entry = JournalEntry(
            company_id=company_id,
            number=number,
            entry_date=data.entry_date,
            description=data.description,
            status=JournalEntryStatus.DRAFT,
            created_by=actor,
            lines=build_lines(data.lines),
        )
        self.session.add(entry)
        self.session.flush()

        info = JournalEntryInfo.from_model(entry)
        with LogContext.bind(entry_id=str(entry.id)):
            logger.info(
                "entry_created",
                extra={
                    "company_id": str(company_id),
                    "entry_number": number,
                    "entry_date": data.entry_date,
                    "line_count": len(data.lines),
                    "total_debit": info.total_debit,
                    "warning_count": len(warnings),
                },
            )
        return EntryResult(entry=info, warnings=warnings)

    def update_draft(
        self,
        company_id: UUID,
        entry_id: UUID,
        data: EntryInput,
        actor: str,
    ) -> EntryResult:
        """
        Replace date, description and lines of a DRAFT entry.

        The entry keeps its number.

        Raises:
            EntryNotDraftError: the entry is POSTED or REVERSED.
        """
        entry = self._load(company_id, entry_id, for_update=True)
        transition(entry.id, entry.status, EDIT)

        warnings = self.validate_entry(company_id, data)

        entry.entry_date = data.entry_date
        entry.description = data.description
        entry.lines.clear()
        # Old lines must be deleted before the new line numbers are inserted
        self.session.flush()
        entry.lines.extend(build_lines(data.lines))
        entry.updated_by = actor
        self.session.flush()

        logger.info(
            "entry_updated",
            extra={
                "company_id": str(company_id),
                "entry_id": str(entry.id),
                "entry_number": entry.number,
                "line_count": len(data.lines),
            },
        )
        return EntryResult(entry=JournalEntryInfo.from_model(entry), warnings=warnings)

    def delete_draft(self, company_id: UUID, entry_id: UUID, actor: str) -> None:
        """
        Delete a DRAFT entry and its lines.  Its number is not reused.

        Raises:
            EntryNotDraftError: the entry is POSTED or REVERSED.
        """
        entry = self._load(company_id, entry_id, for_update=True)
        transition(entry.id, entry.status, DELETE)

        number = entry.number
        self.session.delete(entry)
        self.session.flush()

        logger.info(
            "entry_deleted",
            extra={
                "company_id": str(company_id),
                "entry_id": str(entry_id),
                "entry_number": number,
                "actor_id": actor,
            },
        )

    def post_entry(self, company_id: UUID, entry_id: UUID, actor: str) -> JournalEntryInfo:
        """
        DRAFT -> POSTED.

        Re-runs the balance and line-amount checks on the stored lines.

        Raises:
            EntryNotFoundError: unknown id or another company's entry.
            EntryNotDraftError: the entry is not a draft.
            UnbalancedEntryError, InvalidLineAmountError: stored lines drifted.
        """
        entry = self._load(company_id, entry_id, for_update=True)
        new_status = transition(entry.id, entry.status, POST)

        raise_for_result(validate_lines(lines_from_model(entry)))

        entry.status = new_status
        entry.post_date = self.clock.now()
        entry.updated_by = actor
        self.session.flush()

        logger.info(
            "entry_posted",
            extra={
                "company_id": str(company_id),
                "entry_id": str(entry.id),
                "entry_number": entry.number,
            },
        )
        return JournalEntryInfo.from_model(entry)

    def reverse_entry(self, company_id: UUID, entry_id: UUID, actor: str) -> ReversalResult:
        """
        POSTED -> REVERSED, creating the POSTED reversal entry.

        The reversal is dated today (per the injected clock), described
        "Reversal of entry N<number>", and carries each original line with
        debit and credit swapped.

        Raises:
            EntryNotFoundError: unknown id or another company's entry.
            EntryNotPostedError: the entry is not POSTED.
        """
        original = self._load(company_id, entry_id, for_update=True)
        new_status = transition(original.id, original.status, REVERSE)

        now = self.clock.now()
        number = self._numbers.next_number(company_id)
        swapped = [
            LineInput(
                account_id=line.account_id,
                debit=line.credit,
                credit=line.debit,
                description=line.description,
            )
            for line in original.lines
        ]
        reversal = JournalEntry(
            id=uuid4(),
            company_id=company_id,
            number=number,
            entry_date=self.clock.today(),
            description=REVERSAL_DESCRIPTION.format(number=original.number),
            status=JournalEntryStatus.POSTED,
            post_date=now,
            original_entry_id=original.id,
            created_by=actor,
            lines=build_lines(swapped),
        )
        self.session.add(reversal)
        # The reversal row must exist before the original points at it
        self.session.flush()

        original.status = new_status
        original.reversal_entry_id = reversal.id
        original.reversed_by = actor
        original.reversed_at = now
        self.session.flush()

        logger.info(
            "entry_reversed",
            extra={
                "company_id": str(company_id),
                "entry_id": str(original.id),
                "entry_number": original.number,
                "reversal_entry_id": str(reversal.id),
                "reversal_entry_number": number,
            },
        )
        return ReversalResult(
            original=JournalEntryInfo.from_model(original),
            reversal=JournalEntryInfo.from_model(reversal),
        )
