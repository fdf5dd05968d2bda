"""
RecurringEntryService -- templates that produce draft entries on a schedule.

Responsibility:
    Creates, lists and deactivates recurring templates, and generates DRAFT
    journal entries from them one at a time or for every pending template.

Architecture position:
    Kernel > Services -- imperative shell.  Calendar math comes from
    ``ledger_kernel.domain.recurrence``.  There is no scheduler: generation
    only happens when a caller asks for it.

Invariants enforced:
    - Template lines are validated once, at creation: at least two lines,
      balanced within 0.01, one positive side per line.
    - A generated entry is dated at the template's next_due_date and the
      template then advances by exactly one frequency step.
    - In a bulk run each template gets its own savepoint; a failure rolls
      back that template's entry, counter increment and rollover only.

Failure modes:
    - RecurringEntryNotFoundError, RecurringEntryInactiveError from
      generate_one.
    - InvalidRecurringTemplateError, AccountNotFoundError from
      create_template.
    - generate_all_pending never raises for a single template; failures
      are returned in GenerationReport.errors.
"""

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError

from ledger_kernel.domain.dtos import (
    GenerationReport,
    JournalEntryInfo,
    LineInput,
    RecurringLineInfo,
    RecurringTemplateInfo,
    RecurringTemplateInput,
)
from ledger_kernel.domain.recurrence import (
    frequency_label,
    generated_description,
    is_pending,
    next_due_date,
)
from ledger_kernel.domain.validation import validate_lines
from ledger_kernel.domain.values import JournalEntryStatus, RecurrenceFrequency
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    InvalidRecurringTemplateError,
    LedgerError,
    RecurringEntryInactiveError,
    RecurringEntryNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.models.recurring import RecurringEntry, RecurringEntryLine
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.journal_service import build_lines
from ledger_kernel.services.sequence_service import EntryNumberService

logger = get_logger("services.recurring")


class RecurringEntryService(BaseService):
    """
    Recurring template management and entry generation.

    "Today" is the injected clock's date.
    """

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self._numbers = EntryNumberService(session, self.clock)

    def _to_info(self, template: RecurringEntry) -> RecurringTemplateInfo:
        frequency = RecurrenceFrequency(template.frequency)
        return RecurringTemplateInfo(
            id=template.id,
            company_id=template.company_id,
            name=template.name,
            description=template.description,
            frequency=frequency,
            frequency_label=frequency_label(frequency),
            start_date=template.start_date,
            end_date=template.end_date,
            next_due_date=template.next_due_date,
            last_generated=template.last_generated,
            is_active=template.is_active,
            is_pending=template.is_active and is_pending(
                template.next_due_date, template.end_date, self.clock.today()
            ),
            lines=tuple(
                RecurringLineInfo(
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    description=line.description,
                )
                for line in template.lines
            ),
        )

    def _get(self, company_id: UUID, template_id: UUID) -> RecurringEntry:
        template = self.session.execute(
            select(RecurringEntry).where(
                RecurringEntry.id == template_id,
                RecurringEntry.company_id == company_id,
            )
        ).scalar_one_or_none()
        if template is None:
            raise RecurringEntryNotFoundError(str(template_id))
        return template

    def _check_accounts(self, company_id: UUID, account_ids, require_active: bool) -> None:
        accounts = {
            a.id: a
            for a in self.session.execute(
                select(Account).where(
                    Account.id.in_(set(account_ids)),
                    Account.company_id == company_id,
                )
            ).scalars()
        }
        for account_id in account_ids:
            account = accounts.get(account_id)
            if account is None:
                raise AccountNotFoundError(str(account_id))
            if require_active and not account.is_active:
                raise AccountInactiveError(str(account.id), account.code)

    def create_template(
        self,
        company_id: UUID,
        data: RecurringTemplateInput,
        actor: str,
    ) -> RecurringTemplateInfo:
        """
        Validate and store a template.  Its first due date is its start date.

        Raises:
            InvalidRecurringTemplateError: bad lines or end date before start.
            AccountNotFoundError / AccountInactiveError: bad line account.
        """
        if not data.name.strip():
            raise InvalidRecurringTemplateError("name is required")
        if data.end_date is not None and data.end_date < data.start_date:
            raise InvalidRecurringTemplateError("end date is before start date")

        result = validate_lines(data.lines)
        if not result:
            raise InvalidRecurringTemplateError(result.errors[0].message)
        self._check_accounts(company_id, [line.account_id for line in data.lines], True)

        template = RecurringEntry(
            company_id=company_id,
            name=data.name,
            description=data.description,
            frequency=data.frequency,
            start_date=data.start_date,
            end_date=data.end_date,
            next_due_date=data.start_date,
            is_active=True,
            created_by=actor,
            lines=[
                RecurringEntryLine(
                    line_no=index,
                    account_id=line.account_id,
                    description=line.description,
                    debit=line.debit,
                    credit=line.credit,
                )
                for index, line in enumerate(data.lines, start=1)
            ],
        )
        self.session.add(template)
        self.session.flush()

        logger.info(
            "recurring_template_created",
            extra={
                "company_id": str(company_id),
                "template_id": str(template.id),
                "frequency": data.frequency,
                "next_due_date": data.start_date,
            },
        )
        return self._to_info(template)

    def list_templates(self, company_id: UUID) -> list[RecurringTemplateInfo]:
        """Active templates ordered by next due date."""
        templates = self.session.execute(
            select(RecurringEntry)
            .where(
                RecurringEntry.company_id == company_id,
                RecurringEntry.is_active.is_(True),
            )
            .order_by(RecurringEntry.next_due_date, RecurringEntry.name)
        ).scalars().all()
        return [self._to_info(t) for t in templates]

    def deactivate_template(
        self,
        company_id: UUID,
        template_id: UUID,
        actor: str,
    ) -> RecurringTemplateInfo:
        template = self._get(company_id, template_id)
        template.is_active = False
        template.updated_by = actor
        self.session.flush()

        logger.info(
            "recurring_template_deactivated",
            extra={"company_id": str(company_id), "template_id": str(template.id)},
        )
        return self._to_info(template)

    def generate_one(self, company_id: UUID, template_id: UUID, actor: str) -> JournalEntryInfo:
        """
        Create the DRAFT entry for the template's current due date and roll
        the template forward one step.

        The template is not required to be pending; calling this early
        generates the next occurrence ahead of time.

        Raises:
            RecurringEntryNotFoundError: unknown id or another company's template.
            RecurringEntryInactiveError: the template was deactivated.
            AccountNotFoundError / AccountInactiveError: a line account is
                gone or deactivated since the template was created.
        """
        template = self.session.execute(
            select(RecurringEntry)
            .where(
                RecurringEntry.id == template_id,
                RecurringEntry.company_id == company_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if template is None:
            raise RecurringEntryNotFoundError(str(template_id))
        if not template.is_active:
            raise RecurringEntryInactiveError(str(template.id))

        lines = [
            LineInput(
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                description=line.description,
            )
            for line in template.lines
        ]
        self._check_accounts(company_id, [line.account_id for line in lines], True)

        due = template.next_due_date
        number = self._numbers.next_number(company_id)
        entry = JournalEntry(
            company_id=company_id,
            number=number,
            entry_date=due,
            description=generated_description(template.name, due),
            status=JournalEntryStatus.DRAFT,
            recurring_entry_id=template.id,
            created_by=actor,
            lines=build_lines(lines),
        )
        self.session.add(entry)

        template.last_generated = due
        template.next_due_date = next_due_date(due, template.frequency)
        template.updated_by = actor
        self.session.flush()

        logger.info(
            "recurring_entry_generated",
            extra={
                "company_id": str(company_id),
                "template_id": str(template.id),
                "entry_id": str(entry.id),
                "entry_number": number,
                "due_date": due,
                "next_due_date": template.next_due_date,
            },
        )
        return JournalEntryInfo.from_model(entry)

    def generate_all_pending(self, company_id: UUID, actor: str) -> GenerationReport:
        """
        Generate one entry for every pending template.

        A template is pending when it is active, its next due date is today
        or earlier, and it has no end date or ends today or later.  Each
        template produces at most one entry per call.
        """
        today = self.clock.today()
        pending = self.session.execute(
            select(RecurringEntry)
            .where(
                RecurringEntry.company_id == company_id,
                RecurringEntry.is_active.is_(True),
                RecurringEntry.next_due_date <= today,
                or_(
                    RecurringEntry.end_date.is_(None),
                    RecurringEntry.end_date >= today,
                ),
            )
            .order_by(RecurringEntry.next_due_date, RecurringEntry.name)
        ).scalars().all()

        # Snapshot before savepoint rollbacks expire the ORM objects
        targets = [(t.id, t.name) for t in pending]

        entry_ids: list[UUID] = []
        errors: list[str] = []
        for template_id, name in targets:
            savepoint = self.session.begin_nested()
            try:
                entry = self.generate_one(company_id, template_id, actor)
            except (LedgerError, SQLAlchemyError) as exc:
                savepoint.rollback()
                errors.append(f"{name}: {exc}")
                logger.warning(
                    "recurring_generation_failed",
                    extra={
                        "company_id": str(company_id),
                        "template_id": str(template_id),
                        "error": str(exc),
                    },
                )
                continue
            savepoint.commit()
            entry_ids.append(entry.id)

        logger.info(
            "recurring_generation_completed",
            extra={
                "company_id": str(company_id),
                "generated": len(entry_ids),
                "failed": len(errors),
            },
        )
        return GenerationReport(
            generated=len(entry_ids),
            errors=tuple(errors),
            entry_ids=tuple(entry_ids),
        )
