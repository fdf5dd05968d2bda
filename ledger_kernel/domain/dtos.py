"""
Data Transfer Objects for the ledger kernel.

Responsibility:
    Immutable value objects that cross layer boundaries: service inputs
    (entries, accounts, settings, templates), service results, and the
    validation result types.  Services return DTOs, never ORM instances.

Architecture position:
    Kernel > Domain -- pure value objects.  ORM models are only referenced
    under TYPE_CHECKING for the ``from_model`` converters.

Invariants enforced:
    - Monetary fields are rounded Decimals (two places) on construction.
    - Hard validation outcomes (``ValidationResult``) and advisory outcomes
      (``NatureWarning``) are distinct types, so a warning can never be
      mistaken for a blocking failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from ledger_kernel.db.types import ZERO, amounts_equal, to_money
from ledger_kernel.domain.values import (
    AccountNature,
    AccountType,
    JournalEntryStatus,
    RecurrenceFrequency,
    expected_nature,
)

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel
    from ledger_kernel.models.journal import JournalEntry as JournalEntryModel
    from ledger_kernel.models.journal import JournalEntryLine as JournalEntryLineModel


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class LineInput:
    """One requested journal (or template) line."""

    account_id: UUID
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_money(self.debit))
        object.__setattr__(self, "credit", to_money(self.credit))


@dataclass(frozen=True)
class EntryInput:
    """Header and lines of a journal entry to create or replace."""

    entry_date: date
    description: str
    lines: tuple[LineInput, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class AccountInput:
    """
    A new account.

    nature defaults to the nature required by account_type.
    """

    code: str
    name: str
    account_type: AccountType
    nature: AccountNature | None = None
    parent_id: UUID | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "account_type", AccountType(self.account_type))
        if self.nature is None:
            object.__setattr__(self, "nature", expected_nature(self.account_type))
        else:
            object.__setattr__(self, "nature", AccountNature(self.nature))


@dataclass(frozen=True)
class AccountUpdate:
    """
    Partial account update.  None means "unchanged".

    Set ``clear_parent`` to move the account to the root of the tree.
    """

    code: str | None = None
    name: str | None = None
    account_type: AccountType | None = None
    nature: AccountNature | None = None
    parent_id: UUID | None = None
    clear_parent: bool = False
    description: str | None = None

    def __post_init__(self) -> None:
        if self.account_type is not None:
            object.__setattr__(self, "account_type", AccountType(self.account_type))
        if self.nature is not None:
            object.__setattr__(self, "nature", AccountNature(self.nature))
        if self.clear_parent and self.parent_id is not None:
            raise ValueError("parent_id and clear_parent are mutually exclusive")

    @property
    def changes_structure(self) -> bool:
        return self.account_type is not None or self.nature is not None

    @property
    def changes_parent(self) -> bool:
        return self.clear_parent or self.parent_id is not None


@dataclass(frozen=True)
class SettingsInput:
    """
    Accounting settings to save for a company.

    ``integration_accounts`` maps link names from
    ``INTEGRATION_LINK_FIELDS`` (e.g. "sales_account_id") to account ids.
    """

    fiscal_year_start: date
    fiscal_year_end: date
    result_account_id: UUID | None = None
    integration_accounts: dict[str, UUID | None] = field(default_factory=dict)


@dataclass(frozen=True)
class RecurringTemplateInput:
    """A recurring entry template to create."""

    name: str
    frequency: RecurrenceFrequency
    start_date: date
    lines: tuple[LineInput, ...]
    description: str | None = None
    end_date: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "frequency", RecurrenceFrequency(self.frequency))
        object.__setattr__(self, "lines", tuple(self.lines))


# =============================================================================
# Validation results
# =============================================================================


@dataclass(frozen=True)
class ValidationError:
    """
    A single hard validation failure.

    Carries a machine-readable code matching the exception that
    ``raise_for_result`` will raise, plus structured details.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of a hard validator: zero or more ValidationErrors.

    ``bool(result)`` is True only when there are no errors.
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        return cls(is_valid=False, errors=tuple(errors))

    def __bool__(self) -> bool:
        return self.is_valid


@dataclass(frozen=True)
class NatureWarning:
    """
    Advisory: an account's net movement in an entry runs against its nature.

    Never blocks an operation; returned alongside successful results.
    """

    account_id: UUID
    account_code: str
    nature: AccountNature
    debit: Decimal
    credit: Decimal

    @property
    def message(self) -> str:
        if self.nature == AccountNature.DEBIT:
            return (
                f"Account {self.account_code} is debit-natured but the entry "
                f"credits it by {self.credit - self.debit}"
            )
        return (
            f"Account {self.account_code} is credit-natured but the entry "
            f"debits it by {self.debit - self.credit}"
        )


# =============================================================================
# Accounts
# =============================================================================


@dataclass(frozen=True)
class AccountInfo:
    """Read-only view of an account."""

    id: UUID
    company_id: UUID
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature
    parent_id: UUID | None
    is_active: bool
    description: str | None = None

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            code=model.code,
            name=model.name,
            account_type=AccountType(model.account_type),
            nature=AccountNature(model.nature),
            parent_id=model.parent_id,
            is_active=model.is_active,
            description=model.description,
        )


@dataclass
class AccountNode:
    """A node of the chart-of-accounts forest built by ``build_tree``."""

    account: AccountInfo
    children: list[AccountNode] = field(default_factory=list)


@dataclass(frozen=True)
class AccountDetail:
    """An account together with its active direct children."""

    account: AccountInfo
    children: tuple[AccountInfo, ...]


@dataclass(frozen=True)
class ChartImportRow:
    """
    One account of a chart import.

    ``parent_code`` refers to an account that already exists or appears
    earlier in the same batch.
    """

    code: str
    name: str
    account_type: AccountType
    nature: AccountNature | None = None
    description: str | None = None
    parent_code: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "account_type", AccountType(self.account_type))
        if self.nature is None:
            object.__setattr__(self, "nature", expected_nature(self.account_type))
        else:
            object.__setattr__(self, "nature", AccountNature(self.nature))


@dataclass(frozen=True)
class ChartImportResult:
    """
    Outcome of a chart import.

    errors holds one "code: message" string per row that was not created.
    """

    imported: int
    skipped: int
    errors: tuple[str, ...] = ()


# =============================================================================
# Journal entries
# =============================================================================


@dataclass(frozen=True)
class JournalLineInfo:
    """Read-only view of a journal entry line."""

    id: UUID
    line_no: int
    account_id: UUID
    account_code: str | None
    account_name: str | None
    description: str | None
    debit: Decimal
    credit: Decimal

    @classmethod
    def from_model(cls, model: JournalEntryLineModel) -> JournalLineInfo:
        account = model.account
        return cls(
            id=model.id,
            line_no=model.line_no,
            account_id=model.account_id,
            account_code=account.code if account is not None else None,
            account_name=account.name if account is not None else None,
            description=model.description,
            debit=to_money(model.debit),
            credit=to_money(model.credit),
        )


@dataclass(frozen=True)
class JournalEntryInfo:
    """Read-only view of a journal entry and its lines."""

    id: UUID
    company_id: UUID
    number: int
    entry_date: date
    description: str
    status: JournalEntryStatus
    post_date: datetime | None
    original_entry_id: UUID | None
    reversal_entry_id: UUID | None
    reversed_by: str | None
    reversed_at: datetime | None
    is_closing_entry: bool
    created_by: str
    lines: tuple[JournalLineInfo, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return amounts_equal(self.total_debit, self.total_credit)

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            number=model.number,
            entry_date=model.entry_date,
            description=model.description,
            status=JournalEntryStatus(model.status),
            post_date=model.post_date,
            original_entry_id=model.original_entry_id,
            reversal_entry_id=model.reversal_entry_id,
            reversed_by=model.reversed_by,
            reversed_at=model.reversed_at,
            is_closing_entry=model.is_closing_entry,
            created_by=model.created_by,
            lines=tuple(JournalLineInfo.from_model(line) for line in model.lines),
        )


@dataclass(frozen=True)
class EntryResult:
    """A created or edited entry plus the advisory warnings it raised."""

    entry: JournalEntryInfo
    warnings: tuple[NatureWarning, ...] = ()

    @property
    def warning_messages(self) -> tuple[str, ...]:
        return tuple(w.message for w in self.warnings)


@dataclass(frozen=True)
class ReversalResult:
    """Both sides of a completed reversal."""

    original: JournalEntryInfo
    reversal: JournalEntryInfo


# =============================================================================
# Balances
# =============================================================================


@dataclass(frozen=True)
class AccountBalance:
    """
    Debit and credit totals of one account.

    ``balance`` is always debit minus credit, whatever the account's
    nature; use ``natural_balance`` for the sign a report shows.
    """

    account_id: UUID
    debit: Decimal
    credit: Decimal
    balance: Decimal = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_money(self.debit))
        object.__setattr__(self, "credit", to_money(self.credit))
        object.__setattr__(self, "balance", self.debit - self.credit)

    def natural_balance(self, nature: AccountNature) -> Decimal:
        if AccountNature(nature) == AccountNature.CREDIT:
            return -self.balance
        return self.balance

    @classmethod
    def empty(cls, account_id: UUID) -> AccountBalance:
        return cls(account_id=account_id, debit=ZERO, credit=ZERO)


@dataclass(frozen=True)
class EquationResult:
    """
    Outcome of the Assets = Liabilities + Equity check.

    ``equity`` is the EQUITY accounts alone; ``current_result`` is the
    unclosed revenue minus expense to date, compared alongside it.
    """

    assets: Decimal
    liabilities: Decimal
    equity: Decimal
    current_result: Decimal
    difference: Decimal
    is_balanced: bool
    as_of: date | None = None


# =============================================================================
# Fiscal year close
# =============================================================================


@dataclass(frozen=True)
class ClosingLine:
    """One line of a fiscal-year closing entry."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType | None
    debit: Decimal
    credit: Decimal
    description: str


@dataclass(frozen=True)
class ClosePreview:
    """The closing entry that closeFiscalYear would post."""

    company_id: UUID
    fiscal_year_start: date
    fiscal_year_end: date
    result_account_id: UUID
    result_account_name: str
    lines: tuple[ClosingLine, ...]
    total_revenue: Decimal
    total_expense: Decimal
    net_result: Decimal

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass(frozen=True)
class FiscalYearStatus:
    fiscal_year_start: date
    fiscal_year_end: date
    result_account_id: UUID | None
    result_account_name: str | None
    is_closed: bool
    closing_entry_id: UUID | None = None
    closing_entry_number: int | None = None


@dataclass(frozen=True)
class CloseResult:
    entry: JournalEntryInfo
    preview: ClosePreview


# =============================================================================
# Recurring entries
# =============================================================================


@dataclass(frozen=True)
class RecurringLineInfo:
    account_id: UUID
    debit: Decimal
    credit: Decimal
    description: str | None = None


@dataclass(frozen=True)
class RecurringTemplateInfo:
    """Read-only view of a recurring template."""

    id: UUID
    company_id: UUID
    name: str
    description: str | None
    frequency: RecurrenceFrequency
    frequency_label: str
    start_date: date
    end_date: date | None
    next_due_date: date
    last_generated: date | None
    is_active: bool
    is_pending: bool
    lines: tuple[RecurringLineInfo, ...]


@dataclass(frozen=True)
class GenerationReport:
    """
    Outcome of a bulk generation run.

    errors holds one "template name: message" string per failed template.
    """

    generated: int
    errors: tuple[str, ...] = ()
    entry_ids: tuple[UUID, ...] = ()
