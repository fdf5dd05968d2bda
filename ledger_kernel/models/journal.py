"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and their lines -- the
    single source of financial truth.
Architecture position: Kernel > Models.  May import from db/ and
    domain/values.py only.

Invariants enforced:
    - (company_id, number) is unique; numbers come from the company's
      AccountingSettings.last_entry_number counter (EntryNumberService).
    - Lines carry non-negative debit and credit (CHECK constraints); the
      one-side-per-line and balance rules are checked by the service before
      every insert and at posting.
    - POSTED and REVERSED entries and their lines are frozen except for the
      reversal linkage (db/immutability.py).
    - original_entry_id / reversal_entry_id form a 1:1 reversal pair.

Failure modes:
    - IntegrityError on a duplicate (company_id, number).
    - ImmutabilityViolationError on UPDATE/DELETE of a posted entry or line.

Audit relevance:
    Balances, reports and the equation check derive exclusively from lines
    of POSTED entries.  There are no stored balances.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base, TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO, amounts_equal, value_enum
from ledger_kernel.domain.values import JournalEntryStatus

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class JournalEntry(TrackedBase):
    """
    A dated, numbered set of balanced debit/credit lines.

    Contract:
        Created DRAFT (or POSTED directly for reversals and closing
        entries).  Only DRAFT entries may be edited or deleted.

    Guarantees:
        - number is positive and unique within the company.
        - lines are loaded with the entry, ordered by line_no.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("company_id", "number", name="uq_entry_company_number"),
        Index("idx_entry_company_date", "company_id", "entry_date"),
        Index("idx_entry_company_status", "company_id", "status"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    number: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
    )

    status: Mapped[JournalEntryStatus] = mapped_column(
        value_enum(JournalEntryStatus),
        nullable=False,
        default=JournalEntryStatus.DRAFT,
    )

    post_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Set on a reversal entry: the entry it undoes
    original_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
        unique=True,
    )

    # Set on a reversed entry: the entry that undid it
    reversal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
        unique=True,
    )

    reversed_by: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    reversed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    is_closing_entry: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Template that generated this entry, if any
    recurring_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalEntryLine.line_no",
    )

    @property
    def is_draft(self) -> bool:
        return self.status == JournalEntryStatus.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    @property
    def is_reversed(self) -> bool:
        return self.status == JournalEntryStatus.REVERSED

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return amounts_equal(self.total_debit, self.total_credit)

    def __repr__(self) -> str:
        return f"<JournalEntry N{self.number} {self.status}>"


class JournalEntryLine(Base):
    """
    One debit or credit line of a journal entry.

    Contract:
        Owned by exactly one JournalEntry; created with it and never moved.
        Exactly one of debit/credit is positive (service-enforced).
    """

    __tablename__ = "journal_entry_lines"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_entry_line_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_entry_line_credit_non_negative"),
        Index("idx_entry_line_entry", "journal_entry_id"),
        Index("idx_entry_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    line_no: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    debit: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
        default=ZERO,
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
        default=ZERO,
    )

    entry: Mapped[JournalEntry] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<JournalEntryLine {self.account_id} D{self.debit} C{self.credit}>"
