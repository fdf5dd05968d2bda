"""
Module: ledger_kernel.models.recurring
Responsibility: ORM persistence for recurring entry templates and their
    fixed lines.
Architecture position: Kernel > Models.  May import from db/ and
    domain/values.py only.

Invariants enforced:
    - Template lines are balanced and one-sided (checked by
      RecurringEntryService at creation; lines are never edited afterwards).
    - next_due_date / last_generated only move forward, one frequency step
      per generated entry.
    - Templates are soft-deactivated, never deleted.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base, TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO, value_enum
from ledger_kernel.domain.values import RecurrenceFrequency


class RecurringEntry(TrackedBase):
    """A template that produces a draft journal entry on a schedule."""

    __tablename__ = "recurring_entries"

    __table_args__ = (
        Index("idx_recurring_company_due", "company_id", "is_active", "next_due_date"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    frequency: Mapped[RecurrenceFrequency] = mapped_column(
        value_enum(RecurrenceFrequency),
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    next_due_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    last_generated: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    lines: Mapped[list["RecurringEntryLine"]] = relationship(
        back_populates="template",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RecurringEntryLine.line_no",
    )

    def __repr__(self) -> str:
        return f"<RecurringEntry {self.name} {self.frequency} next={self.next_due_date}>"


class RecurringEntryLine(Base):
    """A fixed debit or credit line of a recurring template."""

    __tablename__ = "recurring_entry_lines"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_recurring_line_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_recurring_line_credit_non_negative"),
        Index("idx_recurring_line_template", "recurring_entry_id"),
    )

    recurring_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("recurring_entries.id"),
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

    template: Mapped[RecurringEntry] = relationship(back_populates="lines")
