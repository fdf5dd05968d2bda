"""
Module: ledger_kernel.models.settings
Responsibility: Per-company accounting configuration: the fiscal year, the
    entry-number counter, the result account used by fiscal close, and the
    default integration account links.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per company (uq_settings_company).
    - fiscal_year_end > fiscal_year_start and the span is at most 366 days
      (checked by SettingsService).
    - last_entry_number only ever increases and is written exclusively by
      EntryNumberService under a row lock.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import BigInteger, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString

# Integration links commercial documents use when building entries.
INTEGRATION_LINK_FIELDS: tuple[str, ...] = (
    "sales_account_id",
    "purchases_account_id",
    "receivables_account_id",
    "payables_account_id",
    "vat_debit_account_id",
    "vat_credit_account_id",
    "default_cash_account_id",
    "default_bank_account_id",
    "expenses_account_id",
)


def _account_link():
    return mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )


class AccountingSettings(TrackedBase):
    """Accounting configuration for one company."""

    __tablename__ = "accounting_settings"

    __table_args__ = (
        UniqueConstraint("company_id", name="uq_settings_company"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    fiscal_year_start: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    fiscal_year_end: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    # Number of the most recently allocated journal entry
    last_entry_number: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    # Target of the fiscal-year closing entry
    result_account_id: Mapped[UUID | None] = _account_link()

    sales_account_id: Mapped[UUID | None] = _account_link()
    purchases_account_id: Mapped[UUID | None] = _account_link()
    receivables_account_id: Mapped[UUID | None] = _account_link()
    payables_account_id: Mapped[UUID | None] = _account_link()
    vat_debit_account_id: Mapped[UUID | None] = _account_link()
    vat_credit_account_id: Mapped[UUID | None] = _account_link()
    default_cash_account_id: Mapped[UUID | None] = _account_link()
    default_bank_account_id: Mapped[UUID | None] = _account_link()
    expenses_account_id: Mapped[UUID | None] = _account_link()

    def covers(self, value: date) -> bool:
        """True if value falls inside the fiscal year (inclusive)."""
        return self.fiscal_year_start <= value <= self.fiscal_year_end
