"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the target of
    every journal line.
Architecture position: Kernel > Models.  May import from db/ and
    domain/values.py only.

Invariants enforced:
    - code is unique within a company (uq_account_company_code).
    - nature matches the fixed type-to-nature table (checked by
      AccountService before every insert or structural update).
    - parent_id references an account of the same company and never forms
      a cycle (checked by AccountService).
    - Accounts are never hard-deleted (db/immutability.py); deactivation
      sets is_active=False.

Failure modes:
    - IntegrityError on a duplicate (company_id, code) that slipped past the
      service check under concurrency.
    - ImmutabilityViolationError on DELETE.

Audit relevance:
    Account rows give meaning to every journal line.  Type and nature are
    frozen once lines reference the account so historical balances keep
    their sign.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import value_enum
from ledger_kernel.domain.values import AccountNature, AccountType


class Account(TrackedBase):
    """
    A single node in a company's chart of accounts.

    Contract:
        (company_id, code) is unique.  parent_id, when set, points to an
        account of the same company.

    Non-goals:
        - Does not validate nature/type consistency or tree shape; that is
          AccountService's job.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_account_company_code"),
        Index("idx_account_company_type", "company_id", "account_type"),
        Index("idx_account_parent", "parent_id"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # Dot-segmented code, e.g. "1.1.1.01"
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        value_enum(AccountType),
        nullable=False,
    )

    nature: Mapped[AccountNature] = mapped_column(
        value_enum(AccountNature, length=10),
        nullable=False,
    )

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    @property
    def is_debit_natured(self) -> bool:
        return self.nature == AccountNature.DEBIT

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"
