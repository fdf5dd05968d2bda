"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.
    Provides the UUID primary key convention, the type annotation map, and
    the TrackedBase mixin for audit timestamps and acting-user fields.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, services/, selectors/ or domain/.

Invariants enforced:
    - UUID primary keys generated with uuid4 and stored as String(36) so the
      same schema runs on PostgreSQL and SQLite.
    - Decimal columns default to Numeric(18, 2); money is never a float.
    - Every tracked row records who created it.

Audit relevance:
    created_by / updated_by hold the opaque acting-user identifier supplied
    by the caller.  They are audit metadata, so they may change even on
    records whose financial fields are frozen (see db/immutability.py).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - UUID -> str on INSERT/UPDATE, str -> UUID on SELECT.
        - Plain strings are accepted on bind, so raw UUID text can be used
          in filters.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return PyUUID(value)


class Base(DeclarativeBase):
    """
    Declarative base for all ledger models.

    Contract:
        Every ORM model inherits from Base (or TrackedBase) and receives a
        uuid4 primary key.  type_annotation_map keeps column types consistent
        across the schema.
    """

    type_annotation_map: ClassVar[dict] = {
        # Monetary precision: two decimal places
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        date: Date,
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps and actor tracking.

    Guarantees:
        - created_at is set by the database on INSERT.
        - updated_at is refreshed on every UPDATE.
        - created_by is required; updated_by is set on later changes.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    updated_by: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )


# Re-export UUID for convenience
UUID = PyUUID
