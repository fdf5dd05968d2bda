"""Database layer - engine, base classes, types and immutability guards."""

from ledger_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from ledger_kernel.db.engine import (
    create_ledger_engine,
    create_tables,
    get_engine,
    get_session,
    session_scope,
)
from ledger_kernel.db.types import BALANCE_TOLERANCE, Money, round_money

__all__ = [
    "BALANCE_TOLERANCE",
    "Base",
    "Money",
    "TrackedBase",
    "UUID",
    "UUIDString",
    "create_ledger_engine",
    "create_tables",
    "get_engine",
    "get_session",
    "round_money",
    "session_scope",
]
