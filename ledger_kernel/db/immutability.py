"""
ORM-level immutability enforcement.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Entity            | When frozen                 | What may still change
------------------|-----------------------------|------------------------------
JournalEntry      | status POSTED or REVERSED   | POSTED -> REVERSED together
                  |                             | with reversal_entry_id,
                  |                             | reversed_by, reversed_at
JournalEntryLine  | parent entry not DRAFT      | nothing
Account           | always (no hard delete)     | everything except deletion

updated_at / updated_by are audit metadata and may change on any row.

SQLAlchemy fires ``before_update`` / ``before_delete`` before the SQL is
sent.  A violation raises ImmutabilityViolationError and aborts the flush,
so the database is never modified.

Usage:

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

Bulk ``UPDATE``/``DELETE`` statements and raw SQL bypass ORM events.
"""

from sqlalchemy import event, select
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Columns a frozen entry may still change, only while being reversed
_REVERSAL_FIELDS = frozenset({
    "status",
    "reversal_entry_id",
    "reversed_by",
    "reversed_at",
})

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by"})


def _blocked(entity_type: str, entity_id, operation: str, reason: str) -> ImmutabilityViolationError:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "reason": reason,
        },
    )
    return ImmutabilityViolationError(entity_type, str(entity_id), reason)


def _changed_columns(target) -> set[str]:
    from sqlalchemy import inspect

    state = inspect(target)
    changed = set()
    for attr in state.mapper.column_attrs:
        if get_history(target, attr.key).has_changes():
            changed.add(attr.key)
    return changed


def _check_journal_entry_update(mapper, connection, target):
    """
    Block updates to a POSTED or REVERSED entry.

    The DRAFT -> POSTED transition itself is allowed (the old status is
    DRAFT).  POSTED -> REVERSED is allowed when only the reversal linkage
    changes.
    """
    from ledger_kernel.domain.values import JournalEntryStatus

    history = get_history(target, "status")
    old_status = history.deleted[0] if history.deleted else target.status
    old_status = JournalEntryStatus(old_status)

    if old_status == JournalEntryStatus.DRAFT:
        return

    changed = _changed_columns(target) - _AUDIT_FIELDS
    if not changed:
        return

    is_reversal = (
        old_status == JournalEntryStatus.POSTED
        and JournalEntryStatus(target.status) == JournalEntryStatus.REVERSED
        and changed <= _REVERSAL_FIELDS
    )
    if is_reversal:
        return

    raise _blocked(
        "JournalEntry",
        target.id,
        "UPDATE",
        f"entry is {old_status.value}; attempted to change {', '.join(sorted(changed))}",
    )


def _check_journal_entry_delete(mapper, connection, target):
    from ledger_kernel.domain.values import JournalEntryStatus

    history = get_history(target, "status")
    status = history.deleted[0] if history.deleted else target.status
    if JournalEntryStatus(status) != JournalEntryStatus.DRAFT:
        raise _blocked(
            "JournalEntry",
            target.id,
            "DELETE",
            f"entry is {JournalEntryStatus(status).value}",
        )


def _parent_status(connection, journal_entry_id):
    from ledger_kernel.models.journal import JournalEntry

    return connection.execute(
        select(JournalEntry.status).where(JournalEntry.id == journal_entry_id)
    ).scalar_one_or_none()


def _check_line_update(mapper, connection, target):
    from ledger_kernel.domain.values import JournalEntryStatus

    history = get_history(target, "journal_entry_id")
    entry_id = history.deleted[0] if history.deleted else target.journal_entry_id
    status = _parent_status(connection, entry_id)
    if status is not None and JournalEntryStatus(status) != JournalEntryStatus.DRAFT:
        raise _blocked(
            "JournalEntryLine",
            target.id,
            "UPDATE",
            f"parent entry is {JournalEntryStatus(status).value}",
        )


def _check_line_delete(mapper, connection, target):
    from ledger_kernel.domain.values import JournalEntryStatus

    status = _parent_status(connection, target.journal_entry_id)
    if status is not None and JournalEntryStatus(status) != JournalEntryStatus.DRAFT:
        raise _blocked(
            "JournalEntryLine",
            target.id,
            "DELETE",
            f"parent entry is {JournalEntryStatus(status).value}",
        )


def _check_account_delete(mapper, connection, target):
    raise _blocked(
        "Account",
        target.id,
        "DELETE",
        "accounts are deactivated, never deleted",
    )


def _listeners():
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.journal import JournalEntry, JournalEntryLine

    return (
        (JournalEntry, "before_update", _check_journal_entry_update),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalEntryLine, "before_update", _check_line_update),
        (JournalEntryLine, "before_delete", _check_line_delete),
        (Account, "before_delete", _check_account_delete),
    )


def register_immutability_listeners() -> None:
    """Register all immutability listeners (idempotent)."""
    for model, name, fn in _listeners():
        if not event.contains(model, name, fn):
            event.listen(model, name, fn)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners() -> None:
    """Remove all immutability listeners. FOR TESTING ONLY."""
    for model, name, fn in _listeners():
        if event.contains(model, name, fn):
            event.remove(model, name, fn)
