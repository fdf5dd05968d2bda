"""
BaseService -- abstract base for all ledger services.

Responsibility:
    Common constructor and session contract for every write-side service.
    Services receive a SQLAlchemy ``Session`` and a ``Clock`` and persist
    with ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Transaction boundaries belong to the caller.  A service call that
      writes several rows (entry + lines + counter, a reversal pair, a
      closing entry) is atomic because it all happens inside the caller's
      single transaction.

Failure modes:
    - A subclass calling ``session.commit()`` would split multi-row writes
      into separately visible pieces.
"""

from abc import ABC

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for all ledger services.

    Contract:
        Accepts a Session from the caller and flushes within the active
        transaction.

    Non-goals:
        - Does NOT commit or roll back.
        - Read-only queries belong in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Args:
            session: Open SQLAlchemy session; the caller owns its transaction.
            clock: Time source; defaults to SystemClock.
        """
        self.session = session
        self.clock = clock or SystemClock()
