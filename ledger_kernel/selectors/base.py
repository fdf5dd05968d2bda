"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - Selectors return DTOs or computed values, not ORM instances.
    - Every figure is derived from journal lines at query time; there are
      no stored balances.

Failure modes:
    - NoResultFound / MultipleResultsFound when a query's expected
      cardinality does not match the data.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs.  The caller owns the session and its snapshot.
    """

    def __init__(self, session: Session):
        self.session = session
