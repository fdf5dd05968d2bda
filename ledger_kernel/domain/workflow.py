"""
Journal entry state machine (``ledger_kernel.domain.workflow``).

Responsibility
--------------
The explicit table of legal journal-entry transitions and the single
function every service calls before changing an entry's status.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Legal edges only: DRAFT -post-> POSTED, POSTED -reverse-> REVERSED,
  DRAFT -edit-> DRAFT and DRAFT -delete-> (removed).
* POSTED never returns to DRAFT; REVERSED has no outgoing edge.
* Any other (state, action) pair raises an InvalidStateTransitionError
  subclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from ledger_kernel.domain.values import JournalEntryStatus
from ledger_kernel.exceptions import (
    EntryNotDraftError,
    EntryNotPostedError,
    InvalidStateTransitionError,
)

POST = "post"
REVERSE = "reverse"
EDIT = "edit"
DELETE = "delete"


@dataclass(frozen=True)
class Transition:
    """A legal edge.  ``to_state`` None means the entry is removed."""

    from_state: JournalEntryStatus
    to_state: JournalEntryStatus | None
    action: str


@dataclass(frozen=True)
class Workflow:
    """
    A state machine definition.

    Guarantees: every transition references states in ``states``;
    ``terminal_states`` have no outgoing transitions.
    """

    name: str
    initial_state: JournalEntryStatus
    states: tuple[JournalEntryStatus, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[JournalEntryStatus, ...] = ()

    def find(self, state: JournalEntryStatus, action: str) -> Transition | None:
        for candidate in self.transitions:
            if candidate.from_state == state and candidate.action == action:
                return candidate
        return None

    def allowed_actions(self, state: JournalEntryStatus) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)


JOURNAL_ENTRY_WORKFLOW = Workflow(
    name="journal_entry",
    initial_state=JournalEntryStatus.DRAFT,
    states=(
        JournalEntryStatus.DRAFT,
        JournalEntryStatus.POSTED,
        JournalEntryStatus.REVERSED,
    ),
    transitions=(
        Transition(JournalEntryStatus.DRAFT, JournalEntryStatus.POSTED, POST),
        Transition(JournalEntryStatus.POSTED, JournalEntryStatus.REVERSED, REVERSE),
        Transition(JournalEntryStatus.DRAFT, JournalEntryStatus.DRAFT, EDIT),
        Transition(JournalEntryStatus.DRAFT, None, DELETE),
    ),
    terminal_states=(JournalEntryStatus.REVERSED,),
)

_REJECTIONS: dict[str, type[InvalidStateTransitionError]] = {
    POST: EntryNotDraftError,
    EDIT: EntryNotDraftError,
    DELETE: EntryNotDraftError,
    REVERSE: EntryNotPostedError,
}


def transition(
    entry_id: UUID,
    current: JournalEntryStatus | str,
    action: str,
    workflow: Workflow = JOURNAL_ENTRY_WORKFLOW,
) -> JournalEntryStatus | None:
    """
    Resolve the status an entry moves to when ``action`` is applied.

    Args:
        entry_id: Entry being transitioned (for the error payload).
        current: Its current status.
        action: One of post, reverse, edit, delete.

    Returns:
        The new status, or None when the action removes the entry.

    Raises:
        EntryNotDraftError: post/edit/delete on a non-draft entry.
        EntryNotPostedError: reverse on a non-posted entry.
        InvalidStateTransitionError: unknown action.
    """
    state = JournalEntryStatus(current)
    edge = workflow.find(state, action)
    if edge is None:
        error_cls = _REJECTIONS.get(action, InvalidStateTransitionError)
        raise error_cls(str(entry_id), state.value, action)
    return edge.to_state
