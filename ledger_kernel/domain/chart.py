"""
Chart-of-accounts helpers (``ledger_kernel.domain.chart``).

Responsibility
--------------
Pure functions over account codes and the account forest: next-code
suggestion, code format check, tree building and the ancestor walk used to
refuse cyclic reparenting.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Works on ``AccountInfo`` DTOs and
plain id mappings.

Invariants enforced
-------------------
* ``build_tree`` is a single indexed pass; sibling order follows input order.
* ``is_descendant`` stops after ``MAX_TREE_DEPTH`` steps, so a corrupted
  parent chain cannot loop forever.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from uuid import UUID

from ledger_kernel.domain.dtos import AccountInfo, AccountNode
from ledger_kernel.domain.values import AccountType

ROOT_DIGIT_BY_TYPE: dict[AccountType, int] = {
    AccountType.ASSET: 1,
    AccountType.LIABILITY: 2,
    AccountType.EQUITY: 3,
    AccountType.REVENUE: 4,
    AccountType.EXPENSE: 5,
}

MAX_TREE_DEPTH = 64

_CODE_PATTERN = re.compile(r"^[1-5]\.\d+\.\d+(\.\d+)*$")


def is_valid_account_code(code: str) -> bool:
    """Advisory format check: root digit 1-5 followed by two or more numeric segments."""
    return bool(_CODE_PATTERN.match(code))


def next_account_code(account_type: AccountType | str, last_code: str | None) -> str:
    """
    Suggest the code following ``last_code`` for an account of ``account_type``.

    The final numeric segment is incremented, keeping its zero padding
    ("1.1.09" -> "1.1.10", "1.1.1.01" -> "1.1.1.02").  Without a last code, or
    when the last code belongs to another root, the first code of the type's
    root is returned ("{root}.0.0").  This is a UI helper; uniqueness is
    enforced separately when the account is created.
    """
    root = ROOT_DIGIT_BY_TYPE[AccountType(account_type)]
    if not last_code or last_code.split(".")[0] != str(root):
        return f"{root}.0.0"

    segments = last_code.split(".")
    last = segments[-1]
    if not last.isdigit():
        return f"{root}.0.0"
    segments[-1] = str(int(last) + 1).zfill(len(last))
    return ".".join(segments)


def build_tree(accounts: Sequence[AccountInfo]) -> list[AccountNode]:
    """
    Turn a flat account list into a forest keyed by parent_id.

    Accounts whose parent_id is None are roots.  Accounts whose parent is
    not in the list (e.g. an inactive parent) are dropped together with
    their subtree.

    Returns:
        Root nodes in input order, children in input order.
    """
    nodes = {account.id: AccountNode(account=account) for account in accounts}
    roots: list[AccountNode] = []
    for account in accounts:
        node = nodes[account.id]
        if account.parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(account.parent_id)
        if parent is not None:
            parent.children.append(node)
    return roots


def is_descendant(
    candidate_id: UUID,
    ancestor_id: UUID,
    parent_of: Mapping[UUID, UUID | None],
    max_depth: int = MAX_TREE_DEPTH,
) -> bool:
    """
    True if ``ancestor_id`` appears on the parent chain of ``candidate_id``.

    A candidate equal to the ancestor counts as a descendant.  Chains longer
    than ``max_depth`` are treated as cyclic and reported as True.
    """
    current: UUID | None = candidate_id
    for _ in range(max_depth):
        if current is None:
            return False
        if current == ancestor_id:
            return True
        current = parent_of.get(current)
    return True
