"""Role comparison: local vs remote role sets to a change plan."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from rbacsync.contracts.exceptions import DuplicateMemberError, RoleValidationError
from rbacsync.contracts.plan import ChangePlan
from rbacsync.contracts.role import Role, RoleUpdate

_LOG = logging.getLogger(__name__)


def roles_equivalent(left: Role, right: Role) -> bool:
    """Set-based equality of resources and members; the API identifier is ignored."""
    return left.equivalent(right)


def validate_local_roles(local: Sequence[Role]) -> None:
    """Reject local role sets that cannot be reconciled unambiguously.

    Raises:
        RoleValidationError: A role name is defined more than once.
        DuplicateMemberError: A member identity is declared by more than one role.
    """
    name_counts = Counter(role.name for role in local)
    duplicated = sorted(name for name, count in name_counts.items() if count > 1)
    if duplicated:
        raise RoleValidationError(f"duplicate role name(s) in local definitions: {', '.join(duplicated)}")

    owners: dict[str, str] = {}
    for role in sorted(local, key=lambda r: r.name):
        for member in role.members:
            owner = owners.get(member)
            if owner is None:
                owners[member] = role.name
            elif owner != role.name:
                raise DuplicateMemberError(member, (owner, role.name))


def compare_roles(local: Sequence[Role], remote: Sequence[Role]) -> ChangePlan:
    """Compute the changes that make *remote* match *local*.

    Every list in the returned plan is sorted by role name.
    """
    validate_local_roles(local)

    remote_by_name = {role.name: role for role in remote}
    local_names = {role.name for role in local}

    creates: list[Role] = []
    updates: list[RoleUpdate] = []
    for local_role in sorted(local, key=lambda r: r.name):
        remote_role = remote_by_name.get(local_role.name)
        if remote_role is None:
            creates.append(local_role)
        elif not roles_equivalent(local_role, remote_role):
            updates.append(RoleUpdate(name=local_role.name, local=local_role, remote=remote_role))

    deletes = sorted(name for name in remote_by_name if name not in local_names)

    plan = ChangePlan(creates=tuple(creates), updates=tuple(updates), deletes=tuple(deletes))
    _LOG.debug(
        "plan generated: %d creates, %d updates, %d deletes",
        len(plan.creates),
        len(plan.updates),
        len(plan.deletes),
    )
    return plan
