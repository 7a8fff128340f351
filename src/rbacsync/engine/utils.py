"""Engine utility helpers."""

from __future__ import annotations

from collections.abc import Iterable

from rbacsync.contracts.plan import ChangePlan
from rbacsync.contracts.role import Role


def resource_diff(label: str, old: Iterable[str] | None, new: Iterable[str] | None) -> list[str]:
    """Return ``+ label: x`` / ``- label: y`` lines for entries added to or removed from *old*."""
    old_set = set(old or ())
    new_set = set(new or ())
    lines = [f"+ {label}: {entry}" for entry in sorted(new_set - old_set)]
    lines.extend(f"- {label}: {entry}" for entry in sorted(old_set - new_set))
    return lines


def _format_list(values: Iterable[str]) -> str:
    return "[" + ", ".join(values) + "]"


def describe_create(role: Role) -> str:
    text = f"CREATE: {role.name} (allowed: {_format_list(role.allowed)}, denied: {_format_list(role.denied)}"
    if role.members:
        text += f", members: {_format_list(role.members)}"
    return text + ")"


def plan_details(plan: ChangePlan) -> str:
    """Render the per-role changes of *plan* for dry-run previews."""
    lines: list[str] = [describe_create(role) for role in plan.creates]

    for update in plan.updates:
        lines.append(f"UPDATE: {update.name}")
        for label, old, new in (
            ("allowed", update.remote.allowed, update.local.allowed),
            ("denied", update.remote.denied, update.local.denied),
            ("members", update.remote.members, update.local.members),
        ):
            lines.extend(f"  {line}" for line in resource_diff(label, old, new))

    lines.extend(f"DELETE: {name}" for name in plan.deletes)
    return "\n".join(lines)
