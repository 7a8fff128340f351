"""Change plan and execution result contracts."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from rbacsync.contracts.exceptions import SyncError
from rbacsync.contracts.role import Role, RoleUpdate


class ChangePlan(BaseModel):
    """Creates, updates, and deletes needed to make the remote match local roles."""

    model_config = ConfigDict(frozen=True)

    creates: tuple[Role, ...] = ()
    updates: tuple[RoleUpdate, ...] = ()
    deletes: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _names_unique_across_lists(self) -> ChangePlan:
        names = Counter(
            [role.name for role in self.creates] + [update.name for update in self.updates] + list(self.deletes)
        )
        repeated = sorted(name for name, count in names.items() if count > 1)
        if repeated:
            raise ValueError(f"role names planned more than once: {', '.join(repeated)}")
        return self

    @property
    def has_changes(self) -> bool:
        return bool(self.creates or self.updates or self.deletes)

    @property
    def total(self) -> int:
        return len(self.creates) + len(self.updates) + len(self.deletes)

    def without_deletes(self) -> ChangePlan:
        return self.model_copy(update={"deletes": ()})

    def summary(self) -> str:
        if not self.has_changes:
            return "No changes needed"
        parts: list[str] = []
        if self.creates:
            parts.append(f"{len(self.creates)} to create")
        if self.updates:
            parts.append(f"{len(self.updates)} to update")
        if self.deletes:
            parts.append(f"{len(self.deletes)} to delete")
        return ", ".join(parts)


class MemberDeletions(BaseModel):
    """Team members and pending invites not declared by any local role."""

    model_config = ConfigDict(frozen=True)

    orphaned_users: tuple[str, ...] = ()
    orphaned_invites: tuple[str, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.orphaned_users and not self.orphaned_invites


@dataclass(frozen=True)
class MemberOperationFailure:
    """A member invite/assignment that did not happen for a reconciled role."""

    identity: str
    role_name: str
    action: Literal["invite", "assign", "lookup"]
    error: BaseException | None = None
    reason: str = ""

    def describe(self) -> str:
        detail = str(self.error) if self.error is not None else self.reason
        return f"{self.action} {self.identity} -> {self.role_name}: {detail}"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one executor run.

    ``created``/``updated``/``deleted``/``invited`` count operations that were
    actually applied, so they stay zero for a dry run. The ``would_*`` fields
    carry the previewed operation counts instead.
    """

    created: int = 0
    updated: int = 0
    deleted: int = 0
    invited: int = 0
    assigned: int = 0
    would_create: int = 0
    would_update: int = 0
    would_delete: int = 0
    dry_run: bool = False
    error: SyncError | None = None
    member_errors: tuple[MemberOperationFailure, ...] = ()
    member_deletions: MemberDeletions | None = None
    details: str = ""

    @property
    def counts(self) -> tuple[int, int, int]:
        if self.dry_run:
            return (self.would_create, self.would_update, self.would_delete)
        return (self.created, self.updated, self.deleted)

    @property
    def has_changes(self) -> bool:
        return any(self.counts)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def summary(self) -> str:
        if self.error is not None:
            return f"Execution failed: {self.error}"

        if not self.has_changes:
            return "Dry run: No changes would be made" if self.dry_run else "No changes made"

        verbs = ("create", "update", "delete") if self.dry_run else ("created", "updated", "deleted")
        counts = self.counts
        actions = [f"{verb} {count} role(s)" for verb, count in zip(verbs, counts, strict=True) if count]

        if len(actions) == 1:
            text = actions[0]
        elif len(actions) == 2:
            text = f"{actions[0]} and {actions[1]}"
        else:
            text = f"{actions[0]}, {actions[1]}, and {actions[2]}"

        if self.dry_run:
            return f"Dry run: Would {text}"
        return text[0].upper() + text[1:]

    def detailed_summary(self) -> str:
        summary = self.summary()
        if self.details:
            summary += "\n\nDetails:\n" + self.details
        return summary
