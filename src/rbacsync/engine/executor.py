"""Plan execution: apply a change plan to a role store."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.exceptions import OperationCancelledError, PartialSyncError, RbacSyncError, SyncError
from rbacsync.contracts.plan import ChangePlan, ExecutionResult, MemberDeletions, MemberOperationFailure
from rbacsync.contracts.provider import RoleStore
from rbacsync.contracts.role import Role, TeamMember
from rbacsync.engine.progress import NullSyncProgress, SyncProgress
from rbacsync.engine.utils import plan_details

_LOG = logging.getLogger(__name__)

_RoleOp = Callable[[], Awaitable[object]]


@dataclass
class _Tally:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    invited: int = 0
    assigned: int = 0
    member_errors: list[MemberOperationFailure] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return self.created + self.updated + self.deleted + self.invited


class PlanExecutor:
    """Applies a :class:`ChangePlan` in creates, updates, deletes order.

    Role operations are fatal: the first failure stops the run and is returned
    in ``ExecutionResult.error``. Member invitations and assignments run after
    every role operation succeeded; their failures are recorded, never fatal.
    A dry run walks the same phases without touching the store.
    """

    def __init__(
        self,
        store: RoleStore,
        *,
        auto_invite: bool = True,
        progress: SyncProgress | None = None,
    ) -> None:
        self._store = store
        self._auto_invite = auto_invite
        self._progress = progress or NullSyncProgress()

    async def execute(
        self,
        plan: ChangePlan,
        *,
        cancel: CancelToken,
        dry_run: bool = False,
        local_roles: Sequence[Role] | None = None,
    ) -> ExecutionResult:
        apply = not dry_run
        _LOG.info("executing plan%s: %s", "" if apply else " (dry run)", plan.summary())
        tally = _Tally()
        member_deletions: MemberDeletions | None = None
        error: SyncError | None = None

        try:
            await self._apply_roles(plan, tally, cancel=cancel, apply=apply)
            if apply:
                member_deletions = await self._reconcile_members(plan, tally, cancel=cancel, local_roles=local_roles)
        except SyncError as exc:
            error = exc

        if error is None:
            _LOG.info("plan execution completed")

        return ExecutionResult(
            created=tally.created,
            updated=tally.updated,
            deleted=tally.deleted,
            invited=tally.invited,
            assigned=tally.assigned,
            would_create=0 if apply else len(plan.creates),
            would_update=0 if apply else len(plan.updates),
            would_delete=0 if apply else len(plan.deletes),
            dry_run=dry_run,
            error=error,
            member_errors=tuple(tally.member_errors),
            member_deletions=member_deletions,
            details="" if apply else plan_details(plan),
        )

    async def remove_orphans(self, deletions: MemberDeletions, *, cancel: CancelToken) -> int:
        """Cancel orphaned invites, then remove orphaned users. Returns how many were removed.

        Raises:
            SyncError: The first removal that failed; nothing after it is attempted.
        """
        removed = 0
        steps: list[tuple[str, str, _RoleOp]] = [
            ("cancel invitation for", email, _bind(self._store.delete_invite, email, cancel))
            for email in deletions.orphaned_invites
        ]
        steps.extend(
            ("remove team member", email, _bind(self._store.remove_member, email, cancel))
            for email in deletions.orphaned_users
        )
        for description, email, op in steps:
            try:
                await op()
            except RbacSyncError as exc:
                raise SyncError(f"failed to {description} {email}: {exc}") from exc
            _LOG.info("%s %s: done", description, email)
            removed += 1
        return removed

    async def _apply_roles(self, plan: ChangePlan, tally: _Tally, *, cancel: CancelToken, apply: bool) -> None:
        phases: list[tuple[str, str, list[tuple[str, _RoleOp]]]] = [
            (
                "Create",
                "create",
                [(role.name, _bind(self._store.create_role, role, cancel)) for role in plan.creates],
            ),
            (
                "Update",
                "update",
                [
                    (update.name, _bind(self._store.update_role, update.local.with_id(update.remote.id), cancel))
                    for update in plan.updates
                ],
            ),
            (
                "Delete",
                "delete",
                [(name, _bind(self._store.delete_role, name, cancel)) for name in plan.deletes],
            ),
        ]

        for phase, verb, operations in phases:
            if not operations:
                continue
            self._progress.phase_start(phase, total=len(operations))
            for name, op in operations:
                if not apply:
                    _LOG.debug("dry run: would %s role %s", verb, name)
                    self._progress.item_done(phase)
                    continue
                _LOG.debug("%s role: %s", verb, name)
                try:
                    cancel.raise_if_cancelled()
                    await op()
                except RbacSyncError as exc:
                    _LOG.error("failed to %s role %s: %s", verb, name, exc)
                    failure = self._failure(f"failed to {verb} role '{name}': {exc}", tally, exc)
                    self._progress.phase_error(phase, failure)
                    raise failure from exc
                _count(tally, verb)
                _LOG.info("%s role: %s", _PAST_TENSE[verb], name)
                self._progress.item_done(phase)
            self._progress.phase_done(phase)

    async def _reconcile_members(
        self,
        plan: ChangePlan,
        tally: _Tally,
        *,
        cancel: CancelToken,
        local_roles: Sequence[Role] | None,
    ) -> MemberDeletions | None:
        targets = _member_targets(plan, local_roles)
        if not targets and local_roles is None:
            return None

        phase = "Members"
        self._progress.phase_start(phase, total=sum(len(role.members) for role in targets))
        try:
            try:
                members = await self._store.get_members(cancel=cancel)
            except OperationCancelledError:
                raise
            except RbacSyncError as exc:
                _LOG.error("failed to get team members: %s", exc)
                tally.member_errors.extend(
                    MemberOperationFailure(identity=identity, role_name=role.name, action="lookup", error=exc)
                    for role in targets
                    for identity in role.members
                )
                self._progress.phase_error(phase, exc)
                return None

            existing = {member.email: member for member in members}
            for role in targets:
                role_id = await self._resolve_role_id(role, tally, cancel=cancel)
                for identity in role.members:
                    if role_id is not None:
                        await self._reconcile_member(identity, role, role_id, existing.get(identity), tally, cancel=cancel)
                    self._progress.item_done(phase)
        except OperationCancelledError as exc:
            failure = self._failure(f"member reconciliation cancelled: {exc}", tally, exc)
            self._progress.phase_error(phase, failure)
            raise failure from exc

        self._progress.phase_done(phase)
        if local_roles is None:
            return None
        return _orphans(local_roles, members)

    async def _resolve_role_id(self, role: Role, tally: _Tally, *, cancel: CancelToken) -> str | None:
        if role.id:
            return role.id

        error: BaseException | None = None
        reason = ""
        try:
            remote = await self._store.get_role(role.name, cancel=cancel)
        except OperationCancelledError:
            raise
        except RbacSyncError as exc:
            _LOG.error("failed to look up role %s for member assignment: %s", role.name, exc)
            error = exc
        else:
            if remote.id:
                return remote.id
            reason = "remote role has no identifier"

        tally.member_errors.extend(
            MemberOperationFailure(
                identity=identity, role_name=role.name, action="lookup", error=error, reason=reason
            )
            for identity in role.members
        )
        return None

    async def _reconcile_member(
        self,
        identity: str,
        role: Role,
        role_id: str,
        member: TeamMember | None,
        tally: _Tally,
        *,
        cancel: CancelToken,
    ) -> None:
        if member is not None:
            if member.policy_id == role_id:
                _LOG.debug("member %s already assigned to role %s, skipping", identity, role.name)
                return
            _LOG.debug("reassigning member %s from policy %s to role %s", identity, member.policy_id, role.name)
            try:
                await self._store.assign_member_role(identity, role_id, cancel=cancel)
            except OperationCancelledError:
                raise
            except RbacSyncError as exc:
                _LOG.error("failed to assign member %s to role %s: %s", identity, role.name, exc)
                tally.member_errors.append(
                    MemberOperationFailure(identity=identity, role_name=role.name, action="assign", error=exc)
                )
                return
            tally.assigned += 1
            _LOG.info("assigned member %s to role %s", identity, role.name)
            return

        if not self._auto_invite:
            _LOG.warning("member %s not found in team for role %s (auto-invite disabled)", identity, role.name)
            tally.member_errors.append(
                MemberOperationFailure(
                    identity=identity,
                    role_name=role.name,
                    action="invite",
                    reason="not a team member and auto-invite is disabled",
                )
            )
            return

        try:
            invitation = await self._store.invite_member(identity, role_id, cancel=cancel)
        except OperationCancelledError:
            raise
        except RbacSyncError as exc:
            _LOG.error("failed to invite member %s to role %s: %s", identity, role.name, exc)
            tally.member_errors.append(
                MemberOperationFailure(identity=identity, role_name=role.name, action="invite", error=exc)
            )
            return
        tally.invited += 1
        _LOG.info("invited member %s to role %s (status: %s)", identity, role.name, invitation.status or "sent")

    @staticmethod
    def _failure(message: str, tally: _Tally, cause: BaseException) -> SyncError:
        if tally.completed == 0:
            return SyncError(message)
        return PartialSyncError(
            message,
            created=tally.created,
            updated=tally.updated,
            deleted=tally.deleted,
            invited=tally.invited,
            cause=cause,
        )


_PAST_TENSE = {"create": "created", "update": "updated", "delete": "deleted"}


def _count(tally: _Tally, verb: str) -> None:
    attr = _PAST_TENSE[verb]
    setattr(tally, attr, getattr(tally, attr) + 1)


def _bind(method: Callable[..., Awaitable[object]], arg: object, cancel: CancelToken) -> _RoleOp:
    async def call() -> object:
        return await method(arg, cancel=cancel)

    return call


def _member_targets(plan: ChangePlan, local_roles: Sequence[Role] | None) -> list[Role]:
    """Roles whose members need reconciling, carrying a known role id where there is one."""
    known_ids = {update.name: update.remote.id for update in plan.updates if update.remote.id}
    if local_roles is None:
        candidates = list(plan.creates) + [update.local for update in plan.updates]
    else:
        candidates = sorted(local_roles, key=lambda role: role.name)

    targets: list[Role] = []
    for role in candidates:
        if not role.members:
            continue
        role_id = known_ids.get(role.name) or role.id
        targets.append(role.with_id(role_id) if role_id != role.id else role)
    return targets


def _orphans(local_roles: Sequence[Role], members: Sequence[TeamMember]) -> MemberDeletions:
    declared = {identity for role in local_roles for identity in role.members}
    orphaned = [member for member in members if member.email not in declared]
    deletions = MemberDeletions(
        orphaned_users=tuple(sorted(m.email for m in orphaned if not m.is_pending_invite)),
        orphaned_invites=tuple(sorted(m.email for m in orphaned if m.is_pending_invite)),
    )
    if deletions.orphaned_users:
        _LOG.info("identified %d orphaned team member(s)", len(deletions.orphaned_users))
    if deletions.orphaned_invites:
        _LOG.info("identified %d orphaned invitation(s)", len(deletions.orphaned_invites))
    return deletions
