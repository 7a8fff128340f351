"""SDK composition root for rbacsync."""

from __future__ import annotations

import difflib
import logging
from collections import Counter
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

import httpx

from rbacsync.config.loader import require_token
from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.config import RbacSyncConfig
from rbacsync.contracts.exceptions import RoleLoadError
from rbacsync.contracts.plan import ChangePlan, ExecutionResult, MemberDeletions
from rbacsync.contracts.provider import RoleStore
from rbacsync.contracts.role import Role
from rbacsync.engine.comparator import compare_roles, validate_local_roles
from rbacsync.engine.executor import PlanExecutor
from rbacsync.engine.progress import SyncProgress
from rbacsync.providers.factory import create_store
from rbacsync.roles.loader import RoleLoader, SkippedFile
from rbacsync.roles.writer import render_role_yaml, role_file_name, write_role_file

_LOG = logging.getLogger(__name__)

PullAction = Literal["created", "overwritten", "skipped", "would_create", "would_update", "unchanged"]


@dataclass(frozen=True)
class SyncPreview:
    """A computed plan together with the inputs it was computed from.

    ``withheld_deletes`` lists remote-only roles left out of ``plan`` because
    deletion was not requested.
    """

    plan: ChangePlan
    local_roles: tuple[Role, ...]
    remote_roles: tuple[Role, ...]
    skipped: tuple[SkippedFile, ...] = ()
    withheld_deletes: tuple[str, ...] = ()


@dataclass(frozen=True)
class PullFile:
    role_name: str
    path: Path
    action: PullAction
    diff: str = ""


@dataclass(frozen=True)
class PullResult:
    files: tuple[PullFile, ...]
    dry_run: bool

    def count(self, action: PullAction) -> int:
        return sum(1 for entry in self.files if entry.action == action)

    def summary(self) -> str:
        if not self.files:
            return "Pull completed: no roles found"
        if self.dry_run:
            would_create = self.count("would_create")
            would_update = self.count("would_update")
            parts = []
            if would_create:
                parts.append(f"{would_create} would be created")
            if would_update:
                parts.append(f"{would_update} would be updated")
            return f"Pull completed (dry-run): {', '.join(parts) if parts else 'no changes needed'}"

        counts = Counter(entry.action for entry in self.files)
        parts = [f"{counts[action]} {action}" for action in ("created", "overwritten", "skipped") if counts[action]]
        return f"Pull completed: {', '.join(parts)}"


class RbacSync:
    """rbacsync SDK public API.

    Each call opens the role store for its own duration, so a preview and the
    apply that follows may run with an interactive confirmation in between.
    """

    def __init__(
        self,
        *,
        store: RoleStore,
        config: RbacSyncConfig,
        progress: SyncProgress | None = None,
        loader: RoleLoader | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._progress = progress
        self._loader = loader or RoleLoader()

    @classmethod
    def from_config(
        cls,
        config: RbacSyncConfig,
        *,
        progress: SyncProgress | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> RbacSync:
        require_token(config)
        return cls(store=create_store(config, transport=transport), config=config, progress=progress)

    @property
    def config(self) -> RbacSyncConfig:
        return self._config

    async def plan(self, directory: str | Path, *, cancel: CancelToken, delete: bool = False) -> SyncPreview:
        """Load local roles, fetch remote roles, and compute the change plan.

        Local roles are validated before the store is contacted.
        """
        loaded = self._loader.load_directory(Path(directory))
        if not loaded.roles and not loaded.skipped:
            _LOG.info("no role files found in %s", directory)
        validate_local_roles(loaded.roles)

        async with self._store:
            remote = await self._store.get_roles(cancel=cancel)

        full_plan = compare_roles(loaded.roles, remote)
        plan = full_plan if delete else full_plan.without_deletes()

        remote_ids = {role.name: role.id for role in remote if role.id}
        local_roles = tuple(role.with_id(remote_ids.get(role.name)) for role in loaded.roles)

        return SyncPreview(
            plan=plan,
            local_roles=local_roles,
            remote_roles=tuple(remote),
            skipped=loaded.skipped,
            withheld_deletes=() if delete else full_plan.deletes,
        )

    async def apply(
        self,
        preview: SyncPreview,
        *,
        cancel: CancelToken,
        dry_run: bool = False,
        diff: bool = False,
        auto_invite: bool = True,
        progress: SyncProgress | None = None,
    ) -> ExecutionResult:
        """Execute the previewed plan.

        Team-wide member reconciliation (and orphan detection) only runs when
        at least one local role declares members; otherwise membership is
        treated as unmanaged.
        """
        executor = PlanExecutor(self._store, auto_invite=auto_invite, progress=progress or self._progress)
        if dry_run:
            result = await executor.execute(preview.plan, cancel=cancel, dry_run=True)
            return result if diff else replace(result, details="")

        manages_members = any(role.members for role in preview.local_roles)
        async with self._store:
            return await executor.execute(
                preview.plan,
                cancel=cancel,
                local_roles=preview.local_roles if manages_members else None,
            )

    async def remove_orphans(
        self,
        deletions: MemberDeletions,
        *,
        cancel: CancelToken,
        progress: SyncProgress | None = None,
    ) -> int:
        if deletions.empty:
            return 0
        executor = PlanExecutor(self._store, progress=progress or self._progress)
        async with self._store:
            return await executor.remove_orphans(deletions, cancel=cancel)

    async def pull(
        self,
        directory: str | Path,
        *,
        cancel: CancelToken,
        dry_run: bool = False,
        force: bool = False,
    ) -> PullResult:
        """Write one ``<name>.yaml`` per remote role into *directory*.

        Existing files are left alone unless *force*. A dry run writes nothing
        and reports what would change, with a unified diff for updates.
        """
        target = Path(directory)
        if target.exists() and not target.is_dir():
            raise RoleLoadError(f"not a directory: {target}")

        async with self._store:
            remote = await self._store.get_roles(cancel=cancel)

        files: list[PullFile] = []
        for role in sorted(remote, key=lambda r: r.name):
            role = role.model_copy(update={"members": tuple(sorted(role.members))})
            path = target / role_file_name(role)
            files.append(self._pull_one(role, path, dry_run=dry_run, force=force))
        return PullResult(files=tuple(files), dry_run=dry_run)

    @staticmethod
    def _pull_one(role: Role, path: Path, *, dry_run: bool, force: bool) -> PullFile:
        rendered = render_role_yaml(role)
        if not path.exists():
            if not dry_run:
                write_role_file(role, path)
            return PullFile(role.name, path, "would_create" if dry_run else "created")

        if dry_run:
            try:
                existing = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise RoleLoadError(f"failed reading role file: {path}") from exc
            if existing == rendered:
                return PullFile(role.name, path, "unchanged")
            diff = "".join(
                difflib.unified_diff(
                    existing.splitlines(keepends=True),
                    rendered.splitlines(keepends=True),
                    fromfile=str(path),
                    tofile=f"{path} (remote)",
                )
            )
            return PullFile(role.name, path, "would_update", diff)

        if not force:
            return PullFile(role.name, path, "skipped")
        write_role_file(role, path)
        return PullFile(role.name, path, "overwritten")
