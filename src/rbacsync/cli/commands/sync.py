"""Sync command: plan, confirm, apply, and report."""

from __future__ import annotations

import argparse
import contextlib

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.plan import ChangePlan, ExecutionResult, MemberDeletions
from rbacsync.sdk import RbacSync, SyncPreview


def format_plan(plan: ChangePlan) -> list[str]:
    lines = [f"Sync plan: {plan.summary()}"]
    for header, names in (
        ("Will create", [role.name for role in plan.creates]),
        ("Will update", [update.name for update in plan.updates]),
        ("Will delete", list(plan.deletes)),
    ):
        if names:
            lines.append(f"{header} {len(names)} role(s):")
            lines.extend(f"  - {name}" for name in names)
    return lines


def format_sync_summary(result: ExecutionResult, *, diff: bool = False) -> str:
    lines = [f"Sync completed: {result.detailed_summary() if diff else result.summary()}"]
    if result.invited or result.assigned:
        lines.append(f"Members: {result.invited} invited, {result.assigned} reassigned")
    for failure in result.member_errors:
        lines.append(f"Warning: {failure.describe()}")
    return "\n".join(lines)


def _print_preview_notes(preview: SyncPreview) -> None:
    for skipped in preview.skipped:
        print(f"Warning: Skipped {skipped.path} ({skipped.reason})")
    if preview.skipped:
        print("Help: Check your YAML files for proper formatting and structure")
    if preview.withheld_deletes:
        print(
            f"Note: {len(preview.withheld_deletes)} remote role(s) have no local file and were kept "
            f"(use --delete to remove): {', '.join(preview.withheld_deletes)}"
        )


async def _handle_orphans(
    client: RbacSync,
    deletions: MemberDeletions,
    *,
    cancel: CancelToken,
    force: bool,
) -> None:
    import rbacsync.cli as cli

    cli.print_bullets("Team members not declared in any role:", deletions.orphaned_users)
    cli.print_bullets("Pending invitations not declared in any role:", deletions.orphaned_invites)
    total = len(deletions.orphaned_users) + len(deletions.orphaned_invites)
    if not force and not await cli.confirm(f"Remove {total} orphaned member(s) and invitation(s)?"):
        print("Orphaned members kept")
        return
    removed = await client.remove_orphans(deletions, cancel=cancel)
    print(f"Removed {removed} orphaned member(s) and invitation(s)")


async def run_sync(args: argparse.Namespace, cancel: CancelToken) -> ExecutionResult | None:
    """Run one sync. Returns ``None`` when nothing was executed.

    Raises the result's ``SyncError`` after printing the summary when
    execution stopped early.
    """
    import rbacsync.cli as cli

    config = cli.load_cli_config(args)
    dry_run = args.dry_run or args.diff
    client = cli.RbacSync.from_config(config)

    print(f"Synchronizing roles from directory: {args.directory}")
    if dry_run:
        print("DRY RUN: No changes will be applied")

    preview = await client.plan(args.directory, cancel=cancel, delete=args.delete)
    _print_preview_notes(preview)

    plan = preview.plan
    if not plan.has_changes:
        print("No changes needed")
        return None

    for line in format_plan(plan):
        print(line)

    if plan.deletes and not dry_run and not (args.force or config.confirm):
        print(f"\nThis operation will permanently delete {len(plan.deletes)} role(s) from the API.")
        if not await cli.confirm("Do you want to continue?"):
            print("Operation cancelled by user")
            return None

    show_progress = not dry_run and not (args.verbose or args.debug)
    progress_cm = cli.RichSyncProgress() if show_progress else contextlib.nullcontext(None)
    with progress_cm as progress:
        result = await client.apply(
            preview,
            cancel=cancel,
            dry_run=dry_run,
            diff=args.diff,
            auto_invite=args.auto_invite,
            progress=progress,
        )

    print()
    print(format_sync_summary(result, diff=args.diff))
    if result.error is not None:
        raise result.error

    if not dry_run and result.member_deletions is not None and not result.member_deletions.empty:
        await _handle_orphans(client, result.member_deletions, cancel=cancel, force=args.force)
    return result


__all__ = ["format_plan", "format_sync_summary", "run_sync"]
