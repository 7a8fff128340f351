"""Pull command formatting."""

from __future__ import annotations

import argparse

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.sdk import PullFile, PullResult

_MESSAGES = {
    "created": "Created {path}",
    "overwritten": "Overwrote {path}",
    "skipped": "Skipped {name} (file already exists)",
    "would_create": "Would create {path}",
    "would_update": "Would update {path}",
    "unchanged": "Would skip {name} (no changes)",
}


def format_pull_file(entry: PullFile) -> str:
    return _MESSAGES[entry.action].format(path=entry.path, name=entry.path.name)


async def run_pull(args: argparse.Namespace, cancel: CancelToken) -> PullResult:
    import rbacsync.cli as cli

    config = cli.load_cli_config(args)
    dry_run = args.dry_run or args.diff
    client = cli.RbacSync.from_config(config)

    if dry_run:
        print("DRY-RUN: Showing what would be done" + (" with detailed diffs" if args.diff else ""))
    print(f"Pulling role files into directory: {args.directory}")
    if args.force and not dry_run:
        print("FORCE: Existing files will be overwritten")

    result = await client.pull(args.directory, cancel=cancel, dry_run=dry_run, force=args.force)
    if result.files:
        print(f"Downloaded {len(result.files)} role(s) from API")
    for entry in result.files:
        print(format_pull_file(entry))
        if args.diff and entry.diff:
            print(entry.diff.rstrip("\n"))

    print(result.summary())
    return result


__all__ = ["format_pull_file", "run_pull"]
