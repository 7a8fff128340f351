"""CLI parser construction."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version


def _package_version() -> str:
    try:
        return version("rbacsync")
    except PackageNotFoundError:
        return "0.0.0"


def _connection_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument("--config", default=None, help="Path to a YAML or JSON config file")
    parent.add_argument("--api-endpoint", default=None, help="Vendor API endpoint (env: RBACSYNC_API_ENDPOINT)")
    parent.add_argument("--api-token", default=None, help="Vendor API token (env: RBACSYNC_API_TOKEN)")
    verbosity = parent.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Log progress and results to stderr")
    verbosity.add_argument("--debug", action="store_true", help="Log detailed operation info to stderr")
    return parent


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rbacsync",
        description="Reconcile declarative role files with the vendor API.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    connection = _connection_options()

    sync_parser = subparsers.add_parser(
        "sync",
        parents=[connection],
        help="Apply local role files to the remote API",
    )
    sync_parser.add_argument("directory", nargs="?", default=".", help="Directory of role YAML files (default: .)")
    sync_parser.add_argument("--dry-run", action="store_true", help="Preview changes without applying them")
    sync_parser.add_argument("--diff", action="store_true", help="Preview with detailed diffs (implies --dry-run)")
    sync_parser.add_argument("--delete", action="store_true", help="Delete remote roles missing from local files")
    sync_parser.add_argument("--force", action="store_true", help="Skip confirmation prompts")
    sync_parser.add_argument(
        "--no-invite",
        dest="auto_invite",
        action="store_false",
        help="Do not invite declared members who are not yet on the team",
    )

    pull_parser = subparsers.add_parser(
        "pull",
        parents=[connection],
        help="Write remote roles to local role files",
    )
    pull_parser.add_argument("directory", nargs="?", default=".", help="Output directory (default: .)")
    pull_parser.add_argument("--dry-run", action="store_true", help="Preview file changes without writing")
    pull_parser.add_argument("--diff", action="store_true", help="Preview with file diffs (implies --dry-run)")
    pull_parser.add_argument("--force", action="store_true", help="Overwrite existing files")

    init_parser = subparsers.add_parser("init", help="Write a config file template")
    init_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output file path (default: ~/.config/rbacsync/config.yaml)",
    )
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


__all__ = ["build_parser"]
