"""Command-line interface for rbacsync."""

from __future__ import annotations

import asyncio as asyncio

from rbacsync.cli.app import main as main
from rbacsync.cli.commands import init as init_command
from rbacsync.cli.commands import pull as pull_command
from rbacsync.cli.commands import sync as sync_command
from rbacsync.cli.common import confirm as confirm
from rbacsync.cli.common import load_cli_config as load_cli_config
from rbacsync.cli.common import print_bullets as print_bullets
from rbacsync.cli.common import run_with_signals as run_with_signals
from rbacsync.cli.parser import build_parser as build_parser
from rbacsync.cli.progress.rich import RichSyncProgress as RichSyncProgress
from rbacsync.config.loader import DEFAULT_CONFIG_PATH as DEFAULT_CONFIG_PATH
from rbacsync.config.loader import write_config_template as write_config_template
from rbacsync.sdk import RbacSync as RbacSync

_format_plan = sync_command.format_plan
_format_summary = sync_command.format_sync_summary

_run_init = init_command.run_init
_run_sync = sync_command.run_sync
_run_pull = pull_command.run_pull

__all__ = ["build_parser", "main"]
