"""Shared CLI helpers: logging setup, signal-driven cancellation, prompts."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

from rbacsync.config.loader import load_config
from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.config import RbacSyncConfig

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

_CONFIG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_log_level(*, verbose: bool, debug: bool, config: RbacSyncConfig | None = None) -> int:
    """Flags win; an explicitly configured ``log_level`` comes next; otherwise stay quiet."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if config is not None and "log_level" in config.model_fields_set:
        return _CONFIG_LEVELS[config.log_level]
    return logging.ERROR


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def load_cli_config(args: argparse.Namespace) -> RbacSyncConfig:
    """Resolve config with command-line overrides, then set up logging from it."""
    config = load_config(
        args.config,
        overrides={"api_endpoint": args.api_endpoint, "api_token": args.api_token},
    )
    configure_logging(resolve_log_level(verbose=args.verbose, debug=args.debug, config=config))
    return config


async def run_with_signals(main: Callable[[CancelToken], Awaitable[T]]) -> T:
    """Run *main* with SIGINT/SIGTERM wired to a fresh cancellation token."""
    token = CancelToken()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel, f"interrupted by {sig.name}")
        except (NotImplementedError, RuntimeError):
            _LOG.debug("cannot install %s handler on this platform", sig.name)
            continue
        installed.append(sig)
    try:
        return await main(token)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def confirm(message: str) -> bool:
    """Ask a yes/no question on the terminal; non-interactive sessions answer no."""
    if not sys.stdin.isatty():
        print(f"{message} (no interactive terminal; pass --force to proceed)")
        return False

    import questionary

    answer = await questionary.confirm(message, default=False).ask_async()
    return bool(answer)


def print_bullets(header: str, values: list[str] | tuple[str, ...]) -> None:
    if not values:
        return
    print(header)
    for value in values:
        print(f"  - {value}")
