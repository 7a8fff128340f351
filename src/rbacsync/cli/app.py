"""CLI app entrypoint and error mapping."""

from __future__ import annotations

import sys

from rbacsync.contracts.exceptions import (
    ConfigError,
    OperationCancelledError,
    ProviderError,
    RoleLoadError,
    RoleValidationError,
    SyncError,
)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_USAGE = 2
EXIT_INPUT = 3
EXIT_PROVIDER = 4
EXIT_SYNC = 5
EXIT_CANCELLED = 130


def _report(exc: BaseException) -> None:
    print(f"error: {exc}", file=sys.stderr)
    guidance = getattr(exc, "guidance", None)
    if guidance:
        print(f"help: {guidance}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    import rbacsync.cli as cli

    parser = cli.build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "init":
            return cli._run_init(args)
        if args.command == "sync":
            cli.asyncio.run(cli.run_with_signals(lambda token: cli._run_sync(args, token)))
        elif args.command == "pull":
            cli.asyncio.run(cli.run_with_signals(lambda token: cli._run_pull(args, token)))
        else:  # pragma: no cover - argparse enforces the choices
            print(f"error: unsupported command: {args.command}", file=sys.stderr)
            return EXIT_USAGE
        return EXIT_OK
    except (OperationCancelledError, KeyboardInterrupt):
        print("error: operation cancelled", file=sys.stderr)
        return EXIT_CANCELLED
    except (ConfigError, RoleLoadError, RoleValidationError) as exc:
        _report(exc)
        return EXIT_INPUT
    except ProviderError as exc:
        _report(exc)
        return EXIT_PROVIDER
    except SyncError as exc:
        if isinstance(exc.__cause__, OperationCancelledError):
            print(f"error: operation cancelled: {exc}", file=sys.stderr)
            return EXIT_CANCELLED
        _report(exc)
        return EXIT_SYNC
    except Exception as exc:  # pragma: no cover - defensive fallback
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED


__all__ = ["main"]
