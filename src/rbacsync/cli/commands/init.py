"""Init command handler."""

from __future__ import annotations

import argparse
from pathlib import Path


def run_init(args: argparse.Namespace) -> int:
    """Write the commented config template."""
    import rbacsync.cli as cli

    output = Path(args.output) if args.output else cli.DEFAULT_CONFIG_PATH
    written = cli.write_config_template(output, force=args.force)
    print(f"Config written to {written}")
    print("\nSet your API token there or export RBACSYNC_API_TOKEN, then run:")
    print("  rbacsync pull roles/ --dry-run")
    return 0


__all__ = ["run_init"]
