"""``wren check``: load the full route table and report problems.

Imports every route module exactly as a server would at startup, so a
missing ``controller`` export or a duplicate route fails here instead of
in production. Exits with status 1 on any configuration error.
"""

import argparse
import sys

from wren.config import RoutesConfig
from wren.errors import ConfigurationError
from wren.routing.table import load_routes


def run_check(args: argparse.Namespace) -> None:
    """Load ``args.routes_dir`` and print a one-line verdict."""
    config = RoutesConfig(routes_dir=args.routes_dir, route_prefix=args.prefix)
    try:
        table = load_routes(config)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    count = len(table.entries)
    noun = "route" if count == 1 else "routes"
    print(f"ok: {count} {noun} across {len(table)} paths")
