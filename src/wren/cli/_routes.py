"""``wren routes``: list discovered routes.

Runs discovery only (no module is imported) and prints a table of
METHOD, PATH and FILE.
"""

import argparse
import sys
from pathlib import Path

from wren.errors import ConfigurationError
from wren.routing.discovery import discover_routes


def run_routes(args: argparse.Namespace) -> None:
    """Print the routes found under ``args.routes_dir``."""
    try:
        entries = discover_routes(args.routes_dir, args.prefix)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not entries:
        print("No routes found.")
        return

    root = Path(args.routes_dir).resolve()
    rows = [
        (entry.method, entry.path, str(Path(entry.handler_location).relative_to(root)))
        for entry in entries
    ]

    # Column widths
    max_method = max(max(len(r[0]) for r in rows), 6)  # "METHOD" header
    max_path = max(max(len(r[1]) for r in rows), 4)  # "PATH" header

    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "FILE"))
    sep_len = max_method + max_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, path, location in rows:
        print(fmt.format(method, path, location))
