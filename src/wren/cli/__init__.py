"""Wren CLI: inspect and check a routes directory.

Entry point registered as ``wren`` in ``pyproject.toml``::

    [project.scripts]
    wren = "wren.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wren`` command."""
    parser = argparse.ArgumentParser(
        prog="wren",
        description="Wren: file-discovered routes behind validated controllers.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- wren routes ------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List discovered routes")
    routes_parser.add_argument("routes_dir", help="Routes directory to scan")
    routes_parser.add_argument("--prefix", default="", help="Path prefix (e.g. /api)")

    # -- wren check -------------------------------------------------------
    check_parser = subparsers.add_parser(
        "check", help="Load every route module and report configuration errors"
    )
    check_parser.add_argument("routes_dir", help="Routes directory to load")
    check_parser.add_argument("--prefix", default="", help="Path prefix (e.g. /api)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from wren.cli._routes import run_routes

        run_routes(args)
    elif args.command == "check":
        from wren.cli._check import run_check

        run_check(args)
