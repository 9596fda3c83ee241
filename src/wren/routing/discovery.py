"""Filesystem route discovery.

Walks a routes directory tree. A file whose stem is an HTTP method name
(case-insensitive) becomes a route for that method; its containing
directory, relative to the root, becomes the path::

    routes/
      get.py                 # GET    /
      users/
        get.py               # GET    /users
        post.py              # POST   /users
        [id]/
          get.py             # GET    /users/[id]
          DELETE.py          # DELETE /users/[id]
      helpers.py             # ignored

Paths are lower-cased and prefixed. Nothing is imported here; checking a
module's shape happens when the table is loaded.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from wren.errors import ConfigurationError

logger = logging.getLogger("wren.routing")

# HTTP methods recognised as route file names, in canonical order
METHODS: tuple[str, ...] = ("GET", "POST", "PATCH", "PUT", "DELETE", "HEAD", "OPTIONS")

_METHOD_NAMES = frozenset(method.lower() for method in METHODS)

ROUTE_SUFFIX = ".py"

_SLASHES_RE = re.compile(r"/{2,}")


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A discovered ``(path, method) -> module file`` binding.

    Attributes:
        path: Normalized URL path, prefix included (e.g. ``/api/users``).
        method: Upper-case HTTP method.
        handler_location: Filesystem path of the route module.
    """

    path: str
    method: str
    handler_location: str


def discover_routes(routes_dir: str | Path, prefix: str = "") -> list[RouteEntry]:
    """Walk a routes directory and discover every route file.

    Args:
        routes_dir: Root of the route tree.
        prefix: Prepended to every path (e.g. ``"/api"``).

    Returns:
        Entries in walk order: files of a directory (sorted), then its
        subdirectories (sorted). Walking an unchanged tree twice yields
        equal lists.

    Raises:
        ConfigurationError: If the directory does not exist, or two files
            map to the same ``(path, method)``.
    """
    root = Path(routes_dir).resolve()
    if not root.is_dir():
        msg = f"Routes directory not found: {root}"
        raise ConfigurationError(msg)

    entries: list[RouteEntry] = []
    seen: dict[tuple[str, str], RouteEntry] = {}
    _walk_directory(root, root, prefix=prefix, entries=entries, seen=seen)
    return entries


def route_path(directory: Path, root: Path, prefix: str = "") -> str:
    """URL path for route files in *directory*.

    The root maps to ``/``; other directories to their relative parts
    joined with ``/`` and lower-cased. Repeated slashes collapse and a
    trailing slash is dropped (except for ``/`` itself).
    """
    parts = directory.relative_to(root).parts
    relative = "/" + "/".join(parts).lower() if parts else "/"
    path = _SLASHES_RE.sub("/", f"/{prefix}{relative}")
    if path != "/":
        path = path.rstrip("/")
    return path


def _walk_directory(
    directory: Path,
    root: Path,
    *,
    prefix: str,
    entries: list[RouteEntry],
    seen: dict[tuple[str, str], RouteEntry],
) -> None:
    """Recursively collect route files under *directory*."""
    items = sorted(directory.iterdir())

    for item in items:
        if not item.is_file() or item.suffix != ROUTE_SUFFIX:
            continue
        method = item.stem.lower()
        if method not in _METHOD_NAMES:
            continue

        entry = RouteEntry(
            path=route_path(directory, root, prefix),
            method=method.upper(),
            handler_location=str(item),
        )
        key = (entry.path, entry.method)
        previous = seen.get(key)
        if previous is not None:
            msg = (
                f"Route {entry.method} {entry.path} is defined twice: "
                f"{previous.handler_location} and {entry.handler_location}"
            )
            raise ConfigurationError(msg)
        seen[key] = entry
        entries.append(entry)
        logger.debug("Discovered %s %s -> %s", entry.method, entry.path, item)

    for item in items:
        if not item.is_dir():
            continue
        if item.name.startswith(".") or item.name == "__pycache__":
            continue
        _walk_directory(item, root, prefix=prefix, entries=entries, seen=seen)
