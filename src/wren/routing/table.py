"""Route table: discovered modules bound behind the request error boundary.

``load_routes()`` runs once at startup. It imports every discovered route
module, checks that it exports a callable ``controller``, and wraps each
one in a handler that turns any failure into a JSON error response. The
resulting ``RouteTable`` is read-only, so concurrent requests can read it
without locking.
"""

import hashlib
import importlib.util
import logging
import re
import sys
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any, TypeAlias

from wren._internal.invoke import resolve
from wren.auth import AuthProvider
from wren.config import RoutesConfig
from wren.controller import HandlerContext
from wren.errors import ConfigurationError, InternalServerError, ResponseError
from wren.http.request import Request
from wren.http.response import Response
from wren.routing.discovery import METHODS, RouteEntry, discover_routes

logger = logging.getLogger("wren.server")

# Module attribute a route file must export
CONTROLLER_ATTR = "controller"

BoundHandler: TypeAlias = Callable[[Request], Awaitable[Response]]

_MODULE_NAME_RE = re.compile(r"\W+")


class RouteTable(Mapping[str, Mapping[str, BoundHandler]]):
    """Immutable ``path -> method -> handler`` mapping.

    Built by :func:`load_routes`. Neither the outer mapping nor the
    per-path method mappings can be modified.
    """

    __slots__ = ("_entries", "_routes")

    def __init__(
        self,
        routes: Mapping[str, Mapping[str, BoundHandler]],
        entries: Sequence[RouteEntry] = (),
    ) -> None:
        frozen = {path: MappingProxyType(dict(methods)) for path, methods in routes.items()}
        object.__setattr__(self, "_routes", MappingProxyType(frozen))
        object.__setattr__(self, "_entries", tuple(entries))

    def __getitem__(self, path: str) -> Mapping[str, BoundHandler]:
        return self._routes[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RouteTable({len(self._entries)} routes)"

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        """Discovered entries, in discovery order."""
        return self._entries

    def lookup(self, path: str, method: str) -> BoundHandler | None:
        """Return the handler for *path* and *method*, or ``None``."""
        methods = self._routes.get(path)
        if methods is None:
            return None
        return methods.get(method.upper())

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Methods registered for *path* (empty if the path is unknown)."""
        return frozenset(self._routes.get(path, ()))


def load_routes(config: RoutesConfig) -> RouteTable:
    """Discover, import and bind every route under ``config.routes_dir``.

    Raises:
        ConfigurationError: On a missing directory, duplicate routes, a
            module that fails to import, or a module without a callable
            ``controller``.
    """
    entries = discover_routes(config.routes_dir, config.route_prefix)
    if not entries:
        return RouteTable({})

    log = config.logger if config.logger is not None else logger
    routes: dict[str, dict[str, BoundHandler]] = {}

    for entry in entries:
        ctor = load_controller(entry)
        methods = routes.setdefault(entry.path, {})
        if entry.method in methods:
            msg = f"Route {entry.method} {entry.path} is redefined"
            raise ConfigurationError(msg)
        methods[entry.method] = bind_handler(
            ctor,
            entry,
            auth_provider=config.auth_provider,
            log=log,
        )

    # Canonical method order within each path
    ordered = {
        path: {method: methods[method] for method in METHODS if method in methods}
        for path, methods in routes.items()
    }
    return RouteTable(ordered, entries)


def load_controller(entry: RouteEntry) -> Callable[..., Any]:
    """Import *entry*'s module and return its ``controller`` export."""
    location = entry.handler_location
    # Unique per file; the stem alone is shared by "/a-b" and "/a_b"
    digest = hashlib.sha1(location.encode("utf-8"), usedforsecurity=False).hexdigest()[:12]
    stem = _MODULE_NAME_RE.sub("_", f"{entry.path}_{entry.method}")
    module_name = f"_wren_route_{stem}_{digest}"

    spec = importlib.util.spec_from_file_location(module_name, location)
    if spec is None or spec.loader is None:
        msg = f"Cannot load route module {location}"
        raise ConfigurationError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        msg = f"Route module {location} failed to import: {exc}"
        raise ConfigurationError(msg) from exc

    ctor = getattr(module, CONTROLLER_ATTR, None)
    if ctor is None or not callable(ctor):
        msg = (
            f"Route controller {entry.method} {entry.path} must export a callable "
            f"`{CONTROLLER_ATTR}` ({location})."
        )
        raise ConfigurationError(msg)
    return ctor


def bind_handler(
    ctor: Callable[..., Any],
    entry: RouteEntry,
    *,
    auth_provider: AuthProvider | None = None,
    log: logging.Logger | logging.LoggerAdapter = logger,
) -> BoundHandler:
    """Wrap a controller constructor in the request error boundary.

    Each call builds a fresh context and controller, runs its pipeline and
    returns the response. A ``ResponseError`` escaping the pipeline renders
    as itself; anything else is logged and answered with a generic 500.
    """

    async def handler(request: Request) -> Response:
        try:
            instance = ctor(request, HandlerContext(auth_provider=auth_provider))
            return await resolve(instance.invoke())
        except ResponseError as exc:
            if exc.internal_error is not None:
                log.error(
                    "%d %s %s: %s",
                    exc.status,
                    request.method,
                    entry.path,
                    exc.message,
                    exc_info=exc.internal_error,
                )
            return exc.to_response()
        except Exception:
            log.exception("500 %s %s (%s)", request.method, entry.path, request.url)
            return InternalServerError().to_response()

    handler.__name__ = f"{entry.method.lower()}_{_MODULE_NAME_RE.sub('_', entry.path).strip('_')}"
    return handler
