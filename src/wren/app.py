"""ASGI adapter over a route table.

``RouteApp`` is the smallest server surface wren needs: exact path lookup
in a ``RouteTable`` and dispatch to the bound handler. Path parameters are
taken from the ASGI scope's ``path_params``, where a routing layer in
front of wren puts them; wren does not match dynamic segments itself.

Usage::

    from wren import RouteApp, RoutesConfig

    app = RouteApp(RoutesConfig(routes_dir="routes", route_prefix="/api"))

    # any ASGI server:
    #   uvicorn myapp:app
"""

from __future__ import annotations

import logging
import re
import threading

from wren._internal.asgi import Receive, Scope, Send
from wren.config import RoutesConfig
from wren.errors import NotFound, ResponseError
from wren.http.request import Request
from wren.http.response import Response
from wren.routing.table import RouteTable, load_routes
from wren.server.sender import send_response

logger = logging.getLogger("wren.server")

_SLASHES_RE = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and drop a trailing one (except for ``/``)."""
    path = _SLASHES_RE.sub("/", path) or "/"
    if path != "/":
        path = path.rstrip("/")
    return path


class RouteApp:
    """ASGI application serving one route table.

    Build it from a ``RoutesConfig`` (the table is loaded once, on lifespan
    startup or the first request, whichever comes first) or from an
    already-loaded ``RouteTable`` via :meth:`from_table`.
    """

    __slots__ = ("_config", "_load_lock", "_table")

    def __init__(self, config: RoutesConfig | None = None) -> None:
        self._config = config if config is not None else RoutesConfig()
        self._table: RouteTable | None = None
        self._load_lock = threading.Lock()

    @classmethod
    def from_table(cls, table: RouteTable) -> RouteApp:
        """Serve a table that has already been loaded."""
        app = cls()
        app._table = table
        return app

    @property
    def table(self) -> RouteTable:
        """The route table, loading it on first access."""
        return self._ensure_loaded()

    def _ensure_loaded(self) -> RouteTable:
        """Thread-safe load with double-check locking.

        Exactly one caller performs discovery and module loading; everyone
        after reads the immutable result.
        """
        if self._table is not None:
            return self._table
        with self._load_lock:
            if self._table is None:
                self._table = load_routes(self._config)
                logger.info("Loaded %d routes from %s", len(self._table.entries), self._config.routes_dir)
            return self._table

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type: {scope['type']!r}"
            raise RuntimeError(msg)

        request = Request.from_asgi(scope, receive)
        response = await self.dispatch(request)
        await send_response(response, send, head=request.method == "HEAD")

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol, loading the table at startup.

        A configuration error fails startup instead of the first request.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_loaded()
                except Exception as exc:
                    logger.exception("Route table failed to load")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def dispatch(self, request: Request) -> Response:
        """Find the handler for *request* and run it.

        Unknown paths answer 404; known paths with an unregistered method
        answer 405 with an ``Allow`` header. Both use the JSON error body.
        """
        table = self._ensure_loaded()
        path = normalize_path(request.path)

        methods = table.get(path)
        if methods is None:
            return NotFound().to_response()

        handler = methods.get(request.method.upper())
        if handler is None:
            allow = ", ".join(methods)
            error = ResponseError(message="Method Not Allowed", status=405)
            return error.to_response().with_header("Allow", allow)

        return await handler(request)
