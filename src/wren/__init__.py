"""Wren: file-discovered HTTP routes behind validated controllers.

Each ``<dir>/<method>.py`` file under a routes directory exports a
``controller``. Requests pass through UUID parameter checks,
authentication and body-schema validation before reaching user logic, and
every failure renders as the same JSON error body.

Basic usage::

    # routes/users/post.py
    from wren import endpoint, json_response
    from wren.adapters.pydantic import pydantic_schema

    @endpoint(schema=pydantic_schema(NewUser))
    async def controller(c):
        return json_response({"username": c.json.username}, status=201)

    # app.py
    from wren import RouteApp, RoutesConfig

    app = RouteApp(RoutesConfig(routes_dir="routes", route_prefix="/api"))
"""

__version__ = "0.1.0"
__all__ = [
    "BaseController",
    "Conflict",
    "ConfigurationError",
    "ControllerConfig",
    "FieldError",
    "Forbidden",
    "HandlerContext",
    "Headers",
    "InternalServerError",
    "NotFound",
    "Request",
    "Response",
    "ResponseError",
    "RouteApp",
    "RouteEntry",
    "RouteTable",
    "RoutesConfig",
    "Unauthorized",
    "ValidationError",
    "WrenError",
    "create_controller",
    "discover_routes",
    "endpoint",
    "json_response",
    "load_routes",
    "parse_schema",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "RouteApp":
        from wren.app import RouteApp

        return RouteApp

    if name == "RoutesConfig":
        from wren.config import RoutesConfig

        return RoutesConfig

    if name in ("BaseController", "ControllerConfig", "HandlerContext", "create_controller", "endpoint"):
        from wren import controller as _controller

        return getattr(_controller, name)

    if name in (
        "Conflict",
        "ConfigurationError",
        "FieldError",
        "Forbidden",
        "InternalServerError",
        "NotFound",
        "ResponseError",
        "Unauthorized",
        "ValidationError",
        "WrenError",
    ):
        from wren import errors as _errors

        return getattr(_errors, name)

    if name in ("RouteEntry", "RouteTable", "discover_routes", "load_routes"):
        from wren import routing as _routing

        return getattr(_routing, name)

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name == "Headers":
        from wren.http.headers import Headers

        return Headers

    if name in ("Response", "json_response"):
        from wren.http import response as _resp

        return getattr(_resp, name)

    if name == "parse_schema":
        from wren.schema import parse_schema

        return parse_schema

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
