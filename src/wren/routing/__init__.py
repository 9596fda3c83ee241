"""Routing: directory discovery and the immutable route table.

Discovery maps ``<dir>/<method>.py`` files to ``(path, method)`` entries;
loading imports each module's ``controller`` and binds it behind the
request error boundary. Both happen once, before any request is served.
"""

from wren.routing.discovery import METHODS, RouteEntry, discover_routes
from wren.routing.table import RouteTable, bind_handler, load_controller, load_routes

__all__ = [
    "METHODS",
    "RouteEntry",
    "RouteTable",
    "bind_handler",
    "discover_routes",
    "load_controller",
    "load_routes",
]
