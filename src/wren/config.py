"""Route table configuration.

RoutesConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from wren.auth import AuthProvider


@dataclass(frozen=True, slots=True)
class RoutesConfig:
    """How to build a route table. Immutable after creation.

    Override what you need::

        config = RoutesConfig(routes_dir="app/routes", route_prefix="/api")

    Attributes:
        routes_dir: Directory scanned for ``<method>.py`` route modules.
        route_prefix: Prepended to every discovered path (e.g. ``"/api"``).
        auth_provider: Fallback session lookup for controllers that do not
            configure their own.
        logger: Receives request-boundary errors. Defaults to the
            ``wren.server`` logger.
    """

    routes_dir: str | Path = "routes"
    route_prefix: str = ""
    auth_provider: AuthProvider | None = None
    logger: logging.Logger | logging.LoggerAdapter | None = None
