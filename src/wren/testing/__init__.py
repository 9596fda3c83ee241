"""Testing utilities for wren route tables.

Usage::

    from wren.testing import TestClient

    async with TestClient(RouteApp(RoutesConfig(routes_dir="routes"))) as client:
        response = await client.get("/users")
        assert response.status == 200
"""

from wren.testing.client import TestClient

__all__ = ["TestClient"]
