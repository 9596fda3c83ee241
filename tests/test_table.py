"""Tests for route-table loading and the request error boundary."""

import json
import logging
import sys
from pathlib import Path

import pytest

from wren.config import RoutesConfig
from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.routing.discovery import RouteEntry
from wren.routing.table import RouteTable, bind_handler, load_routes

OK_ROUTE = """
    from wren import create_controller

    controller = create_controller(lambda c: {"ok": True})
"""


def _load(routes_dir: Path, **kwargs) -> RouteTable:
    return load_routes(RoutesConfig(routes_dir=routes_dir, **kwargs))


class TestLoadRoutes:
    def test_empty_directory(self, routes_dir: Path) -> None:
        table = _load(routes_dir)
        assert len(table) == 0
        assert table.entries == ()
        assert table.lookup("/", "GET") is None

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            _load(tmp_path / "missing")

    def test_paths_and_methods(self, write_route, routes_dir: Path) -> None:
        write_route("users/post.py", OK_ROUTE)
        write_route("users/get.py", OK_ROUTE)
        write_route("users/[id]/delete.py", OK_ROUTE)
        table = _load(routes_dir)

        assert set(table) == {"/users", "/users/[id]"}
        assert list(table["/users"]) == ["GET", "POST"]
        assert table.allowed_methods("/users") == {"GET", "POST"}
        assert table.allowed_methods("/nowhere") == frozenset()
        assert len(table.entries) == 3

    def test_lookup_is_case_insensitive_on_method(self, write_route, routes_dir: Path) -> None:
        write_route("get.py", OK_ROUTE)
        table = _load(routes_dir)
        assert table.lookup("/", "get") is table.lookup("/", "GET")
        assert table.lookup("/", "POST") is None

    def test_prefix_applied(self, write_route, routes_dir: Path) -> None:
        write_route("health/get.py", OK_ROUTE)
        table = _load(routes_dir, route_prefix="/api")
        assert list(table) == ["/api/health"]

    def test_duplicate_routes_name_both_files(self, write_route, routes_dir: Path) -> None:
        first = write_route("Items/get.py", OK_ROUTE)
        second = write_route("items/get.py", OK_ROUTE)
        with pytest.raises(ConfigurationError) as excinfo:
            _load(routes_dir)
        message = str(excinfo.value)
        assert str(first.resolve()) in message
        assert str(second.resolve()) in message

    def test_missing_controller_export(self, write_route, routes_dir: Path) -> None:
        write_route("users/get.py", "handler = lambda c: None\n")
        with pytest.raises(
            ConfigurationError, match=r"Route controller GET /users must export a callable `controller`"
        ):
            _load(routes_dir)

    def test_non_callable_controller_export(self, write_route, routes_dir: Path) -> None:
        write_route("users/get.py", "controller = 42\n")
        with pytest.raises(ConfigurationError, match="must export a callable"):
            _load(routes_dir)

    def test_module_import_failure(self, write_route, routes_dir: Path) -> None:
        write_route("users/get.py", "raise RuntimeError('boom at import')\n")
        with pytest.raises(ConfigurationError, match="failed to import") as excinfo:
            _load(routes_dir)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_similar_paths_get_distinct_modules(self, write_route, routes_dir: Path) -> None:
        source = (
            "from wren import create_controller\n"
            "WHO = {who!r}\n"
            "controller = create_controller(lambda c: WHO)\n"
        )
        write_route("a-b/get.py", source.format(who="dash"))
        write_route("a_b/get.py", source.format(who="underscore"))
        _load(routes_dir)

        loaded = {
            module.__file__: module.WHO
            for name, module in list(sys.modules.items())
            if name.startswith("_wren_route_") and hasattr(module, "WHO")
        }
        assert loaded[str((routes_dir / "a-b" / "get.py").resolve())] == "dash"
        assert loaded[str((routes_dir / "a_b" / "get.py").resolve())] == "underscore"

    def test_syntax_error_in_module(self, write_route, routes_dir: Path) -> None:
        write_route("users/get.py", "def broken(:\n")
        with pytest.raises(ConfigurationError, match="failed to import"):
            _load(routes_dir)


class TestRouteTable:
    def test_outer_mapping_is_read_only(self, write_route, routes_dir: Path) -> None:
        write_route("get.py", OK_ROUTE)
        table = _load(routes_dir)
        with pytest.raises(TypeError):
            table["/new"] = {}  # type: ignore[index]

    def test_method_mappings_are_read_only(self, write_route, routes_dir: Path) -> None:
        write_route("get.py", OK_ROUTE)
        table = _load(routes_dir)
        with pytest.raises(TypeError):
            table["/"]["POST"] = table["/"]["GET"]  # type: ignore[index]

    def test_source_mapping_changes_do_not_leak(self) -> None:
        async def handler(request: Request):
            raise AssertionError

        source = {"/a": {"GET": handler}}
        table = RouteTable(source)
        source["/a"]["POST"] = handler
        source["/b"] = {}
        assert list(table) == ["/a"]
        assert list(table["/a"]) == ["GET"]

    def test_repr(self) -> None:
        assert repr(RouteTable({})) == "RouteTable(0 routes)"


class TestBoundHandler:
    async def test_runs_controller(self, write_route, routes_dir: Path) -> None:
        write_route("get.py", OK_ROUTE)
        handler = _load(routes_dir).lookup("/", "GET")
        response = await handler(Request.build("GET", "/"))
        assert response.status == 200
        assert response.json() == {"ok": True}

    async def test_fresh_controller_per_request(self, write_route, routes_dir: Path) -> None:
        write_route(
            "get.py",
            """
            from wren import BaseController

            class controller(BaseController):
                instances = []

                def run(self):
                    controller.instances.append(self)
                    return {"count": len(controller.instances)}
            """,
        )
        handler = _load(routes_dir).lookup("/", "GET")
        first = await handler(Request.build("GET", "/"))
        second = await handler(Request.build("GET", "/"))
        assert first.json() == {"count": 1}
        assert second.json() == {"count": 2}

    async def test_hand_written_constructor(self, write_route, routes_dir: Path) -> None:
        write_route(
            "get.py",
            """
            from wren import Response

            class controller:
                def __init__(self, request, ctx):
                    self.request = request

                def invoke(self):
                    return Response("plain " + self.request.path)
            """,
        )
        handler = _load(routes_dir).lookup("/", "GET")
        response = await handler(Request.build("GET", "/"))
        assert response.text == "plain /"

    async def test_response_error_renders(self, write_route, routes_dir: Path) -> None:
        write_route(
            "users/post.py",
            """
            from wren import Conflict, create_controller

            def create(c):
                raise Conflict("Username taken", data={"username": "ada"})

            controller = create_controller(create)
            """,
        )
        handler = _load(routes_dir).lookup("/users", "POST")
        response = await handler(Request.build("POST", "/users"))
        assert response.status == 409
        body = response.json()
        assert body["message"] == "Username taken"
        assert json.loads(body["data"]) == {"username": "ada"}

    async def test_dict_field_errors_render_as_400(self, write_route, routes_dir: Path) -> None:
        write_route(
            "signup/post.py",
            """
            from wren import create_controller

            class Body:
                __standard_schema__ = {"version": 1, "validate": lambda data: {"value": data}}

            controller = create_controller(
                lambda c: "ok",
                schema=Body(),
                additional_validator=lambda body: [{"field": "x", "message": "bad"}],
            )
            """,
        )
        handler = _load(routes_dir).lookup("/signup", "POST")
        response = await handler(Request.build("POST", "/signup", body=b"{}"))
        assert response.status == 400
        assert json.loads(response.json()["fields"]) == [{"field": "x", "message": "bad"}]

    async def test_unexpected_exception_is_500(
        self, write_route, routes_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        write_route(
            "boom/get.py",
            """
            from wren import create_controller

            def explode(c):
                raise KeyError("secret-detail")

            controller = create_controller(explode)
            """,
        )
        handler = _load(routes_dir).lookup("/boom", "GET")

        with caplog.at_level(logging.ERROR, logger="wren.server"):
            response = await handler(Request.build("GET", "/boom"))

        assert response.status == 500
        assert response.json() == {"message": "Internal Server Error"}
        assert "secret-detail" not in response.text

        (record,) = [r for r in caplog.records if r.name == "wren.server"]
        assert record.getMessage().startswith("500 GET /boom")
        assert record.exc_info is not None
        assert record.exc_info[0] is KeyError

    async def test_constructor_failure_is_500(self, write_route, routes_dir: Path) -> None:
        write_route(
            "get.py",
            """
            def controller(request, ctx):
                raise ValueError("cannot build")
            """,
        )
        handler = _load(routes_dir).lookup("/", "GET")
        response = await handler(Request.build("GET", "/"))
        assert response.status == 500

    async def test_internal_cause_logged(
        self, write_route, routes_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        write_route(
            "get.py",
            """
            from wren import InternalServerError, create_controller

            def lookup(c):
                try:
                    {}["missing"]
                except KeyError as exc:
                    raise InternalServerError("Lookup failed", internal_error=exc) from exc

            controller = create_controller(lookup)
            """,
        )
        handler = _load(routes_dir).lookup("/", "GET")

        with caplog.at_level(logging.ERROR, logger="wren.server"):
            response = await handler(Request.build("GET", "/"))

        assert response.json() == {"message": "Lookup failed"}
        (record,) = [r for r in caplog.records if r.name == "wren.server"]
        assert "Lookup failed" in record.getMessage()
        assert record.exc_info[0] is KeyError

    async def test_custom_logger(
        self, write_route, routes_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        write_route("get.py", "def controller(request, ctx):\n    raise RuntimeError\n")
        custom = logging.getLogger("myapp.routes")
        handler = _load(routes_dir, logger=custom).lookup("/", "GET")

        with caplog.at_level(logging.ERROR):
            await handler(Request.build("GET", "/"))

        assert [r.name for r in caplog.records] == ["myapp.routes"]

    async def test_handler_name(self) -> None:
        entry = RouteEntry("/users/[id]", "GET", "users/[id]/get.py")
        handler = bind_handler(lambda request, ctx: None, entry)
        assert handler.__name__ == "get_users_id"


class TestScenarios:
    async def test_schema_failure_reports_field(self, write_route, routes_dir: Path) -> None:
        pytest.importorskip("pydantic")
        write_route(
            "users/post.py",
            """
            from pydantic import BaseModel

            from wren import endpoint
            from wren.adapters.pydantic import pydantic_schema


            class NewUser(BaseModel):
                username: str


            @endpoint(schema=pydantic_schema(NewUser))
            def controller(c):
                return {"username": c.json.username}
            """,
        )
        handler = _load(routes_dir).lookup("/users", "POST")

        response = await handler(Request.build("POST", "/users", body=b"{}"))
        assert response.status == 400
        fields = json.loads(response.json()["fields"])
        assert {"field": "username", "message": "Field required"} in fields

        ok = await handler(Request.build("POST", "/users", body=b'{"username": "ada"}'))
        assert ok.json() == {"username": "ada"}

    async def test_malformed_uuid_param(self, write_route, routes_dir: Path) -> None:
        write_route(
            "users/[id]/get.py",
            """
            from wren import endpoint

            @endpoint(validate_uuids=["id"])
            def controller(c):
                return {"id": c.params["id"]}
            """,
        )
        handler = _load(routes_dir).lookup("/users/[id]", "GET")
        response = await handler(
            Request.build("GET", "/users/not-a-uuid", path_params={"id": "not-a-uuid"})
        )
        assert response.status == 404
        assert "fields" not in response.json()

    async def test_session_from_configured_provider(self, write_route, routes_dir: Path) -> None:
        write_route(
            "me/get.py",
            """
            from wren import endpoint

            @endpoint(requires_authentication=True)
            def controller(c):
                return {"user": c.user, "same": c.session is c.ctx.session}
            """,
        )

        class Provider:
            def get_session(self, headers):
                return {"user": {"name": "ada"}, "token": headers.get("authorization")}

        handler = _load(routes_dir, auth_provider=Provider()).lookup("/me", "GET")
        response = await handler(
            Request.build("GET", "/me", headers={"Authorization": "Bearer t"})
        )
        assert response.status == 200
        assert response.json() == {"user": {"name": "ada"}, "same": True}
