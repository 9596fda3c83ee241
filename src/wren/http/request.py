"""Immutable HTTP request.

Frozen metadata with async body access. Path parameters are supplied by
whoever matched the route (the ASGI server or an outer router); wren never
extracts them itself.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from wren._internal.asgi import Receive, Scope
from wren.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, path parameters) is frozen at creation.
    The body is read once, on the first ``.body()`` or ``.json()`` call, and
    cached for the rest of the request.
    """

    method: str
    path: str
    headers: Headers
    path_params: Mapping[str, str]
    query_string: bytes = b""

    # Private: ASGI receive callable, drained by the first body read
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for the body
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def url(self) -> str:
        """Request path plus query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body, draining ``http.request`` messages."""
        if "_body" not in self._cache:
            chunks: list[bytes] = []
            more_body = self._receive is not None
            while more_body:
                message = await self._receive()
                chunks.append(message.get("body", b""))
                more_body = message.get("more_body", False)
            self._cache["_body"] = b"".join(chunks)
        return self._cache["_body"]

    async def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ValueError: If the body is not valid UTF-8 JSON
                (``json.JSONDecodeError`` and ``UnicodeDecodeError``
                are both ``ValueError`` subclasses).
        """
        return json_module.loads(await self.body())

    # -- Factories --

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        path_params: Mapping[str, str] | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable.

        Path parameters default to the scope's ``path_params`` entry, which
        is where routing layers in front of wren conventionally put them.
        """
        if path_params is None:
            path_params = scope.get("path_params") or {}
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(scope.get("headers", ())),
            path_params=dict(path_params),
            query_string=scope.get("query_string", b""),
            _receive=receive,
        )

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
        path_params: Mapping[str, str] | None = None,
    ) -> Request:
        """Create a Request with an in-memory body.

        Handy for calling a controller directly, without an ASGI server::

            request = Request.build("POST", "/users", body=b'{"username": "ada"}')
            response = await CreateUser(request, HandlerContext()).invoke()
        """
        request = cls(
            method=method.upper(),
            path=path,
            headers=Headers.from_mapping(headers or {}),
            path_params=dict(path_params or {}),
        )
        request._cache["_body"] = body
        return request
