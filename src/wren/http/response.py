"""Immutable HTTP response plus the helpers controllers return through."""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    """An immutable HTTP response.

    ``with_header()`` returns a copy with one more header; nothing mutates
    a response in place.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json_module.loads(self.body_bytes)

    def header(self, name: str) -> str | None:
        """Return the first value of header *name* (case-insensitive)."""
        name_lower = name.lower()
        for key, value in self.headers:
            if key.lower() == name_lower:
                return value
        return None


def json_response(data: Any, *, status: int = 200) -> Response:
    """Serialize *data* as a JSON response."""
    return Response(
        body=json_module.dumps(data),
        status=status,
        content_type=JSON_CONTENT_TYPE,
    )


def coerce_response(value: Any) -> Response:
    """Turn a handler's return value into a Response.

    - ``Response`` passes through unchanged
    - ``dict`` / ``list`` become a 200 JSON response
    - ``str`` / ``bytes`` become a 200 plain-text response

    Raises:
        TypeError: For any other return type.
    """
    if isinstance(value, Response):
        return value
    if isinstance(value, dict | list):
        return json_response(value)
    if isinstance(value, str | bytes):
        return Response(body=value)
    msg = (
        f"Controller returned {type(value).__name__}; expected Response, "
        "dict, list, str or bytes."
    )
    raise TypeError(msg)
