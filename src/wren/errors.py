"""Wren exception hierarchy.

Shared by discovery, the route table, and the controller pipeline so every
module raises and catches the same types.

Two families live here:

- ``ConfigurationError`` is raised at startup (bad route tree, bad module
  export) and is never turned into a response.
- ``ResponseError`` and its six variants are raised or recorded per request
  and always render as the uniform JSON error body.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, ClassVar

from wren.http.response import Response, json_response


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when the route tree or a route module is invalid.

    Typically raised by ``load_routes()`` before any request is served.
    """


@dataclass(frozen=True, slots=True)
class FieldError:
    """A validation failure scoped to one input path.

    ``field`` is a dotted/bracketed path into the input (``"items.[0].name"``)
    and may be empty when the failure concerns the input as a whole.
    """

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}

    @classmethod
    def coerce(cls, value: Any) -> FieldError:
        """Build a FieldError from an extra validator's result entry.

        Accepts a ``FieldError``, a ``{"field", "message"}`` mapping, or an
        object with ``field`` and ``message`` attributes.

        Raises:
            TypeError: If *value* carries no message.
        """
        if isinstance(value, FieldError):
            return value
        if isinstance(value, Mapping):
            field, message = value.get("field", ""), value.get("message")
        else:
            field, message = getattr(value, "field", ""), getattr(value, "message", None)
        if message is None:
            msg = f"Expected a FieldError or a field/message pair, got {value!r}"
            raise TypeError(msg)
        return cls(field="" if field is None else str(field), message=str(message))


@dataclass(frozen=True, slots=True)
class ResponseError(WrenError):
    """An error that renders directly as an HTTP response.

    Raised by pipeline stages, user logic, or the route boundary. The
    rendered body never includes ``internal_error``; it is kept for logging.

    Attributes:
        message: Human-readable message sent to the client.
        status: HTTP status code of the rendered response.
        data: Optional extra payload, sent JSON-encoded as ``data``.
        field_errors: Optional per-field failures, sent JSON-encoded as ``fields``.
        internal_error: Underlying cause, logged but never rendered.
    """

    message: str
    status: int
    data: Mapping[str, Any] | None = None
    field_errors: tuple[FieldError, ...] | None = None
    internal_error: BaseException | None = None

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"

    def with_field_errors(self, errors: Iterable[FieldError]) -> ResponseError:
        """Return a copy with *errors* appended after the existing field errors."""
        return replace(self, field_errors=(*(self.field_errors or ()), *errors))

    def to_body(self) -> dict[str, str]:
        """Build the JSON error body: ``message`` plus optional ``data``/``fields``."""
        body = {"message": self.message}
        if self.data is not None:
            body["data"] = json.dumps(self.data)
        if self.field_errors is not None:
            body["fields"] = json.dumps([err.to_dict() for err in self.field_errors])
        return body

    def to_response(self) -> Response:
        """Render as a JSON response carrying this error's status."""
        return json_response(self.to_body(), status=self.status)


class _PresetError(ResponseError):
    """A ``ResponseError`` with a default message and status.

    Every field stays overridable, and the signature mirrors the base
    fields so ``dataclasses.replace`` keeps working on instances.
    """

    default_message: ClassVar[str]
    default_status: ClassVar[int]

    def __init__(
        self,
        message: str | None = None,
        *,
        status: int | None = None,
        data: Mapping[str, Any] | None = None,
        field_errors: Iterable[FieldError] | None = None,
        internal_error: BaseException | None = None,
    ) -> None:
        super().__init__(
            message=self.default_message if message is None else message,
            status=self.default_status if status is None else status,
            data=data,
            field_errors=None if field_errors is None else tuple(field_errors),
            internal_error=internal_error,
        )


class ValidationError(_PresetError):
    """400: malformed or rule-violating input. Carries field errors."""

    default_message = "Bad Request"
    default_status = 400


class Unauthorized(_PresetError):  # noqa: N818
    """401: missing or failed authentication."""

    default_message = "Unauthorized"
    default_status = 401


class Forbidden(_PresetError):  # noqa: N818
    """403: authenticated but not allowed. Raised by user logic only."""

    default_message = "Forbidden"
    default_status = 403


class NotFound(_PresetError):  # noqa: N818
    """404: missing resource, including malformed identifier parameters."""

    default_message = "Not Found"
    default_status = 404


class Conflict(_PresetError):  # noqa: N818
    """409: state conflict. Raised by user logic only."""

    default_message = "Conflict"
    default_status = 409


class InternalServerError(_PresetError):
    """500: unexpected failure. The cause is logged, never rendered."""

    default_message = "Internal Server Error"
    default_status = 500
