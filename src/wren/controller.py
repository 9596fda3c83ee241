"""Controller pipeline: validation stages in front of user logic.

One controller instance handles exactly one request. ``invoke()`` runs the
stages in a fixed order, each recording at most one pending error on the
per-request ``ControllerState``:

1. **params**: declared UUID path parameters must be present and well formed
   (``NotFound`` otherwise).
2. **authentication**: the session is looked up through the auth provider
   (``Unauthorized`` when required and missing).
3. **body**: the JSON body is validated against the input schema
   (``ValidationError`` with one field error per issue).
4. **additional validation**: business rules run on the validated body; their
   field errors are appended after any structural ones.
5. **dispatch**: a pending error renders as the response; otherwise user
   logic runs.

Stages 2 and 3 are skipped once an error is pending. Stage 4 runs only when
stage 3 produced a value, so a controller without a schema never runs it.

Usage::

    from wren import create_controller, endpoint

    async def create_user(c):
        user = await users.create(c.json["username"])
        return json_response({"id": user.id}, status=201)

    controller = create_controller(create_user, schema=NEW_USER)

    # Or, as a decorator:
    @endpoint(requires_authentication=True, validate_uuids=["id"])
    async def controller(c):
        return await users.get(c.params["id"])
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar, Final, TypeAlias

from wren._internal.invoke import invoke
from wren.auth import AuthProvider, session_user
from wren.errors import FieldError, NotFound, ResponseError, Unauthorized, ValidationError
from wren.http.request import Request
from wren.http.response import Response, coerce_response
from wren.schema import parse_schema
from wren.validation.rules import is_uuid

logger = logging.getLogger("wren.controller")

AUTH_NOT_CONFIGURED = "Authentication provider not configured"
LOGIN_REQUIRED = "You must be logged in to view this content"
INVALID_JSON = "Invalid JSON body provided"
INVALID_INPUT = "Invalid input"


class _Unset:
    """Sentinel type for a body that has not passed schema validation."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

AdditionalValidator: TypeAlias = Callable[
    [Any], Iterable[FieldError] | None | Awaitable[Iterable[FieldError] | None]
]


# ---------------------------------------------------------------------------
# Configuration and per-request state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """Registration-time controller settings. Shared by every request.

    Attributes:
        requires_authentication: Reject requests without a session.
        schema: Input schema for the JSON body (see ``wren.schema``).
            ``None`` means the body is never read.
        validate_uuids: Path parameter names that must be UUIDs.
        auth_provider: Session lookup for this controller. Falls back to
            the route table's provider when ``None``.
    """

    requires_authentication: bool = False
    schema: Any = None
    validate_uuids: tuple[str, ...] | None = None
    auth_provider: AuthProvider | None = None

    def __post_init__(self) -> None:
        if self.validate_uuids is not None and not isinstance(self.validate_uuids, tuple):
            object.__setattr__(self, "validate_uuids", tuple(self.validate_uuids))


@dataclass(slots=True)
class HandlerContext:
    """Per-request context handed to the controller constructor.

    ``session`` is filled in by the authentication stage. ``auth_provider``
    is the route table's fallback provider.
    """

    session: Any = None
    auth_provider: AuthProvider | None = None


@dataclass(slots=True)
class ControllerState:
    """Everything one request's pipeline has established so far.

    Created with the controller, discarded with the response. Holds at most
    one pending error; once set, it is only ever extended with more field
    errors, never dropped.
    """

    body: Any = UNSET
    params: dict[str, str] = field(default_factory=dict)
    session: Any = None
    pending_error: ResponseError | None = None

    @property
    def has_body(self) -> bool:
        """True once the body has passed schema validation."""
        return self.body is not UNSET

    def fail(self, error: ResponseError) -> None:
        """Record *error* as pending unless an earlier error already is."""
        if self.pending_error is None:
            self.pending_error = error

    def append_field_errors(self, errors: Iterable[Any]) -> None:
        """Append *errors* to the pending error, creating a ``ValidationError`` if none.

        Existing field errors keep their place ahead of the new ones. Entries
        go through ``FieldError.coerce``, so plain ``{"field", "message"}``
        dicts work too.
        """
        errors = tuple(FieldError.coerce(error) for error in errors)
        if not errors:
            return
        if self.pending_error is None:
            self.pending_error = ValidationError(field_errors=errors)
        else:
            self.pending_error = self.pending_error.with_field_errors(errors)


# ---------------------------------------------------------------------------
# Base controller
# ---------------------------------------------------------------------------


class BaseController(ABC):
    """One request's validation-and-dispatch lifecycle.

    Subclass and override ``run()`` (and optionally
    ``additional_validation()``), setting ``config`` as a class attribute::

        class ShowItem(BaseController):
            config = ControllerConfig(validate_uuids=("id",))

            async def run(self):
                return await items.get(self.params["id"])

    or build one with :func:`create_controller`.
    """

    config: ClassVar[ControllerConfig] = ControllerConfig()

    def __init__(self, request: Request, ctx: HandlerContext | None = None) -> None:
        self.request = request
        self.ctx = ctx if ctx is not None else HandlerContext()
        self.state = ControllerState()

    # -- Validated values --

    @property
    def json(self) -> Any:
        """The schema-validated body, or ``None`` when there is none."""
        return None if self.state.body is UNSET else self.state.body

    body = json

    @property
    def params(self) -> dict[str, str]:
        """Validated path parameters (declared UUID keys only)."""
        return self.state.params

    @property
    def session(self) -> Any:
        """The resolved session, or ``None``."""
        return self.state.session

    @property
    def user(self) -> Any:
        """The session's user, or ``None``."""
        return session_user(self.state.session)

    @property
    def auth_provider(self) -> AuthProvider | None:
        """This controller's provider, else the route table's."""
        if self.config.auth_provider is not None:
            return self.config.auth_provider
        return self.ctx.auth_provider

    # -- Lifecycle --

    async def invoke(self) -> Response:
        """Run every stage, then dispatch."""
        await self._validate_params()
        await self._authenticate()
        await self._validate_body()
        await self._run_additional_validation()
        return await self._respond()

    def fail_with(self, error: ResponseError) -> Response:
        """Record *error* from user logic and return its rendering.

        The recorded error is what ``invoke()`` responds with, even if
        ``run()`` goes on to return something else.
        """
        self.state.pending_error = error
        return error.to_response()

    @abstractmethod
    def run(self) -> Any:
        """User logic. May be sync or async; returns a response value."""

    def additional_validation(
        self, value: Any
    ) -> Iterable[FieldError] | None | Awaitable[Iterable[FieldError] | None]:
        """Business rules on the validated body. Return field errors, if any."""
        return []

    # -- Stages --

    async def _validate_params(self) -> None:
        keys = self.config.validate_uuids
        if not keys:
            self.state.params = {}
            return

        path_params = self.request.path_params or {}
        validated: dict[str, str] = {}
        for key in keys:
            raw = path_params.get(key)
            if not raw or not is_uuid(raw):
                self.state.params = {}
                self.state.fail(NotFound())
                return
            validated[key] = raw

        self.state.params = validated

    async def _authenticate(self) -> None:
        if self.state.pending_error is not None:
            return

        provider = self.auth_provider
        if provider is None:
            if self.config.requires_authentication:
                self.state.fail(Unauthorized(AUTH_NOT_CONFIGURED))
            return

        session = await invoke(provider.get_session, self.request.headers)
        if self.config.requires_authentication and session is None:
            self.state.fail(Unauthorized(LOGIN_REQUIRED))
            return

        self.state.session = session
        self.ctx.session = session

    async def _validate_body(self) -> None:
        if self.config.schema is None or self.state.pending_error is not None:
            return

        try:
            payload = await self.request.json()
        except ValueError:
            self.state.fail(ValidationError(INVALID_JSON))
            return

        try:
            self.state.body = await parse_schema(payload, self.config.schema)
        except ResponseError as exc:
            self.state.fail(exc)
        except Exception as exc:
            logger.debug(
                "Schema validator raised for %s %s",
                self.request.method,
                self.request.path,
                exc_info=True,
            )
            self.state.fail(ValidationError(INVALID_INPUT, internal_error=exc))

    async def _run_additional_validation(self) -> None:
        if not self.state.has_body:
            return
        errors = await invoke(self.additional_validation, self.state.body)
        self.state.append_field_errors(errors or ())

    async def _respond(self) -> Response:
        if self.state.pending_error is not None:
            return self.state.pending_error.to_response()

        result = await invoke(self.run)
        if self.state.pending_error is not None:
            return self.state.pending_error.to_response()
        return coerce_response(result)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def create_controller(
    handler: Callable[[Any], Any],
    *,
    requires_authentication: bool = False,
    schema: Any = None,
    validate_uuids: Sequence[str] | None = None,
    auth_provider: AuthProvider | None = None,
    additional_validator: AdditionalValidator | None = None,
) -> type[BaseController]:
    """Build a controller class around a plain handler function.

    The returned class is what a route module exports as ``controller``:
    the route table instantiates it once per request with
    ``(request, ctx)``. *handler* receives the controller instance and may
    be sync or async.
    """
    config = ControllerConfig(
        requires_authentication=requires_authentication,
        schema=schema,
        validate_uuids=tuple(validate_uuids) if validate_uuids is not None else None,
        auth_provider=auth_provider,
    )

    class _HandlerController(BaseController):
        async def run(self) -> Any:
            return await invoke(handler, self)

        def additional_validation(self, value: Any) -> Any:
            if additional_validator is None:
                return []
            return additional_validator(value)

    name = getattr(handler, "__name__", "handler")
    _HandlerController.config = config
    _HandlerController.__name__ = f"{name}_controller"
    _HandlerController.__qualname__ = f"{name}_controller"
    _HandlerController.__doc__ = handler.__doc__
    return _HandlerController


def endpoint(
    *,
    requires_authentication: bool = False,
    schema: Any = None,
    validate_uuids: Sequence[str] | None = None,
    auth_provider: AuthProvider | None = None,
    additional_validator: AdditionalValidator | None = None,
) -> Callable[[Callable[[Any], Any]], type[BaseController]]:
    """Decorator form of :func:`create_controller`."""

    def decorator(handler: Callable[[Any], Any]) -> type[BaseController]:
        return create_controller(
            handler,
            requires_authentication=requires_authentication,
            schema=schema,
            validate_uuids=validate_uuids,
            auth_provider=auth_provider,
            additional_validator=additional_validator,
        )

    return decorator
