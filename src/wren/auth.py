"""Authentication provider protocol.

Wren does not authenticate anyone itself. A controller that needs a
session asks its provider for one, passing the request headers::

    class TokenAuth:
        async def get_session(self, headers: Headers) -> Session | None:
            token = headers.get("authorization", "").removeprefix("Bearer ")
            return await sessions.lookup(token)

    controller = create_controller(show_profile, requires_authentication=True,
                                   auth_provider=TokenAuth())

``get_session`` may be sync or async and returns ``None`` when there is no
session. The controller then exposes the session as ``controller.session``
and its user as ``controller.user``.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from wren.http.headers import Headers


@runtime_checkable
class AuthProvider(Protocol):
    """Anything with a ``get_session(headers)`` method.

    Return a session object, or ``None`` when the request carries none.
    """

    def get_session(self, headers: Headers) -> Any | Awaitable[Any]: ...


@dataclass(frozen=True, slots=True)
class SessionGetter:
    """Adapt a bare ``(headers) -> session | None`` callable to ``AuthProvider``."""

    func: Callable[[Headers], Any]

    def get_session(self, headers: Headers) -> Any:
        return self.func(headers)


def session_user(session: Any) -> Any:
    """Return the user carried by *session*, or ``None``.

    Reads a ``user`` attribute first, then a ``"user"`` key, so both
    session objects and session dicts work.
    """
    if session is None:
        return None
    user = getattr(session, "user", None)
    if user is None and isinstance(session, Mapping):
        user = session.get("user")
    return user
