"""Invoke helpers: call sync or async collaborators uniformly.

Authentication providers, schema validators, extra validators and user
handlers can all be plain functions or coroutines. Anything that calls one
goes through :func:`invoke` so the sync/async check lives in one place, and
the pipeline suspends exactly where a collaborator returns an awaitable.

Usage::

    from wren._internal.invoke import invoke, resolve

    session = await invoke(provider.get_session, request.headers)
    outcome = await resolve(validate(payload))
"""

import inspect
from typing import Any


async def resolve(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine."""
    return await resolve(handler(*args, **kwargs))
