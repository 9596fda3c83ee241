"""Schema adapter: one issue format for any validation library.

A schema is usable by wren when it exposes the adapter capability: an
object under the ``__standard_schema__`` attribute (or the ``"~standard"``
key, for mapping-shaped schemas) with::

    version  == 1
    validate(input) -> outcome          # or an awaitable of one

where *outcome* carries either ``value`` (success) or ``issues`` (failure),
as a mapping or as attributes. Each issue has a ``message`` and an optional
``path`` of string/integer segments.

Usage::

    from wren.schema import parse_schema

    value = await parse_schema(payload, schema)   # raises ValidationError

The dataclasses below are convenient for adapter authors but not required;
anything with the same shape is accepted.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from wren._internal.invoke import resolve
from wren.errors import FieldError, ValidationError

STANDARD_SCHEMA_ATTR = "__standard_schema__"
STANDARD_SCHEMA_KEY = "~standard"
SUPPORTED_VERSION = 1

CONTRACT_MESSAGE = "Schema does not implement the expected adapter contract"
EMPTY_OUTCOME_MESSAGE = "Schema returned neither a value nor issues"
AMBIGUOUS_OUTCOME_MESSAGE = "Schema returned both a value and issues"
DEFAULT_ISSUE_MESSAGE = "Invalid"


# ---------------------------------------------------------------------------
# Contract types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A wrapped path segment. Bare strings and integers work too."""

    key: str | int


@dataclass(frozen=True, slots=True)
class SchemaIssue:
    """One problem reported by a validator."""

    message: str
    path: tuple[str | int | PathSegment, ...] = ()


@dataclass(frozen=True, slots=True)
class SchemaSuccess:
    """A successful outcome carrying the validated value."""

    value: Any


@dataclass(frozen=True, slots=True)
class SchemaFailure:
    """A failed outcome carrying every issue found."""

    issues: tuple[SchemaIssue, ...]


@dataclass(frozen=True, slots=True)
class StandardSchemaProps:
    """The adapter capability object a schema exposes."""

    validate: Callable[[Any], Any]
    version: int = SUPPORTED_VERSION
    vendor: str = ""


@dataclass(frozen=True, slots=True)
class SchemaProbe:
    """Result of probing a schema for the adapter capability.

    ``ok`` is True when the capability is present and usable; ``validate``
    is then the callable to invoke. Otherwise ``reason`` says what is wrong.
    The probe is falsy when the capability is unusable.
    """

    ok: bool
    validate: Callable[[Any], Any] | None = None
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok


# ---------------------------------------------------------------------------
# Probing
# ---------------------------------------------------------------------------

_MISSING = object()


def _read(obj: Any, name: str) -> Any:
    """Read *name* from a mapping key or an attribute."""
    if isinstance(obj, Mapping):
        return obj.get(name, _MISSING)
    return getattr(obj, name, _MISSING)


def probe_schema(schema: Any) -> SchemaProbe:
    """Check whether *schema* exposes a usable adapter capability."""
    props = getattr(schema, STANDARD_SCHEMA_ATTR, None)
    if props is None and isinstance(schema, Mapping):
        props = schema.get(STANDARD_SCHEMA_KEY)
    if props is None:
        return SchemaProbe(ok=False, reason=f"missing {STANDARD_SCHEMA_ATTR}")

    version = _read(props, "version")
    if version != SUPPORTED_VERSION:
        return SchemaProbe(ok=False, reason=f"unsupported version {version!r}")

    validate = _read(props, "validate")
    if not callable(validate):
        return SchemaProbe(ok=False, reason="validate is not callable")

    return SchemaProbe(ok=True, validate=validate)


# ---------------------------------------------------------------------------
# Issue mapping
# ---------------------------------------------------------------------------


def format_path(path: Sequence[Any] | None) -> str:
    """Join path segments into a field string.

    A segment carrying a ``key`` (attribute or mapping entry) is unwrapped
    first, so any library's segment type works. Integers render as ``[n]``,
    everything else as ``str(key)``, joined with ``.``::

        format_path(["items", 0, "name"])  # "items.[0].name"
        format_path([])                    # ""
    """
    if not path:
        return ""
    parts: list[str] = []
    for segment in path:
        key = segment if isinstance(segment, str | int) else _read(segment, "key")
        if key is _MISSING:
            key = segment
        if isinstance(key, int) and not isinstance(key, bool):
            parts.append(f"[{key}]")
        else:
            parts.append(str(key))
    return ".".join(parts)


def issues_to_field_errors(issues: Sequence[Any]) -> list[FieldError]:
    """Map validator issues to field errors, preserving order."""
    errors: list[FieldError] = []
    for issue in issues:
        path = _read(issue, "path")
        message = _read(issue, "message")
        errors.append(
            FieldError(
                field=format_path(None if path is _MISSING else path),
                message=DEFAULT_ISSUE_MESSAGE if message in (_MISSING, None, "") else str(message),
            )
        )
    return errors


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


async def parse_schema(data: Any, schema: Any) -> Any:
    """Validate *data* against *schema* and return the validated value.

    Suspends when the validator returns an awaitable. Every issue the
    validator reports is surfaced in a single ``ValidationError``.

    Raises:
        ValidationError: The schema lacks the adapter capability, its
            outcome is malformed, or it reported issues (one field error
            per issue).
    """
    probe = probe_schema(schema)
    if not probe:
        raise ValidationError(CONTRACT_MESSAGE)

    outcome = await resolve(probe.validate(data))

    issues = _read(outcome, "issues")
    has_issues = issues is not _MISSING and issues is not None
    value = _read(outcome, "value")
    # Result types with both fields leave value as None on failure
    has_value = value is not _MISSING and not (has_issues and value is None)

    if has_issues and has_value:
        raise ValidationError(AMBIGUOUS_OUTCOME_MESSAGE)
    if has_issues:
        raise ValidationError(field_errors=issues_to_field_errors(issues))
    if not has_value:
        raise ValidationError(EMPTY_OUTCOME_MESSAGE)
    return value
