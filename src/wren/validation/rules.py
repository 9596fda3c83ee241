"""Built-in business rules for extra validators.

Each rule is a callable with the signature::

    def rule(value: Any) -> str | None:
        '''Return error message, or None if valid.'''

Parameterized rules are factory functions that return a rule::

    def max_length(n: int) -> Rule:
        def check(value: Any) -> str | None:
            if len(value) > n:
                return f"Must be at most {n} characters"
            return None
        return check

Values have already passed the input schema, so rules only check business
constraints, not types. Any callable matching ``(Any) -> str | None`` works
with ``check_fields()``.
"""

import re
from collections.abc import Callable
from typing import Any, TypeAlias

Rule: TypeAlias = Callable[[Any], str | None]


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

# 8-4-4-4-12 hex digits, version nibble 1-5, RFC 4122 variant nibble 8/9/a/b
_UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)


def is_uuid(value: object) -> bool:
    """True if *value* is a canonical, hyphenated UUID string."""
    return isinstance(value, str) and _UUID_RE.match(value) is not None


def uuid(value: Any) -> str | None:
    """Value must be a canonical UUID string."""
    if not is_uuid(value):
        return "Must be a valid UUID"
    return None


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: Any) -> str | None:
    """Value must be present and, for strings, non-blank."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return "This field is required"
    return None


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Rule:
    """Value must have at most *n* characters (or items)."""

    def check(value: Any) -> str | None:
        if len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int) -> Rule:
    """Value must have at least *n* characters (or items)."""

    def check(value: Any) -> str | None:
        if len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Structure only, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: Any) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not isinstance(value, str) or not _EMAIL_RE.match(value):
        return "Must be a valid email address"
    return None


def matches(pattern: str, message: str | None = None) -> Rule:
    """Value must match the given regex pattern."""
    compiled = re.compile(pattern)

    def check(value: Any) -> str | None:
        if not isinstance(value, str) or not compiled.match(value):
            return message or f"Must match pattern: {pattern}"
        return None

    return check


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: Any) -> Rule:
    """Value must be one of the given choices."""
    allowed = frozenset(choices)

    def check(value: Any) -> str | None:
        if value not in allowed:
            options = ", ".join(sorted(str(choice) for choice in allowed))
            return f"Must be one of: {options}"
        return None

    return check
