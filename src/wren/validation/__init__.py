"""Business-rule validation for extra validators.

The input schema checks structure; extra validators check rules that span
fields or need application knowledge. ``check_fields()`` runs composable
rules and returns the ``FieldError`` list an extra validator is expected
to return::

    from wren.validation import check_fields, max_length, one_of, required

    def validate_signup(body):
        errors = check_fields(body, {
            "username": [required, max_length(32)],
            "plan": [one_of("free", "pro")],
        })
        if body["password"] != body["confirm"]:
            errors.append(FieldError("confirm", "Passwords do not match"))
        return errors

    controller = create_controller(signup, schema=..., additional_validator=validate_signup)
"""

from collections.abc import Mapping
from typing import Any

from wren.errors import FieldError
from wren.validation.rules import (
    Rule,
    email,
    is_uuid,
    matches,
    max_length,
    min_length,
    one_of,
    required,
    uuid,
)

__all__ = [
    "Rule",
    "check_fields",
    "email",
    "is_uuid",
    "matches",
    "max_length",
    "min_length",
    "one_of",
    "required",
    "uuid",
]


def _field_value(data: Any, name: str) -> Any:
    if isinstance(data, Mapping):
        return data.get(name)
    return getattr(data, name, None)


def check_fields(data: Any, rules: Mapping[str, list[Rule]]) -> list[FieldError]:
    """Run *rules* against the fields of *data*.

    Args:
        data: A mapping, or any object with attributes (e.g. a pydantic
            model returned by the input schema).
        rules: Field name to list of rules. Each rule returns an error
            message, or ``None`` on success.

    Returns:
        One ``FieldError`` per failed rule, in rule order. A missing value
        stops at ``required`` (no point running ``max_length`` on ``None``),
        and other rules are skipped for missing values.
    """
    errors: list[FieldError] = []

    for field_name, field_rules in rules.items():
        value = _field_value(data, field_name)

        for rule in field_rules:
            if value is None and rule is not required:
                continue
            message = rule(value)
            if message is not None:
                errors.append(FieldError(field=field_name, message=message))
                if rule is required:
                    break

    return errors
