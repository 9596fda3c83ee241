"""Pydantic adapter (``pip install wren[pydantic]``).

Wraps a pydantic model, or any type pydantic can validate, so it can be
used as a controller's input schema::

    from pydantic import BaseModel
    from wren.adapters.pydantic import pydantic_schema

    class NewUser(BaseModel):
        username: str

    controller = create_controller(create_user, schema=pydantic_schema(NewUser))

Each entry of pydantic's ``errors()`` becomes one issue; its ``loc`` tuple
becomes the issue path, so ``("items", 0, "qty")`` renders as
``items.[0].qty``.
"""

from typing import Any

from wren.errors import ConfigurationError
from wren.schema import SchemaFailure, SchemaIssue, SchemaSuccess, StandardSchemaProps


class PydanticSchema:
    """A pydantic ``TypeAdapter`` exposed through ``__standard_schema__``."""

    def __init__(self, tp: Any) -> None:
        try:
            from pydantic import TypeAdapter, ValidationError
        except ImportError:
            msg = (
                "The pydantic adapter requires the 'pydantic' package. "
                "Install it with: pip install wren[pydantic]"
            )
            raise ConfigurationError(msg) from None

        self.type = tp
        self._adapter = TypeAdapter(tp)
        self._validation_error = ValidationError
        self.__standard_schema__ = StandardSchemaProps(validate=self.validate, vendor="pydantic")

    def __repr__(self) -> str:
        return f"PydanticSchema({getattr(self.type, '__name__', self.type)!r})"

    def validate(self, data: Any) -> SchemaSuccess | SchemaFailure:
        """Validate *data*, reporting every pydantic error as an issue."""
        try:
            value = self._adapter.validate_python(data)
        except self._validation_error as exc:
            issues = tuple(
                SchemaIssue(
                    message=err.get("msg", ""),
                    path=tuple(part for part in err.get("loc", ()) if part != "__root__"),
                )
                for err in exc.errors()
            )
            return SchemaFailure(issues=issues)
        return SchemaSuccess(value=value)


def pydantic_schema(tp: Any) -> PydanticSchema:
    """Wrap *tp* (a ``BaseModel`` subclass or any annotated type)."""
    return PydanticSchema(tp)
