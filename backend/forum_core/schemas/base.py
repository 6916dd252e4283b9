from collections.abc import Mapping
from typing import Any, TypeVar

import pydantic

from ..errors import ValidationError

SchemaT = TypeVar("SchemaT", bound=pydantic.BaseModel)


def parse_fields(schema: type[SchemaT], fields: Mapping[str, Any]) -> SchemaT:
    """Validate raw fields against ``schema``, raising the app ValidationError."""
    try:
        return schema.model_validate(dict(fields))
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Invalid {schema.__name__} fields",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


def reject_null(value: Any) -> Any:
    """Before-validator for optional update fields backed by NOT NULL columns."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value
