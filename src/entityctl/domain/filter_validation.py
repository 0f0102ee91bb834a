"""Filter validator — field existence and operator/type compatibility.

Fail-fast: the first violating condition aborts the whole query.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from entityctl.domain.errors import IncompatibleOperator, InvalidSchema, UnknownField
from entityctl.domain.fields import FieldDefinition
from entityctl.domain.filters import FilterCondition
from entityctl.domain.types import ALLOWED_OPERATORS, FieldType


def validate_filters(
    conditions: Iterable[FilterCondition],
    fields: Sequence[FieldDefinition],
) -> None:
    """Check every condition against the entity's field definitions.

    Raises:
        UnknownField: The condition's field is not in *fields*.
        IncompatibleOperator: The operator is not allowed for the field type.
        InvalidSchema: The field's declared type is not recognized.
    """
    by_name = {f.name: f for f in fields}
    for condition in conditions:
        field = by_name.get(condition.field)
        if field is None:
            raise UnknownField(condition.field)
        check_operator(condition, field)


def check_operator(condition: FilterCondition, field: FieldDefinition) -> None:
    """Raise unless ``condition.operator`` is allowed for ``field.type``."""
    try:
        field_type = FieldType(field.type)
    except ValueError:
        raise InvalidSchema(
            f"Unknown field type: {field.type} for field: {field.name}",
            field=field.name,
            field_type=str(field.type),
        ) from None

    if condition.operator not in ALLOWED_OPERATORS[field_type]:
        raise IncompatibleOperator(field.name, condition.operator.value, field_type.value)
