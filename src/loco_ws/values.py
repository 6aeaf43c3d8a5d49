"""Core type definitions for scenario values.

This module defines the value types flowing through scenario payloads
and session contexts, and a generic traversal helper that rebuilds
nested structures while transforming their leaves.
"""

from collections.abc import Callable, Mapping, Sequence
from json import dumps
from typing import Any

#: Scalars are atomic values that never contain templates other
#: than strings, which are resolved by the template engine.
type Scalar = str | bytes | int | float | bool

#: A value is a scalar or an arbitrarily nested container of values.
type Value = Scalar | Sequence['Value'] | Mapping[str, 'Value'] | None

#: A value in runtime represents any Python object received from
# function bindings, user-defined code, or YAML loaders.
type RuntimeValue = Any

#: Transformation applied to every leaf during traversal.
type LeafMapper = Callable[[RuntimeValue], RuntimeValue]

MAPPINGS = (dict,)
SCALARS = (str, bytes, int, float, bool)
SEQUENCES = (list, tuple, set)


def traverse(value: RuntimeValue, mapper: LeafMapper) -> RuntimeValue:
    """Recursively rebuild a value applying `mapper` to every leaf.

    Containers are copied, never updated in place, so the source value
    may be shared between sessions. Mapping keys are kept as is; tuples
    and sets keep their container type.

    Args:
        value: Value to traverse.
        mapper: Callable applied to each non-container leaf.

    Returns:
        A new structure of the same shape with mapped leaves.
    """
    if isinstance(value, MAPPINGS):
        return {
            key: traverse(item, mapper)
            for key, item in value.items()
        }

    if isinstance(value, SEQUENCES):
        items = [traverse(item, mapper) for item in value]
        if isinstance(value, list):
            return items
        return type(value)(items)

    return mapper(value)


def stringify(value: RuntimeValue) -> str:
    """Coerce a runtime value into template text.

    Booleans render in lowercase, `None` renders as an empty string,
    bytes are decoded as UTF-8 and containers are rendered as JSON.

    Args:
        value: Value to coerce.

    Returns:
        Text representation suitable for splicing into a template.
    """
    if value is None:
        return ''

    if isinstance(value, bool):
        return 'true' if value else 'false'

    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')

    if isinstance(value, (*MAPPINGS, *SEQUENCES)):
        return dumps(traverse(value, _jsonable), ensure_ascii=False)

    return f'{value}'


def _jsonable(value: RuntimeValue) -> RuntimeValue:
    """Replace leaves JSON cannot encode with their text form."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    return stringify(value)
