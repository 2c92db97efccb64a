"""Field-by-field merge of a baseline instance with a runtime override.

The field kind comes from the dataclass annotations:

- ``Optional[T]``: sparse overlay, the override wins only when it is not None
- nested dataclass: merged recursively
- anything else: the override always wins

``merge(base, override)`` never touches attributes outside the declared
fields.
"""
from __future__ import annotations

import dataclasses
import enum
import typing
from typing import Any, Dict, TypeVar

from tierconf.config.schema import is_dataclass_type, is_optional

T = TypeVar("T")


class FieldKind(enum.Enum):
    OPTIONAL = "optional"
    SECTION = "section"
    MANDATORY = "mandatory"


def field_kind(tp: Any) -> FieldKind:
    """Classify a field annotation into its merge policy."""
    if is_optional(tp):
        return FieldKind.OPTIONAL
    if is_dataclass_type(tp):
        return FieldKind.SECTION
    return FieldKind.MANDATORY


def merge(base: T, override: T) -> T:
    """Merge ``override`` over ``base`` and return a new instance.

    Args:
        base: Baseline instance (embedded document)
        override: Runtime instance; takes precedence where it has a value

    Raises:
        TypeError: If the two instances are not of the same dataclass type
    """
    cls = type(base)
    if not is_dataclass_type(cls) or type(override) is not cls:
        raise TypeError(
            f"cannot merge {type(override).__name__} into {cls.__name__}: "
            "both sides must be instances of the same dataclass"
        )

    hints = typing.get_type_hints(cls)
    values: Dict[str, Any] = {}
    for field in dataclasses.fields(cls):
        if not field.init:
            continue
        base_value = getattr(base, field.name)
        override_value = getattr(override, field.name)
        kind = field_kind(hints[field.name])

        if kind is FieldKind.OPTIONAL:
            values[field.name] = _merge_optional(base_value, override_value)
        elif kind is FieldKind.SECTION:
            values[field.name] = merge(base_value, override_value)
        else:
            values[field.name] = override_value

    return dataclasses.replace(override, **values)


def _merge_optional(base_value: Any, override_value: Any) -> Any:
    if override_value is None:
        return base_value
    if (
        base_value is not None
        and dataclasses.is_dataclass(override_value)
        and type(base_value) is type(override_value)
    ):
        return merge(base_value, override_value)
    return override_value
