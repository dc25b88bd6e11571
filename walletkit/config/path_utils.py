"""Dot-path navigation for config models (used by `walletkit config get|set`)."""

from __future__ import annotations

from enum import Enum
from typing import Any, get_args, get_origin

from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo

from walletkit.config.loader import camel_to_snake, snake_to_camel


def resolve_field_name(model_cls: type[BaseModel], segment: str) -> str | None:
    """Match a camelCase or snake_case segment to a field name on the model.

    Returns the field name as defined in the model, or None if not found.
    """
    fields = model_cls.model_fields
    for candidate in (segment, camel_to_snake(segment), snake_to_camel(segment)):
        if candidate in fields:
            return candidate
    return None


def _walk_path(model: BaseModel, path: str) -> tuple[BaseModel, str, FieldInfo]:
    """Walk a dot-path and return (parent_model, field_name, field_info)."""
    segments = path.split(".")
    current = model

    for i, segment in enumerate(segments):
        if not isinstance(current, BaseModel):
            raise ValueError(f"Cannot traverse into non-model at '{'.'.join(segments[:i])}'")

        field_name = resolve_field_name(type(current), segment)
        if field_name is None:
            raise ValueError(
                f"Unknown field '{segment}' on {type(current).__name__}. "
                f"Available: {', '.join(type(current).model_fields.keys())}"
            )

        if i == len(segments) - 1:
            return current, field_name, type(current).model_fields[field_name]

        current = getattr(current, field_name)

    raise ValueError("Empty path")


def get_by_path(model: BaseModel, path: str) -> Any:
    """Get the value at a dot-path like 'serverIp' or 'project_type'.

    Raises:
        ValueError: If the path is invalid.
    """
    parent, field_name, _ = _walk_path(model, path)
    return getattr(parent, field_name)


def set_by_path(model: BaseModel, path: str, value: Any) -> None:
    """Set the value at a dot-path, coercing strings to the field type.

    Raises:
        ValueError: If the path is invalid or the new value fails validation.
    """
    parent, field_name, field_info = _walk_path(model, path)
    previous = getattr(parent, field_name)

    setattr(parent, field_name, _coerce_value(value, field_info))

    try:
        type(parent).model_validate(parent.model_dump())
    except ValidationError as e:
        setattr(parent, field_name, previous)
        raise ValueError(f"Validation failed for '{path}': {e}") from e


def _coerce_value(value: Any, field_info: FieldInfo) -> Any:
    annotation = field_info.annotation
    if annotation is None or not isinstance(value, str):
        return value

    # Optional[X] -> X
    if get_origin(annotation) is not None:
        non_none = [a for a in get_args(annotation) if a is not type(None)]
        if non_none:
            annotation = non_none[0]

    if annotation is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on", "y"):
            return True
        if lower in ("false", "0", "no", "off", "n"):
            return False
        raise ValueError(f"Cannot convert '{value}' to bool")

    if isinstance(annotation, type) and issubclass(annotation, Enum):
        if value.strip().isdigit():
            return annotation(int(value))
        from_name = getattr(annotation, "from_name", None)
        if from_name is not None:
            return from_name(value)
        return annotation[value.upper()]

    if annotation is int:
        return int(value)

    if annotation is float:
        return float(value)

    return value


def get_all_paths(model: BaseModel, prefix: str = "") -> dict[str, Any]:
    """Flatten a model into {dot_path: value} for all leaf fields."""
    result: dict[str, Any] = {}
    for field_name in type(model).model_fields:
        path = f"{prefix}.{field_name}" if prefix else field_name
        value = getattr(model, field_name)
        if isinstance(value, BaseModel):
            result.update(get_all_paths(value, path))
        else:
            result[path] = value
    return result
