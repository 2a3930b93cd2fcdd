"""Validation helpers turning pydantic failures into sync errors."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.errors import PayloadValidationError

M = TypeVar("M", bound=BaseModel)


def validation_message(exc: ValidationError) -> str:
    """Return one message listing every failing field of ``exc``."""

    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "<root>"
        parts.append(f"{location}: {error.get('msg')}")
    return f"Error occurred in {exc.title}: {', '.join(parts)}."


def validate_model(model: type[M], data: Any) -> M:
    """Validate ``data`` against ``model`` or raise :class:`PayloadValidationError`."""

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise PayloadValidationError(validation_message(exc)) from exc


def validate_many(model: type[M], items: Any) -> list[M]:
    if not isinstance(items, list):
        raise PayloadValidationError(f"Error occurred in {model.__name__}: expected a list, got {type(items).__name__}.")
    return [validate_model(model, item) for item in items]


__all__ = ["validation_message", "validate_model", "validate_many"]
