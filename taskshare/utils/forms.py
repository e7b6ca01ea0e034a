"""Helpers for multipart form fields carrying structured values."""
from typing import Any, TypeVar

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, TypeAdapter, ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def parse_json_field(raw: str | None, adapter: TypeAdapter[T], *, field: str, default: T) -> T:
    """Validate a JSON-encoded form field, reporting failures as 422 on ``field``."""

    if raw is None or not raw.strip():
        return default
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**error, "loc": ("body", field, *error.get("loc", ()))} for error in exc.errors()]
        ) from exc


def build_model(model: type[M], **values: Any) -> M:
    """Construct ``model`` from form values, dropping ``None`` entries."""

    try:
        return model(**{key: value for key, value in values.items() if value is not None})
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


def parse_id_list(raw: str | None, *, field: str) -> list[int]:
    """Parse ``"1,2,3"`` into ids."""

    if raw is None or not raw.strip():
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise RequestValidationError(
            [{"type": "int_parsing", "loc": ("query", field), "msg": "Expected comma-separated integers", "input": raw}]
        ) from exc
