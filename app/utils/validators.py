"""
app/utils/validators.py — Request validation and safe JSON parsing
Validation is a pure function: untrusted JSON in, either a typed model or
every field error (keyed by dotted path) out. Never raises.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Type, TypeVar, Union

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from app.models import (
    FeedbackRequest,
    GenerateRecipeRequest,
    IngredientCategory,
    RecipeId,
    RecipeListQuery,
    SaveRecipeRequest,
)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

ROOT_FIELD = "body"

# Returned by safe_parse_json when the body is not JSON at all
MALFORMED_JSON = object()

_recipe_id_adapter: TypeAdapter[str] = TypeAdapter(RecipeId)
_category_adapter: TypeAdapter[IngredientCategory] = TypeAdapter(IngredientCategory)


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Ok(value) when errors is empty, Err(errors) otherwise."""

    value: Optional[T] = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, errors: dict[str, list[str]]) -> "ValidationResult[T]":
        return cls(errors=errors)


def safe_parse_json(raw: Union[str, bytes], default: Any = None) -> Any:
    """
    Safely parse a JSON body. Returns default on failure (no exception raised).
    Pass a sentinel as default to tell a malformed body from a JSON null.
    """
    # JSONDecodeError and UnicodeDecodeError are ValueErrors; deep nesting
    # exhausts the decoder's recursion limit
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as exc:
        logger.debug(f"JSON parse failed: {type(exc).__name__}")
        return default


def collect_field_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Flatten every pydantic error into {dotted.path: [messages]}."""
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or ROOT_FIELD
        errors.setdefault(path, []).append(err["msg"])
    return errors


def validate_payload(model_class: Type[M], data: Any) -> ValidationResult[M]:
    """
    Validate a decoded JSON value against model_class. All violations are
    reported, not just the first; data is never mutated.
    """
    if not isinstance(data, dict):
        return ValidationResult.failure({ROOT_FIELD: ["Expected a JSON object"]})
    try:
        return ValidationResult.success(model_class.model_validate(data))
    except ValidationError as exc:
        return ValidationResult.failure(collect_field_errors(exc))


def validate_generate_request(data: Any) -> ValidationResult[GenerateRecipeRequest]:
    return validate_payload(GenerateRecipeRequest, data)


def validate_save_request(data: Any) -> ValidationResult[SaveRecipeRequest]:
    return validate_payload(SaveRecipeRequest, data)


def validate_feedback_request(data: Any) -> ValidationResult[FeedbackRequest]:
    return validate_payload(FeedbackRequest, data)


def validate_list_query(params: Any) -> ValidationResult[RecipeListQuery]:
    """limit 1-50 (default 12), offset >= 0 (default 0)."""
    return validate_payload(RecipeListQuery, params)


def validate_recipe_id(value: Any) -> ValidationResult[str]:
    """8-36 chars, letters, digits and hyphen only."""
    try:
        return ValidationResult.success(_recipe_id_adapter.validate_python(value))
    except ValidationError as exc:
        return ValidationResult.failure(
            {"id": [err["msg"] for err in exc.errors()]}
        )


def validate_category(value: Any) -> ValidationResult[IngredientCategory]:
    try:
        return ValidationResult.success(_category_adapter.validate_python(value))
    except ValidationError as exc:
        return ValidationResult.failure(
            {"category": [err["msg"] for err in exc.errors()]}
        )
