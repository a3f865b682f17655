import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from sitegen.agent.artifacts import BusinessInput, FieldError

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "business_name": "Business name",
    "address": "Address",
    "city": "City",
    "state": "State",
    "business_category": "Business category",
    "description": "Description",
    "owner_name": "Owner name",
    "phone": "Phone number",
    "email": "Email",
    "website": "Website URL",
    "hours": "Business hours",
    "photos": "Photos",
    "url": "Photo URL",
    "alt": "Photo alt text",
    "caption": "Photo caption",
    "run_id": "Run id",
    "business_slug": "Business slug",
}

# FastAPI prefixes request errors with where the value came from.
_REQUEST_SOURCES = {"body", "query", "path", "header", "cookie"}

ROOT_FIELD = "__root__"


def _field_name(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) if loc else ROOT_FIELD


def _label(loc: tuple[Any, ...]) -> str:
    for part in reversed(loc):
        if isinstance(part, str) and part in FIELD_LABELS:
            return FIELD_LABELS[part]
    return _field_name(loc)


def _message(error: dict[str, Any]) -> str:
    loc = tuple(error.get("loc") or ())
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}
    label = _label(loc)

    if not loc and error_type in {"model_type", "model_attributes_type", "dict_type"}:
        return "Input must be a JSON object"
    if error_type == "missing":
        return f"{label} is required"
    if error_type == "string_too_short":
        return f"{label} must be at least {ctx.get('min_length')} characters"
    if error_type == "string_too_long":
        return f"{label} must be at most {ctx.get('max_length')} characters"
    if error_type == "string_type":
        return f"{label} must be a string"
    if error_type == "string_pattern_mismatch" and loc and loc[-1] == "phone":
        return "Invalid phone number format"
    if error_type.startswith("url_"):
        return f"Invalid {label[0].lower()}{label[1:]}"
    if loc and loc[-1] == "email":
        return "Invalid email format"
    return error.get("msg") or "Invalid value"


def format_validation_errors(exc: ValidationError) -> list[FieldError]:
    return [
        FieldError(field=_field_name(tuple(error.get("loc") or ())), message=_message(error))
        for error in exc.errors()
    ]


def format_request_errors(errors: Sequence[dict[str, Any]]) -> list[FieldError]:
    """Same wording for errors FastAPI raises before a handler runs."""
    formatted = []
    for error in errors:
        loc = tuple(error.get("loc") or ())
        if loc and loc[0] in _REQUEST_SOURCES:
            loc = loc[1:]
        if error.get("type") == "json_invalid":
            formatted.append(FieldError(field=ROOT_FIELD, message="Request body is not valid JSON"))
            continue
        formatted.append(FieldError(field=_field_name(loc), message=_message({**error, "loc": loc})))
    return formatted


def validate_business_input(raw: Any) -> tuple[BusinessInput | None, list[FieldError]]:
    """
    Check an untyped record against the business profile schema.
    Returns the normalized record and an empty list, or None and one entry per failing field.
    """
    try:
        return BusinessInput.model_validate(raw), []
    except ValidationError as exc:
        errors = format_validation_errors(exc)
        logger.debug("Business input rejected with %s error(s)", len(errors))
        return None, errors


def summarize_errors(errors: list[FieldError]) -> str:
    return "Validation failed: " + "; ".join(f"{err.field}: {err.message}" for err in errors)
