"""
Input Validation
================

Validate raw request bodies into immutable request models before any
rendering or storage work starts.
"""

from typing import Any, Dict

from pydantic import ValidationError

from postrender.config.logging import get_logger
from postrender.models.schemas import DeletionRequest, GenerationRequest

logger = get_logger(__name__)

FILE_NAME_REQUIRED = "fileName is required."
FILE_NAME_INVALID = "Invalid file name."

_MESSAGES_BY_ERROR_TYPE: Dict[str, str] = {
    "missing": "is required",
    "extra_forbidden": "is not allowed",
    "string_type": "must be a string",
    "string_too_short": "is not allowed to be empty",
    "uri": "must be a valid uri",
    "enum": "must be one of [ltr, rtl]",
}

_PATTERN_MESSAGES: Dict[str, str] = {
    "focusTextColor": "must be a valid hex color",
    "language": "must be a valid language tag",
}


class InvalidInputError(Exception):
    """Exception raised when a request body fails validation."""

    pass


def describe_validation_error(error: ValidationError) -> str:
    """
    Turn the first pydantic error into a readable message.

    Unknown keys are reported ahead of missing or malformed fields.

    Args:
        error: Validation error raised by a request model

    Returns:
        Message naming the failing field, e.g. '"imageUrl" must be a valid uri'
    """
    errors = error.errors()
    first = next((e for e in errors if e["type"] == "extra_forbidden"), errors[0])
    field = ".".join(str(part) for part in first["loc"]) or "value"
    error_type = first["type"]

    if error_type == "string_pattern_mismatch":
        reason = _PATTERN_MESSAGES.get(field, "has an invalid format")
    else:
        reason = _MESSAGES_BY_ERROR_TYPE.get(error_type, first["msg"])

    return f'"{field}" {reason}'


def validate_generation_request(payload: Any) -> GenerationRequest:
    """
    Validate a raw generation payload.

    Args:
        payload: Decoded JSON request body

    Returns:
        Validated request with defaults applied

    Raises:
        InvalidInputError: If the payload violates the schema
    """
    if not isinstance(payload, dict):
        raise InvalidInputError('"value" must be of type object')

    try:
        request = GenerationRequest.model_validate(payload)
    except ValidationError as e:
        message = describe_validation_error(e)
        logger.info("Generation request rejected", reason=message)
        raise InvalidInputError(message) from e

    return request


def validate_deletion_request(payload: Any) -> DeletionRequest:
    """Validate a raw deletion payload carrying a generated file name."""
    if not isinstance(payload, dict) or not payload.get("fileName"):
        raise InvalidInputError(FILE_NAME_REQUIRED)

    try:
        return DeletionRequest.model_validate({"fileName": payload["fileName"]})
    except ValidationError as e:
        logger.info("Deletion request rejected", file_name=str(payload["fileName"])[:100])
        raise InvalidInputError(FILE_NAME_INVALID) from e
