"""
Input Normalization Utilities
=============================

Single source of truth for coercing raw request values.
Query strings deliver everything as text while JSON bodies deliver real
types, so every helper here accepts both.

Usage:
    from utils.normalize import to_int, to_bool, MalformedParameter

    try:
        limit = to_int(raw.get("limit"), field="limit")
    except MalformedParameter as e:
        return validation_error_response(e)
"""

import json
from typing import Any, List, Optional


class MalformedParameter(ValueError):
    """Raised when a request parameter cannot be normalized."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


def is_blank(value: Any) -> bool:
    """True for None and empty/whitespace-only strings."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def to_int(
    value: Any,
    *,
    default: Optional[int] = None,
    field: str = None
) -> Optional[int]:
    """
    Convert an int or integer-like string to int.

    Args:
        value: Raw value (str from query string, int from JSON body)
        default: Value to return if input is None or empty
        field: Field name for error messages

    Returns:
        Parsed integer or default

    Raises:
        MalformedParameter: If value is not an integer
    """
    if is_blank(value):
        return default
    # bool is an int subclass; true/false is never a valid offset
    if isinstance(value, bool):
        raise MalformedParameter(
            f"Expected int, got bool: {value!r}",
            field=field,
            received_value=value
        )
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        raise MalformedParameter(
            f"Expected int, got {type(value).__name__}: {value!r}",
            field=field,
            received_value=value
        )


def to_bool(
    value: Any,
    *,
    default: bool = False,
    field: str = None
) -> bool:
    """
    Convert string to bool.

    Accepts (case-insensitive):
        True: 'true', '1', 'yes', 'on'
        False: 'false', '0', 'no', 'off'

    Raises:
        MalformedParameter: If value is not a recognized boolean
    """
    if is_blank(value):
        return default
    if isinstance(value, bool):
        return value
    lower = str(value).strip().lower()
    if lower in ("true", "1", "yes", "on"):
        return True
    if lower in ("false", "0", "no", "off"):
        return False
    raise MalformedParameter(
        f"Expected bool, got: {value!r}",
        field=field,
        received_value=value
    )


def to_tokens(value: str) -> List[str]:
    """
    Split a whitespace and/or comma delimited string into tokens.

    Examples:
        "name -_id" -> ["name", "-_id"]
        "name, age" -> ["name", "age"]
    """
    return [token for token in value.replace(",", " ").split() if token]


def parse_json(value: str, *, field: str = None) -> Any:
    """
    Decode a JSON string.

    Raises:
        MalformedParameter: If the string is not valid JSON
    """
    try:
        return json.loads(value)
    except RecursionError as e:
        raise MalformedParameter(
            "JSON value is nested too deeply",
            field=field,
            received_value=value[:80]
        ) from e
    except (ValueError, TypeError):
        raise MalformedParameter(
            f"Expected JSON, got: {value!r}",
            field=field,
            received_value=value
        )


def looks_like_json(value: str) -> bool:
    """True when a string is shaped like a JSON object or array."""
    stripped = value.strip()
    return stripped.startswith("{") or stripped.startswith("[")


def validation_error_response(error: MalformedParameter) -> tuple:
    """
    Convert MalformedParameter to a structured 400 response tuple.

    Returns:
        Tuple of (dict, 400) suitable for Flask response
    """
    response = {
        "error": str(error),
        "type": "validation_error"
    }
    if error.field:
        response["field"] = error.field
    if error.received_value is not None:
        response["received_value"] = str(error.received_value)
    return response, 400
