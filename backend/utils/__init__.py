"""
Utility modules for the backend.
"""
from .normalize import (
    MalformedParameter,
    to_int,
    to_bool,
    to_tokens,
    parse_json,
    validation_error_response,
)

__all__ = [
    'MalformedParameter',
    'to_int',
    'to_bool',
    'to_tokens',
    'parse_json',
    'validation_error_response',
]
