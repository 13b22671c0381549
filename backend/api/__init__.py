"""
API package - request boundary layer.

This package provides:
- Param registry and normalization (contracts)
- Global middleware (request_id, request logging, error_envelope)
"""

from .contracts import normalize_find_params, FIND_PARAMS

__all__ = ['normalize_find_params', 'FIND_PARAMS']
