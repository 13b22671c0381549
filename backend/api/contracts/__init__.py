"""
Contract package.

Provides the find/search param registry and the normalizer that turns raw
params into a QueryDescriptor.
"""

from .registry import (
    FieldSpec,
    ParamSchema,
    FIND_PARAMS,
)
from .normalize import normalize_find_params

__all__ = [
    'FieldSpec',
    'ParamSchema',
    'FIND_PARAMS',
    'normalize_find_params',
]
