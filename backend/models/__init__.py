"""
Models package - declarative resource descriptions
"""
from models.resource import (
    MODELS,
    ResourceModel,
    get_model,
    load_models,
    register_model,
)

__all__ = [
    'MODELS',
    'ResourceModel',
    'get_model',
    'load_models',
    'register_model',
]
