"""
Response schema helpers - pure functions from a model's validation schema
to JSON-schema fragments for route documentation.

Nothing here touches the query engine; routes.resources uses it to describe
the endpoints it mounts.
"""

import copy
from typing import Any, Dict, Optional

from api.contracts.registry import FIND_PARAMS, ParamSchema

ID_PROPERTY = {'type': 'string', 'description': 'Document identifier'}


def create_response_schema(
    validation_schema: Optional[Dict[str, Any]],
    kind: str = 'object',
) -> Dict[int, Dict[str, Any]]:
    """
    Build a 200 response schema from a model's validation schema.

    Args:
        validation_schema: property name -> JSON-schema (may be None)
        kind: 'object' for single documents, 'array' for lists

    Returns:
        {200: {...}}, or {} when the model declares no schema
    """
    if kind not in ('object', 'array'):
        raise ValueError(f"kind must be 'object' or 'array', got {kind!r}")
    if not validation_schema:
        return {}

    properties = {'_id': dict(ID_PROPERTY)}
    properties.update(copy.deepcopy(validation_schema))
    document = {'type': 'object', 'properties': properties}

    if kind == 'array':
        return {200: {'type': 'array', 'items': document}}
    return {200: document}


def find_params_schema(schema: ParamSchema = FIND_PARAMS) -> Dict[str, Any]:
    """JSON-schema object describing every recognized find/search input, aliases included."""
    properties = {}
    for name, spec in schema.fields.items():
        prop = {
            'type': list(spec.shapes) if len(spec.shapes) > 1 else spec.shapes[0],
            'description': spec.description,
        }
        properties[name] = prop
        for alias in schema.aliases_for(name):
            properties[alias] = dict(prop, description=f"Alias of {name}")
    return {'type': 'object', 'properties': properties}
