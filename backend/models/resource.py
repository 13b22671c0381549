"""
Resource model descriptions.

A ResourceModel declares everything the read endpoints need about one
document collection: where it is mounted, which fields reference other
models (populate targets) and an optional validation schema used for
response documentation.

Descriptions can be registered in code or loaded from a JSON file:

    [
        {"name": "Cat", "collection": "cats"},
        {"name": "Person", "collection": "persons",
         "relations": {"cats": "Cat"},
         "validation_schema": {"name": {"type": "string"}}}
    ]
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger('models.resource')


@dataclass
class ResourceModel:
    """Declarative description of one document collection."""
    name: str
    collection: str
    base_path: Optional[str] = None
    relations: Dict[str, str] = field(default_factory=dict)     # path -> target model name
    validation_schema: Optional[Dict[str, Any]] = None
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.base_path:
            self.base_path = f"/{self.collection}"
        if not self.base_path.startswith('/'):
            self.base_path = f"/{self.base_path}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceModel":
        return cls(
            name=data['name'],
            collection=data.get('collection') or data['name'].lower() + 's',
            base_path=data.get('base_path'),
            relations=dict(data.get('relations') or {}),
            validation_schema=data.get('validation_schema'),
            tags=list(data.get('tags') or []),
        )


# Global model registry
MODELS: Dict[str, ResourceModel] = {}


def register_model(model: ResourceModel) -> ResourceModel:
    """Register a model description by name."""
    if model.name in MODELS:
        logger.warning(f"Overwriting existing model description: {model.name}")
    MODELS[model.name] = model
    return model


def get_model(name: str) -> Optional[ResourceModel]:
    """Get a model description by name."""
    return MODELS.get(name)


def load_models(path: str) -> List[ResourceModel]:
    """Load model descriptions from a JSON file."""
    raw = json.loads(Path(path).read_text())
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON array of model descriptions")
    models = [ResourceModel.from_dict(item) for item in raw]
    logger.info("models_loaded path=%s count=%d", path, len(models))
    return models
