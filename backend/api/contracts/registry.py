"""
Contract Registry - Single source of truth for find/search parameters.

Each recognized input has a FieldSpec (accepted shapes + description) and
the ParamSchema carries alias -> canonical mappings. Both the normalizer
and the route schema descriptions read from here.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass
class FieldSpec:
    """Specification for a single request field."""
    name: str
    shapes: Tuple[str, ...]             # JSON-schema type names accepted
    description: str = ""


@dataclass
class ParamSchema:
    """Schema for public query parameters."""
    fields: Dict[str, FieldSpec]

    # alias -> canonical name; the canonical name wins when both are sent
    aliases: Dict[str, str] = field(default_factory=dict)

    def aliases_for(self, canonical: str) -> List[str]:
        return [alias for alias, target in self.aliases.items() if target == canonical]

    def resolve(self, raw: Dict) -> Dict:
        """
        Return a copy of raw keyed by canonical names.

        An alias only fills a canonical slot that is absent, so `query`
        beats `q`, `projection` beats `select` and `page` beats `p`.
        Unknown keys are dropped.
        """
        resolved = {}
        for name in self.fields:
            if name in raw:
                resolved[name] = raw[name]
                continue
            for alias in self.aliases_for(name):
                if alias in raw:
                    resolved[name] = raw[alias]
                    break
        return resolved


FIND_PARAMS = ParamSchema(
    fields={
        'query': FieldSpec('query', ('object', 'string'), "Find query (match predicate)"),
        'projection': FieldSpec('projection', ('object', 'string', 'array'), "Fields to include (name) or exclude (-name)"),
        'sort': FieldSpec('sort', ('object', 'string', 'array'), "Sort order, -field for descending"),
        'populate': FieldSpec('populate', ('object', 'string', 'array'), "Relations to resolve into documents"),
        'skip': FieldSpec('skip', ('integer',), "Number of documents to skip"),
        'limit': FieldSpec('limit', ('integer',), "Maximum number of documents to return"),
        'page': FieldSpec('page', ('integer',), "Page number (1-based)"),
        'pageSize': FieldSpec('pageSize', ('integer',), "Documents per page"),
        'totalCount': FieldSpec('totalCount', ('boolean',), "Return the X-Total-Count header"),
    },
    aliases={
        'q': 'query',
        'select': 'projection',
        'p': 'page',
    },
)
