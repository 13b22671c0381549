"""
Canonical query value objects.

Every accepted input shape (object, JSON string, delimited string, array)
collapses into these models before reaching the executor.

Key features:
- frozen=True: immutable once built (the executor never mutates them)
- extra='forbid': only the canonical fields exist
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


ASCENDING = 1
DESCENDING = -1


class FrozenModel(BaseModel):
    """Base model for all canonical query pieces."""
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
    )


class Projection(FrozenModel):
    """Field selection. At most one of include/exclude carries non-_id fields."""

    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.include and not self.exclude

    def to_dict(self) -> Dict[str, int]:
        """Mongo-style projection document, e.g. {"name": 1, "_id": 0}."""
        doc = {name: 1 for name in self.include}
        doc.update({name: 0 for name in self.exclude})
        return doc


class SortField(FrozenModel):
    field: str
    direction: int = ASCENDING

    @field_validator('direction')
    @classmethod
    def _check_direction(cls, v):
        if v not in (ASCENDING, DESCENDING):
            raise ValueError("direction must be 1 or -1")
        return v


class PopulateDirective(FrozenModel):
    """A relation to resolve, with optional projection and match on the targets."""

    path: str
    select: Projection = Field(default_factory=Projection)
    match: Dict[str, Any] = Field(default_factory=dict)


class QueryDescriptor(FrozenModel):
    """The normalized request: built fresh per request, discarded after execution."""

    filter: Dict[str, Any] = Field(default_factory=dict)
    projection: Projection = Field(default_factory=Projection)
    sort: Tuple[SortField, ...] = ()
    populate: Tuple[PopulateDirective, ...] = ()
    skip: int = Field(default=0, ge=0)
    limit: int = Field(ge=0)
    wants_total_count: bool = False


class ResultEnvelope(FrozenModel):
    """Result set plus optional total count of filter matches before skip/limit."""

    resources: List[Dict[str, Any]]
    total_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting totalCount entirely when it was not computed."""
        data: Dict[str, Any] = {"resources": self.resources}
        if self.total_count is not None:
            data["totalCount"] = self.total_count
        return data
