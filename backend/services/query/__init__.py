"""
Query engine package.

Pipeline:
    raw params -> api.contracts.normalize -> QueryDescriptor
               -> QueryExecutor (find + optional count) -> ResultEnvelope

Usage:
    from services.query import PaginationConfig, resolve_pagination
    from services.query.executor import QueryExecutor
"""

from services.query.descriptor import (
    ASCENDING,
    DESCENDING,
    PopulateDirective,
    Projection,
    QueryDescriptor,
    ResultEnvelope,
    SortField,
)
from services.query.pagination import Page, PaginationConfig, resolve_pagination

__all__ = [
    'ASCENDING',
    'DESCENDING',
    'PopulateDirective',
    'Projection',
    'QueryDescriptor',
    'ResultEnvelope',
    'SortField',
    'Page',
    'PaginationConfig',
    'resolve_pagination',
]
