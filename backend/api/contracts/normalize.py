"""
Param normalization - adapts raw find/search params to a QueryDescriptor.

Handles:
- Alias resolution (q -> query, select -> projection, p -> page)
- Filter: object or JSON-object string, nothing else
- Projection/sort/populate: object, JSON string, delimited string or array
- Sign prefixes (-name = exclude / descending)
- Pagination via services.query.pagination
- totalCount flag coercion
"""

import copy
import logging
from typing import Any, Dict, List, Mapping, Tuple

from services.query.descriptor import (
    ASCENDING,
    DESCENDING,
    PopulateDirective,
    Projection,
    QueryDescriptor,
    SortField,
)
from services.query.pagination import PaginationConfig, resolve_pagination
from utils.normalize import (
    MalformedParameter,
    is_blank,
    looks_like_json,
    parse_json,
    to_bool,
    to_tokens,
)

from .registry import FIND_PARAMS, ParamSchema

logger = logging.getLogger('api.contracts.normalize')

PAGINATION_FIELDS = ('skip', 'limit', 'page', 'pageSize')

SORT_DIRECTIONS = {
    '1': ASCENDING,
    'asc': ASCENDING,
    'ascending': ASCENDING,
    '-1': DESCENDING,
    'desc': DESCENDING,
    'descending': DESCENDING,
}


def normalize_find_params(
    raw: Mapping[str, Any],
    *,
    pagination: PaginationConfig = PaginationConfig(),
    count_when_paginated: bool = False,
    schema: ParamSchema = FIND_PARAMS,
) -> QueryDescriptor:
    """
    Normalize raw request params into a QueryDescriptor.

    Steps:
    1. Apply aliases (canonical name wins over alias)
    2. Decode each field by its shape into the canonical type
    3. Resolve pagination
    4. Decide whether a total count is wanted

    Args:
        raw: Params from the query string or JSON body
        pagination: Default page cap
        count_when_paginated: Request a count whenever pagination inputs are sent

    Returns:
        Immutable QueryDescriptor

    Raises:
        MalformedParameter: naming the first field that could not be normalized
    """
    params = schema.resolve(dict(raw))
    _log_aliases(raw, params, schema)

    page = resolve_pagination(
        params.get('skip'),
        params.get('limit'),
        params.get('page'),
        params.get('pageSize'),
        config=pagination,
    )

    wants_total_count = to_bool(params.get('totalCount'), field='totalCount')
    if count_when_paginated and any(not is_blank(params.get(f)) for f in PAGINATION_FIELDS):
        wants_total_count = True

    return QueryDescriptor(
        filter=normalize_filter(params.get('query')),
        projection=normalize_projection(params.get('projection')),
        sort=normalize_sort(params.get('sort')),
        populate=normalize_populate(params.get('populate')),
        skip=page.skip,
        limit=page.limit,
        wants_total_count=wants_total_count,
    )


def normalize_filter(value: Any, *, field: str = 'query') -> Dict[str, Any]:
    """
    Decode a filter into a predicate dict.

    Strings must be JSON objects; delimited token lists are not filters.
    """
    if is_blank(value):
        return {}
    if isinstance(value, str):
        value = parse_json(value, field=field)
    if not isinstance(value, dict):
        raise MalformedParameter(
            f"Expected {field} to be an object, got {type(value).__name__}",
            field=field,
            received_value=value,
        )
    try:
        return copy.deepcopy(value)
    except RecursionError as e:
        raise MalformedParameter(
            f"{field} is nested too deeply", field=field, received_value=None
        ) from e


def normalize_projection(value: Any, *, field: str = 'projection') -> Projection:
    """
    Decode projection/select into a Projection.

    Examples:
        "name -_id"            -> include=(name,), exclude=(_id,)
        {"name": 1, "_id": 0}  -> include=(name,), exclude=(_id,)
        ["name", "-_id"]       -> include=(name,), exclude=(_id,)
    """
    if is_blank(value):
        return Projection()
    value = _decode_string(value, field)

    include: List[str] = []
    exclude: List[str] = []
    if isinstance(value, dict):
        for name, flag in value.items():
            target = include if _projection_flag(flag, field) else exclude
            _append_unique(target, _check_name(name, field))
    elif isinstance(value, list):
        for token in value:
            if not isinstance(token, str):
                raise MalformedParameter(
                    f"Expected {field} tokens to be strings, got {token!r}",
                    field=field,
                    received_value=value,
                )
            for part in to_tokens(token):
                if part.startswith('-'):
                    _append_unique(exclude, _check_name(part[1:], field))
                else:
                    _append_unique(include, _check_name(part.lstrip('+'), field))
    else:
        raise _shape_error(field, value)

    if include and [name for name in exclude if name != '_id']:
        raise MalformedParameter(
            f"{field} cannot mix inclusion and exclusion (except -_id)",
            field=field,
            received_value=value,
        )
    return Projection(include=tuple(include), exclude=tuple(exclude))


def normalize_sort(value: Any, *, field: str = 'sort') -> Tuple[SortField, ...]:
    """
    Decode sort into ordered (field, direction) pairs.

    Examples:
        "name -age"              -> (name, 1), (age, -1)
        {"name": 1, "age": -1}   -> (name, 1), (age, -1)
        {"name": "desc"}         -> (name, -1)
    """
    if is_blank(value):
        return ()
    value = _decode_string(value, field)

    fields: Dict[str, int] = {}
    if isinstance(value, dict):
        for name, direction in value.items():
            name = _check_name(name, field)
            fields.setdefault(name, _sort_direction(direction, field))
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, list) and len(item) == 2:
                name = _check_name(item[0], field)
                fields.setdefault(name, _sort_direction(item[1], field))
            elif isinstance(item, str):
                for token in to_tokens(item):
                    if token.startswith('-'):
                        fields.setdefault(_check_name(token[1:], field), DESCENDING)
                    else:
                        fields.setdefault(_check_name(token.lstrip('+'), field), ASCENDING)
            else:
                raise _shape_error(field, item)
    else:
        raise _shape_error(field, value)

    return tuple(SortField(field=name, direction=d) for name, d in fields.items())


def normalize_populate(value: Any, *, field: str = 'populate') -> Tuple[PopulateDirective, ...]:
    """
    Decode populate into ordered PopulateDirectives.

    Examples:
        "cats owner"                                 -> cats, owner
        ["cats", {"path": "owner", "select": "name"}]
        {"path": "cats", "match": {"age": {"$gt": 2}}}
    """
    if is_blank(value):
        return ()
    value = _decode_string(value, field)

    items = value if isinstance(value, list) else [value]
    directives: Dict[str, PopulateDirective] = {}
    for item in items:
        for directive in _populate_item(item, field):
            directives.setdefault(directive.path, directive)
    return tuple(directives.values())


def _populate_item(item: Any, field: str) -> List[PopulateDirective]:
    if isinstance(item, str):
        return [PopulateDirective(path=_check_name(p, field)) for p in to_tokens(item)]
    if isinstance(item, dict):
        path = item.get('path')
        if not isinstance(path, str) or not to_tokens(path):
            raise MalformedParameter(
                f"{field} objects require a string 'path'",
                field=field,
                received_value=item,
            )
        ignored = set(item) - {'path', 'select', 'match'}
        if ignored:
            logger.debug("populate_options_ignored keys=%s", sorted(ignored))
        select = normalize_projection(item.get('select'), field=field)
        match = normalize_filter(item.get('match'), field=field)
        return [
            PopulateDirective(path=_check_name(p, field), select=select, match=match)
            for p in to_tokens(path)
        ]
    raise _shape_error(field, item)


def _decode_string(value: Any, field: str) -> Any:
    """JSON strings decode to their structure, other strings to a token list."""
    if isinstance(value, str):
        if looks_like_json(value):
            return parse_json(value, field=field)
        return [value]
    return value


def _projection_flag(flag: Any, field: str) -> bool:
    if isinstance(flag, bool):
        return flag
    if isinstance(flag, (int, float)):
        return flag != 0
    if isinstance(flag, str) and flag.strip() in ('0', '1'):
        return flag.strip() == '1'
    raise MalformedParameter(
        f"Expected {field} values to be 0/1, got {flag!r}",
        field=field,
        received_value=flag,
    )


def _sort_direction(direction: Any, field: str) -> int:
    if isinstance(direction, bool):
        raise _shape_error(field, direction)
    if isinstance(direction, (int, float)) and direction in (1, -1):
        return int(direction)
    if isinstance(direction, str) and direction.strip().lower() in SORT_DIRECTIONS:
        return SORT_DIRECTIONS[direction.strip().lower()]
    raise MalformedParameter(
        f"Expected {field} direction 1, -1, asc or desc, got {direction!r}",
        field=field,
        received_value=direction,
    )


def _check_name(name: Any, field: str) -> str:
    if not isinstance(name, str) or not name.strip() or name.startswith('$'):
        raise MalformedParameter(
            f"Invalid field name in {field}: {name!r}",
            field=field,
            received_value=name,
        )
    return name.strip()


def _append_unique(target: List[str], name: str) -> None:
    if name not in target:
        target.append(name)


def _shape_error(field: str, value: Any) -> MalformedParameter:
    return MalformedParameter(
        f"Unsupported {field} shape: {type(value).__name__}",
        field=field,
        received_value=value,
    )


def _log_aliases(raw: Mapping[str, Any], params: Dict[str, Any], schema: ParamSchema) -> None:
    """Log alias resolution and shadowed aliases for observability."""
    for alias, canonical in schema.aliases.items():
        if alias not in raw:
            continue
        if canonical in raw:
            logger.debug("param_normalization: %s ignored, %s takes precedence", alias, canonical)
        else:
            logger.debug("param_normalization: %s -> %s (alias)", alias, canonical)
