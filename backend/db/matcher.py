"""
In-process evaluation of the document filter language.

Supports:
- Field equality (arrays match when any element is equal), dotted paths
- Comparison: $eq $ne $gt $gte $lt $lte
- Membership: $in $nin $all
- Element: $exists $size $elemMatch $regex (+ $options) $not
- Logical: $and $or $nor

Ordering across types follows the document-store convention:
missing < null < numbers < strings < objects < arrays < booleans.
"""

import copy
import json
import re
from typing import Any, Dict, Iterable, List, Tuple

MISSING = object()


class FilterError(ValueError):
    """Raised for filters the store cannot evaluate."""


# =============================================================================
# PATHS
# =============================================================================

def resolve_path(doc: Any, path: str) -> List[Any]:
    """Values reachable at a dotted path; arrays fan out over their elements."""
    return _resolve(doc, path.split('.'))


def _resolve(value: Any, parts: List[str]) -> List[Any]:
    if not parts:
        return [value]
    head, rest = parts[0], parts[1:]
    if isinstance(value, dict):
        if head not in value:
            return []
        return _resolve(value[head], rest)
    if isinstance(value, list):
        if head.isdigit():
            index = int(head)
            return _resolve(value[index], rest) if index < len(value) else []
        found = []
        for item in value:
            if isinstance(item, dict):
                found.extend(_resolve(item, parts))
        return found
    return []


def _candidates(values: Iterable[Any]) -> List[Any]:
    """Each value plus, for arrays, each of its elements."""
    out = []
    for value in values:
        out.append(value)
        if isinstance(value, list):
            out.extend(value)
    return out


# =============================================================================
# MATCHING
# =============================================================================

LOGICAL_OPERATORS = ('$and', '$or', '$nor')


def matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """True when doc satisfies every clause of query."""
    if not isinstance(query, dict):
        raise FilterError(f"filter must be an object, got {type(query).__name__}")
    for key, condition in query.items():
        if key.startswith('$'):
            if not _match_logical(doc, key, condition):
                return False
        elif not _match_field(doc, key, condition):
            return False
    return True


def _match_logical(doc: Dict[str, Any], operator: str, clauses: Any) -> bool:
    if operator not in LOGICAL_OPERATORS:
        raise FilterError(f"unknown top-level operator {operator}")
    if not isinstance(clauses, list) or not clauses:
        raise FilterError(f"{operator} requires a non-empty array")
    results = (matches(doc, clause) for clause in clauses)
    if operator == '$and':
        return all(results)
    if operator == '$or':
        return any(results)
    return not any(results)


def _is_operator_expression(condition: Any) -> bool:
    return (
        isinstance(condition, dict)
        and bool(condition)
        and all(k.startswith('$') for k in condition)
    )


def _match_field(doc: Dict[str, Any], path: str, condition: Any) -> bool:
    values = resolve_path(doc, path)
    if _is_operator_expression(condition):
        options = condition.get('$options', '')
        return all(
            _apply(op, operand, values, options)
            for op, operand in condition.items()
            if op != '$options'
        )
    return _equals(values, condition)


def _equals(values: List[Any], expected: Any) -> bool:
    if expected is None:
        return not values or any(v is None for v in _candidates(values))
    return any(_same(v, expected) for v in _candidates(values))


def _same(a: Any, b: Any) -> bool:
    # True == 1 in Python, never in documents
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def _apply(op: str, operand: Any, values: List[Any], options: str) -> bool:
    if op == '$eq':
        return _equals(values, operand)
    if op == '$ne':
        return not _equals(values, operand)
    if op in ('$gt', '$gte', '$lt', '$lte'):
        return any(_compare(op, v, operand) for v in _candidates(values))
    if op == '$in':
        _require_list(op, operand)
        return any(_equals(values, item) for item in operand)
    if op == '$nin':
        _require_list(op, operand)
        return not any(_equals(values, item) for item in operand)
    if op == '$exists':
        return bool(values) == bool(operand)
    if op == '$size':
        return any(isinstance(v, list) and len(v) == operand for v in values)
    if op == '$all':
        _require_list(op, operand)
        return any(
            isinstance(v, list) and all(_equals([v], item) for item in operand)
            for v in values
        )
    if op == '$elemMatch':
        if not isinstance(operand, dict):
            raise FilterError("$elemMatch requires an object")
        return any(
            isinstance(v, list) and any(_element_matches(e, operand) for e in v)
            for v in values
        )
    if op == '$regex':
        pattern = _compile_regex(operand, options)
        return any(isinstance(v, str) and pattern.search(v) for v in _candidates(values))
    if op == '$not':
        if not isinstance(operand, dict):
            raise FilterError("$not requires an operator expression")
        inner_options = operand.get('$options', '')
        return not all(
            _apply(inner, inner_operand, values, inner_options)
            for inner, inner_operand in operand.items()
            if inner != '$options'
        )
    raise FilterError(f"unknown operator {op}")


def _element_matches(element: Any, condition: Dict[str, Any]) -> bool:
    if _is_operator_expression(condition):
        options = condition.get('$options', '')
        return all(
            _apply(op, operand, [element], options)
            for op, operand in condition.items()
            if op != '$options'
        )
    return isinstance(element, dict) and matches(element, condition)


def _compare(op: str, value: Any, operand: Any) -> bool:
    if _type_rank(value) != _type_rank(operand) or value is None:
        return False
    left, right = sort_key(value), sort_key(operand)
    if op == '$gt':
        return left > right
    if op == '$gte':
        return left >= right
    if op == '$lt':
        return left < right
    return left <= right


def _require_list(op: str, operand: Any) -> None:
    if not isinstance(operand, list):
        raise FilterError(f"{op} requires an array")


_REGEX_FLAGS = {'i': re.IGNORECASE, 'm': re.MULTILINE, 's': re.DOTALL, 'x': re.VERBOSE}


def _compile_regex(pattern: Any, options: str):
    if not isinstance(pattern, str):
        raise FilterError("$regex requires a string pattern")
    flags = 0
    for flag in options or '':
        if flag not in _REGEX_FLAGS:
            raise FilterError(f"unsupported $options flag {flag!r}")
        flags |= _REGEX_FLAGS[flag]
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise FilterError(f"invalid $regex: {e}")


# =============================================================================
# SORTING
# =============================================================================

def _type_rank(value: Any) -> int:
    if value is MISSING:
        return 0
    if value is None:
        return 1
    if isinstance(value, bool):
        return 6
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, dict):
        return 4
    if isinstance(value, list):
        return 5
    return 3


def sort_key(value: Any) -> Tuple[int, Any]:
    rank = _type_rank(value)
    if rank in (0, 1):
        return (rank, 0)
    if rank == 4:
        return (rank, json.dumps(value, sort_keys=True, default=str))
    if rank == 5:
        return (rank, tuple(sort_key(item) for item in value))
    if rank == 3 and not isinstance(value, str):
        return (rank, str(value))
    return (rank, value)


def sort_documents(docs: List[Dict[str, Any]], fields: Iterable[Tuple[str, int]]) -> List[Dict[str, Any]]:
    """
    Stable multi-key sort; equal keys keep natural (insertion) order.

    Args:
        fields: (path, direction) pairs, direction 1 or -1, most significant first
    """
    ordered = list(docs)
    for path, direction in reversed(list(fields)):
        ordered.sort(key=lambda d: sort_key(_first(d, path)), reverse=direction < 0)
    return ordered


def _first(doc: Dict[str, Any], path: str) -> Any:
    values = resolve_path(doc, path)
    return values[0] if values else MISSING


# =============================================================================
# PROJECTION
# =============================================================================

def project(doc: Dict[str, Any], include: Iterable[str] = (), exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Apply an inclusion or exclusion projection to a copy of doc.

    Inclusion keeps _id unless it is excluded explicitly.
    """
    include = list(include)
    exclude = list(exclude)
    if include:
        result: Dict[str, Any] = {}
        if '_id' in doc and '_id' not in exclude:
            result['_id'] = copy.deepcopy(doc['_id'])
        for path in include:
            _copy_path(doc, result, path.split('.'))
        for path in exclude:
            _drop_path(result, path.split('.'))
        return result

    result = copy.deepcopy(doc)
    for path in exclude:
        _drop_path(result, path.split('.'))
    return result


def _copy_path(source: Any, target: Dict[str, Any], parts: List[str]) -> None:
    head, rest = parts[0], parts[1:]
    if not isinstance(source, dict) or head not in source:
        return
    value = source[head]
    if not rest:
        target[head] = copy.deepcopy(value)
        return
    if isinstance(value, dict):
        _copy_path(value, target.setdefault(head, {}), rest)
    elif isinstance(value, list):
        # scalar elements have no sub-fields to keep
        items = [item for item in value if isinstance(item, dict)]
        projected = target.setdefault(head, [{} for _ in items])
        for item, out in zip(items, projected):
            _copy_path(item, out, rest)


def _drop_path(target: Any, parts: List[str]) -> None:
    head, rest = parts[0], parts[1:]
    if isinstance(target, list):
        for item in target:
            _drop_path(item, parts)
        return
    if not isinstance(target, dict) or head not in target:
        return
    if not rest:
        del target[head]
    else:
        _drop_path(target[head], rest)


# =============================================================================
# PATH ASSIGNMENT (population)
# =============================================================================

def get_value(doc: Dict[str, Any], path: str) -> Any:
    current: Any = doc
    for part in path.split('.'):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current


def set_value(doc: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split('.')
    current = doc
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value
