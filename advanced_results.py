"""
Generic list query used by the collection endpoints.

Query string keys other than select/sort/page/limit become filters. A key such as
``tuition[gte]=1000`` is rewritten to ``{"tuition": {"$gte": 1000}}``; anything
that is not one of the recognised operators is an equality filter on the literal
key. Field names are not validated, so a filter on a field that does not exist
returns an empty page instead of an error.
"""

import re
import typing
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bson import ObjectId
from pydantic import BaseModel

from database import serialize_doc

RESERVED_PARAMS = ("select", "sort", "page", "limit")
OPERATORS = ("gt", "gte", "lt", "lte", "in")
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
DEFAULT_SORT = [("created_at", -1)]

_OPERATOR_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[a-z]+)\]$")


class Populate(BaseModel):
    """Explicit join performed after the primary fetch.

    Forward: ``Populate(collection="bootcamp", local_field="bootcamp_id", into="bootcamp")``
    Reverse: ``Populate(collection="course", local_field="_id", foreign_field="bootcamp_id",
    into="courses", many=True)``
    """
    collection: str
    local_field: str
    into: str
    foreign_field: str = "_id"
    select: Optional[Sequence[str]] = None
    many: bool = False


def _items(params) -> List[Tuple[str, str]]:
    if params is None:
        return []
    if hasattr(params, "multi_items"):
        return list(params.multi_items())
    return list(params.items())


def _field_type(model, field: str):
    if model is None or field not in model.model_fields:
        return None
    annotation = model.model_fields[field].annotation
    if typing.get_origin(annotation) is typing.Union:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        annotation = args[0] if len(args) == 1 else None
    return annotation


def _cast(value: str, field_type) -> Any:
    if field_type is bool:
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        return value
    if field_type in (int, float):
        for caster in (int, float):
            try:
                return caster(value)
            except ValueError:
                continue
    return value


def build_filter(params, model: Optional[type] = None) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    for key, value in _items(params):
        if key in RESERVED_PARAMS:
            continue
        match = _OPERATOR_KEY.match(key)
        if match and match.group("op") in OPERATORS:
            field, op = match.group("field"), match.group("op")
            field_type = _field_type(model, field)
            condition = query.get(field)
            if not isinstance(condition, dict):
                condition = {}
                query[field] = condition
            if op == "in":
                values = [_cast(v.strip(), field_type) for v in value.split(",") if v.strip()]
                condition.setdefault("$in", []).extend(values)
            else:
                condition[f"${op}"] = _cast(value, field_type)
        else:
            query[key] = _cast(value, _field_type(model, key))
    return query


def parse_fields(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [f.strip() for f in value.split(",") if f.strip()]


def build_projection(select: Optional[str], hidden: Iterable[str] = ()) -> Optional[Dict[str, int]]:
    hidden = set(hidden)
    requested = parse_fields(select)
    included = [f for f in requested if not f.startswith("-") and f not in hidden]
    if included:
        # MongoDB cannot mix inclusion and exclusion, so "-field" entries are dropped here
        return {f: 1 for f in included}
    excluded = [f[1:] for f in requested if f.startswith("-") and len(f) > 1]
    excluded += [f for f in hidden if f not in excluded]
    if excluded:
        return {f: 0 for f in excluded}
    return None


def build_sort(sort: Optional[str]) -> List[Tuple[str, int]]:
    fields = parse_fields(sort)
    if not fields:
        return list(DEFAULT_SORT)
    return [(f[1:], -1) if f.startswith("-") else (f, 1) for f in fields]


def positive_int(value: Optional[str], default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def paginate(page: int, limit: int, total: int) -> Dict[str, Dict[str, int]]:
    start_index = (page - 1) * limit
    end_index = page * limit
    pagination: Dict[str, Dict[str, int]] = {}
    if end_index < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if start_index > 0:
        pagination["prev"] = {"page": page - 1, "limit": limit}
    return pagination


def _key(doc: Dict[str, Any], field: str) -> Optional[str]:
    value = doc.get(field)
    return str(value) if value is not None else None


def populate(db, docs: List[Dict[str, Any]], join: Populate) -> None:
    """Attach related documents to ``docs`` in place (one query per join)."""
    keys = {k for k in (_key(d, join.local_field) for d in docs) if k}
    if join.foreign_field == "_id":
        values: List[Any] = [ObjectId(k) for k in keys if ObjectId.is_valid(k)]
    else:
        values = list(keys)

    projection = build_projection(",".join(join.select)) if join.select else None
    if projection is not None:
        projection[join.foreign_field] = 1

    related = defaultdict(list)
    if values:
        for rel in db[join.collection].find({join.foreign_field: {"$in": values}}, projection):
            related[str(rel[join.foreign_field])].append(serialize_doc(rel))

    for doc in docs:
        found = related.get(_key(doc, join.local_field), [])
        if join.many:
            doc[join.into] = found
        else:
            doc[join.into] = found[0] if found else None


def advanced_results(
    db,
    collection: str,
    params,
    model: Optional[type] = None,
    populates: Sequence[Populate] = (),
    hidden: Iterable[str] = (),
) -> Dict[str, Any]:
    hidden = tuple(hidden)
    lookup = dict(_items(params))

    query = build_filter(params, model)
    projection = build_projection(lookup.get("select"), hidden)
    sort = build_sort(lookup.get("sort"))

    page = positive_int(lookup.get("page"), DEFAULT_PAGE)
    limit = positive_int(lookup.get("limit"), DEFAULT_LIMIT)
    start_index = (page - 1) * limit

    # counted against the filter so the next cursor never points past the last match
    total = db[collection].count_documents(query)
    docs = list(db[collection].find(query, projection).sort(sort).skip(start_index).limit(limit))

    for join in populates:
        populate(db, docs, join)

    data = [serialize_doc(d, hidden=hidden) for d in docs]
    return {
        "success": True,
        "count": len(data),
        "pagination": paginate(page, limit, total),
        "data": data,
    }
