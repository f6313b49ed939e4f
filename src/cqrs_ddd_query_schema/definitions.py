"""
Built-in parameter definitions and shorthand normalisation.

Definitions are plain option dicts built fresh for every schema. Parsers
receive the owning schema as an argument and hold no reference to it.
"""

from __future__ import annotations

import datetime
import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .coercion import infer_type, is_nil

if TYPE_CHECKING:
    from .param import Param
    from .schema import Schema

logger = logging.getLogger("cqrs_ddd.query_schema.definitions")

EARTH_RADIUS_METERS = 6371000


# ---------------------------------------------------------------------------
# Shorthand normalisation
# ---------------------------------------------------------------------------


def normalize_definition(definition: Any) -> dict[str, Any]:
    """
    Expand a shorthand parameter definition into an options dict.

    ===================  ==========================================
    Shorthand            Options
    ===================  ==========================================
    ``None``             ``{}``
    ``"text"``           ``{"default": "text"}``
    ``True``             ``{"type": bool, "default": True}``
    ``10`` / ``1.5``     ``{"type": int | float, "default": ...}``
    ``datetime``         ``{"type": datetime, "default": ...}``
    compiled pattern     ``{"type": re.Pattern, "default": ...}``
    ``int`` (callable)   ``{"type": int}``
    ``["a"]`` / ``[int]``  inner rule with ``type`` wrapped in a list
    mapping              a shallow copy
    ===================  ==========================================
    """
    if definition is None:
        return {}
    if isinstance(definition, Mapping):
        return dict(definition)
    if isinstance(definition, list | tuple):
        if not definition:
            return {}
        inner = normalize_definition(definition[0])
        options: dict[str, Any] = {}
        inner_type = inner.get("type")
        if inner_type is None and not is_nil(inner.get("default")):
            inner_type = infer_type(inner["default"])
        options["type"] = [inner_type or str]
        if "default" in inner:
            options["default"] = inner["default"]
        return options
    if isinstance(definition, str):
        return {"default": definition}
    if isinstance(definition, bool):
        return {"type": bool, "default": definition}
    if isinstance(definition, int | float):
        return {"type": type(definition), "default": definition}
    if isinstance(definition, datetime.date):
        return {"type": datetime.datetime, "default": definition}
    if isinstance(definition, re.Pattern):
        return {"type": re.Pattern, "default": definition}
    if callable(definition):
        return {"type": definition}
    return {}


# ---------------------------------------------------------------------------
# Built-in parsers
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list | tuple) else [value]


def _signed_fields(value: Any) -> list[tuple[str, str]]:
    """``"-a"`` -> ``("-", "a")``; empty tokens are dropped."""
    fields = []
    for field in _as_list(value):
        if is_nil(field):
            continue
        field = str(field)
        if not field:
            continue
        sign = field[0] if field[0] in "+-" else ""
        name = field[len(sign) :]
        if name:
            fields.append((sign, name))
    return fields


def parse_fields(
    value: Any, path: str, operator: str, param: Param, schema: Schema | None
) -> dict[str, Any]:
    """Projection map: ``"-a,b,+id"`` -> ``{"a": 0, "b": 1, "_id": 1}``."""
    query: dict[str, Any] = {}
    for sign, name in _signed_fields(value):
        if name == "id":
            name = "_id"
        query[name] = 0 if sign == "-" else 1
    return query


def parse_sort(
    value: Any, path: str, operator: str, param: Param, schema: Schema | None
) -> dict[str, Any]:
    """``"-createdAt,name"`` -> ``{"sort": {"createdAt": -1, "name": 1}}``."""
    return {
        "sort": {name: -1 if sign == "-" else 1 for sign, name in _signed_fields(value)}
    }


def parse_limit(
    value: Any, path: str, operator: str, param: Param, schema: Schema | None
) -> dict[str, Any]:
    return {"limit": value}


def parse_page(
    value: Any, path: str, operator: str, param: Param, schema: Schema | None
) -> dict[str, Any]:
    """Translate a 1-based page into ``skip`` using the current ``limit`` value."""
    limit = schema.get("limit") if schema is not None else None
    if limit is None or is_nil(limit.value()) or is_nil(value):
        return {}
    return {"skip": limit.value() * (value - 1)}


def parse_nothing(
    value: Any, path: str, operator: str, param: Param, schema: Schema | None
) -> dict[str, Any]:
    return {}


def add_distance_params(value: Any, param: Param) -> Any:
    """Lazily add the ``min_distance`` / ``max_distance`` companions of ``near``."""
    schema = param.schema
    if schema is None:
        return value
    if param.option("min_distance") and schema.get("min_distance") is None:
        logger.debug("Adding companion param 'min_distance' for %r", param.name)
        schema.param(
            "min_distance", None, {"type": float, "min": 0, "parse": parse_nothing}
        )
    if param.option("max_distance") and schema.get("max_distance") is None:
        logger.debug("Adding companion param 'max_distance' for %r", param.name)
        schema.param("max_distance", None, {"type": float, "parse": parse_nothing})
    return value


def _distance(schema: Schema | None, name: str) -> Any:
    param = schema.get(name) if schema is not None else None
    if param is None:
        return None
    distance = param.value()
    return None if is_nil(distance) else distance


def parse_near(
    value: Any, path: str, operator: str, param: Param, schema: Schema | None
) -> dict[str, Any]:
    """
    ``[lat, lng]`` -> ``$near`` query on *path*.

    GeoJSON points take distances in meters; legacy coordinate pairs take
    them in radians (meters / Earth radius). Disables the schema's ``sort``
    param; ``$near`` results come back ordered by distance.
    """
    if not isinstance(value, list) or len(value) < 2:
        return {}
    lat, lng = value[0], value[1]
    min_distance = _distance(schema, "min_distance")
    max_distance = _distance(schema, "max_distance")

    near: dict[str, Any]
    if param.option("geojson"):
        near = {"$geometry": {"type": "Point", "coordinates": [lng, lat]}}
        if min_distance:
            near["$minDistance"] = min_distance
        if max_distance:
            near["$maxDistance"] = max_distance
        query: dict[str, Any] = {"$near": near}
    else:
        query = {"$near": [lng, lat]}
        if min_distance:
            query["$minDistance"] = min_distance / EARTH_RADIUS_METERS
        if max_distance:
            query["$maxDistance"] = max_distance / EARTH_RADIUS_METERS

    if schema is not None:
        schema.option("sort", False)
    return {path: query}


# ---------------------------------------------------------------------------
# Built-in table
# ---------------------------------------------------------------------------


def build_default_definitions() -> dict[str, dict[str, Any]]:
    """Fresh copy of the built-in parameter table, in declaration order."""
    return {
        "q": {
            "type": re.Pattern,
            "normalize": True,
            "paths": ["keywords"],
        },
        "fields": {
            "type": [str],
            "bind_to": "select",
            "parse": parse_fields,
        },
        "near": {
            "type": [float],
            "maxlength": 2,
            "minlength": 2,
            "max": 180,
            "min": -180,
            "paths": ["location"],
            "max_distance": True,
            "min_distance": True,
            "geojson": True,
            "format": add_distance_params,
            "parse": parse_near,
        },
        "page": {
            "type": int,
            "default": 1,
            "max": 30,
            "min": 1,
            "bind_to": "cursor",
            "parse": parse_page,
        },
        "limit": {
            "type": int,
            "default": 30,
            "max": 100,
            "min": 1,
            "bind_to": "cursor",
            "parse": parse_limit,
        },
        "sort": {
            "type": [str],
            "default": "-createdAt",
            "bind_to": "cursor",
            "parse": parse_sort,
        },
    }
