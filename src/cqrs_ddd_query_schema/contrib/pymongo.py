"""PyMongo adapter — query descriptor -> ``Collection.find()`` keyword arguments."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pymongo import ASCENDING, DESCENDING


def build_sort(sort: Mapping[str, int] | None) -> list[tuple[str, int]]:
    """Sort spec as ``[(field, DESCENDING | ASCENDING)]`` in key order."""
    if not sort:
        return []
    return [
        (field, DESCENDING if direction < 0 else ASCENDING)
        for field, direction in sort.items()
    ]


def build_projection(select: Mapping[str, int] | None) -> dict[str, int] | None:
    """Projection document. None means no projection."""
    if not select:
        return None
    return dict(select)


def to_find_kwargs(parsed: Any) -> dict[str, Any]:
    """
    Translate a parsed query into keyword arguments for ``find()``.

    Accepts the dict returned by ``Schema.parse()`` or a pydantic model
    exposing ``model_dump()`` (such as the FastAPI ``ParsedQuery``).
    A ``NaN`` skip or limit from an unvalidated query raises ``ValueError``.

    Example::

        query = schema.parse(params)
        documents = collection.find(**to_find_kwargs(query))
    """
    if hasattr(parsed, "model_dump"):
        parsed = parsed.model_dump()
    cursor = parsed.get("cursor") or {}

    kwargs: dict[str, Any] = {
        "filter": dict(parsed.get("filter") or {}),
        "projection": build_projection(parsed.get("select")),
    }
    sort = build_sort(cursor.get("sort"))
    if sort:
        kwargs["sort"] = sort
    for key in ("skip", "limit"):
        value = cursor.get(key)
        if value is not None:
            kwargs[key] = int(value)
    return kwargs
