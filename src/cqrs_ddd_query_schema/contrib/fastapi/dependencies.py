"""FastAPI dependencies for query-string schemas.

Each request gets its own schema copy: values are bound onto params, so the
schema declared at import time is never mutated by a request.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder

from ...handlers import default_registry
from ...schema import Schema
from ...validators import ParamError
from .models import ParsedQuery

logger = logging.getLogger("cqrs_ddd.query_schema.fastapi")

_DETAIL_ENCODERS: dict[Any, Callable[[Any], Any]] = {
    re.Pattern: lambda pattern: pattern.pattern,
    float: lambda number: None if math.isnan(number) else number,
}


@dataclass(frozen=True)
class QuerySchemaConfig:
    """Configuration for the query schema dependency.

    Attributes:
        status_code: HTTP status returned when validation fails.
        deep_copy: Deep-copy the declared schema per request; otherwise
            params are cloned and the handler registry is shared.
        state_attribute: ``request.state`` attribute receiving the result.
    """

    status_code: int = 400
    deep_copy: bool = True
    state_attribute: str = "query"


def query_params_to_dict(query_params: Any) -> dict[str, Any]:
    """Flatten a multi-dict into ``{key: value}``; repeated keys become lists."""
    if hasattr(query_params, "multi_items"):
        items = query_params.multi_items()
    else:
        items = list(query_params.items())

    values: dict[str, Any] = {}
    for key, value in items:
        if key not in values:
            values[key] = value
            continue
        current = values[key]
        if isinstance(current, list):
            current.append(value)
        else:
            values[key] = [current, value]
    return values


def error_detail(error: ParamError) -> dict[str, Any]:
    """JSON-safe error descriptor: patterns become their source, NaN becomes null."""
    detail: dict[str, Any] = jsonable_encoder(
        error.to_dict(), custom_encoder=_DETAIL_ENCODERS
    )
    return detail


def _capture(error: ParamError | None) -> ParamError | None:
    return error


def query_schema(
    schema: Schema | Mapping[str, Any] | None = None,
    options: Mapping[str, Any] | None = None,
    config: QuerySchemaConfig | None = None,
) -> Callable[[Request], ParsedQuery]:
    """Create a dependency that validates and parses the request query string.

    Args:
        schema: A declared ``Schema``, or param definitions to build one from.
        options: Schema options, used only when *schema* is not a ``Schema``.
        config: Dependency configuration.

    Returns:
        Dependency function returning a :class:`ParsedQuery`.

    Raises:
        HTTPException: ``config.status_code`` (400) with the error descriptor
            as ``detail`` when a param is invalid.

    Example:
        ```python
        from fastapi import APIRouter, Depends
        from cqrs_ddd_query_schema.contrib.fastapi import ParsedQuery, query_schema

        router = APIRouter()

        @router.get("/articles")
        def list_articles(query: ParsedQuery = Depends(query_schema({"author": str}))):
            return collection.find(query.filter, skip=query.cursor["skip"])
        ```
    """
    config = config or QuerySchemaConfig()
    declared = schema if isinstance(schema, Schema) else None
    definitions = None if declared is not None else dict(schema or {})

    def build_schema() -> Schema:
        if declared is None:
            return Schema(definitions, options)
        scoped = declared.instantiate(deep=config.deep_copy)
        for kind, name, fn in default_registry.items():
            scoped.handler(kind, name, fn)
        return scoped

    def dependency(request: Request) -> ParsedQuery:
        scoped = build_schema()
        values = query_params_to_dict(request.query_params)

        error = scoped.validate(values, callback=_capture)
        if error is not None:
            logger.debug(
                "Rejected query for %s: %s", request.url.path, error.message
            )
            raise HTTPException(
                status_code=config.status_code,
                detail=error_detail(error),
            )

        parsed = ParsedQuery.model_validate(scoped.parse(values))
        setattr(request.state, config.state_attribute, parsed)
        return parsed

    return dependency
