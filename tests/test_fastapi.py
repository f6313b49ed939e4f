"""Tests for the FastAPI integration (optional; requires the fastapi extra)."""

from __future__ import annotations

import math
import re
from typing import Any

import pytest

fastapi = pytest.importorskip("fastapi")

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from starlette.datastructures import QueryParams

import cqrs_ddd_query_schema as qs
from cqrs_ddd_query_schema import ParamError, Schema
from cqrs_ddd_query_schema.contrib.fastapi import (
    ParsedQuery,
    QuerySchemaConfig,
    error_detail,
    query_params_to_dict,
    query_schema,
)


def _app(dependency: Any) -> TestClient:
    app = FastAPI()

    @app.get("/articles")
    def list_articles(
        request: Request,
        query: ParsedQuery = Depends(dependency),  # noqa: B008
    ) -> dict[str, Any]:
        assert request.state.query is query
        return {"filter": query.filter, "select": query.select, "cursor": query.cursor}

    return TestClient(app)


class TestQueryParamsToDict:
    def test_repeated_keys_become_lists(self) -> None:
        params = QueryParams("a=1&a=2&b=3&a=4")
        assert query_params_to_dict(params) == {"a": ["1", "2", "4"], "b": "3"}

    def test_plain_mapping(self) -> None:
        assert query_params_to_dict({"a": "1"}) == {"a": "1"}


class TestQuerySchemaDependency:
    def test_parses_query_string(self) -> None:
        client = _app(query_schema({"status": {"enum": ["open", "closed"]}}))
        response = client.get("/articles?status=open&page=2&limit=5&fields=-id,title")
        assert response.status_code == 200
        assert response.json() == {
            "filter": {"status": "open"},
            "select": {"_id": 0, "title": 1},
            "cursor": {"skip": 5, "limit": 5, "sort": {"createdAt": -1}},
        }

    def test_invalid_value_returns_400(self) -> None:
        client = _app(query_schema({"status": {"enum": ["open", "closed"]}}))
        response = client.get("/articles?status=other")
        assert response.status_code == 400
        assert response.json()["detail"] == {
            "valid": False,
            "name": "enum",
            "param": "status",
            "value": "other",
            "message": "status must be one of: open, closed",
            "enum": ["open", "closed"],
        }

    def test_unparseable_limit_returns_400(self) -> None:
        response = _app(query_schema()).get("/articles?limit=abc")
        assert response.status_code == 400
        assert response.json()["detail"]["param"] == "limit"
        assert response.json()["detail"]["value"] is None

    def test_custom_status_code(self) -> None:
        dependency = query_schema(config=QuerySchemaConfig(status_code=422))
        response = _app(dependency).get("/articles?limit=1000")
        assert response.status_code == 422
        assert response.json()["detail"]["name"] == "max"

    def test_declared_schema_is_not_mutated(self) -> None:
        declared = Schema({}, {"near": True})
        client = _app(query_schema(declared))

        near = client.get("/articles?near=-22,-44&max_distance=100")
        assert near.status_code == 200
        assert "sort" not in near.json()["cursor"]

        plain = client.get("/articles")
        assert plain.json()["cursor"]["sort"] == {"createdAt": -1}
        assert declared.get("near").value() is None
        assert declared.get("max_distance") is None

    def test_shallow_copy_config(self) -> None:
        declared = Schema()
        client = _app(query_schema(declared, config=QuerySchemaConfig(deep_copy=False)))
        assert client.get("/articles?page=3").json()["cursor"]["skip"] == 60
        assert declared.get("page").value() == 1

    def test_process_handlers_are_applied(self) -> None:
        declared = Schema({"n": {"type": int, "even": True}})
        qs.validator("even", lambda option, value, param, schema: value % 2 == 0)
        client = _app(query_schema(declared))
        assert client.get("/articles?n=3").status_code == 400
        assert client.get("/articles?n=4").status_code == 200


def test_error_detail_is_json_safe() -> None:
    error = ParamError(
        name="match",
        param="code",
        value=math.nan,
        message="code must match regular expression ^a",
        option_value=re.compile("^a"),
    )
    detail = error_detail(error)
    assert detail["value"] is None
    assert detail["match"] == "^a"
