"""Shared fixtures for query schema tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from cqrs_ddd_query_schema import Schema, reset_default_registry


@pytest.fixture(autouse=True)
def clean_default_registry() -> Iterator[None]:
    """Process-wide handlers must not leak between tests."""
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture
def schema() -> Schema:
    """Schema with only the built-in params."""
    return Schema()


@pytest.fixture
def near_schema() -> Schema:
    """Schema with the geospatial ``near`` param enabled."""
    return Schema({}, {"near": True})
