"""Pydantic models exposed by the FastAPI integration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ParsedQuery(BaseModel):
    """Query descriptor produced for one request.

    Extra buckets (params bound to a custom ``bind_to``) are kept as extra
    fields.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    filter: dict[str, Any] = Field(default_factory=dict)
    select: dict[str, Any] = Field(default_factory=dict)
    cursor: dict[str, Any] = Field(default_factory=dict)
