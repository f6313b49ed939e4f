"""
Query schema exception hierarchy.

Only programming errors raise. Invalid request values are reported as
:class:`~cqrs_ddd_query_schema.validators.ParamError` descriptors instead.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class QuerySchemaError(Exception):
    """Base exception for all query schema errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class HandlerRegistrationError(QuerySchemaError):
    """A handler could not be registered."""


class UnknownHandlerTypeError(HandlerRegistrationError):
    """
    Handler type outside the closed ``parser | formatter | validator`` set.

    Provides fuzzy-matched suggestions for likely intended types.
    """

    def __init__(self, handler_type: object, valid_types: list[str]) -> None:
        self.handler_type = handler_type
        self.valid_types = valid_types
        self.suggestions = get_close_matches(
            str(handler_type), valid_types, n=3, cutoff=0.6
        )

        message = f"Unknown handler type: {handler_type!r}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid types: {', '.join(sorted(valid_types))}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNKNOWN_HANDLER_TYPE",
            "handler_type": str(self.handler_type),
            "suggestions": self.suggestions,
            "valid_types": sorted(self.valid_types),
        }


class InvalidHandlerNameError(HandlerRegistrationError):
    """Handler names must be non-empty strings that do not start with ``__``."""

    def __init__(self, name: object) -> None:
        self.name = name
        super().__init__(f"Invalid handler name: {name!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_HANDLER_NAME",
            "name": repr(self.name),
        }
