"""Query-string schemas: typed params -> filter / select / cursor query descriptors."""

from __future__ import annotations

from .coercion import NAN, coerce, is_nil
from .definitions import EARTH_RADIUS_METERS, normalize_definition
from .exceptions import (
    HandlerRegistrationError,
    InvalidHandlerNameError,
    QuerySchemaError,
    UnknownHandlerTypeError,
)
from .handlers import (
    HandlerRegistry,
    HandlerType,
    default_registry,
    formatter,
    handler,
    parser,
    reset_default_registry,
    validator,
)
from .param import Param, default_parse
from .schema import Schema
from .validators import Check, ParamError

__all__: list[str] = [
    # Core
    "Param",
    "Schema",
    "default_parse",
    "normalize_definition",
    "EARTH_RADIUS_METERS",
    # Handlers
    "HandlerRegistry",
    "HandlerType",
    "default_registry",
    "reset_default_registry",
    "handler",
    "parser",
    "formatter",
    "validator",
    # Validation
    "Check",
    "ParamError",
    # Coercion
    "NAN",
    "coerce",
    "is_nil",
    # Exceptions
    "QuerySchemaError",
    "HandlerRegistrationError",
    "InvalidHandlerNameError",
    "UnknownHandlerTypeError",
]
