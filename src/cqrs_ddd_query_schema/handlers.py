"""
Handler registry — named parser, formatter and validator functions.

Handlers are dispatched by option name: a param whose options contain
``min`` runs the ``min`` validator with the option value as first argument.
Registries exist at three scopes (process, schema, param); the schema pushes
its handlers down into every param it owns.

Signatures::

    formatter(option_value, value, param) -> value
    parser(option_value, value, path, operator, param, schema) -> dict
    validator(option_value, value, param, schema) -> Check | Mapping | bool
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from enum import Enum
from typing import Any

from .exceptions import InvalidHandlerNameError, UnknownHandlerTypeError

logger = logging.getLogger("cqrs_ddd.query_schema.handlers")

HandlerFn = Callable[..., Any]


class HandlerType(str, Enum):
    """Closed set of handler kinds."""

    PARSER = "parser"
    FORMATTER = "formatter"
    VALIDATOR = "validator"

    @classmethod
    def coerce(cls, value: HandlerType | str) -> HandlerType:
        """Accept the enum member, its value, or the plural form."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key.endswith("s"):
                key = key[:-1]
            for member in cls:
                if member.value == key:
                    return member
        raise UnknownHandlerTypeError(value, [m.value for m in cls])


def _check_name(name: object) -> str:
    if not isinstance(name, str) or not name or name.startswith("__"):
        raise InvalidHandlerNameError(name)
    return name


class HandlerRegistry:
    """
    Typed ``name -> function`` maps, one per :class:`HandlerType`.

    Usage::

        registry = HandlerRegistry()
        registry.validator("even", lambda opt, value, param, schema: value % 2 == 0)

        registry.get(HandlerType.VALIDATOR, "even")
    """

    def __init__(self) -> None:
        self._handlers: dict[HandlerType, dict[str, HandlerFn]] = {
            member: {} for member in HandlerType
        }

    # -- registration --------------------------------------------------------

    def register(
        self, handler_type: HandlerType | str, name: str, fn: HandlerFn
    ) -> None:
        """Register *fn* under *name*, replacing any previous handler."""
        kind = HandlerType.coerce(handler_type)
        self._handlers[kind][_check_name(name)] = fn
        logger.debug("Registered %s handler %r", kind.value, name)

    def unregister(self, handler_type: HandlerType | str, name: str) -> None:
        """Remove a handler from the registry."""
        self._handlers[HandlerType.coerce(handler_type)].pop(name, None)

    def update(self, other: HandlerRegistry) -> None:
        """Copy every handler of *other* into this registry."""
        for kind, name, fn in other.items():
            self._handlers[kind][name] = fn

    def clear(self) -> None:
        for handlers in self._handlers.values():
            handlers.clear()

    # -- look-up -------------------------------------------------------------

    def get(self, handler_type: HandlerType | str, name: str) -> HandlerFn | None:
        """Return the registered handler or ``None``."""
        return self._handlers[HandlerType.coerce(handler_type)].get(name)

    def has(self, handler_type: HandlerType | str, name: str) -> bool:
        return name in self._handlers[HandlerType.coerce(handler_type)]

    def items(self) -> Iterator[tuple[HandlerType, str, HandlerFn]]:
        for kind, handlers in self._handlers.items():
            for name, fn in list(handlers.items()):
                yield kind, name, fn

    def copy(self) -> HandlerRegistry:
        clone = HandlerRegistry()
        clone.update(self)
        return clone

    def __len__(self) -> int:
        return sum(len(handlers) for handlers in self._handlers.values())

    # -- getter/setter shortcuts ---------------------------------------------

    def handler(
        self,
        handler_type: HandlerType | str,
        name: str,
        fn: HandlerFn | None = None,
    ) -> HandlerFn | None:
        """Get the handler when *fn* is omitted, otherwise register it."""
        if fn is None:
            return self.get(handler_type, name)
        self.register(handler_type, name, fn)
        return fn

    def parser(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handler(HandlerType.PARSER, name, fn)

    def formatter(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handler(HandlerType.FORMATTER, name, fn)

    def validator(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handler(HandlerType.VALIDATOR, name, fn)


# ---------------------------------------------------------------------------
# Process-wide registry
# ---------------------------------------------------------------------------

default_registry = HandlerRegistry()


def reset_default_registry() -> None:
    """Forget every process-wide handler (test isolation)."""
    default_registry.clear()


def handler(
    handler_type: HandlerType | str, name: str, fn: HandlerFn | None = None
) -> HandlerFn | None:
    """Get or register a process-wide handler.

    Process-wide handlers are copied into every schema built afterwards and
    into request-scoped schemas created by the framework adapters.
    """
    return default_registry.handler(handler_type, name, fn)


def parser(name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
    return default_registry.parser(name, fn)


def formatter(name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
    return default_registry.formatter(name, fn)


def validator(name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
    return default_registry.validator(name, fn)
