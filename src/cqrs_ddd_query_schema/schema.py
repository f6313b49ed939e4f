"""
Schema — a set of :class:`~cqrs_ddd_query_schema.param.Param` producing a
``filter`` / ``select`` / ``cursor`` query descriptor.

A schema binds request values onto its params, so a single instance must not
serve concurrent requests. Use :meth:`Schema.instantiate` to get a
request-scoped copy.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import Any

from .coercion import deep_merge, is_nil
from .definitions import build_default_definitions, normalize_definition
from .handlers import HandlerFn, HandlerRegistry, HandlerType, default_registry
from .param import MISSING, Param
from .validators import ParamError

logger = logging.getLogger("cqrs_ddd.query_schema.schema")


def _default_callback(error: ParamError | None) -> bool:
    return error is None


def _capture(error: ParamError | None) -> ParamError | None:
    return error


class Schema:
    """
    Query schema with the built-in ``q``, ``fields``, ``near``, ``page``,
    ``limit`` and ``sort`` parameters plus any caller-defined ones.

    Options rename (``{"page": "p"}``) or disable (``{"sort": False}``)
    parameters; ``near`` is disabled unless ``{"near": True}``.

    Usage::

        schema = Schema({"status": {"enum": ["open", "closed"]}})
        if schema.validate(request.query_params):
            query = schema.parse(request.query_params)
            collection.find(query["filter"], **query["cursor"])
    """

    def __init__(
        self,
        params: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
        *,
        registry: HandlerRegistry | None = None,
    ) -> None:
        params = dict(params or {})
        self.options: dict[str, Any] = {"near": False, **(options or {})}
        self.params: dict[str, Param] = {}
        self.handlers = HandlerRegistry()
        self._definitions = build_default_definitions()

        names = list(self._definitions)
        names += [name for name in params if name not in self._definitions]
        for name in names:
            self.add(name, None, params.get(name))

        source = default_registry if registry is None else registry
        for kind, name, fn in source.items():
            self.handler(kind, name, fn)

    def __repr__(self) -> str:
        return f"Schema(params={list(self.params)!r}, options={self.options!r})"

    # -- options and handlers ------------------------------------------------

    def option(self, name: str, value: Any = MISSING) -> Any:
        """Get a schema option, or set it when *value* is given."""
        if value is not MISSING:
            self.options[name] = value
        return self.options.get(name)

    def handler(
        self,
        handler_type: HandlerType | str,
        name: str,
        fn: HandlerFn | None = None,
    ) -> HandlerFn | None:
        """Get a schema handler, or register it and push it into every param."""
        if fn is None:
            return self.handlers.get(handler_type, name)
        self.handlers.register(handler_type, name, fn)
        registry = HandlerRegistry()
        registry.register(handler_type, name, fn)
        self._refresh_handlers_in_params(registry)
        return fn

    def parser(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handler(HandlerType.PARSER, name, fn)

    def formatter(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handler(HandlerType.FORMATTER, name, fn)

    def validator(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handler(HandlerType.VALIDATOR, name, fn)

    # -- params --------------------------------------------------------------

    def get(self, name: str) -> Param | None:
        """Param registered under *name* (external names are resolved)."""
        return self.params.get(self._get_schema_param_name(name))

    def set(
        self, name: str, value: Any, options: Mapping[str, Any] | None = None
    ) -> Param | None:
        """Rebind an existing param's value and apply *options*; ``None`` if absent."""
        param = self.get(name)
        if param is None:
            return None
        param.value(value)
        for option, option_value in (options or {}).items():
            param.option(option, option_value)
        return param

    def add(
        self,
        name: str | Param,
        value: Any = None,
        options: Any = None,
    ) -> Param | bool:
        """
        Create a param, merging *options* over the built-in definition.

        Args:
            name: Param name, or a ready ``Param`` to take ownership of.
            value: Initial raw value.
            options: Options dict or shorthand (see
                :func:`~cqrs_ddd_query_schema.definitions.normalize_definition`).

        Returns:
            The new param, or ``False`` when the name is disabled.
        """
        if isinstance(name, Param):
            param = name
            schema_name = self._get_schema_param_name(param.name)
            if self.options.get(schema_name) is False:
                logger.debug("Param %r is disabled; not added", schema_name)
                return False
            if param.option("paths") == [param.name]:
                param.option("paths", [schema_name])
            param.name = schema_name
            param.schema = self
            self.params[schema_name] = param
            self._refresh_handlers_in_params(params={schema_name: param})
            return param

        schema_name = self._get_schema_param_name(name)
        if self.options.get(schema_name) is False:
            logger.debug("Param %r is disabled; not added", schema_name)
            return False

        merged: dict[str, Any] = {"bind_to": "filter"}
        merged.update(copy.deepcopy(self._definitions.get(schema_name, {})))
        merged.update(normalize_definition(options))

        param = Param(schema_name, None, merged, self)
        self.params[schema_name] = param
        self._refresh_handlers_in_params(params={schema_name: param})
        if value is not None:
            param.value(value)
        return param

    def param(
        self,
        name: str,
        value: Any = MISSING,
        options: Mapping[str, Any] | None = None,
    ) -> Param | bool | None:
        """Get a param, or set it and fall back to adding it."""
        if value is MISSING and options is None:
            return self.get(name)
        value = None if value is MISSING else value
        return self.set(name, value, options) or self.add(name, value, options)

    # -- parse and validate --------------------------------------------------

    def _bind(self, values: Mapping[str, Any]) -> None:
        """Bind raw *values*; params added while binding are bound too."""
        bound: set[str] = set()
        while True:
            pending = [name for name in self.params if name not in bound]
            if not pending:
                return
            for name in pending:
                bound.add(name)
                param = self.params.get(name)
                if param is None:
                    continue
                value = values.get(self._get_query_param_name(name))
                if not is_nil(value):
                    param.value(value)

    def _is_enabled(self, name: str) -> bool:
        return self.options.get(self._get_schema_param_name(name)) is not False

    def parse(self, values: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """
        Bind *values* and build the query descriptor.

        Returns:
            ``{bucket: fragment}`` for every bucket used by an enabled param,
            typically ``filter``, ``select`` and ``cursor``.
        """
        self._bind(values or {})

        query: dict[str, dict[str, Any]] = {}
        for param in list(self.params.values()):
            if not self._is_enabled(param.name):
                continue
            bucket = query.setdefault(param.options.get("bind_to", "filter"), {})
            fragment = param.parse()
            if "$or" in bucket and "$or" in fragment:
                # two multi-path params in one bucket must both hold
                fragment = dict(fragment)
                clauses = [{"$or": bucket.pop("$or")}, {"$or": fragment.pop("$or")}]
                bucket.setdefault("$and", []).extend(clauses)
            deep_merge(bucket, fragment)
        return query

    def validate(
        self,
        values: Mapping[str, Any] | None = None,
        callback: Callable[[ParamError | None], Any] | None = None,
    ) -> Any:
        """
        Bind *values* and validate params in order, stopping at the first error.

        Returns ``callback(error)``; the default callback returns
        ``error is None``.
        """
        self._bind(values or {})

        error: ParamError | None = None
        for param in list(self.params.values()):
            error = param.validate(callback=_capture)
            if error is not None:
                break
        return (callback or _default_callback)(error)

    # -- request scope -------------------------------------------------------

    def instantiate(self, deep: bool = True) -> Schema:
        """
        Request-scoped copy of this schema.

        ``deep=True`` copies everything. ``deep=False`` copies options and
        params but shares the handler registry with this schema.
        """
        if deep:
            return copy.deepcopy(self)
        clone = copy.copy(self)
        clone.options = dict(self.options)
        clone._definitions = self._definitions
        clone.params = {name: p.clone(schema=clone) for name, p in self.params.items()}
        return clone

    # -- internals -----------------------------------------------------------

    def _refresh_handlers_in_params(
        self,
        handlers: HandlerRegistry | None = None,
        params: Mapping[str, Param] | None = None,
    ) -> None:
        handlers = self.handlers if handlers is None else handlers
        params = self.params if params is None else params
        for kind, name, fn in handlers.items():
            for param in params.values():
                param.handler(kind, name, fn)

    def _get_schema_param_name(self, name: str) -> str:
        for key, option in self.options.items():
            if isinstance(option, str) and option == name:
                return key
        return name

    def _get_query_param_name(self, name: str) -> str:
        option = self.options.get(name)
        return option if isinstance(option, str) else name
