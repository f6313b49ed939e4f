"""Param — one typed query parameter: value pipeline, parse and validate."""

from __future__ import annotations

import copy
import logging
import re
from typing import TYPE_CHECKING, Any

from .coercion import coerce, infer_type, is_nil
from .formatters import BUILTIN_FORMATTERS
from .handlers import HandlerFn, HandlerRegistry, HandlerType
from .validators import BUILTIN_VALIDATORS, COLLECTION_VALIDATORS, Check, ParamError

if TYPE_CHECKING:
    from collections.abc import Callable

    from .schema import Schema

logger = logging.getLogger("cqrs_ddd.query_schema.param")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def default_parse(
    value: Any, path: str, operator: str, param: Param, schema: Schema | None
) -> dict[str, Any]:
    """Emit ``{path: value}`` for ``$eq``, else ``{path: {operator: value}}``."""
    if operator == "$eq":
        return {path: value}
    if isinstance(value, re.Pattern):
        return {path: {"$not": value}} if operator == "$ne" else {path: value}
    return {path: {operator: value}}


def _default_callback(error: ParamError | None) -> bool:
    return error is None


class Param:
    """
    A single query parameter.

    Options drive everything: each option whose name matches a registered
    formatter, parser or validator triggers that handler, in options order.

    Usage::

        param = Param("age", None, {"type": int, "min": 18})
        param.value("21")       # 21
        param.parse()           # {"age": 21}
        param.validate(12)      # False
    """

    def __init__(
        self,
        name: str,
        value: Any = None,
        options: dict[str, Any] | None = None,
        schema: Schema | None = None,
    ) -> None:
        self.name = name
        self.schema = schema
        self.handlers = HandlerRegistry()
        for handler_name, fn in BUILTIN_FORMATTERS.items():
            self.handlers.register(HandlerType.FORMATTER, handler_name, fn)
        for handler_name, fn in BUILTIN_VALIDATORS.items():
            self.handlers.register(HandlerType.VALIDATOR, handler_name, fn)

        options = dict(options or {})
        self.options: dict[str, Any] = {
            "type": str,
            "paths": [name],
            "bind_to": "filter",
            "multiple": False,
            "separator": ",",
            "operator": "$eq",
            "trim": True,
            "parse": default_parse,
        }
        self.options.update(options)
        if "type" not in options:
            self._infer_type(value)
        self._unwrap_type()

        self._value: Any = None
        self.value(value)

    def __repr__(self) -> str:
        return f"Param(name={self.name!r}, value={self._value!r})"

    def _infer_type(self, value: Any) -> None:
        sample = value
        if is_nil(sample):
            sample = self.options.get("default")
            if callable(sample):
                return
        if isinstance(sample, list | tuple):
            self.options["multiple"] = True
            sample = sample[0] if sample else None
        if not is_nil(sample):
            self.options["type"] = infer_type(sample)

    def _unwrap_type(self) -> None:
        type_ = self.options.get("type")
        if isinstance(type_, list | tuple):
            self.options["type"] = type_[0] if type_ else str
            self.options["multiple"] = True

    # -- options and handlers ------------------------------------------------

    def option(self, name: str, value: Any = MISSING) -> Any:
        """Get an option, or set it when *value* is given."""
        if value is not MISSING:
            self.options[name] = value
        return self.options.get(name)

    def handler(
        self,
        handler_type: HandlerType | str,
        name: str,
        fn: HandlerFn | None = None,
    ) -> HandlerFn | None:
        return self.handlers.handler(handler_type, name, fn)

    def parser(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handlers.parser(name, fn)

    def formatter(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handlers.formatter(name, fn)

    def validator(self, name: str, fn: HandlerFn | None = None) -> HandlerFn | None:
        return self.handlers.validator(name, fn)

    # -- value ---------------------------------------------------------------

    def value(self, new_value: Any = MISSING, bind: bool = True) -> Any:
        """
        Get the bound value, or format, coerce and bind *new_value*.

        Args:
            new_value: Raw value (usually a query-string token). Omit to read.
            bind: Store the result on the param.

        Returns:
            The formatted value. For ``multiple`` params, a list or ``None``.
        """
        if new_value is MISSING:
            getter = self.options.get("get")
            if callable(getter):
                if isinstance(self._value, list):
                    return [getter(v, self) for v in self._value]
                return getter(self._value, self)
            return self._value

        if self.options.get("multiple"):
            result = self._format_many(new_value)
        else:
            result = self._format_one(new_value)

        if bind:
            self._value = result
        return result

    def _format_many(self, value: Any) -> list[Any] | None:
        if is_nil(value) or value == "":
            value = self._apply_default(value)
            if is_nil(value):
                return None

        if isinstance(value, str):
            separator = self.options.get("separator") or ","
            if isinstance(separator, re.Pattern):
                items: list[Any] = separator.split(value)
            else:
                items = value.split(separator)
        elif isinstance(value, list | tuple):
            items = list(value)
        else:
            items = [value]

        # the default has already been applied to the value as a whole
        return [self._format_one(item, skip_default=True) for item in items]

    def _apply_default(self, value: Any) -> Any:
        if "default" not in self.options:
            return value
        fn = self.handlers.get(HandlerType.FORMATTER, "default")
        if fn is None:
            return value
        return fn(self.options["default"], value, self)

    def _format_one(self, value: Any, skip_default: bool = False) -> Any:
        for option, option_value in list(self.options.items()):
            if skip_default and option == "default":
                continue
            fn = self.handlers.get(HandlerType.FORMATTER, option)
            if fn is not None:
                value = fn(option_value, value, self)

        if not is_nil(value):
            value = coerce(value, self.options.get("type", str))

        for hook in ("format", "set"):
            fn = self.options.get(hook)
            if callable(fn):
                value = fn(value, self)
        return value

    # -- parse ---------------------------------------------------------------

    def parse(
        self, value: Any = MISSING, path: str | list[str] | None = None
    ) -> dict[str, Any]:
        """
        Build the query fragment for *value* (the bound value by default).

        A param with several paths yields ``{"$or": [...]}``; a list value
        switches the operator to ``$in`` (``$nin`` for ``$ne``). Every option
        with a parser runs in options order and the last result wins.
        """
        if value is MISSING:
            value = self._value
        elif not is_nil(value) and value is not self._value:
            value = self.value(value)
        if value is None:
            return {}

        paths = self.options.get("paths") if path is None else path
        if isinstance(paths, str):
            paths = [paths]
        paths = list(paths or [self.name])
        if len(paths) > 1:
            return {"$or": [self.parse(value, p) for p in paths]}
        target = paths[0]

        operator = self.options.get("operator", "$eq")
        if isinstance(value, list):
            operator = "$nin" if operator == "$ne" else "$in"

        query: dict[str, Any] = {}
        for option, option_value in list(self.options.items()):
            if option == "parse" and callable(option_value):
                query = option_value(value, target, operator, self, self.schema)
                continue
            fn = self.handlers.get(HandlerType.PARSER, option)
            if fn is not None:
                query = fn(option_value, value, target, operator, self, self.schema)
        return query

    # -- validate ------------------------------------------------------------

    def validate(
        self,
        value: Any = MISSING,
        callback: Callable[[ParamError | None], Any] | None = None,
    ) -> Any:
        """
        Run every validator selected by the options, stopping at the first failure.

        Returns ``callback(error)``; the default callback returns
        ``error is None``.
        """
        if value is MISSING:
            value = self._value
        error = self.first_error(value)
        if error is not None:
            logger.debug("Param %r failed %r: %s", self.name, error.name, error.message)
        return (callback or _default_callback)(error)

    def first_error(self, value: Any) -> ParamError | None:
        for option, option_value in list(self.options.items()):
            fn = self.handlers.get(HandlerType.VALIDATOR, option)
            if fn is None:
                continue
            for subject in self._subjects(option, value):
                check = Check.of(fn(option_value, subject, self, self.schema))
                if not check.valid:
                    return ParamError(
                        name=option,
                        param=self.name,
                        value=subject,
                        message=check.message,
                        option_value=option_value,
                    )
        return None

    @staticmethod
    def _subjects(option: str, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return [value]
        if option in COLLECTION_VALIDATORS or (option == "required" and not value):
            return [value]
        return value

    # -- copy ----------------------------------------------------------------

    def clone(self, schema: Schema | None = None) -> Param:
        """Independent copy, optionally owned by another schema."""
        clone = copy.copy(self)
        clone.options = copy.deepcopy(self.options)
        clone.handlers = self.handlers.copy()
        clone._value = copy.deepcopy(self._value)
        clone.schema = schema if schema is not None else self.schema
        return clone
