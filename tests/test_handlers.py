"""Tests for the handler registry and the process-wide registration surface."""

from __future__ import annotations

from typing import Any

import pytest

import cqrs_ddd_query_schema as qs
from cqrs_ddd_query_schema import (
    HandlerRegistry,
    HandlerType,
    InvalidHandlerNameError,
    Schema,
    UnknownHandlerTypeError,
)


def _even(option: Any, value: Any, param: Any, schema: Any) -> bool:
    return not option or value is None or value % 2 == 0


class TestHandlerType:
    @pytest.mark.parametrize("raw", ["parser", "parsers", "Parser", HandlerType.PARSER])
    def test_coerce_accepts_aliases(self, raw: Any) -> None:
        assert HandlerType.coerce(raw) is HandlerType.PARSER

    def test_unknown_type_raises_with_suggestions(self) -> None:
        with pytest.raises(UnknownHandlerTypeError) as exc_info:
            HandlerType.coerce("validater")
        assert exc_info.value.suggestions == ["validator"]
        assert exc_info.value.to_dict()["error"] == "UNKNOWN_HANDLER_TYPE"

    def test_non_string_type_raises(self) -> None:
        with pytest.raises(UnknownHandlerTypeError):
            HandlerType.coerce(3)  # type: ignore[arg-type]


class TestHandlerRegistry:
    def test_register_and_get(self) -> None:
        registry = HandlerRegistry()
        registry.register("validator", "even", _even)
        assert registry.get(HandlerType.VALIDATOR, "even") is _even
        assert registry.has("validators", "even")
        assert registry.get(HandlerType.PARSER, "even") is None
        assert len(registry) == 1

    def test_getter_setter_shortcuts(self) -> None:
        registry = HandlerRegistry()
        assert registry.validator("even") is None
        assert registry.validator("even", _even) is _even
        assert registry.validator("even") is _even

    def test_unregister(self) -> None:
        registry = HandlerRegistry()
        registry.validator("even", _even)
        registry.unregister(HandlerType.VALIDATOR, "even")
        assert not registry.has(HandlerType.VALIDATOR, "even")

    def test_copy_is_independent(self) -> None:
        registry = HandlerRegistry()
        registry.validator("even", _even)
        clone = registry.copy()
        clone.unregister(HandlerType.VALIDATOR, "even")
        assert registry.has(HandlerType.VALIDATOR, "even")

    @pytest.mark.parametrize("name", ["", "__proto__", "__class__", 42, None])
    def test_rejects_invalid_names(self, name: Any) -> None:
        registry = HandlerRegistry()
        with pytest.raises(InvalidHandlerNameError):
            registry.register(HandlerType.FORMATTER, name, lambda *a: a)

    def test_rejected_names_leave_registry_untouched(self) -> None:
        registry = HandlerRegistry()
        with pytest.raises(InvalidHandlerNameError):
            registry.formatter("__proto__", lambda *a: a)
        assert len(registry) == 0


class TestProcessRegistry:
    def test_module_level_registration(self) -> None:
        qs.validator("even", _even)
        assert qs.validator("even") is _even
        assert qs.default_registry.has(HandlerType.VALIDATOR, "even")

    def test_reset_forgets_handlers(self) -> None:
        qs.handler("parser", "exists", lambda *a: {})
        qs.reset_default_registry()
        assert qs.parser("exists") is None

    def test_new_schema_receives_process_handlers(self) -> None:
        qs.validator("even", _even)
        schema = Schema({"n": {"type": int, "even": True}})
        assert schema.validator("even") is _even
        assert not schema.validate({"n": 3})
        assert schema.validate({"n": 4})

    def test_existing_schema_is_not_affected(self) -> None:
        schema = Schema({"n": {"type": int, "even": True}})
        qs.validator("even", _even)
        assert schema.validate({"n": 3})

    def test_explicit_registry(self) -> None:
        registry = HandlerRegistry()
        registry.validator("even", _even)
        schema = Schema({"n": {"type": int, "even": True}}, registry=registry)
        assert not schema.validate({"n": 3})
