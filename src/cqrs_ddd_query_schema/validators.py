"""Built-in validators and the structured validation error they produce."""

from __future__ import annotations

import datetime
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .coercion import is_nil, to_date

if TYPE_CHECKING:
    from .handlers import HandlerFn
    from .param import Param
    from .schema import Schema


@dataclass(frozen=True)
class Check:
    """Outcome of a single validator call."""

    valid: bool
    message: str = ""

    @classmethod
    def of(cls, result: Check | Mapping[str, Any] | bool) -> Check:
        """Accept a ``Check``, a ``{"valid", "message"}`` mapping, or a bool."""
        if isinstance(result, Check):
            return result
        if isinstance(result, Mapping):
            return cls(
                valid=bool(result.get("valid")),
                message=str(result.get("message", "")),
            )
        return cls(valid=bool(result))


@dataclass(frozen=True)
class ParamError:
    """
    First failing constraint of a validation run.

    ``name`` is the option that failed (``"max"``), ``param`` the parameter
    name and ``option_value`` the option's configured value.
    """

    name: str
    param: str
    value: Any
    message: str
    option_value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """API-friendly descriptor; echoes the option as ``{name: option_value}``."""
        return {
            "valid": False,
            "name": self.name,
            "param": self.param,
            "value": self.value,
            "message": self.message,
            self.name: self.option_value,
        }


# ---------------------------------------------------------------------------
# Built-in validators
# ---------------------------------------------------------------------------

_BOUND_TYPES = (int, float, datetime.date)


def _is_bound(option: Any) -> bool:
    return isinstance(option, _BOUND_TYPES) and not isinstance(option, bool)


def _is_length(option: Any) -> bool:
    return isinstance(option, int) and not isinstance(option, bool)


def _within(value: Any, bound: Any, *, lower: bool) -> bool:
    if isinstance(value, datetime.datetime):
        bound = to_date(bound)
        if is_nil(bound):
            return False
    try:
        return bool(value >= bound if lower else value <= bound)
    except TypeError:
        return False


def validate_required(
    required: Any, value: Any, param: Param, schema: Schema | None
) -> Check:
    return Check(
        valid=not required or (not is_nil(value) and value != "" and value != []),
        message=f"{param.name} is required",
    )


def validate_min(min_: Any, value: Any, param: Param, schema: Schema | None) -> Check:
    message = f"{param.name} must be greater than or equal to {min_}"
    if not _is_bound(min_) or value is None:
        return Check(valid=True, message=message)
    return Check(valid=_within(value, min_, lower=True), message=message)


def validate_max(max_: Any, value: Any, param: Param, schema: Schema | None) -> Check:
    message = f"{param.name} must be lower than or equal to {max_}"
    if not _is_bound(max_) or value is None:
        return Check(valid=True, message=message)
    return Check(valid=_within(value, max_, lower=False), message=message)


def validate_minlength(
    minlength: Any, value: Any, param: Param, schema: Schema | None
) -> Check:
    message = f"{param.name} must have length greater than or equal to {minlength}"
    if not _is_length(minlength) or is_nil(value) or not hasattr(value, "__len__"):
        return Check(valid=True, message=message)
    return Check(valid=len(value) >= minlength, message=message)


def validate_maxlength(
    maxlength: Any, value: Any, param: Param, schema: Schema | None
) -> Check:
    message = f"{param.name} must have length lower than or equal to {maxlength}"
    if not _is_length(maxlength) or is_nil(value) or not hasattr(value, "__len__"):
        return Check(valid=True, message=message)
    return Check(valid=len(value) <= maxlength, message=message)


def validate_enum(
    enum: Any, value: Any, param: Param, schema: Schema | None
) -> Check:
    if not isinstance(enum, list | tuple | set | frozenset):
        return Check(valid=True)
    message = f"{param.name} must be one of: {', '.join(str(e) for e in enum)}"
    return Check(valid=value is None or value in enum, message=message)


def validate_match(
    match: Any, value: Any, param: Param, schema: Schema | None
) -> Check:
    if isinstance(match, str):
        match = re.compile(match)
    if not isinstance(match, re.Pattern):
        return Check(valid=True)
    message = f"{param.name} must match regular expression {match.pattern}"
    if is_nil(value):
        return Check(valid=True, message=message)
    subject = value.pattern if isinstance(value, re.Pattern) else str(value)
    return Check(valid=match.search(subject) is not None, message=message)


BUILTIN_VALIDATORS: dict[str, HandlerFn] = {
    "required": validate_required,
    "min": validate_min,
    "max": validate_max,
    "minlength": validate_minlength,
    "maxlength": validate_maxlength,
    "enum": validate_enum,
    "match": validate_match,
}

# Validators that check a multiple-value param as a whole instead of per element.
COLLECTION_VALIDATORS = frozenset({"minlength", "maxlength"})
