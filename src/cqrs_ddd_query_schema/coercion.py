"""
Value coercion helpers.

These are pure-Python helpers shared by :class:`~cqrs_ddd_query_schema.param.Param`
and the built-in handlers. Failed coercions return the ``NaN`` sentinel so that
validators can report them instead of raising mid-request.
"""

from __future__ import annotations

import datetime
import math
import re
from collections.abc import Callable
from typing import Any

from dateutil import parser as dateutil_parser
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

NAN = math.nan

_DATETIME_ADAPTER: TypeAdapter[datetime.datetime] = TypeAdapter(datetime.datetime)
_FALSE_STRINGS = frozenset({"false", "0", ""})

# ---------------------------------------------------------------------------
# Nil detection
# ---------------------------------------------------------------------------


def is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def is_nil(value: Any) -> bool:
    """``None`` or the ``NaN`` sentinel."""
    return value is None or is_nan(value)


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def to_number(value: Any) -> int | float:
    """
    Coerce *value* to a number.

    Integer literals stay ``int``, decimals become ``float``, the empty string
    is ``0`` and anything unparseable is ``NaN``.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float):
        return value
    if isinstance(value, datetime.datetime):
        return value.timestamp()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return NAN
    try:
        return float(value)
    except (TypeError, ValueError):
        return NAN


def to_boolean(value: Any) -> bool:
    """``"false"``, ``"0"``, ``""``, falsy values and nil are ``False``."""
    if is_nil(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def to_date(value: Any) -> datetime.datetime | float:
    """
    Coerce *value* to an aware UTC ``datetime``.

    Numbers and numeric strings are epoch timestamps (seconds or
    milliseconds, detected by pydantic). ISO-8601 strings are parsed by
    pydantic, anything else by ``dateutil``. Returns ``NaN`` on failure.
    """
    if isinstance(value, datetime.datetime):
        return _as_utc(value)
    if isinstance(value, datetime.date):
        return datetime.datetime(
            value.year, value.month, value.day, tzinfo=datetime.timezone.utc
        )
    if isinstance(value, str):
        number = to_number(value) if value.strip() else NAN
        if not is_nan(number):
            value = number
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        return NAN
    if is_nan(value):
        return NAN

    try:
        return _as_utc(_DATETIME_ADAPTER.validate_python(value))
    except PydanticValidationError:
        if not isinstance(value, str):
            return NAN
    try:
        return _as_utc(dateutil_parser.parse(value))
    except (ValueError, OverflowError):
        return NAN


def to_pattern(value: Any) -> re.Pattern[str] | float:
    """Compile *value* as a case-insensitive pattern (idempotent)."""
    if isinstance(value, re.Pattern):
        return value
    try:
        return re.compile(str(value), re.IGNORECASE)
    except re.error:
        return NAN


def coerce(value: Any, type_: Any) -> Any:
    """
    Coerce *value* to *type_*.

    ``int`` keeps decimals (``"2.5"`` stays ``2.5``); ``float`` always
    produces a float. Any other callable is invoked as a constructor.
    """
    if type_ is str:
        return value if isinstance(value, str) else str(value)
    if type_ is bool:
        return to_boolean(value)
    if type_ is int:
        return to_number(value)
    if type_ is float:
        number = to_number(value)
        return number if is_nan(number) else float(number)
    if type_ in (datetime.datetime, datetime.date):
        return to_date(value)
    if type_ is re.Pattern:
        return to_pattern(value)
    if callable(type_):
        return type_(value)
    return value


def infer_type(value: Any) -> Callable[..., Any] | type:
    """Best matching coercion type for a default value."""
    if isinstance(value, bool):
        return bool
    if isinstance(value, int):
        return int
    if isinstance(value, float):
        return float
    if isinstance(value, datetime.date):
        return datetime.datetime
    if isinstance(value, re.Pattern):
        return re.Pattern
    return str


# ---------------------------------------------------------------------------
# Mapping helpers
# ---------------------------------------------------------------------------


def deep_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge *source* into *target* in place.

    Nested dicts are merged, every other value replaces the target's.
    Returns *target*.
    """
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            deep_merge(current, value)
        else:
            target[key] = value
    return target
