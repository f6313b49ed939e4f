"""Built-in formatters, keyed by the option name that triggers them."""

from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING, Any

from .coercion import is_nil

if TYPE_CHECKING:
    from .handlers import HandlerFn
    from .param import Param

# Latin-1 Supplement and Latin Extended-A letters, minus the math operators.
_LATIN_RE = re.compile("[\xc0-\xd6\xd8-\xf6\xf8-\xff\u0100-\u017f]")
_COMBINING_RE = re.compile("[\u0300-\u036f\ufe20-\ufe2f\u20d0-\u20ff]")
_APOSTROPHE_RE = re.compile("['\u2019]")
_WORD_RE = re.compile(r"[^\W\d_]+|\d+")

# Letters without a canonical decomposition.
_LATIN_LETTERS = {
    "Æ": "Ae",
    "æ": "ae",
    "Ð": "D",
    "ð": "d",
    "Ø": "O",
    "ø": "o",
    "Þ": "Th",
    "þ": "th",
    "ß": "ss",
    "Đ": "D",
    "đ": "d",
    "Ħ": "H",
    "ħ": "h",
    "ı": "i",
    "Ĳ": "IJ",
    "ĳ": "ij",
    "ĸ": "k",
    "Ŀ": "L",
    "ŀ": "l",
    "Ł": "L",
    "ł": "l",
    "ŉ": "'n",
    "Ŋ": "N",
    "ŋ": "n",
    "Œ": "Oe",
    "œ": "oe",
    "Ŧ": "T",
    "ŧ": "t",
    "ſ": "s",
}


def _deburr_letter(match: re.Match[str]) -> str:
    letter = match.group()
    return _LATIN_LETTERS.get(letter) or unicodedata.normalize("NFKD", letter)


def deburr(text: str) -> str:
    """
    Convert Latin letters to basic Latin and drop combining marks.

    ``"Bé"`` -> ``"Be"``, ``"Straße"`` -> ``"Strasse"``. Letters of other
    scripts are kept as they are.
    """
    return _COMBINING_RE.sub("", _LATIN_RE.sub(_deburr_letter, text))


def _split_case(word: str) -> list[str]:
    """``"fooBar"`` -> ``["foo", "Bar"]``, ``"XMLFile"`` -> ``["XML", "File"]``."""
    parts = []
    start = 0
    for index in range(1, len(word)):
        before, current = word[index - 1], word[index]
        after = word[index + 1 : index + 2]
        if (before.islower() and current.isupper()) or (
            before.isupper() and current.isupper() and after.islower()
        ):
            parts.append(word[start:index])
            start = index
    parts.append(word[start:])
    return parts


def words(text: str) -> list[str]:
    """Split *text* into words of any script; apostrophes join contractions."""
    text = _APOSTROPHE_RE.sub("", deburr(text))
    return [part for word in _WORD_RE.findall(text) for part in _split_case(word)]


def format_default(default: Any, value: Any, param: Param) -> Any:
    if is_nil(value) or value == "":
        return default(param) if callable(default) else default
    return value


def format_normalize(normalize: Any, value: Any, param: Param) -> Any:
    """Lowercase words separated by single spaces, punctuation and accents removed."""
    if normalize and isinstance(value, str):
        return " ".join(word.lower() for word in words(value))
    return value


def format_lowercase(lowercase: Any, value: Any, param: Param) -> Any:
    if lowercase and isinstance(value, str):
        return value.lower()
    return value


def format_uppercase(uppercase: Any, value: Any, param: Param) -> Any:
    if uppercase and isinstance(value, str):
        return value.upper()
    return value


def format_trim(trim: Any, value: Any, param: Param) -> Any:
    if trim and isinstance(value, str):
        return value.strip()
    return value


BUILTIN_FORMATTERS: dict[str, HandlerFn] = {
    "default": format_default,
    "normalize": format_normalize,
    "lowercase": format_lowercase,
    "uppercase": format_uppercase,
    "trim": format_trim,
}
