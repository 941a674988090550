"""
Typed, read-only view over one resolved configuration value.

Every ``as_*`` accessor is total: when the raw value cannot be converted the
caller-supplied default (or the type's zero value) is returned. Only
:meth:`ValueView.as_struct` raises, because a caller asking for a structure
cannot do anything useful with a silent fallback.
"""

from __future__ import annotations

import datetime as dt
import json
import re
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from .contracts import MISSING
from .errors import DecodeError
from .tree import deep_copy, join_key

T = TypeVar("T")

_INT_PATTERN = re.compile(r"[+-]?\d+")
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True", "yes", "y", "Y"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_duration(text: str) -> dt.timedelta:
    """
    Parse a duration literal such as ``"300ms"``, ``"1h30m"`` or ``"-2.5s"``.

    The grammar is an optional sign followed by one or more decimal numbers,
    each with a unit suffix. ``"0"`` is accepted on its own.
    """
    literal = text
    sign = 1.0
    if literal[:1] in {"+", "-"}:
        sign = -1.0 if literal[0] == "-" else 1.0
        literal = literal[1:]
    if literal == "0":
        return dt.timedelta(0)
    if not literal:
        raise ValueError(f"invalid duration {text!r}")
    seconds = 0.0
    position = 0
    while position < len(literal):
        match = _DURATION_PART.match(literal, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    return dt.timedelta(seconds=sign * seconds)


def format_duration(value: dt.timedelta) -> str:
    """Render ``value`` as a literal accepted by :func:`parse_duration`."""
    total = value.total_seconds()
    if total == 0:
        return "0s"
    sign = "-" if total < 0 else ""
    remaining = abs(total)
    if remaining < 1:
        return f"{sign}{remaining * 1000:g}ms"
    hours, remaining = divmod(remaining, 3600)
    minutes, seconds = divmod(remaining, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if minutes:
        parts.append(f"{int(minutes)}m")
    if seconds or not parts:
        parts.append(f"{seconds:g}s")
    return sign + "".join(parts)


def _parse_float(text: str) -> float | None:
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _json_default(value: Any) -> Any:
    if isinstance(value, dt.timedelta):
        return value.total_seconds()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class ValueView:
    """Pairing of a dotted key with the raw value it resolved to."""

    __slots__ = ("_key", "_raw")

    def __init__(self, key: str, raw: Any = MISSING) -> None:
        self._key = key
        self._raw = raw

    @property
    def key(self) -> str:
        return self._key

    @property
    def raw(self) -> Any:
        """The wrapped value; :data:`MISSING` when the key is absent."""
        return self._raw

    def is_set(self) -> bool:
        return self._raw is not MISSING

    def as_string(self) -> str:
        return self.as_string_default("")

    def as_string_default(self, default: str) -> str:
        raw = self._raw
        if isinstance(raw, str):
            return raw
        if isinstance(raw, bool):
            return "true" if raw else "false"
        if isinstance(raw, int | float):
            return str(raw)
        if isinstance(raw, dt.timedelta):
            return format_duration(raw)
        return default

    def as_int(self) -> int:
        return self.as_int_default(0)

    def as_int_default(self, default: int) -> int:
        raw = self._raw
        if isinstance(raw, bool):
            return default
        if isinstance(raw, int):
            return raw
        if isinstance(raw, float):
            try:
                return int(raw)
            except (OverflowError, ValueError):
                return default
        if isinstance(raw, str) and _INT_PATTERN.fullmatch(raw):
            return int(raw)
        return default

    def as_float(self) -> float:
        return self.as_float_default(0.0)

    def as_float_default(self, default: float) -> float:
        raw = self._raw
        if isinstance(raw, bool):
            return default
        if isinstance(raw, int | float):
            return float(raw)
        if isinstance(raw, str):
            parsed = _parse_float(raw)
            if parsed is not None:
                return parsed
        return default

    def as_bool(self) -> bool:
        return self.as_bool_default(False)

    def as_bool_default(self, default: bool) -> bool:
        raw = self._raw
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int | float):
            return raw != 0
        if isinstance(raw, str):
            if raw in _TRUE_LITERALS:
                return True
            if raw in _FALSE_LITERALS:
                return False
        return default

    def as_duration(self) -> dt.timedelta:
        return self.as_duration_default(dt.timedelta(0))

    def as_duration_default(self, default: dt.timedelta) -> dt.timedelta:
        raw = self._raw
        if isinstance(raw, dt.timedelta):
            return raw
        if isinstance(raw, bool):
            return default
        if isinstance(raw, int | float):
            # Bare numbers are milliseconds.
            try:
                return dt.timedelta(milliseconds=raw)
            except (OverflowError, ValueError):
                return default
        if isinstance(raw, str):
            try:
                return parse_duration(raw)
            except (OverflowError, ValueError):
                return default
        return default

    def as_list(self) -> list[ValueView]:
        """
        Return one view per list element, keyed ``key[i]``.

        A set value that is not a list is wrapped as a single-element list; an
        unset value yields an empty list.
        """
        if not self.is_set():
            return []
        if isinstance(self._raw, list | tuple):
            return [
                ValueView(f"{self._key}[{index}]", item) for index, item in enumerate(self._raw)
            ]
        return [self]

    def as_string_list(self) -> list[str]:
        return [item.as_string() for item in self.as_list()]

    def as_int_list(self) -> list[int]:
        return [item.as_int() for item in self.as_list()]

    def as_map(self) -> dict[str, ValueView]:
        if not isinstance(self._raw, Mapping):
            return {}
        return {
            child: ValueView(join_key(self._key, child), item) for child, item in self._raw.items()
        }

    def as_struct(self, target: type[T]) -> T:
        """
        Decode the value into ``target`` by round-tripping it through JSON.

        ``target`` can be anything Pydantic's ``TypeAdapter`` understands:
        models, dataclasses, ``TypedDict`` or plain container annotations.
        """
        if not self.is_set():
            raise DecodeError(self._key, "value not set")
        try:
            encoded = json.dumps(self._raw, default=_json_default)
        except (TypeError, ValueError) as exc:
            raise DecodeError(self._key, f"failed to encode configuration: {exc}") from exc
        try:
            return TypeAdapter(target).validate_json(encoded)
        except ValidationError as exc:
            raise DecodeError(self._key, f"failed to decode into {target!r}: {exc}") from exc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueView):
            return NotImplemented
        return self._key == other._key and self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"ValueView(key={self._key!r}, raw={self._raw!r})"


def view(key: str, raw: Any) -> ValueView:
    """Build a view over a private copy of ``raw``."""
    return ValueView(key, deep_copy(raw))


__all__ = ["ValueView", "format_duration", "parse_duration", "view"]
