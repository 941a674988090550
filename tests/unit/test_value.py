"""Tests for typed accessors on ValueView."""

from __future__ import annotations

import dataclasses
import datetime as dt

import pytest
from pydantic import BaseModel

from layerconf.core.errors import DecodeError
from layerconf.core.value import ValueView, format_duration, parse_duration


class ServerSettings(BaseModel):
    host: str
    port: int = 80


@dataclasses.dataclass
class Limits:
    burst: int
    window: float


def test_unset_view_is_distinct_from_falsy_values() -> None:
    assert not ValueView("missing").is_set()
    for raw in ("", 0, False, None, []):
        assert ValueView("k", raw).is_set()


def test_string_conversion() -> None:
    assert ValueView("k", "text").as_string() == "text"
    assert ValueView("k", 8080).as_string() == "8080"
    assert ValueView("k", 1.5).as_string() == "1.5"
    assert ValueView("k", True).as_string() == "true"
    assert ValueView("k", dt.timedelta(seconds=90)).as_string() == "1m30s"
    assert ValueView("k", {"a": 1}).as_string_default("fallback") == "fallback"
    assert ValueView("k").as_string() == ""


def test_int_conversion() -> None:
    assert ValueView("k", 42).as_int() == 42
    assert ValueView("k", 3.9).as_int() == 3
    assert ValueView("k", "-17").as_int() == -17
    assert ValueView("k", "4.5").as_int_default(7) == 7
    assert ValueView("k", True).as_int_default(7) == 7
    assert ValueView("k", [1]).as_int_default(7) == 7
    assert ValueView("k").as_int() == 0


def test_float_conversion() -> None:
    assert ValueView("k", 2).as_float() == 2.0
    assert ValueView("k", "1.25").as_float() == 1.25
    assert ValueView("k", "1e3").as_float() == 1000.0
    assert ValueView("k", "abc").as_float_default(0.5) == 0.5
    assert ValueView("k", " 1.5").as_float_default(0.5) == 0.5


def test_bool_conversion() -> None:
    assert ValueView("k", True).as_bool() is True
    assert ValueView("k", 0).as_bool_default(True) is False
    assert ValueView("k", 2.5).as_bool() is True
    for literal in ("true", "TRUE", "t", "1", "yes", "y", "Y"):
        assert ValueView("k", literal).as_bool() is True
    for literal in ("false", "F", "0"):
        assert ValueView("k", literal).as_bool_default(True) is False
    assert ValueView("k", "maybe").as_bool_default(True) is True
    assert ValueView("k").as_bool() is False


def test_duration_conversion() -> None:
    five_seconds = dt.timedelta(seconds=5)
    assert ValueView("timeout").as_duration_default(five_seconds) == five_seconds
    assert ValueView("timeout", 250).as_duration() == dt.timedelta(milliseconds=250)
    assert ValueView("timeout", "2h").as_duration() == dt.timedelta(hours=2)
    assert ValueView("timeout", five_seconds).as_duration() == five_seconds
    assert ValueView("timeout", "soon").as_duration_default(five_seconds) == five_seconds
    assert ValueView("timeout", True).as_duration_default(five_seconds) == five_seconds


def test_duration_literals() -> None:
    assert parse_duration("1h30m") == dt.timedelta(minutes=90)
    assert parse_duration("300ms") == dt.timedelta(milliseconds=300)
    assert parse_duration("-1.5s") == dt.timedelta(seconds=-1.5)
    assert parse_duration("0") == dt.timedelta(0)
    for invalid in ("", "5", "5x", "h", "1h 30m"):
        with pytest.raises(ValueError):
            parse_duration(invalid)
    assert format_duration(dt.timedelta(milliseconds=250)) == "250ms"
    assert format_duration(dt.timedelta(hours=2)) == "2h"


def test_list_conversion() -> None:
    items = ValueView("tags", ["a", 2]).as_list()
    assert [item.key for item in items] == ["tags[0]", "tags[1]"]
    assert ValueView("tags", ["a", 2]).as_string_list() == ["a", "2"]
    assert ValueView("ports", ["80", 443]).as_int_list() == [80, 443]

    scalar = ValueView("tag", "solo")
    assert scalar.as_list() == [scalar]
    assert ValueView("tag").as_list() == []


def test_map_conversion() -> None:
    children = ValueView("server", {"host": "h", "port": 1}).as_map()
    assert sorted(children) == ["host", "port"]
    assert children["port"].key == "server.port"
    assert children["port"].as_int() == 1
    assert ValueView("", {"a": 1}).as_map()["a"].key == "a"
    assert ValueView("server", "scalar").as_map() == {}


def test_struct_decoding() -> None:
    server = ValueView("server", {"host": "example", "port": "9090"}).as_struct(ServerSettings)
    assert server == ServerSettings(host="example", port=9090)

    limits = ValueView("limits", {"burst": 5, "window": 1.5}).as_struct(Limits)
    assert limits == Limits(burst=5, window=1.5)

    assert ValueView("ports", [1, 2]).as_struct(list[int]) == [1, 2]


def test_struct_decoding_failures() -> None:
    with pytest.raises(DecodeError, match="value not set"):
        ValueView("server").as_struct(ServerSettings)
    with pytest.raises(DecodeError) as excinfo:
        ValueView("server", {"port": "not-a-port"}).as_struct(ServerSettings)
    assert excinfo.value.key == "server"
