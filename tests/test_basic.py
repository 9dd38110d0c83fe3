"""
Tests for tuples, dates, identifiers, patterns, paths and callables
"""

import functools
import re
from collections import namedtuple
from datetime import date, datetime, time, timedelta
from pathlib import PurePosixPath, PureWindowsPath
from typing import NamedTuple
from urllib.parse import urlsplit
from uuid import UUID

from structured_stringify import Expiration, KeyValuePair


class Point(NamedTuple):
    x: int
    y: int


Pair = namedtuple("Pair", "left right")


def add(a: int, b: int) -> int:
    return a + b


def untyped(a, *args, **kwargs):
    return a


class TestTuples:
    def test_plain_tuple(self, render):
        assert render((1, "a")) == '(1, "a")'

    def test_empty_tuple(self, render):
        assert render(()) == "()"

    def test_tuple_budget(self, render):
        assert render((1, 2, 3, 4, 5, 6)) == "(1, 2, 3, 4, …)"

    def test_named_tuple_carries_type_name(self, render):
        assert render(Point(1, 2)) == "Point(1, 2)"
        assert render(Pair("l", "r")) == 'Pair("l", "r")'

    def test_key_value_pair(self, render):
        assert render(KeyValuePair("k", 1)) == 'KeyValuePair{"k":1}'


class TestLiterals:
    def test_datetime_family(self, render):
        assert render(datetime(2024, 1, 2, 3, 4, 5)) == "«2024-01-02T03:04:05»"
        assert render(date(2024, 1, 2)) == "«2024-01-02»"
        assert render(time(13, 30)) == "«13:30:00»"

    def test_timedelta(self, render):
        assert render(timedelta(minutes=90)) == "«1:30:00»"

    def test_uuid(self, render):
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert render(value) == "«12345678-1234-5678-1234-567812345678»"

    def test_paths_use_forward_slashes(self, render):
        assert render(PurePosixPath("/var/log/app.log")) == "«/var/log/app.log»"
        assert render(PureWindowsPath("C:\\logs\\app.log")) == "«C:/logs/app.log»"

    def test_url(self, render):
        assert render(urlsplit("https://example.com/a?b=1")) == "«https://example.com/a?b=1»"

    def test_pattern(self, render):
        assert render(re.compile(r"^\d+$")) == r"/^\d+$/"

    def test_range_and_slice(self, render):
        assert render(range(0, 10, 2)) == "range(0, 10, 2)"
        assert render(slice(1, 5)) == "slice(1, 5, None)"

    def test_expiration(self, render):
        assert render(Expiration.NEVER) == "«Never»"
        assert render(Expiration.from_milliseconds(1500)) == "«0:00:01.500000»"


class TestCallables:
    def test_typed_function(self, render):
        assert render(add) == "λ(int, int):int"

    def test_untyped_function(self, render):
        assert render(untyped) == "λ(object, *object, **object):object"

    def test_lambda(self, render):
        assert render(lambda: None) == "λ():object"

    def test_partial(self, render):
        assert render(functools.partial(add, 1)) == "λ(int):int"

    def test_bound_method(self, render):
        class Greeter:
            def greet(self, name: str) -> str:
                return name

        assert render(Greeter().greet) == "λ(str):str"

    def test_parameter_budget(self, render):
        def many(a: int, b: int, c: int, d: int, e: int, f: int, g: int) -> None:
            pass

        assert render(many) == "λ(int, int, int, int, int, …):None"

    def test_builtin_without_signature(self, render):
        # Some builtins expose no introspectable signature
        result = render(print)
        assert result.startswith("λ(")
