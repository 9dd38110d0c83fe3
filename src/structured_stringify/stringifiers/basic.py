"""
Stringifier for well-known value shapes: tuples, dates, identifiers, patterns and callables
"""

import functools
import inspect
import re
import types
from datetime import date, datetime, time, timedelta
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import ParseResult, SplitResult
from uuid import UUID

from .. import tokens
from ..budget import Expiration
from ..short_circuit import MaxAllottedShortCircuit
from .base import DirectStringifiable, KeyValuePair, Stringifiable, Stringifier

if TYPE_CHECKING:
    from ..context import StringifyContext
    from .type_info import MemberInfoStringifier

_LITERAL = tokens.LITERAL_BEGIN + "{0}" + tokens.LITERAL_END

_CALLABLE_TYPES = (
    types.FunctionType,
    types.MethodType,
    types.BuiltinFunctionType,
    types.BuiltinMethodType,
    types.MethodWrapperType,
    functools.partial,
)


class StringifiableTuple(Stringifiable):
    """``(a, b)``, optionally prefixed by a named tuple's type name"""

    def __init__(self, value: tuple, named: bool = False):
        self._value = value
        self._named = named

    @property
    def subject(self) -> Any:
        return self._value

    def append_to(self, context: "StringifyContext") -> None:
        if self._named:
            context.compose_and_append_type(type(self._value))
        context.append_delimited(tokens.TUPLE_BEGIN, tokens.TUPLE_END, self._append_items)

    def _append_items(self, context: "StringifyContext") -> None:
        counter = context.count_tuple_items()
        try:
            for index, item in enumerate(self._value):
                if index:
                    context.append_direct(tokens.SEPARATOR2)
                counter.decrement()
                context.raise_if_time_is_over()
                context.compose_and_append(item)
        except MaxAllottedShortCircuit:
            context.append_ellipsis()


class StringifiableCallable(Stringifiable):
    """``λ(int, str):bool`` built from the callable's signature"""

    def __init__(self, function: Any, member_info_stringifier: "MemberInfoStringifier"):
        self._function = function
        self._member_info_stringifier = member_info_stringifier

    def append_to(self, context: "StringifyContext") -> None:
        context.append_direct(tokens.LAMBDA)
        try:
            signature = inspect.signature(self._function)
        except (TypeError, ValueError):
            context.append_direct(f"{tokens.TUPLE_BEGIN}{tokens.ELLIPSIS}{tokens.TUPLE_END}")
            return

        self._member_info_stringifier.append_parameters(
            list(signature.parameters.values()), context
        )
        context.append_direct(tokens.VALUE)
        self._member_info_stringifier.append_annotation(signature.return_annotation, context)


class StringifiableExpiration(Stringifiable):
    is_deep = False

    def __init__(self, expiration: Expiration):
        self._expiration = expiration

    def append_to(self, context: "StringifyContext") -> None:
        if self._expiration.is_never:
            context.append_direct(_LITERAL.format(str(self._expiration)))
        else:
            context.compose_and_append(self._expiration.value)


class StringifiableKeyValuePair(Stringifiable):
    """``KeyValuePair{key:value}``"""

    def __init__(self, pair: KeyValuePair):
        self._pair = pair

    def append_to(self, context: "StringifyContext") -> None:
        context.compose_and_append_type(type(self._pair))
        context.append_direct(tokens.MAP_BEGIN)
        context.compose_and_append(self._pair.key)
        context.append_direct(tokens.VALUE)
        context.compose_and_append(self._pair.value)
        context.append_direct(tokens.MAP_END)


class BasicStringifier(Stringifier):
    def __init__(self, member_info_stringifier: "MemberInfoStringifier"):
        self._member_info_stringifier = member_info_stringifier

    @classmethod
    def create(cls, services: Any, *args: Any) -> "BasicStringifier":
        return cls(services.member_info_stringifier)

    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        if isinstance(obj, KeyValuePair):
            return StringifiableKeyValuePair(obj)
        if isinstance(obj, (SplitResult, ParseResult)):
            return DirectStringifiable(obj.geturl(), _LITERAL)
        if isinstance(obj, tuple):
            return StringifiableTuple(obj, named=hasattr(type(obj), "_fields"))
        if isinstance(obj, re.Pattern):
            return DirectStringifiable(obj.pattern, "/{0}/")
        if isinstance(obj, (range, slice)):
            return DirectStringifiable(obj)
        if isinstance(obj, (datetime, date, time)):
            return DirectStringifiable(obj.isoformat(), _LITERAL)
        if isinstance(obj, timedelta):
            return DirectStringifiable(obj, _LITERAL)
        if isinstance(obj, UUID):
            return DirectStringifiable(obj, _LITERAL)
        if isinstance(obj, PurePath):
            return DirectStringifiable(obj.as_posix(), _LITERAL)
        if isinstance(obj, _CALLABLE_TYPES):
            return StringifiableCallable(obj, self._member_info_stringifier)
        if isinstance(obj, Expiration):
            return StringifiableExpiration(obj)
        return None
