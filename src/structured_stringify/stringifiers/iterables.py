"""
Stringifier for mappings, sequences, arrays and async sequences
"""

import array
import asyncio
from collections.abc import AsyncIterable, ItemsView, Iterable, Mapping, Sized
from typing import TYPE_CHECKING, Any, Awaitable, Iterator, Optional

from .. import tokens
from .base import Stringifiable, Stringifier
from .scientific import is_numpy_array, is_pandas_dataframe
from .type_info import ArrayType

if TYPE_CHECKING:
    from ..budget import AllottedCounter
    from ..context import StringifyContext


def _append_pair(context: "StringifyContext", pair: Any) -> None:
    key, value = pair
    context.compose_and_append(key).append_direct(tokens.VALUE).compose_and_append(value)


def _append_item(context: "StringifyContext", item: Any) -> None:
    context.compose_and_append(item)


class StringifiableCollectionBase(Stringifiable):
    """``Type(count)`` followed by delimited, budgeted items"""

    begin = tokens.COLLECTION_BEGIN
    end = tokens.COLLECTION_END

    def __init__(self, subject: Any):
        self._subject = subject

    @property
    def subject(self) -> Any:
        return self._subject

    def append_to(self, context: "StringifyContext") -> None:
        context.compose_and_append_type(self.get_type(), self.get_collection_length())
        context.append_delimited(self.begin, self.end, self.append_items)

    def get_type(self) -> Any:
        return type(self._subject)

    def get_collection_length(self) -> Any:
        if not isinstance(self._subject, Sized):
            return None
        try:
            return len(self._subject)
        except Exception:
            return None

    def get_counter(self, context: "StringifyContext") -> "AllottedCounter":
        return context.count_collection_items()

    def iterate(self) -> Iterator[Any]:
        return iter(self._subject)

    def append_current(self, context: "StringifyContext", item: Any) -> None:
        _append_item(context, item)

    def append_items(self, context: "StringifyContext") -> None:
        context.append_enumerator(
            _LazyIterable(self.iterate), self.append_current, self.get_counter(context)
        )


class _LazyIterable:
    """Defers creating the iterator so its failure is reported by the enumerator"""

    def __init__(self, make_iterator):
        self._make_iterator = make_iterator

    def __iter__(self):
        return self._make_iterator()


class StringifiableMapping(StringifiableCollectionBase):
    begin = tokens.MAP_BEGIN
    end = tokens.MAP_END

    def get_counter(self, context: "StringifyContext") -> "AllottedCounter":
        return context.count_dictionary_items()

    def iterate(self) -> Iterator[Any]:
        return iter(self._subject.items())

    def append_current(self, context: "StringifyContext", item: Any) -> None:
        _append_pair(context, item)


class StringifiableItems(StringifiableMapping):
    """A sequence of key-value pairs rendered as a map"""

    def iterate(self) -> Iterator[Any]:
        return iter(self._subject)


class StringifiableDataFrame(StringifiableMapping):
    """Column name to column values"""

    def get_collection_length(self) -> Any:
        return len(self._subject.columns)

    def iterate(self) -> Iterator[Any]:
        return iter(self._subject.items())


class StringifiableArray(StringifiableCollectionBase):
    """NumPy array: element type with per-dimension lengths, items in flat order"""

    def get_type(self) -> Any:
        return ArrayType(self._subject.dtype.type, self._subject.ndim)

    def get_collection_length(self) -> Any:
        return list(self._subject.shape)

    def iterate(self) -> Iterator[Any]:
        return iter(self._subject.flat)


# Element types of the standard array module's type codes
_TYPECODE_ELEMENTS = {
    **dict.fromkeys("bBhHiIlLqQ", int),
    **dict.fromkeys("fd", float),
    **dict.fromkeys("uw", str),
}


class StringifiableTypedArray(StringifiableCollectionBase):
    """``array.array``: rank-1 array of the type code's element type"""

    def get_type(self) -> Any:
        return ArrayType(_TYPECODE_ELEMENTS.get(self._subject.typecode, object))

    def get_collection_length(self) -> Any:
        return [len(self._subject)]


class StringifiableAsyncCollection(StringifiableCollectionBase):
    """
    Async sequence drained synchronously

    With no event loop running in this thread a private loop drives the
    sequence. Under a running loop each step must complete without suspending;
    a step that suspends fails and is rendered as an error.
    """

    def get_collection_length(self) -> Any:
        return None

    def append_items(self, context: "StringifyContext") -> None:
        driver = _SyncDriver()
        items = _drain(self._subject, driver)
        try:
            context.append_enumerator(items, self.append_current, self.get_counter(context))
        finally:
            try:
                items.close()
            finally:
                driver.close()


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _resolve_immediately(awaitable: Awaitable[Any]) -> Any:
    iterator = awaitable.__await__()
    try:
        iterator.send(None)
    except StopIteration as stop:
        return stop.value
    close = getattr(iterator, "close", None)
    if close is not None:
        close()
    raise RuntimeError("Async sequence step suspended inside a running event loop")


class _SyncDriver:
    def __init__(self):
        try:
            asyncio.get_running_loop()
            self._loop = None
        except RuntimeError:
            self._loop = asyncio.new_event_loop()

    def run(self, awaitable: Awaitable[Any]) -> Any:
        if self._loop is None:
            return _resolve_immediately(awaitable)
        return self._loop.run_until_complete(_await(awaitable))

    def close(self) -> None:
        if self._loop is not None:
            self._loop.close()


def _drain(async_iterable: Any, driver: _SyncDriver) -> Iterator[Any]:
    async_iterator = async_iterable.__aiter__()
    try:
        while True:
            try:
                item = driver.run(async_iterator.__anext__())
            except StopAsyncIteration:
                return
            yield item
    finally:
        aclose = getattr(async_iterator, "aclose", None)
        if aclose is not None:
            driver.run(aclose())


class CollectionsStringifier(Stringifier):
    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        if isinstance(obj, Mapping):
            return StringifiableMapping(obj)
        if isinstance(obj, ItemsView):
            return StringifiableItems(obj)
        if is_pandas_dataframe(obj):
            return StringifiableDataFrame(obj)
        if is_numpy_array(obj):
            return StringifiableArray(obj)
        if isinstance(obj, array.array):
            return StringifiableTypedArray(obj)
        if isinstance(obj, Iterable):
            return StringifiableCollectionBase(obj)
        if isinstance(obj, AsyncIterable):
            return StringifiableAsyncCollection(obj)
        return None
