"""
Render session: output buffer, budgets, scoped configuration and cycle detection
"""

import io
from contextlib import contextmanager, nullcontext
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    MutableMapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)
from uuid import UUID

from . import tokens
from .appenders import ItemAppender, MemberAppender
from .budget import AllottedCounter, DeadlineClock, Expiration
from .config import (
    ConfigureMetaProperties,
    ConfigureVariables,
    MetaPropertyKeyComparison,
    StringifyVariableConfiguration,
    apply_configure_variables,
)
from .short_circuit import (
    AlreadySeenShortCircuit,
    MaxAllottedShortCircuit,
    MaxAllottedTimeShortCircuit,
    ShortCircuit,
)
from .stringifiers.base import (
    COLLECTION_LENGTH_META_PROPERTY,
    Stringifiable,
    Stringifier,
    resolve_stringifiable,
)

if TYPE_CHECKING:
    from .stringifiers.type_info import MemberInfoStringifier

# Values of these types cannot take part in reference cycles
VALUE_TYPES: Tuple[type, ...] = (
    bool,
    int,
    float,
    complex,
    Decimal,
    Fraction,
    str,
    bytes,
    Enum,
    date,
    time,
    timedelta,
    UUID,
    range,
)


class MetaProperties(MutableMapping):
    """Side-channel hints passed down a render, keyed by name"""

    def __init__(
        self,
        comparison: MetaPropertyKeyComparison = "ignore_case",
        initial: Optional[Dict[str, Any]] = None,
    ):
        self._comparison = comparison
        self._data: Dict[str, Tuple[str, Any]] = {}
        if initial:
            self.update(initial)

    def _normalize(self, key: str) -> str:
        return key.casefold() if self._comparison == "ignore_case" else key

    def __getitem__(self, key: str) -> Any:
        return self._data[self._normalize(key)][1]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[self._normalize(key)] = (key, value)

    def __delitem__(self, key: str) -> None:
        del self._data[self._normalize(key)]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def copy(self) -> "MetaProperties":
        clone = MetaProperties(self._comparison)
        clone._data = dict(self._data)
        return clone

    def __repr__(self) -> str:
        return f"MetaProperties({dict(self.items())!r})"


class StringifyContext:
    """
    A single render session

    Not shared between threads. Created by ``StringifyContextFactory.make_context``
    for every top-level render; handlers call back into it to render nested values.
    """

    def __init__(
        self,
        stringifiers: Sequence[Stringifier],
        member_info_stringifier: "MemberInfoStringifier",
        variable_configuration: StringifyVariableConfiguration,
        max_time: Expiration = Expiration.NEVER,
        max_total_length: Optional[int] = None,
        meta_property_key_comparison: MetaPropertyKeyComparison = "ignore_case",
        buffer: Optional[io.StringIO] = None,
    ):
        self._buffer = buffer if buffer is not None else io.StringIO()
        self._buffer.seek(0, io.SEEK_END)
        self._stringifiers = stringifiers
        self._member_info_stringifier = member_info_stringifier
        self._variable_configuration = variable_configuration
        self._meta_properties = MetaProperties(meta_property_key_comparison)
        self._max_total_length = max_total_length
        self._clock = DeadlineClock(max_time)
        self._rendered_objs: Dict[int, int] = {}
        self._current_depth = 0
        self._is_full = False

    # State

    @property
    def variable_configuration(self) -> StringifyVariableConfiguration:
        return self._variable_configuration

    @property
    def meta_properties(self) -> MetaProperties:
        return self._meta_properties

    @property
    def current_depth(self) -> int:
        return self._current_depth

    @property
    def length(self) -> int:
        return self._buffer.tell()

    @property
    def is_time_over(self) -> bool:
        return self._clock.is_over

    @property
    def is_full(self) -> bool:
        if self._is_full:
            return True
        if self._max_total_length is None or self.length < self._max_total_length:
            return False
        self._is_full = True
        return True

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    # Composition

    def to_stringifiable(self, obj: Any) -> Stringifiable:
        return resolve_stringifiable(obj, self._stringifiers)

    def compose_and_append(
        self,
        obj: Any,
        atomic: Optional[bool] = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
        dedicated_time: Optional[Expiration] = None,
    ) -> "StringifyContext":
        """
        Resolve ``obj`` through the stringifier chain and append its rendering

        Args:
            obj: Value to render
            atomic: Roll back partial output and write an ellipsis if the time
                budget runs out midway (default True)
            configure_variables: Callback or mapping overriding variable settings
                for this value and its children
            configure_meta_properties: Callback or mapping overriding meta properties
                for this value and its children
            dedicated_time: Private time budget for this value only

        Returns:
            The context, for chaining
        """

        def core(context: "StringifyContext") -> None:
            context._compose_and_append_core(
                obj, configure_variables, configure_meta_properties
            )

        time_scope = (
            nullcontext() if dedicated_time is None else self.with_dedicated_time(dedicated_time)
        )
        with time_scope:
            if atomic is None or atomic:
                self.append_atom(core)
            else:
                core(self)
        return self

    def _compose_and_append_core(
        self,
        obj: Any,
        configure_variables: ConfigureVariables,
        configure_meta_properties: ConfigureMetaProperties,
    ) -> None:
        stringifiable = self.to_stringifiable(obj)

        with self.with_variables(configure_variables), self.with_meta_properties(
            configure_meta_properties
        ), self.increment_depth(stringifiable.is_deep) as is_max_depth:
            if is_max_depth:
                self.append_deep()
                return

            try:
                with self.add_seen(stringifiable.subject):
                    try:
                        stringifiable.append_to(self)
                    except ShortCircuit:
                        raise
                    except Exception:
                        self.append_error()
            except AlreadySeenShortCircuit as short_circuit:
                self.compose_and_append_type(type(short_circuit.subject))
                self.append_direct(tokens.CYCLE).append_direct(str(short_circuit.depth_delta))

    def append_direct(self, content: Union[str, Callable[[io.StringIO], Any]]) -> "StringifyContext":
        """Write raw text, or let a callback write into the buffer; no-op once full"""
        if self.is_full:
            return self
        if callable(content):
            content(self._buffer)
        else:
            self._buffer.write(content)
        self.chop_if_full()
        return self

    def compose_and_append_type(
        self, type_: Any, collection_length: Any = None
    ) -> "StringifyContext":
        """Append a type name; always completes, whatever time is left"""
        configure_meta = (
            None
            if collection_length is None
            else {COLLECTION_LENGTH_META_PROPERTY: collection_length}
        )
        with self.with_dedicated_time(Expiration.NEVER), self.with_meta_properties(
            configure_meta
        ), self.with_variables({"max_depth": None}):
            self._member_info_stringifier.append(type_, self)
        return self

    def append_atom(self, append_content: Callable[["StringifyContext"], Any]) -> "StringifyContext":
        """Run ``append_content``; if time runs out, replace its output with an ellipsis"""
        previous_length = self.length
        try:
            self.raise_if_time_is_over()
            append_content(self)
        except MaxAllottedTimeShortCircuit:
            self._buffer.seek(previous_length)
            self._buffer.truncate()
            self._is_full = False
            self.append_ellipsis()
        return self

    # Scopes

    @contextmanager
    def add_seen(self, obj: Any) -> Iterator[None]:
        """Register ``obj`` as being rendered at the current depth"""
        if obj is None or isinstance(obj, VALUE_TYPES):
            yield
            return

        key = id(obj)
        previous_depth = self._rendered_objs.get(key)
        if previous_depth is not None:
            raise AlreadySeenShortCircuit(obj, self._current_depth - previous_depth)

        self._rendered_objs[key] = self._current_depth
        try:
            yield
        finally:
            del self._rendered_objs[key]

    @contextmanager
    def with_variables(self, configure: ConfigureVariables) -> Iterator[StringifyVariableConfiguration]:
        """Override variable settings on a copy for the duration of the block"""
        previous = self._variable_configuration
        if configure is None:
            yield previous
            return
        clone = previous.copy()
        apply_configure_variables(configure, clone)
        self._variable_configuration = clone
        try:
            yield clone
        finally:
            self._variable_configuration = previous

    @contextmanager
    def with_meta_properties(self, configure: ConfigureMetaProperties) -> Iterator[MetaProperties]:
        """Override meta properties on a copy for the duration of the block"""
        previous = self._meta_properties
        if configure is None:
            yield previous
            return
        clone = previous.copy()
        if callable(configure):
            configure(clone)
        else:
            clone.update(configure)
        self._meta_properties = clone
        try:
            yield clone
        finally:
            self._meta_properties = previous

    @contextmanager
    def with_dedicated_time(self, max_time: Expiration) -> Iterator[None]:
        """Swap in a private deadline, pausing the current one meanwhile"""
        if self.is_time_over:
            yield
            return
        previous_clock = self._clock
        self._clock = DeadlineClock(max_time)
        try:
            with previous_clock.suspend():
                yield
        finally:
            self._clock = previous_clock

    @contextmanager
    def increment_depth(self, condition: bool = True) -> Iterator[bool]:
        """Descend one level when ``condition``; yields whether max depth is exceeded"""
        if not condition:
            yield False
            return
        self._current_depth += 1
        try:
            max_depth = self._variable_configuration.get_effective_max_depth()
            yield max_depth is not None and self._current_depth > max_depth
        finally:
            self._current_depth -= 1

    def raise_if_time_is_over(self) -> None:
        if self.is_time_over:
            raise MaxAllottedTimeShortCircuit()

    def chop_if_full(self) -> None:
        """Truncate output back to the total length budget"""
        if self._max_total_length is None or self.length <= self._max_total_length:
            return
        self._buffer.seek(self._max_total_length)
        self._buffer.truncate()
        self._is_full = True

    # Helpers

    def append_ellipsis(self) -> "StringifyContext":
        return self.append_direct(tokens.ELLIPSIS)

    def append_deep(self) -> "StringifyContext":
        return self.append_direct(tokens.DEEP)

    def append_error(self) -> "StringifyContext":
        return self.append_direct(tokens.ERROR)

    def append_enumerator(
        self,
        items: Iterable[Any],
        append_current: Callable[["StringifyContext", Any], Any],
        counter: AllottedCounter,
        separator: str = tokens.SEPARATOR2,
    ) -> "StringifyContext":
        """
        Append items one by one, separated, until exhausted or out of budget

        A failing iterator writes an error glyph and stops; a spent count or
        time budget writes an ellipsis and stops.
        """
        first = True
        try:
            try:
                iterator = iter(items)
            except Exception:
                self.append_error()
                return self

            while True:
                try:
                    item = next(iterator)
                except StopIteration:
                    break
                except Exception:
                    if not first:
                        self.append_direct(separator)
                    self.append_error()
                    break

                if first:
                    first = False
                else:
                    self.append_direct(separator)
                counter.decrement()
                self.raise_if_time_is_over()
                append_current(self, item)
        except MaxAllottedShortCircuit:
            self.append_ellipsis()
        return self

    def append_delimited(
        self,
        begin: str,
        end: str,
        append_content: Callable[["StringifyContext"], Any],
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> "StringifyContext":
        self.append_direct(begin)
        with self.with_variables(configure_variables), self.with_meta_properties(
            configure_meta_properties
        ):
            append_content(self)
        return self.append_direct(end)

    def append_map(
        self,
        map_type: Any,
        append_content: Callable[["StringifyContext"], Any],
        count: Any = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> "StringifyContext":
        """Append ``Type{...}``"""
        return self.compose_and_append_type(map_type, count).append_delimited(
            tokens.MAP_BEGIN,
            tokens.MAP_END,
            append_content,
            configure_variables,
            configure_meta_properties,
        )

    def append_collection(
        self,
        collection_type: Any,
        append_content: Callable[["StringifyContext"], Any],
        count: Any = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> "StringifyContext":
        """Append ``Type(count)[...]``"""
        return self.compose_and_append_type(collection_type, count).append_delimited(
            tokens.COLLECTION_BEGIN,
            tokens.COLLECTION_END,
            append_content,
            configure_variables,
            configure_meta_properties,
        )

    def compose_and_append_member(
        self,
        member_name: str,
        member_value: Any,
        separator: str = tokens.SEPARATOR2,
        atomic: Optional[bool] = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> MemberAppender:
        """Append the first ``name:value``; chain more with ``then_member``"""
        appender = MemberAppender(self, self.count_memberwise_properties(), separator)
        return appender._append_member(
            member_name,
            member_value,
            atomic,
            configure_variables,
            configure_meta_properties,
            first=True,
        )

    def compose_and_append_item(
        self,
        item_value: Any,
        separator: str = tokens.SEPARATOR2,
        atomic: Optional[bool] = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> ItemAppender:
        """Append the first item; chain more with ``then_item``"""
        appender = ItemAppender(self, self.count_collection_items(), separator)
        return appender._append_item(
            item_value, atomic, configure_variables, configure_meta_properties, first=True
        )

    def count_collection_items(self) -> AllottedCounter:
        return AllottedCounter.count(
            self._variable_configuration.get_effective_max_collection_item_count()
        )

    def count_dictionary_items(self) -> AllottedCounter:
        return AllottedCounter.count(
            self._variable_configuration.get_effective_max_dictionary_item_count()
        )

    def count_memberwise_properties(self) -> AllottedCounter:
        return AllottedCounter.count(
            self._variable_configuration.get_effective_max_memberwise_property_count()
        )

    def count_anonymous_object_properties(self) -> AllottedCounter:
        return AllottedCounter.count(
            self._variable_configuration.get_effective_max_anonymous_object_property_count()
        )

    def count_tuple_items(self) -> AllottedCounter:
        return AllottedCounter.count(
            self._variable_configuration.get_effective_max_tuple_item_count()
        )

    def count_method_parameters(self) -> AllottedCounter:
        return AllottedCounter.count(
            self._variable_configuration.get_effective_max_method_parameter_count()
        )
