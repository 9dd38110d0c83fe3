"""
Tests for mappings, sequences, sets and async sequences
"""

import array
import asyncio
from collections import OrderedDict, deque

import pytest


class Countdown:
    """Async iterable that is not itself an iterator"""

    def __init__(self, start):
        self.start = start

    def __aiter__(self):
        return self._count()

    async def _count(self):
        for value in range(self.start, 0, -1):
            yield value


class _SuspendingIterator:
    async def __anext__(self):
        await asyncio.sleep(0)
        return 1


class SuspendingSource:
    def __aiter__(self):
        return _SuspendingIterator()


class BrokenMidway:
    def __iter__(self):
        yield 1
        raise ValueError("storage went away")


class BrokenAtStart:
    def __iter__(self):
        raise ValueError("not ready")


class TestSequences:
    def test_list(self, render):
        assert render([1, "a", None]) == 'list(3)[1, "a", □]'

    def test_empty_list(self, render):
        assert render([]) == "list(0)[]"

    def test_item_budget(self, render):
        result = render(list(range(1000)), configure_variables={"max_collection_item_count": 5})
        assert result == "list(1000)[0, 1, 2, 3, 4, …]"

    def test_default_item_budget(self, render):
        result = render(list(range(25)))
        assert result.endswith("18, 19, …]")

    def test_sets(self, render):
        assert render({1, 2, 3}) == "set(3)[1, 2, 3]"
        assert render(frozenset({7})) == "frozenset(1)[7]"

    def test_deque(self, render):
        assert render(deque([1, 2])) == "deque(2)[1, 2]"

    def test_nested(self, render):
        assert render([[1], [2, 3]]) == "list(2)[list(1)[1], list(2)[2, 3]]"

    def test_typed_array_renders_element_type_and_length(self, render):
        assert render(array.array("i", [1, 2, 3])) == "int[3][1, 2, 3]"
        assert render(array.array("d", [0.5])) == "float[1][0.5]"

    def test_typed_array_item_budget(self, render):
        result = render(array.array("b", range(5)), configure_variables={"max_collection_item_count": 2})
        assert result == "int[5][0, 1, …]"


class TestMappings:
    def test_dict(self, render):
        assert render({"a": 1, "b": [2]}) == 'dict(2){"a":1, "b":list(1)[2]}'

    def test_dictionary_budget(self, render):
        data = {i: i for i in range(12)}
        result = render(data, configure_variables={"max_dictionary_item_count": 2})
        assert result == "dict(12){0:0, 1:1, …}"

    def test_dictionary_budget_inherits_collection_budget(self, build_factory):
        factory = build_factory(max_dictionary_item_count="inherit", max_collection_item_count=1)
        assert factory.stringify({"a": 1, "b": 2}) == 'dict(2){"a":1, …}'

    def test_ordered_dict_keeps_its_type_name(self, render):
        assert render(OrderedDict(x=1)) == 'OrderedDict(1){"x":1}'

    def test_items_view(self, render):
        assert render({"a": 1}.items()) == 'dict_items(1){"a":1}'


class TestFailingIterables:
    def test_error_midway_keeps_earlier_items(self, render):
        assert render(BrokenMidway()) == "BrokenMidway[1, ⚠]"

    def test_error_on_iter(self, render):
        assert render(BrokenAtStart()) == "BrokenAtStart[⚠]"


class TestAsyncSequences:
    def test_drained_without_running_loop(self, render):
        assert render(Countdown(3)) == "Countdown[3, 2, 1]"

    def test_budget_stops_draining(self, render):
        result = render(Countdown(50), configure_variables={"max_collection_item_count": 2})
        assert result == "Countdown[50, 49, …]"

    @pytest.mark.asyncio
    async def test_drained_inside_running_loop(self, render):
        assert render(Countdown(2)) == "Countdown[2, 1]"

    @pytest.mark.asyncio
    async def test_suspending_step_inside_running_loop(self, render):
        assert render(SuspendingSource()) == "SuspendingSource[⚠]"

    def test_async_generator_itself_is_forbidden(self, render):
        assert render(Countdown(1).__aiter__()) == "async_generator⛔"
