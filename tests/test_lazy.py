"""
Tests for deferred rendering
"""

from structured_stringify import LazyStringified, lazy_stringify


class Counter:
    def __init__(self):
        self.calls = 0

    @property
    def value(self):
        self.calls += 1
        return self.calls


def test_lazy_stringify_creation():
    data = {"key": "value"}
    lazy = lazy_stringify(data)

    assert isinstance(lazy, LazyStringified)
    assert not lazy.is_rendered()
    assert lazy.get_original() is data


def test_rendering_happens_on_str(factory):
    lazy = lazy_stringify([1, 2], factory)
    assert str(lazy) == "list(2)[1, 2]"
    assert lazy.is_rendered()


def test_repr_and_format_use_the_rendering(factory):
    lazy = lazy_stringify("x", factory)
    assert repr(lazy) == '"x"'
    assert f"{lazy:>5}" == '  "x"'
    assert "%r" % (lazy,) == '"x"'


def test_rendering_is_cached(factory):
    counter = Counter()
    lazy = lazy_stringify(counter, factory)
    first = lazy.force_render()
    assert str(lazy) == first
    assert counter.calls == 1


def test_variables_are_applied(factory):
    lazy = lazy_stringify("abcdef", factory, configure_variables={"max_string_length": 2})
    assert str(lazy) == '"ab…"'


def test_default_factory_when_omitted():
    assert str(lazy_stringify(None)) == "□"
