"""
Tests for attribute-bag rendering
"""

from types import SimpleNamespace


class Bag(SimpleNamespace):
    pass


def test_public_attributes_rendered_with_anonymous_glyph(render):
    assert render(SimpleNamespace(a=1, _b=2)) == "¤{a:1}"


def test_nested_namespaces(render):
    value = SimpleNamespace(inner=SimpleNamespace(x="y"))
    assert render(value) == '¤{inner:¤{x:"y"}}'


def test_subclass_keeps_its_name(render):
    assert render(Bag(a=1)) == "Bag{a:1}"


def test_attribute_sets_differ_per_instance(render):
    assert render(SimpleNamespace(a=1)) == "¤{a:1}"
    assert render(SimpleNamespace(b=2)) == "¤{b:2}"


def test_anonymous_budget(build_factory):
    factory = build_factory(max_anonymous_object_property_count=1)
    assert factory.stringify(SimpleNamespace(a=1, b=2)) == "¤{a:1, …}"


def test_anonymous_budget_inherits_memberwise_budget(build_factory):
    factory = build_factory(max_memberwise_property_count=2)
    assert factory.stringify(SimpleNamespace(a=1, b=2, c=3)) == "¤{a:1, b:2, …}"
