"""
Tests for the context factory, its builder and the module-level entry points
"""

import logging
from dataclasses import dataclass

from structured_stringify import (
    DirectStringifiable,
    Stringifier,
    StringifyConfig,
    StringifyContextFactory,
    StringifyContextFactoryBuilder,
    get_default_config,
    get_default_factory,
    get_stringify_stats,
    reset_stringify_stats,
    set_default_config,
    set_default_factory,
    stringify,
    to_stringifiable,
)
from structured_stringify.budget import Threshold


@dataclass
class Credentials:
    user: str
    password: str


class StarsStringifier(Stringifier):
    def try_stringify(self, obj):
        if isinstance(obj, Credentials):
            return DirectStringifiable("***")
        return None


class TestBuilder:
    def test_configure_overall_with_mapping(self):
        factory = StringifyContextFactoryBuilder().configure_overall({"max_depth": 3}).build()
        assert factory.config.max_depth == Threshold(3)

    def test_configure_overall_with_callback_and_config(self):
        builder = StringifyContextFactoryBuilder()
        builder.configure_overall(lambda c: c.update(max_string_length=2))
        assert builder.build().stringify("abc") == '"ab…"'

        builder.configure_overall(StringifyConfig(max_string_length=1))
        assert builder.build().stringify("abc") == '"a…"'

    def test_configure_contracts(self):
        factory = (
            StringifyContextFactoryBuilder()
            .configure_overall({"max_time": None})
            .configure_contracts(
                lambda c: c.get_or_add(Credentials).get_or_add("password").exclude()
            )
            .build()
        )
        assert factory.stringify(Credentials("u", "p")) == 'Credentials{user:"u"}'

    def test_register_stringifier(self):
        factory = StringifyContextFactoryBuilder().register_stringifier(StarsStringifier).build()
        assert factory.stringify(Credentials("u", "p")) == "***"

    def test_built_factories_do_not_share_configuration(self):
        builder = StringifyContextFactoryBuilder()
        first = builder.build()
        builder.configure_overall({"max_depth": 1})
        assert first.config.max_depth == Threshold(5)

    def test_builder_does_not_modify_default_config(self):
        StringifyContextFactoryBuilder().configure_overall({"max_depth": 1}).build()
        assert get_default_config().max_depth == Threshold(5)

    def test_prepare_clone_keeps_contracts_and_settings(self):
        original = (
            StringifyContextFactoryBuilder()
            .configure_overall({"max_time": None, "max_string_length": 3})
            .configure_contracts(
                lambda c: c.get_or_add(Credentials).get_or_add("password").exclude()
            )
            .build()
        )
        clone = original.prepare_clone().configure_overall({"max_depth": 2}).build()
        assert clone.contract_accessor is original.contract_accessor
        assert clone.config.max_depth == Threshold(2)
        assert original.config.max_depth == Threshold(5)
        assert clone.stringify(Credentials("user", "p")) == 'Credentials{user:"use…"}'


class TestFactory:
    def test_stringifier_instances_are_per_factory(self):
        first = StringifyContextFactory(StringifyConfig())
        second = StringifyContextFactory(StringifyConfig())
        assert first.stringifiers[0] is not second.stringifiers[0]
        assert first.stringifiers is first.stringifiers

    def test_to_stringifiable(self, factory):
        stringifiable = factory.to_stringifiable(Credentials("u", "p"))
        context = factory.make_context()
        context.compose_and_append(stringifiable)
        assert context.getvalue() == 'Credentials{user:"u", password:"p"}'

    def test_chain_is_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="structured_stringify.factory"):
            StringifyContextFactory(StringifyConfig()).stringify(1)
        assert any("Stringifier chain" in record.message for record in caplog.records)


class TestDefaultFactory:
    def test_default_factory_follows_default_config(self):
        set_default_config(StringifyConfig(max_string_length=2, max_time=None))
        assert stringify("abc") == '"ab…"'

        set_default_config(StringifyConfig(max_string_length=1, max_time=None))
        assert stringify("abc") == '"a…"'

    def test_explicit_default_factory(self):
        factory = StringifyContextFactory(StringifyConfig(max_string_length=1, max_time=None))
        set_default_factory(factory)
        set_default_config(StringifyConfig())
        assert get_default_factory() is factory
        assert stringify("abc") == '"a…"'

    def test_reset_to_config_based_default(self):
        set_default_factory(StringifyContextFactory(StringifyConfig()))
        set_default_factory(None)
        assert get_default_factory().config is get_default_config()

    def test_explicit_factory_argument(self, build_factory):
        factory = build_factory(max_string_length=1)
        assert stringify("abc", factory) == '"a…"'
        assert stringify("abc", configure_variables={"max_string_length": 2}) == '"ab…"'

    def test_module_level_to_stringifiable(self):
        assert to_stringifiable(None) is to_stringifiable(None)


class TestStats:
    def test_stats_count_renders(self, render):
        reset_stringify_stats()
        render(1)
        render([1, 2])
        stats = get_stringify_stats()
        assert stats["renders"] == 2
        assert stats["failures"] == 0
        assert stats["total_time_ms"] >= 0

    def test_reset(self, render):
        render(1)
        reset_stringify_stats()
        assert get_stringify_stats() == {
            "renders": 0,
            "failures": 0,
            "short_circuits": 0,
            "total_time_ms": 0.0,
            "average_time_ms": 0.0,
        }
