"""
Tests for stringifier registration and chain ordering
"""

import pytest

from structured_stringify import (
    DirectStringifiable,
    Stringifier,
    StringifierRegistration,
    StringifyConfig,
    StringifyContextFactory,
    register_custom_stringifier,
)
from structured_stringify.registry import (
    FIXED_REGISTRATIONS,
    MAX_CUSTOM_PRIORITY,
    MIN_CUSTOM_PRIORITY,
    get_effective_registrations,
)
from structured_stringify.stringifiers.forbidden import ForbiddenStringifier
from structured_stringify.stringifiers.memberwise import MemberwiseStringifier
from structured_stringify.stringifiers.primitive import PrimitiveStringifier


class Money:
    def __init__(self, amount, currency):
        self.amount = amount
        self.currency = currency


class MoneyStringifier(Stringifier):
    def try_stringify(self, obj):
        if isinstance(obj, Money):
            return DirectStringifiable(f"{obj.amount} {obj.currency}")
        return None


class ShoutingStringifier(Stringifier):
    """Claims every string"""

    def try_stringify(self, obj):
        if isinstance(obj, str):
            return DirectStringifiable(obj.upper())
        return None


class TestRegistration:
    def test_rejects_non_stringifiers(self):
        with pytest.raises(TypeError):
            StringifierRegistration(dict)
        with pytest.raises(TypeError):
            StringifierRegistration("not a stringifier")

    def test_priorities_are_clamped_into_custom_band(self):
        assert StringifierRegistration(MoneyStringifier, 2**40).clamped().priority == MAX_CUSTOM_PRIORITY
        assert StringifierRegistration(MoneyStringifier, -(2**40)).clamped().priority == MIN_CUSTOM_PRIORITY
        registration = StringifierRegistration(MoneyStringifier, 3)
        assert registration.clamped() is registration


class TestEffectiveRegistrations:
    def test_fixed_chain_order(self):
        registrations = get_effective_registrations()
        assert [r.stringifier for r in registrations] == [r.stringifier for r in FIXED_REGISTRATIONS]
        assert registrations[0].stringifier is ForbiddenStringifier
        assert registrations[-1].stringifier is MemberwiseStringifier

    def test_custom_ranks_between_fixed_bands(self):
        registrations = get_effective_registrations([StringifierRegistration(ShoutingStringifier, 2**40)])
        stringifiers = [r.stringifier for r in registrations]
        assert stringifiers.index(ShoutingStringifier) > stringifiers.index(PrimitiveStringifier)
        assert stringifiers.index(ShoutingStringifier) < stringifiers.index(MemberwiseStringifier)

    def test_custom_before_global_at_equal_priority(self):
        register_custom_stringifier(ShoutingStringifier)
        registrations = get_effective_registrations([MoneyStringifier])
        stringifiers = [r.stringifier for r in registrations]
        assert stringifiers.index(MoneyStringifier) < stringifiers.index(ShoutingStringifier)

    def test_duplicates_keep_first_registration(self):
        registrations = get_effective_registrations(
            [StringifierRegistration(MoneyStringifier, 5), StringifierRegistration(MoneyStringifier, 9)]
        )
        matching = [r for r in registrations if r.stringifier is MoneyStringifier]
        assert [r.priority for r in matching] == [5]

    def test_custom_registration_of_builtin_keeps_pinned_chain(self):
        register_custom_stringifier(ForbiddenStringifier, -100)
        registrations = get_effective_registrations(
            [StringifierRegistration(MemberwiseStringifier, 100)]
        )
        assert [(r.stringifier, r.priority) for r in registrations] == [
            (r.stringifier, r.priority) for r in FIXED_REGISTRATIONS
        ]


class TestChain:
    def test_custom_stringifier_for_user_type(self):
        config = StringifyConfig(max_time=None)
        config.custom_registrations.append(StringifierRegistration(MoneyStringifier))
        factory = StringifyContextFactory(config)
        assert factory.stringify(Money(3, "EUR")) == "3 EUR"
        assert factory.stringify([Money(1, "USD")]) == "list(1)[1 USD]"

    def test_custom_cannot_override_primitives(self):
        config = StringifyConfig(max_time=None)
        config.custom_registrations.append(StringifierRegistration(ShoutingStringifier, 2**40))
        factory = StringifyContextFactory(config)
        assert factory.stringify("quiet") == '"quiet"'

    def test_global_registration_rebuilds_existing_chains(self, factory):
        assert factory.stringify(Money(3, "EUR")) == 'Money{amount:3, currency:"EUR"}'
        register_custom_stringifier(MoneyStringifier)
        assert factory.stringify(Money(3, "EUR")) == "3 EUR"

    def test_registered_instance_is_used_as_is(self):
        instance = MoneyStringifier()
        config = StringifyConfig(max_time=None)
        config.custom_registrations.append(StringifierRegistration(instance))
        factory = StringifyContextFactory(config)
        assert instance in factory.stringifiers

    def test_failing_stringifier_is_skipped(self, build_factory):
        class Exploding(Stringifier):
            def try_stringify(self, obj):
                raise RuntimeError("bug")

        register_custom_stringifier(Exploding)
        factory = build_factory()
        assert factory.stringify(Money(1, "GBP")) == 'Money{amount:1, currency:"GBP"}'
