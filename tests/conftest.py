"""
Shared fixtures for stringify tests
"""

import pytest

from structured_stringify import (
    StringifyConfig,
    StringifyContextFactory,
    StringifyTypeContractAccessor,
    clear_custom_stringifiers,
    set_default_config,
    set_default_factory,
)


def make_factory(contract_accessor=None, **overrides) -> StringifyContextFactory:
    """Factory with no time budget, so results never depend on machine speed"""
    overrides.setdefault("max_time", None)
    config = StringifyConfig(**overrides)
    return StringifyContextFactory(config, contract_accessor or StringifyTypeContractAccessor())


@pytest.fixture
def build_factory():
    return make_factory


@pytest.fixture
def factory():
    return make_factory()


@pytest.fixture
def render(factory):
    return factory.stringify


@pytest.fixture(autouse=True)
def clean_globals():
    yield
    clear_custom_stringifiers()
    set_default_factory(None)
    set_default_config(StringifyConfig.from_env())
