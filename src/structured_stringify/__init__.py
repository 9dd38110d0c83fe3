"""
Structured Stringify Library

Bounded, reflective rendering of arbitrary Python objects into compact text for logs.
"""

__version__ = "0.1.0"

# Budgets
from .budget import AllottedCounter, Expiration, InheritableThreshold, Threshold

# Configuration
from .config import (
    StringifyConfig,
    StringifyVariableConfiguration,
    get_default_config,
    set_default_config,
)

# Render session
from .context import MetaProperties, StringifyContext

# Contracts and markers
from .contracts import (
    StringifyMemberContract,
    StringifyTypeContract,
    StringifyTypeContractAccessor,
)

# Factory and entry points
from .factory import (
    StringifyContextFactory,
    StringifyContextFactoryBuilder,
    get_default_factory,
    get_stringify_stats,
    reset_stringify_stats,
    set_default_factory,
    stringify,
    to_stringifiable,
)

# Lazy rendering and logging
from .lazy import LazyStringified, lazy_stringify
from .logging_filter import StringifyArgsFilter, get_logger
from .markers import (
    STRINGIFY_METADATA_KEY,
    NonStringifiableMember,
    StringifiableMember,
    non_stringifiable,
    non_stringifiable_member,
    stringifiable,
    stringify_member,
)

# Registrations
from .registry import (
    StringifierRegistration,
    clear_custom_stringifiers,
    register_custom_stringifier,
)
from .short_circuit import (
    AlreadySeenShortCircuit,
    MaxAllottedCountShortCircuit,
    MaxAllottedShortCircuit,
    MaxAllottedTimeShortCircuit,
    ShortCircuit,
)
from .stringifiers import (
    ArrayType,
    DirectStringifiable,
    KeyValuePair,
    NonStringifiable,
    PointerType,
    ReferenceType,
    Stringifiable,
    Stringifier,
)

__all__ = [
    # Entry points
    "stringify",
    "to_stringifiable",
    "lazy_stringify",
    "LazyStringified",
    # Configuration
    "StringifyConfig",
    "StringifyVariableConfiguration",
    "get_default_config",
    "set_default_config",
    # Budgets
    "Threshold",
    "InheritableThreshold",
    "Expiration",
    "AllottedCounter",
    # Factory
    "StringifyContextFactory",
    "StringifyContextFactoryBuilder",
    "get_default_factory",
    "set_default_factory",
    "get_stringify_stats",
    "reset_stringify_stats",
    # Render session
    "StringifyContext",
    "MetaProperties",
    # Extension points
    "Stringifiable",
    "Stringifier",
    "DirectStringifiable",
    "NonStringifiable",
    "KeyValuePair",
    "ArrayType",
    "PointerType",
    "ReferenceType",
    "StringifierRegistration",
    "register_custom_stringifier",
    "clear_custom_stringifiers",
    # Contracts and markers
    "StringifyTypeContractAccessor",
    "StringifyTypeContract",
    "StringifyMemberContract",
    "StringifiableMember",
    "NonStringifiableMember",
    "STRINGIFY_METADATA_KEY",
    "stringifiable",
    "non_stringifiable",
    "stringify_member",
    "non_stringifiable_member",
    # Short circuits
    "ShortCircuit",
    "MaxAllottedShortCircuit",
    "MaxAllottedCountShortCircuit",
    "MaxAllottedTimeShortCircuit",
    "AlreadySeenShortCircuit",
    # Logging
    "StringifyArgsFilter",
    "get_logger",
]
