"""
Stringifiers package

Each module provides one family of type handlers; the factory chains them by priority.
"""

from .anonymous import AnonymousStringifier
from .base import (
    COLLECTION_LENGTH_META_PROPERTY,
    DirectStringifiable,
    KeyValuePair,
    NonStringifiable,
    NullStringifiable,
    Stringifiable,
    Stringifier,
)
from .basic import BasicStringifier
from .forbidden import ForbiddenStringifier, is_forbidden
from .iterables import CollectionsStringifier
from .memberwise import CustomMemberwiseStringifier, MemberwiseStringifier
from .primitive import PrimitiveStringifier
from .reflection import (
    Handling,
    ReflectionStringifiable,
    ReflectionStringifier,
    ReflectionStringifyHelper,
    RenderStep,
)
from .type_info import ArrayType, MemberInfoStringifier, PointerType, ReferenceType

__all__ = [
    # Core abstractions
    "Stringifiable",
    "Stringifier",
    "DirectStringifiable",
    "NullStringifiable",
    "NonStringifiable",
    "KeyValuePair",
    "COLLECTION_LENGTH_META_PROPERTY",
    # Built-in handlers
    "ForbiddenStringifier",
    "PrimitiveStringifier",
    "BasicStringifier",
    "MemberInfoStringifier",
    "AnonymousStringifier",
    "CollectionsStringifier",
    "MemberwiseStringifier",
    "CustomMemberwiseStringifier",
    "is_forbidden",
    # Reflection
    "Handling",
    "ReflectionStringifiable",
    "ReflectionStringifier",
    "ReflectionStringifyHelper",
    "RenderStep",
    # Type descriptors
    "ArrayType",
    "PointerType",
    "ReferenceType",
]
