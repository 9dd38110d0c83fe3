"""
Stringifier registrations and the priority rules that order the handler chain
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, List, Type, Union

from .stringifiers.anonymous import AnonymousStringifier
from .stringifiers.base import Stringifier
from .stringifiers.basic import BasicStringifier
from .stringifiers.forbidden import ForbiddenStringifier
from .stringifiers.iterables import CollectionsStringifier
from .stringifiers.memberwise import MemberwiseStringifier
from .stringifiers.primitive import PrimitiveStringifier
from .stringifiers.type_info import MemberInfoStringifier

logger = logging.getLogger(__name__)

MAX_PRIORITY = 2**31 - 1
MIN_PRIORITY = -(2**31)

FORBIDDEN_PRIORITY = MAX_PRIORITY
PRIMITIVE_PRIORITY = MAX_PRIORITY - 1
BASIC_PRIORITY = MAX_PRIORITY - 2
MEMBER_INFO_PRIORITY = MAX_PRIORITY - 3
ANONYMOUS_PRIORITY = MAX_PRIORITY - 4
COLLECTIONS_PRIORITY = MIN_PRIORITY + 1
MEMBERWISE_PRIORITY = MIN_PRIORITY

# Custom registrations always rank between the fixed high and low bands
MAX_CUSTOM_PRIORITY = MAX_PRIORITY - 5
MIN_CUSTOM_PRIORITY = MIN_PRIORITY + 2

StringifierLike = Union[Type[Stringifier], Stringifier]


@dataclass(frozen=True)
class StringifierRegistration:
    """A stringifier class (built per factory) or instance, with its priority"""

    stringifier: Any
    priority: int = 0

    def __post_init__(self) -> None:
        stringifier = self.stringifier
        if isinstance(stringifier, type):
            if not issubclass(stringifier, Stringifier):
                raise TypeError(f"{stringifier!r} is not a Stringifier subclass")
        elif not isinstance(stringifier, Stringifier):
            raise TypeError(f"{stringifier!r} is not a Stringifier")

    def clamped(self) -> "StringifierRegistration":
        priority = min(max(self.priority, MIN_CUSTOM_PRIORITY), MAX_CUSTOM_PRIORITY)
        if priority == self.priority:
            return self
        return StringifierRegistration(self.stringifier, priority)


FIXED_REGISTRATIONS = (
    StringifierRegistration(ForbiddenStringifier, FORBIDDEN_PRIORITY),
    StringifierRegistration(PrimitiveStringifier, PRIMITIVE_PRIORITY),
    StringifierRegistration(BasicStringifier, BASIC_PRIORITY),
    StringifierRegistration(MemberInfoStringifier, MEMBER_INFO_PRIORITY),
    StringifierRegistration(AnonymousStringifier, ANONYMOUS_PRIORITY),
    StringifierRegistration(CollectionsStringifier, COLLECTIONS_PRIORITY),
    StringifierRegistration(MemberwiseStringifier, MEMBERWISE_PRIORITY),
)

# Process-wide custom registrations, shared by every factory
_global_registrations: List[StringifierRegistration] = []
_global_lock = threading.Lock()
_global_version = 0


def register_custom_stringifier(stringifier: StringifierLike, priority: int = 0) -> None:
    """Register a stringifier for every factory in this process"""
    global _global_version
    registration = StringifierRegistration(stringifier, priority)
    with _global_lock:
        _global_registrations.append(registration)
        _global_version += 1
    logger.debug(f"Registered global stringifier {stringifier!r} with priority {priority}")


def clear_custom_stringifiers() -> None:
    """Drop all process-wide registrations"""
    global _global_version
    with _global_lock:
        _global_registrations.clear()
        _global_version += 1


def get_global_registrations_version() -> int:
    return _global_version


def get_effective_registrations(
    custom: Iterable[Union[StringifierRegistration, StringifierLike]] = (),
) -> List[StringifierRegistration]:
    """
    Ordered registrations: custom ones (clamped), then global ones, then the fixed set

    Duplicates of the same stringifier keep their first occurrence; the result
    is stably sorted by descending priority. Custom registrations of a built-in
    stringifier are ignored so the built-ins keep their pinned priorities.
    """
    with _global_lock:
        global_registrations = list(_global_registrations)

    fixed = {id(registration.stringifier) for registration in FIXED_REGISTRATIONS}
    candidates = []
    for registration in list(custom) + global_registrations:
        if not isinstance(registration, StringifierRegistration):
            registration = StringifierRegistration(registration)
        if id(registration.stringifier) in fixed:
            logger.debug(f"Ignoring custom registration of built-in {registration.stringifier!r}")
            continue
        candidates.append(registration.clamped())
    candidates.extend(FIXED_REGISTRATIONS)

    seen = set()
    unique = []
    for registration in candidates:
        key = id(registration.stringifier)
        if key in seen:
            continue
        seen.add(key)
        unique.append(registration)

    return sorted(unique, key=lambda registration: -registration.priority)
