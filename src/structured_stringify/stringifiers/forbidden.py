"""
Detection of runtime types that must never be traversed
"""

import asyncio
import concurrent.futures
import threading
import types
import typing
from typing import Any, Dict, Optional

from .base import NonStringifiable, Stringifiable, Stringifier

# Handles whose state is live, non-reentrant or meaningless once rendered
FIXED_FORBIDDEN_TYPES = (
    threading.Thread,
    type(threading.Lock()),
    type(threading.RLock()),
    threading.Condition,
    threading.Event,
    threading.Semaphore,
    threading.Barrier,
    concurrent.futures.Future,
    concurrent.futures.Executor,
    asyncio.Future,
    asyncio.AbstractEventLoop,
    types.FrameType,
)

_forbidden_cache: Dict[Any, bool] = {}
_forbidden_lock = threading.Lock()


def _is_awaitable(type_: type) -> bool:
    return hasattr(type_, "__await__")


def _is_iterator(type_: type) -> bool:
    # Iterators and generators are consumed by rendering
    return hasattr(type_, "__next__")


def _is_async_iterator(type_: type) -> bool:
    return hasattr(type_, "__anext__")


def _resolve_class(type_: Any) -> Optional[type]:
    if isinstance(type_, type):
        return type_
    origin = typing.get_origin(type_)
    if isinstance(origin, type):
        return origin
    return None


def _is_forbidden_core(type_: Any) -> bool:
    cls = _resolve_class(type_)
    if cls is None:
        return False
    return (
        issubclass(cls, FIXED_FORBIDDEN_TYPES)
        or _is_awaitable(cls)
        or _is_iterator(cls)
        or _is_async_iterator(cls)
    )


def is_forbidden(type_: Any) -> bool:
    """Whether values of ``type_`` must only be rendered as ``TypeName⛔``"""
    try:
        cached = _forbidden_cache.get(type_)
    except TypeError:
        return _is_forbidden_core(type_)
    if cached is not None:
        return cached

    with _forbidden_lock:
        cached = _forbidden_cache.get(type_)
        if cached is None:
            cached = _forbidden_cache[type_] = _is_forbidden_core(type_)
        return cached


class ForbiddenStringifier(Stringifier):
    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        type_ = type(obj)
        return NonStringifiable(type_) if is_forbidden(type_) else None
