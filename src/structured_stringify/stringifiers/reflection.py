"""
Shared machinery for stringifiers that render objects as ``Type{name:value, ...}``
"""

import logging
import threading
from abc import abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Type

from .. import tokens
from .base import NonStringifiable, Stringifiable, Stringifier

if TYPE_CHECKING:
    from ..budget import AllottedCounter
    from ..context import StringifyContext

logger = logging.getLogger(__name__)


class Handling(Enum):
    HANDLE = "handle"
    FORBID = "forbid"
    PASS = "pass"


class RenderStep:
    """
    Renders one member as ``name:value``

    A failure to read the value, or to custom-render it, writes the error glyph
    for that member only.
    """

    __slots__ = ("output_name", "read", "stringifier", "order")

    def __init__(
        self,
        output_name: str,
        read: Callable[[Any], Any],
        stringifier: Optional[Stringifier] = None,
        order: int = 0,
    ):
        self.output_name = output_name
        self.read = read
        self.stringifier = stringifier
        self.order = order

    def __call__(self, obj: Any, context: "StringifyContext") -> None:
        context.append_direct(self.output_name).append_direct(tokens.VALUE)
        try:
            value = self.read(obj)
            if self.stringifier is not None and value is not None:
                stringified = self.stringifier.try_stringify(value)
                if stringified is not None:
                    value = stringified
        except Exception:
            context.append_error()
            return
        context.compose_and_append(value)

    def __repr__(self) -> str:
        stringifier = None if self.stringifier is None else type(self.stringifier).__name__
        return f"RenderStep({self.output_name!r}, order={self.order}, stringifier={stringifier})"


class ReflectionStringifyHelper:
    """
    Per-factory caches for reflective rendering

    Render plans are built once per type and custom stringifiers once per
    stringifier type, both under a lock with a lock-free fast path.
    """

    def __init__(self, services: Any):
        self._services = services
        self._plans: Dict[Any, Any] = {}
        self._stringifiers: Dict[type, Stringifier] = {}
        # Plans resolve member stringifiers while the lock is held
        self._lock = threading.RLock()

    def get_cached_plan(self, key: Any, make_plan: Callable[[], Any]) -> Any:
        plan = self._plans.get(key)
        if plan is not None:
            return plan
        with self._lock:
            plan = self._plans.get(key)
            if plan is None:
                plan = self._plans[key] = make_plan()
        return plan

    def get_stringifier(self, stringifier_type: Type[Stringifier], args: Sequence[Any] = ()) -> Stringifier:
        """Instance of ``stringifier_type``; shared unless constructor arguments are given"""
        if args:
            return stringifier_type.create(self._services, *args)
        stringifier = self._stringifiers.get(stringifier_type)
        if stringifier is not None:
            return stringifier
        with self._lock:
            stringifier = self._stringifiers.get(stringifier_type)
            if stringifier is None:
                stringifier = self._stringifiers[stringifier_type] = stringifier_type.create(
                    self._services
                )
        return stringifier

    def log_steps(self, type_: type, steps: Sequence[RenderStep]) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            rendered = ", ".join(repr(step) for step in steps)
            logger.debug(f"Built render plan for {type_.__qualname__}: [{rendered}]")

    def clear(self) -> None:
        with self._lock:
            self._plans.clear()
            self._stringifiers.clear()


class ReflectionStringifiable(Stringifiable):
    """``Type{step, step, ...}`` with the steps bounded by a member budget"""

    def __init__(self, obj: Any):
        self._obj = obj

    @property
    def subject(self) -> Any:
        return self._obj

    def append_to(self, context: "StringifyContext") -> None:
        steps = self.get_steps()
        obj = self._obj

        def append_content(ctx: "StringifyContext") -> None:
            ctx.append_enumerator(
                steps, lambda c, step: step(obj, c), self.count(ctx)
            )

        context.append_map(type(obj), append_content)

    @abstractmethod
    def get_steps(self) -> List[RenderStep]:
        """Ordered render steps for the subject"""

    @abstractmethod
    def count(self, context: "StringifyContext") -> "AllottedCounter":
        """Member budget for this object"""


class ReflectionStringifier(Stringifier):
    """Decides per type whether to render reflectively, forbid or pass"""

    @abstractmethod
    def is_handled(self, type_: type) -> Handling:
        ...

    @abstractmethod
    def make_stringifiable(self, obj: Any) -> Stringifiable:
        ...

    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        type_ = type(obj)
        handling = self.is_handled(type_)
        if handling is Handling.HANDLE:
            return self.make_stringifiable(obj)
        if handling is Handling.FORBID:
            return NonStringifiable(type_)
        return None


def sort_steps(steps: Sequence[RenderStep]) -> List[RenderStep]:
    """Order steps by descending rank; ties keep discovery order"""
    return sorted(steps, key=lambda step: -step.order)
