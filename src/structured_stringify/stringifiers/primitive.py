"""
Stringifier for strings, booleans, numbers, bytes and enums
"""

import threading
from decimal import Decimal
from enum import Enum, Flag
from fractions import Fraction
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from .. import tokens
from ..budget import AllottedCounter
from .base import DirectStringifiable, Stringifiable, Stringifier
from .scientific import HAS_NUMPY, np

if TYPE_CHECKING:
    from ..context import StringifyContext

# Per flag-enum type: non-zero (name, value) pairs and the zero name
_flag_cache: Dict[type, Tuple[List[Tuple[str, int]], Optional[str]]] = {}
_flag_lock = threading.Lock()


class StringifiableString(Stringifiable):
    """Quoted string, cut at the max string length"""

    is_deep = False

    def __init__(self, value: str):
        self._value = value

    def append_to(self, context: "StringifyContext") -> None:
        context.append_direct('"')
        max_length = context.variable_configuration.get_effective_max_string_length()
        if max_length is not None and len(self._value) > max_length:
            context.append_direct(self._value[:max_length])
            context.append_ellipsis()
        else:
            context.append_direct(self._value)
        context.append_direct('"')


class StringifiableBytes(Stringifiable):
    """``#`` followed by upper-case hex digits, cut at the max string length"""

    is_deep = False

    def __init__(self, value: Any):
        self._value = value

    def append_to(self, context: "StringifyContext") -> None:
        data = bytes(self._value)
        max_length = context.variable_configuration.get_effective_max_string_length()
        if max_length is not None and len(data) * 2 > max_length:
            digits = data[: (max_length + 1) // 2].hex().upper()[:max_length]
            context.append_direct("#" + digits).append_ellipsis()
        else:
            context.append_direct("#" + data.hex().upper())


class StringifiableNumber(Stringifiable):
    """A number in its canonical, locale-independent text form"""

    is_deep = False

    def __init__(self, value: Any):
        self._value = value

    @property
    def subject(self) -> Any:
        return self._value

    def append_to(self, context: "StringifyContext") -> None:
        value = self._value
        text = repr(value) if isinstance(value, (float, complex)) else str(value)
        context.append_direct(text)


def _get_flag_values(enum_type: type) -> Tuple[List[Tuple[str, int]], Optional[str]]:
    cached = _flag_cache.get(enum_type)
    if cached is not None:
        return cached

    with _flag_lock:
        cached = _flag_cache.get(enum_type)
        if cached is None:
            values: List[Tuple[str, int]] = []
            seen = set()
            zero_name = None
            # __members__ keeps multi-bit aliases that plain iteration skips
            for name, member in enum_type.__members__.items():
                value = member.value
                if value == 0:
                    if zero_name is None:
                        zero_name = name
                    continue
                if value in seen:
                    continue
                seen.add(value)
                values.append((member.name or name, value))
            cached = _flag_cache[enum_type] = (values, zero_name)
        return cached


class StringifiableFlag(Stringifiable):
    """
    Flag enum rendered as the minimal set of named values covering it

    Named values fully contained in the instance are kept, then any value that
    is a strict subset of another kept value is dropped.
    """

    is_deep = False

    def __init__(self, value: Flag):
        self._value = value

    def append_to(self, context: "StringifyContext") -> None:
        values, zero_name = _get_flag_values(type(self._value))
        bits = self._value.value

        flagged = [(name, value) for name, value in values if bits & value == value]
        if not flagged:
            context.append_direct(zero_name if zero_name is not None else "0")
            return

        skimmed = [
            name
            for name, value in flagged
            if all(value == other or other & value != value for _, other in flagged)
        ]
        context.append_enumerator(
            skimmed,
            lambda c, name: c.append_direct(name),
            AllottedCounter.UNLIMITED,
            tokens.FLAG_SEPARATOR,
        )


class PrimitiveStringifier(Stringifier):
    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        if isinstance(obj, str):
            return StringifiableString(str(obj))
        if isinstance(obj, bool):
            return DirectStringifiable(obj)
        if HAS_NUMPY and isinstance(obj, np.generic):
            return self._try_stringify_numpy_scalar(obj)
        if isinstance(obj, Flag):
            return StringifiableFlag(obj)
        if isinstance(obj, Enum):
            return DirectStringifiable(obj.name)
        if isinstance(obj, (int, float, complex, Decimal, Fraction)):
            return StringifiableNumber(obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return StringifiableBytes(obj)
        return None

    def _try_stringify_numpy_scalar(self, obj: Any) -> Optional[Stringifiable]:
        """NumPy scalars render like the Python value they wrap"""
        if isinstance(obj, np.bool_):
            return DirectStringifiable(bool(obj))
        if isinstance(obj, (np.integer, np.floating, np.complexfloating)):
            return StringifiableNumber(obj.item())
        return None
