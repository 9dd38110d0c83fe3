"""
Core abstractions for stringifiers and the values they produce
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, NamedTuple, Optional

from .. import tokens

if TYPE_CHECKING:
    from ..context import StringifyContext

logger = logging.getLogger(__name__)

# Meta property carrying a collection length hint down to the type-name renderer
COLLECTION_LENGTH_META_PROPERTY = "collectionLength"


class Stringifiable(ABC):
    """
    Something that knows how to append itself to a render session

    ``is_deep`` values are composite and consume depth budget; ``subject`` is the
    object registered for cycle detection while the value renders.
    """

    is_deep: bool = True

    @property
    def subject(self) -> Any:
        return None

    @abstractmethod
    def append_to(self, context: "StringifyContext") -> None:
        """Write this value into the context"""


class Stringifier(ABC):
    """A type handler: refuses a value (returns None) or describes how to render it"""

    @classmethod
    def create(cls, services: Any, *args: Any) -> "Stringifier":
        """
        Build an instance for a factory

        ``services`` is the owning StringifyContextFactory; subclasses that need
        configuration, contracts or caches pull them from it.
        """
        return cls(*args)

    @abstractmethod
    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        """Return a Stringifiable for ``obj``, or None to pass"""


class DirectStringifiable(Stringifiable):
    """Appends ``str(obj)``, or ``format(obj, spec)`` wrapped in a template"""

    is_deep = False

    def __init__(self, obj: Any, template: str = "{0}"):
        self._obj = obj
        self._template = template

    def append_to(self, context: "StringifyContext") -> None:
        context.append_direct(self._template.format(self._obj))


class NullStringifiable(Stringifiable):
    is_deep = False

    def append_to(self, context: "StringifyContext") -> None:
        context.append_direct(tokens.NULL)


NULL_STRINGIFIABLE = NullStringifiable()


class NonStringifiable(Stringifiable):
    """Renders only the type name followed by the forbidden glyph"""

    is_deep = False

    def __init__(self, type_: type):
        self._type = type_

    def append_to(self, context: "StringifyContext") -> None:
        context.compose_and_append_type(self._type).append_direct(tokens.FORBIDDEN)


class KeyValuePair(NamedTuple):
    """A key-value pair, rendered as ``KeyValuePair{key:value}``"""

    key: Any
    value: Any


def resolve_stringifiable(obj: Any, stringifiers: Iterable[Stringifier]) -> Stringifiable:
    """Resolve a value against an ordered chain of stringifiers; first match wins"""
    if obj is None:
        return NULL_STRINGIFIABLE
    if isinstance(obj, Stringifiable):
        return obj

    for stringifier in stringifiers:
        try:
            stringifiable = stringifier.try_stringify(obj)
        except Exception as e:
            logger.debug(
                f"{type(stringifier).__name__} failed on {type(obj).__name__}: {e}"
            )
            continue
        if stringifiable is not None:
            return stringifiable

    return NonStringifiable(type(obj))
