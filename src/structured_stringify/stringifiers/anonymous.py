"""
Stringifier for ad-hoc attribute bags (``types.SimpleNamespace``)
"""

import types
from typing import TYPE_CHECKING, Any, List

from .base import Stringifiable
from .reflection import (
    Handling,
    ReflectionStringifiable,
    ReflectionStringifier,
    RenderStep,
)

if TYPE_CHECKING:
    from ..budget import AllottedCounter
    from ..context import StringifyContext


def _read_attribute(name: str):
    def read(obj: Any) -> Any:
        return vars(obj)[name]

    return read


class AnonymousStringifiable(ReflectionStringifiable):
    """
    ``¤{name:value, ...}`` over the public attributes

    Attribute sets differ per instance, so the steps are built for each render.
    """

    def count(self, context: "StringifyContext") -> "AllottedCounter":
        return context.count_anonymous_object_properties()

    def get_steps(self) -> List[RenderStep]:
        return [
            RenderStep(name, _read_attribute(name))
            for name in vars(self._obj)
            if not name.startswith("_")
        ]


class AnonymousStringifier(ReflectionStringifier):
    def is_handled(self, type_: type) -> Handling:
        return Handling.HANDLE if issubclass(type_, types.SimpleNamespace) else Handling.PASS

    def make_stringifiable(self, obj: Any) -> Stringifiable:
        return AnonymousStringifiable(obj)
