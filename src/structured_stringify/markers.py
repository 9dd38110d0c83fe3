"""
Declarative markers that types and members use to describe their own rendering

Type level::

    @stringifiable
    class Order: ...

    @non_stringifiable
    class Session: ...

Member level, through ``typing.Annotated``, dataclass field metadata or decorators::

    class Order:
        id: Annotated[int, StringifiableMember(name="Id", order=10)]
        secret: Annotated[str, NonStringifiableMember()]

    @dataclass
    class Line:
        sku: str = field(metadata={STRINGIFY_METADATA_KEY: StringifiableMember(order=1)})

    class Customer:
        @property
        @stringify_member(name="FullName")
        def full_name(self) -> str: ...
"""

import typing
from typing import Any, Callable, Optional, Sequence, Tuple, Type, Union

HANDLING_ATTRIBUTE = "__stringify_handling__"
MEMBER_MARKER_ATTRIBUTE = "__stringify_member__"
STRINGIFY_METADATA_KEY = "stringify"


class StringifiableMember:
    """Includes a member, optionally renaming, ordering or custom-rendering it"""

    def __init__(
        self,
        name: Optional[str] = None,
        order: Optional[int] = None,
        stringifier_type: Optional[Type] = None,
        stringifier_args: Sequence[Any] = (),
    ):
        if stringifier_type is not None:
            from .stringifiers.base import Stringifier

            if not (isinstance(stringifier_type, type) and issubclass(stringifier_type, Stringifier)):
                raise TypeError(f"{stringifier_type!r} is not a Stringifier subclass")
        self.name = name
        self.order = order
        self.stringifier_type = stringifier_type
        self.stringifier_args = tuple(stringifier_args)

    def __repr__(self) -> str:
        return (
            f"StringifiableMember(name={self.name!r}, order={self.order!r}, "
            f"stringifier_type={self.stringifier_type!r})"
        )


class NonStringifiableMember:
    """Excludes a member unless a contract explicitly includes it"""

    def __repr__(self) -> str:
        return "NonStringifiableMember()"


MemberMarker = Union[StringifiableMember, NonStringifiableMember]


def stringifiable(cls: type) -> type:
    """Class decorator: always render this type memberwise"""
    setattr(cls, HANDLING_ATTRIBUTE, "handle")
    return cls


def non_stringifiable(cls: type) -> type:
    """Class decorator: never traverse this type, render only its name"""
    setattr(cls, HANDLING_ATTRIBUTE, "forbid")
    return cls


def get_declared_handling(cls: type) -> Optional[str]:
    """The handling declared on ``cls`` itself, ignoring its bases"""
    try:
        return vars(cls).get(HANDLING_ATTRIBUTE)
    except TypeError:
        return None


def _marker_target(member: Any) -> Any:
    if isinstance(member, property):
        return member.fget
    func = getattr(member, "func", None)
    return func if func is not None else member


def stringify_member(
    name: Optional[str] = None,
    order: Optional[int] = None,
    stringifier_type: Optional[Type] = None,
    stringifier_args: Sequence[Any] = (),
) -> Callable[[Any], Any]:
    """Decorator form of StringifiableMember for properties and their getters"""
    marker = StringifiableMember(name, order, stringifier_type, stringifier_args)

    def decorator(member: Any) -> Any:
        setattr(_marker_target(member), MEMBER_MARKER_ATTRIBUTE, marker)
        return member

    return decorator


def non_stringifiable_member(member: Any) -> Any:
    """Decorator form of NonStringifiableMember"""
    setattr(_marker_target(member), MEMBER_MARKER_ATTRIBUTE, NonStringifiableMember())
    return member


def split_annotation(annotation: Any) -> Tuple[Any, Tuple[Any, ...]]:
    """Strip ``Annotated`` from an annotation, returning the bare type and its extras"""
    if typing.get_origin(annotation) is typing.Annotated:
        args = typing.get_args(annotation)
        return args[0], tuple(args[1:])
    return annotation, ()


def find_member_marker(*sources: Any) -> Optional[MemberMarker]:
    """
    First member marker found among ``sources``

    Each source can be a marker, an iterable of annotation extras, a dataclass
    field metadata mapping or a decorated function.
    """
    for source in sources:
        if source is None:
            continue
        if isinstance(source, (StringifiableMember, NonStringifiableMember)):
            return source
        if isinstance(source, tuple):
            for extra in source:
                if isinstance(extra, (StringifiableMember, NonStringifiableMember)):
                    return extra
            continue
        if hasattr(source, "get") and not callable(source):
            marker = source.get(STRINGIFY_METADATA_KEY)
            if isinstance(marker, (StringifiableMember, NonStringifiableMember)):
                return marker
            continue
        marker = getattr(source, MEMBER_MARKER_ATTRIBUTE, None)
        if isinstance(marker, (StringifiableMember, NonStringifiableMember)):
            return marker
    return None
