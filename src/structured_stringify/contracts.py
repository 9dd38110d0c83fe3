"""
Programmatic per-type and per-member rendering contracts

Contracts override the declarative markers: a type contract can force or forbid
memberwise rendering, and member contracts include, exclude, rename, reorder or
custom-render single members.
"""

import functools
import inspect
import threading
import types
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple, Type

from .markers import split_annotation
from .stringifiers.base import Stringifier
from .stringifiers.forbidden import is_forbidden


def _check_stringifier_type(stringifier_type: Optional[Type]) -> None:
    if stringifier_type is None:
        return
    if not (isinstance(stringifier_type, type) and issubclass(stringifier_type, Stringifier)):
        raise TypeError(f"{stringifier_type!r} is not a Stringifier subclass")


def iter_annotations(cls: type) -> Iterator[Tuple[str, Any]]:
    """Own annotations of ``cls``, evaluated where possible, with ``Annotated`` extras kept"""
    try:
        annotations = inspect.get_annotations(cls, eval_str=True)
    except Exception:
        annotations = inspect.get_annotations(cls)
    return iter(annotations.items())


def find_annotation(cls: type, name: str) -> Any:
    for klass in cls.__mro__:
        for annotated_name, annotation in iter_annotations(klass):
            if annotated_name == name:
                return annotation
    return None


def property_return_annotation(descriptor: Any) -> Any:
    getter = descriptor.fget if isinstance(descriptor, property) else getattr(descriptor, "func", None)
    if getter is None:
        return None
    try:
        return inspect.get_annotations(getter, eval_str=True).get("return")
    except Exception:
        return inspect.get_annotations(getter).get("return")


class StringifyMemberContract:
    """Rendering overrides for one member"""

    def __init__(self):
        self.included: Optional[bool] = None
        self.name: Optional[str] = None
        self.order: Optional[int] = None
        self._stringifier_type: Optional[Type] = None
        self._stringifier_args: Tuple[Any, ...] = ()

    @property
    def stringifier_type(self) -> Optional[Type]:
        return self._stringifier_type

    @stringifier_type.setter
    def stringifier_type(self, value: Optional[Type]) -> None:
        _check_stringifier_type(value)
        self._stringifier_type = value

    @property
    def stringifier_args(self) -> Tuple[Any, ...]:
        return self._stringifier_args

    @stringifier_args.setter
    def stringifier_args(self, value: Sequence[Any]) -> None:
        self._stringifier_args = tuple(value or ())

    def include(self, included: Optional[bool] = True) -> "StringifyMemberContract":
        self.included = included
        return self

    def exclude(self) -> "StringifyMemberContract":
        self.included = False
        return self

    def rename(self, name: Optional[str]) -> "StringifyMemberContract":
        self.name = name
        return self

    def set_order(self, order: Optional[int]) -> "StringifyMemberContract":
        self.order = order
        return self

    def use_stringifier(
        self, stringifier_type: Optional[Type], *stringifier_args: Any
    ) -> "StringifyMemberContract":
        self.stringifier_type = stringifier_type
        self.stringifier_args = stringifier_args
        return self

    def with_custom_type_contract(
        self,
        configure: Callable[["StringifyTypeContract"], Any],
        member_type: Optional[type] = None,
    ) -> "StringifyMemberContract":
        """
        Render this member memberwise through a private type contract

        ``member_type`` names the member's runtime type; when omitted the contract
        applies to whatever type the value has.
        """
        from .stringifiers.memberwise import CustomMemberwiseStringifier

        type_contract = StringifyTypeContract(member_type)
        configure(type_contract)
        return self.use_stringifier(CustomMemberwiseStringifier, type_contract)

    def __repr__(self) -> str:
        return (
            f"StringifyMemberContract(included={self.included!r}, name={self.name!r}, "
            f"order={self.order!r}, stringifier_type={self._stringifier_type!r})"
        )


class StringifyTypeContract:
    """
    Rendering overrides for one type

    Also acts as a contract accessor scoped to its own type, which is how a
    member-level custom type contract is looked up during a render.
    """

    def __init__(self, type_: Optional[type]):
        self.type = type_
        self.included: Optional[bool] = None
        self._member_contracts: Dict[str, StringifyMemberContract] = {}

    def _validate_member(self, name: str) -> None:
        if self.type is None:
            return
        try:
            descriptor = inspect.getattr_static(self.type, name)
        except AttributeError:
            descriptor = None

        if isinstance(descriptor, property):
            if descriptor.fget is None:
                raise ValueError(f"{self.type.__qualname__}.{name} is not readable")
            member_type = property_return_annotation(descriptor)
        elif isinstance(descriptor, functools.cached_property):
            member_type = property_return_annotation(descriptor)
        elif isinstance(
            descriptor,
            (types.FunctionType, classmethod, staticmethod, types.BuiltinFunctionType, types.MethodDescriptorType),
        ):
            raise ValueError(f"{self.type.__qualname__}.{name} is not a field or property")
        else:
            member_type = find_annotation(self.type, name)

        if member_type is not None and is_forbidden(split_annotation(member_type)[0]):
            raise ValueError(f"{self.type.__qualname__}.{name} has a non-stringifiable type")

    def get_or_add(self, name: str) -> StringifyMemberContract:
        """
        Member contract for ``name``, created on first use

        Raises:
            ValueError: If the member is a method, an unreadable property or has
                a type that must never be traversed
        """
        contract = self._member_contracts.get(name)
        if contract is None:
            self._validate_member(name)
            contract = self._member_contracts[name] = StringifyMemberContract()
        return contract

    def configure(
        self, name: str, configure: Callable[[StringifyMemberContract], Any]
    ) -> "StringifyTypeContract":
        configure(self.get_or_add(name))
        return self

    def include(self, included: Optional[bool] = True) -> "StringifyTypeContract":
        self.included = included
        return self

    def exclude(self) -> "StringifyTypeContract":
        self.included = False
        return self

    def try_get_member(self, name: str) -> Optional[StringifyMemberContract]:
        return self._member_contracts.get(name)

    def try_get(self, type_: type) -> Optional["StringifyTypeContract"]:
        if self.type is None or self.type is type_:
            return self
        return None

    def __repr__(self) -> str:
        type_name = None if self.type is None else self.type.__qualname__
        return (
            f"StringifyTypeContract(type={type_name}, included={self.included!r}, "
            f"members={sorted(self._member_contracts)!r})"
        )


class StringifyTypeContractAccessor:
    """Registry of type contracts, seeded with defaults for common framework types"""

    def __init__(self, with_defaults: bool = True):
        self._contracts: Dict[type, StringifyTypeContract] = {}
        self._lock = threading.Lock()
        if with_defaults:
            self._add_defaults()

    def _add_defaults(self) -> None:
        # Exceptions: surface the explicit cause next to the arguments
        self.get_or_add(BaseException).configure(
            "__cause__", lambda m: m.include().rename("cause")
        )

    def get_or_add(
        self,
        type_: type,
        configure: Optional[Callable[[StringifyTypeContract], Any]] = None,
    ) -> StringifyTypeContract:
        """
        Contract for ``type_``, created on first use

        Raises:
            ValueError: If ``type_`` must never be traversed
        """
        with self._lock:
            contract = self._contracts.get(type_)
            if contract is None:
                if is_forbidden(type_):
                    raise ValueError(f"Type {type_!r} is non-stringifiable")
                contract = self._contracts[type_] = StringifyTypeContract(type_)
        if configure is not None:
            configure(contract)
        return contract

    def try_get(self, type_: type) -> Optional[StringifyTypeContract]:
        return self._contracts.get(type_)

    def __len__(self) -> int:
        return len(self._contracts)
