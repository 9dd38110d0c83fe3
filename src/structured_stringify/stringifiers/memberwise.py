"""
Memberwise rendering of arbitrary objects: ``Type{field:value, property:value}``

Members are discovered as declared fields (annotations and ``__slots__``, base
classes first), then undeclared instance attributes, then readable properties.
Each member goes through the same inclusion rules: a contract decision wins,
then the member's markers, then public visibility.
"""

import dataclasses
import functools
import inspect
import threading
import types
import typing
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterator,
    List,
    NamedTuple,
    Optional,
)

from ..contracts import (
    StringifyTypeContract,
    iter_annotations,
    property_return_annotation,
)
from ..markers import (
    MemberMarker,
    NonStringifiableMember,
    StringifiableMember,
    find_member_marker,
    get_declared_handling,
    split_annotation,
)
from .base import NonStringifiable, Stringifiable, Stringifier
from .forbidden import is_forbidden
from .reflection import (
    Handling,
    ReflectionStringifiable,
    ReflectionStringifier,
    ReflectionStringifyHelper,
    RenderStep,
    sort_steps,
)

if TYPE_CHECKING:
    from ..budget import AllottedCounter
    from ..config import StringifyConfig
    from ..context import StringifyContext

_PROPERTY_TYPES = (property, functools.cached_property, types.GetSetDescriptorType)
_SKIPPED_DESCRIPTORS = frozenset({"__dict__", "__weakref__"})


class MemberInfo(NamedTuple):
    name: str
    declaring_type: Optional[type]
    member_type: Any
    marker: Optional[MemberMarker]
    read: Callable[[Any], Any]


class MemberPlan(NamedTuple):
    steps: List[RenderStep]
    field_steps: List[RenderStep]
    property_steps: List[RenderStep]
    declared_names: FrozenSet[str]
    dynamic_steps: Dict[str, Optional[RenderStep]]


def _reader(name: str) -> Callable[[Any], Any]:
    def read(obj: Any) -> Any:
        return getattr(obj, name)

    return read


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def _is_init_var(annotation: Any) -> bool:
    return annotation is dataclasses.InitVar or isinstance(annotation, dataclasses.InitVar)


def _own_slots(cls: type) -> List[str]:
    slots = vars(cls).get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    names = []
    for name in slots:
        if name in _SKIPPED_DESCRIPTORS:
            continue
        if name.startswith("__") and not name.endswith("__"):
            name = f"_{cls.__name__.lstrip('_')}{name}"
        names.append(name)
    return names


def _declaring_type(cls: type, name: str) -> Optional[type]:
    for klass in cls.__mro__:
        if name in vars(klass):
            return klass
    return None


def iter_fields(cls: type) -> Iterator[MemberInfo]:
    """Declared instance fields, base classes first"""
    seen = set()
    dataclass_fields = getattr(cls, "__dataclass_fields__", {})

    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        candidates = [
            (name, annotation)
            for name, annotation in iter_annotations(klass)
            if not _is_class_var(annotation) and not _is_init_var(annotation)
        ]
        candidates.extend((name, None) for name in _own_slots(klass))

        for name, annotation in candidates:
            if name in seen:
                continue
            descriptor = inspect.getattr_static(cls, name, None)
            if isinstance(descriptor, _PROPERTY_TYPES) or inspect.isroutine(descriptor):
                continue
            seen.add(name)

            member_type, extras = split_annotation(annotation)
            dataclass_field = dataclass_fields.get(name)
            metadata = None if dataclass_field is None else dataclass_field.metadata
            yield MemberInfo(
                name, klass, member_type, find_member_marker(extras, metadata), _reader(name)
            )


def iter_properties(cls: type, skipped: FrozenSet[str] = frozenset()) -> Iterator[MemberInfo]:
    """Readable properties and data descriptors, base classes first, overrides resolved"""
    seen = set(skipped)

    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, attribute in vars(klass).items():
            if name in seen or name in _SKIPPED_DESCRIPTORS:
                continue
            if not isinstance(attribute, _PROPERTY_TYPES):
                continue
            seen.add(name)

            descriptor = inspect.getattr_static(cls, name, None)
            if not isinstance(descriptor, _PROPERTY_TYPES):
                continue
            if isinstance(descriptor, property) and descriptor.fget is None:
                continue

            member_type, extras = split_annotation(property_return_annotation(descriptor))
            getter = getattr(descriptor, "fget", None) or getattr(descriptor, "func", None)
            yield MemberInfo(
                name,
                _declaring_type(cls, name),
                member_type,
                find_member_marker(extras, getter),
                _reader(name),
            )


class MemberwiseStringifiable(ReflectionStringifiable):
    """
    Renders an object through its member plan

    Plans are cached per type on the helper; a plan built against a private
    type contract is not cached since the contract belongs to one member.
    """

    def __init__(
        self,
        obj: Any,
        helper: ReflectionStringifyHelper,
        contract_accessor: Any,
        dont_cache: bool = False,
    ):
        super().__init__(obj)
        self._helper = helper
        self._contract_accessor = contract_accessor
        self._dont_cache = dont_cache

    def count(self, context: "StringifyContext") -> "AllottedCounter":
        return context.count_memberwise_properties()

    def get_steps(self) -> List[RenderStep]:
        obj = self._obj
        plan = self._get_plan(type(obj))

        dynamic = []
        try:
            attributes = vars(obj)
        except TypeError:
            attributes = {}
        for name in attributes:
            if name in plan.declared_names:
                continue
            if name in plan.dynamic_steps:
                step = plan.dynamic_steps[name]
            else:
                step = plan.dynamic_steps[name] = self._make_step(
                    type(obj), MemberInfo(name, None, None, None, _reader(name))
                )
            if step is not None:
                dynamic.append(step)

        if not dynamic:
            return plan.steps
        return sort_steps(plan.field_steps + dynamic + plan.property_steps)

    def _get_plan(self, cls: type) -> MemberPlan:
        if self._dont_cache:
            return self._make_plan(cls)
        return self._helper.get_cached_plan((MemberwiseStringifiable, cls), lambda: self._make_plan(cls))

    def _make_plan(self, cls: type) -> MemberPlan:
        fields = list(iter_fields(cls))
        field_names = frozenset(field.name for field in fields)
        properties = list(iter_properties(cls, field_names))

        field_steps = [step for step in (self._make_step(cls, f) for f in fields) if step is not None]
        property_steps = [
            step for step in (self._make_step(cls, p) for p in properties) if step is not None
        ]
        steps = sort_steps(field_steps + property_steps)
        self._helper.log_steps(cls, steps)

        # Instance attributes are merged between fields and properties at render time
        return MemberPlan(
            steps,
            field_steps,
            property_steps,
            field_names | frozenset(p.name for p in properties),
            {},
        )

    def _find_member_contract(self, cls: type, member: MemberInfo):
        for klass in cls.__mro__:
            type_contract = self._contract_accessor.try_get(klass)
            if type_contract is not None:
                member_contract = type_contract.try_get_member(member.name)
                if member_contract is not None:
                    return member_contract
            if klass is member.declaring_type:
                break
        return None

    def _make_step(self, cls: type, member: MemberInfo) -> Optional[RenderStep]:
        if member.member_type is not None and is_forbidden(member.member_type):
            return None

        contract = self._find_member_contract(cls, member)
        included = None if contract is None else contract.included
        marker = member.marker
        if included is False or (included is None and isinstance(marker, NonStringifiableMember)):
            return None
        marker = marker if isinstance(marker, StringifiableMember) else None
        if not (included or marker is not None or not member.name.startswith("_")):
            return None

        def first(attribute: str) -> Any:
            for source in (contract, marker):
                value = None if source is None else getattr(source, attribute)
                if value is not None:
                    return value
            return None

        stringifier = None
        if contract is not None and contract.stringifier_type is not None:
            stringifier = self._helper.get_stringifier(contract.stringifier_type, contract.stringifier_args)
        elif marker is not None and marker.stringifier_type is not None:
            stringifier = self._helper.get_stringifier(marker.stringifier_type, marker.stringifier_args)

        return RenderStep(
            first("name") or member.name,
            member.read,
            stringifier,
            first("order") or 0,
        )


class MemberwiseStringifier(ReflectionStringifier):
    """
    Fallback handler for arbitrary objects

    The handling decision is made once per type by walking its MRO: a type
    contract decision wins, then ``@stringifiable`` / ``@non_stringifiable``,
    then the configured default.
    """

    def __init__(
        self,
        config: "StringifyConfig",
        helper: ReflectionStringifyHelper,
        contract_accessor: Any,
    ):
        self._config = config
        self._helper = helper
        self._contract_accessor = contract_accessor
        self._handling_cache: Dict[type, Handling] = {}
        self._lock = threading.Lock()

    @classmethod
    def create(cls, services: Any, *args: Any) -> "MemberwiseStringifier":
        return cls(services.config, services.reflection_helper, services.contract_accessor)

    def is_handled(self, type_: type) -> Handling:
        handling = self._handling_cache.get(type_)
        if handling is not None:
            return handling
        with self._lock:
            handling = self._handling_cache.get(type_)
            if handling is None:
                handling = self._handling_cache[type_] = self._decide(type_)
        return handling

    def _decide(self, type_: type) -> Handling:
        for klass in type_.__mro__:
            contract = self._contract_accessor.try_get(klass)
            if contract is not None and contract.included is not None:
                return Handling.HANDLE if contract.included else Handling.FORBID
            declared = get_declared_handling(klass)
            if declared is not None:
                return Handling.HANDLE if declared == "handle" else Handling.FORBID
        return Handling.HANDLE if self._config.is_memberwise_stringifiable_by_default else Handling.PASS

    def make_stringifiable(self, obj: Any) -> Stringifiable:
        return MemberwiseStringifiable(obj, self._helper, self._contract_accessor)


class CustomMemberwiseStringifier(Stringifier):
    """Renders a member's value memberwise under a private type contract"""

    def __init__(self, helper: ReflectionStringifyHelper, type_contract: StringifyTypeContract):
        self._helper = helper
        self._type_contract = type_contract

    @classmethod
    def create(cls, services: Any, *args: Any) -> "CustomMemberwiseStringifier":
        (type_contract,) = args
        return cls(services.reflection_helper, type_contract)

    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        if self._type_contract.try_get(type(obj)) is None:
            return None
        if self._type_contract.included is False:
            return NonStringifiable(type(obj))
        return MemberwiseStringifiable(obj, self._helper, self._type_contract, dont_cache=True)
