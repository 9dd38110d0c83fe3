"""
Type-name renderer and the stringifier for runtime type metadata

Renders classes, typing constructs, parameters, member descriptors and modules
as compact names: ``list<int>``, ``int?``, ``(int,str)``, ``Outer+Inner``,
``float64[2,3]``, ``Box<,>``.
"""

import ctypes
import functools
import inspect
import types
import typing
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from .. import tokens
from ..budget import AllottedCounter
from .base import COLLECTION_LENGTH_META_PROPERTY, Stringifiable, Stringifier

if TYPE_CHECKING:
    from ..config import StringifyConfig
    from ..context import StringifyContext

KNOWN_TYPE_NAMES = {
    bool: "bool",
    int: "int",
    float: "float",
    complex: "complex",
    str: "str",
    bytes: "bytes",
    bytearray: "bytearray",
    object: "object",
    type(None): "None",
    list: "list",
    dict: "dict",
    set: "set",
    frozenset: "frozenset",
    tuple: "tuple",
    type: "type",
}

_UNION_TYPES = (typing.Union, types.UnionType)
_TYPE_VAR_TYPES = (typing.TypeVar, typing.ParamSpec)


@dataclass(frozen=True)
class ArrayType:
    """Describes an array shape: element type and number of dimensions"""

    element: Any
    rank: int = 1


@dataclass(frozen=True)
class PointerType:
    element: Any


@dataclass(frozen=True)
class ReferenceType:
    element: Any


def _remove_collection_length(meta_properties) -> None:
    meta_properties.pop(COLLECTION_LENGTH_META_PROPERTY, None)


def _simple_qualname(cls: type) -> str:
    qualname = getattr(cls, "__qualname__", None) or cls.__name__
    # Classes defined inside functions carry the function path
    if "<locals>." in qualname:
        qualname = qualname.rsplit("<locals>.", 1)[1]
    return qualname


def _is_type_descriptor(obj: Any) -> bool:
    if isinstance(obj, (type, ArrayType, PointerType, ReferenceType, typing.ForwardRef)):
        return True
    if isinstance(obj, _TYPE_VAR_TYPES):
        return True
    if typing.get_origin(obj) is not None:
        return True
    return type(obj).__module__ == "typing" and hasattr(obj, "_name")


class MemberInfoStringifier(Stringifier):
    """Renders type names and stringifies type, member, parameter and module objects"""

    def __init__(self, config: "StringifyConfig"):
        self._config = config

    @classmethod
    def create(cls, services: Any, *args: Any) -> "MemberInfoStringifier":
        return services.member_info_stringifier

    def try_stringify(self, obj: Any) -> Optional[Stringifiable]:
        if _is_type_descriptor(obj):
            return StringifiableType(obj, self)
        if isinstance(
            obj,
            (
                property,
                functools.cached_property,
                types.GetSetDescriptorType,
                types.MemberDescriptorType,
            ),
        ):
            return StringifiableMember(obj, self)
        if isinstance(obj, inspect.Parameter):
            return StringifiableParameter(obj, self)
        if isinstance(obj, inspect.Signature):
            return StringifiableSignature(obj, self)
        if isinstance(obj, types.ModuleType):
            return StringifiableModule(obj)
        return None

    # Type names

    def append(self, type_: Any, context: "StringifyContext", as_definition: bool = False) -> None:
        """
        Append the name of ``type_``, with any collection length hint

        ``as_definition`` renders a generic class as its unbound definition
        (``Box<>``); instance type names leave the parameters out.
        """
        raw_length = context.meta_properties.get(COLLECTION_LENGTH_META_PROPERTY)
        with context.with_meta_properties(_remove_collection_length):
            self._append_core(type_, context, raw_length, as_definition)
            if isinstance(raw_length, int) and not isinstance(raw_length, bool):
                context.append_direct(f"{tokens.TUPLE_BEGIN}{raw_length}{tokens.TUPLE_END}")

    def _append_core(
        self, type_: Any, context: "StringifyContext", raw_length: Any, as_definition: bool = False
    ) -> None:
        origin = typing.get_origin(type_)
        args = typing.get_args(type_)

        if origin is typing.Annotated:
            self._append_core(args[0], context, raw_length, as_definition)
        elif isinstance(type_, ArrayType):
            self.append(type_.element, context)
            context.append_delimited(
                tokens.COLLECTION_BEGIN,
                tokens.COLLECTION_END,
                lambda c: self._append_array_lengths(c, raw_length, type_.rank),
            )
        elif isinstance(type_, PointerType) or _is_ctypes_pointer(type_):
            element = type_.element if isinstance(type_, PointerType) else type_._type_
            self.append(element, context)
            context.append_direct(tokens.POINTER)
        elif isinstance(type_, ReferenceType) or (origin is weakref.ref and args):
            self.append(type_.element if isinstance(type_, ReferenceType) else args[0], context)
            context.append_direct(tokens.REFERENCE)
        elif isinstance(type_, _TYPE_VAR_TYPES):
            context.append_direct(type_.__name__)
        elif origin in _UNION_TYPES:
            self._append_union(args, context)
        elif type_ is types.SimpleNamespace:
            context.append_direct(tokens.ANONYMOUS)
        elif origin is tuple:
            self._append_tuple(args, context)
        elif origin is not None:
            self._append_generic(origin, args, context)
        elif isinstance(type_, type):
            self._append_class(type_, context, as_definition)
        else:
            context.append_direct(self._special_name(type_))

    def _append_array_lengths(self, context: "StringifyContext", raw_length: Any, rank: int) -> None:
        if isinstance(raw_length, (tuple, list)):
            context.append_enumerator(
                raw_length,
                lambda c, length: c.append_direct(str(length)),
                AllottedCounter.UNLIMITED,
                tokens.SEPARATOR,
            )
        else:
            context.append_direct(tokens.SEPARATOR * (rank - 1))

    def _append_each(self, items: Iterable[Any], context: "StringifyContext") -> None:
        context.append_enumerator(
            items,
            lambda c, item: self._append_argument(item, c),
            AllottedCounter.UNLIMITED,
            tokens.SEPARATOR,
        )

    def _append_argument(self, item: Any, context: "StringifyContext") -> None:
        if isinstance(item, (list, tuple)):
            context.append_delimited(
                tokens.COLLECTION_BEGIN,
                tokens.COLLECTION_END,
                lambda c: self._append_each(item, c),
            )
        else:
            self.append(item, context)

    def _append_union(self, args: Sequence[Any], context: "StringifyContext") -> None:
        others = [arg for arg in args if arg is not type(None)]
        if len(others) == 1:
            self.append(others[0], context)
        else:
            context.append_direct("Union").append_delimited(
                tokens.GENERIC_BEGIN,
                tokens.GENERIC_END,
                lambda c: self._append_each(others, c),
            )
        if len(others) != len(args):
            context.append_direct(tokens.NULLABLE)

    def _append_tuple(self, args: Sequence[Any], context: "StringifyContext") -> None:
        if args == ((),):
            args = ()
        context.append_delimited(
            tokens.TUPLE_BEGIN,
            tokens.TUPLE_END,
            lambda c: self._append_each(args, c),
        )

    def _append_generic(self, origin: Any, args: Sequence[Any], context: "StringifyContext") -> None:
        if isinstance(origin, type):
            self._append_class_name(origin, context)
        else:
            context.append_direct(self._special_name(origin))
        context.append_delimited(
            tokens.GENERIC_BEGIN,
            tokens.GENERIC_END,
            lambda c: self._append_each(args, c),
        )

    def _append_class(self, cls: type, context: "StringifyContext", as_definition: bool = False) -> None:
        if self._config.shorten_known_types and cls in KNOWN_TYPE_NAMES:
            context.append_direct(KNOWN_TYPE_NAMES[cls])
            return

        self._append_class_name(cls, context)
        parameters = getattr(cls, "__parameters__", None)
        if as_definition and isinstance(parameters, tuple) and parameters:
            context.append_delimited(
                tokens.GENERIC_BEGIN,
                tokens.GENERIC_END,
                lambda c: c.append_direct(tokens.SEPARATOR * (len(parameters) - 1)),
            )

    def _append_class_name(self, cls: type, context: "StringifyContext") -> None:
        self._append_namespace(getattr(cls, "__module__", None), context)
        context.append_direct(_simple_qualname(cls).replace(".", tokens.NESTED_TYPE))

    def _append_namespace(self, namespace: Optional[str], context: "StringifyContext") -> None:
        if not namespace:
            return

        configuration = context.variable_configuration
        implicit = configuration.implicit_namespaces
        explicit = configuration.explicit_namespaces
        is_implicit = bool(implicit and implicit.search(namespace))
        is_explicit = bool(explicit and explicit.search(namespace))

        if (
            is_explicit
            and (not is_implicit or configuration.is_namespace_explicit_if_ambiguous)
        ) or (
            not is_implicit
            and not is_explicit
            and configuration.is_namespace_explicit_if_unspecified
        ):
            context.append_direct(namespace).append_direct(".")

    @staticmethod
    def _special_name(obj: Any) -> str:
        if obj is None:
            return "None"
        if obj is Ellipsis:
            return tokens.ELLIPSIS
        if isinstance(obj, typing.ForwardRef):
            return obj.__forward_arg__
        if isinstance(obj, str):
            return obj
        name = getattr(obj, "_name", None) or getattr(obj, "__name__", None)
        return name if isinstance(name, str) else str(obj)

    # Parameters

    def append_parameters(
        self, parameters: Sequence[inspect.Parameter], context: "StringifyContext"
    ) -> None:
        """Append ``(type, ...)`` bounded by the method parameter budget"""
        context.append_delimited(
            tokens.TUPLE_BEGIN,
            tokens.TUPLE_END,
            lambda c: c.append_enumerator(
                parameters,
                lambda c1, parameter: self.append_parameter(parameter, c1),
                c.count_method_parameters(),
            ),
        )

    def append_parameter(self, parameter: inspect.Parameter, context: "StringifyContext") -> None:
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            context.append_direct("*")
        elif parameter.kind is inspect.Parameter.VAR_KEYWORD:
            context.append_direct("**")
        self.append_annotation(parameter.annotation, context)

    def append_annotation(self, annotation: Any, context: "StringifyContext") -> None:
        """Append an annotation; missing annotations render as ``object``"""
        if annotation is inspect.Parameter.empty:
            annotation = object
        self.append(annotation, context)


def _is_ctypes_pointer(type_: Any) -> bool:
    return isinstance(type_, type) and issubclass(type_, ctypes._Pointer) and hasattr(type_, "_type_")


class StringifiableType(Stringifiable):
    def __init__(self, type_: Any, owner: MemberInfoStringifier):
        self._type = type_
        self._owner = owner

    @property
    def subject(self) -> Any:
        return self._type

    def append_to(self, context: "StringifyContext") -> None:
        self._owner.append(self._type, context, as_definition=True)


class StringifiableMember(Stringifiable):
    """``Owner#name`` for properties and slot or C-level descriptors"""

    def __init__(self, member: Any, owner: MemberInfoStringifier):
        self._member = member
        self._owner = owner

    @property
    def subject(self) -> Any:
        return self._member

    def append_to(self, context: "StringifyContext") -> None:
        member = self._member
        declaring_type = getattr(member, "__objclass__", None)
        function = getattr(member, "fget", None) or getattr(member, "func", None)
        qualname = getattr(function, "__qualname__", "")
        name = getattr(member, "__name__", None) or getattr(member, "attrname", None)
        if name is None:
            name = qualname.rsplit(".", 1)[-1] if qualname else "?"

        if isinstance(declaring_type, type):
            self._owner.append(declaring_type, context)
            context.append_direct(tokens.MEMBER_ACCESS)
        elif "." in qualname:
            owner_name = qualname.rsplit(".", 1)[0]
            if "<locals>." in owner_name:
                owner_name = owner_name.rsplit("<locals>.", 1)[1]
            context.append_direct(owner_name.replace(".", tokens.NESTED_TYPE))
            context.append_direct(tokens.MEMBER_ACCESS)
        context.append_direct(name)


class StringifiableParameter(Stringifiable):
    is_deep = False

    def __init__(self, parameter: inspect.Parameter, owner: MemberInfoStringifier):
        self._parameter = parameter
        self._owner = owner

    def append_to(self, context: "StringifyContext") -> None:
        self._owner.append_parameter(self._parameter, context)


class StringifiableSignature(Stringifiable):
    """``(int,str):bool``"""

    is_deep = False

    def __init__(self, signature: inspect.Signature, owner: MemberInfoStringifier):
        self._signature = signature
        self._owner = owner

    def append_to(self, context: "StringifyContext") -> None:
        self._owner.append_parameters(list(self._signature.parameters.values()), context)
        context.append_direct(tokens.VALUE)
        self._owner.append_annotation(self._signature.return_annotation, context)


class StringifiableModule(Stringifiable):
    is_deep = False

    def __init__(self, module: types.ModuleType):
        self._module = module

    def append_to(self, context: "StringifyContext") -> None:
        context.append_direct(self._module.__name__)
