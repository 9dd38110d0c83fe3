"""
Context factory: owns configuration, contracts, caches and the stringifier chain
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .config import (
    ConfigureMetaProperties,
    ConfigureVariables,
    StringifyConfig,
    get_default_config,
)
from .context import StringifyContext
from .contracts import StringifyTypeContractAccessor
from .registry import (
    StringifierLike,
    StringifierRegistration,
    get_effective_registrations,
    get_global_registrations_version,
)
from .short_circuit import ShortCircuit
from .stringifiers.base import Stringifiable, Stringifier
from .stringifiers.reflection import ReflectionStringifyHelper
from .stringifiers.type_info import MemberInfoStringifier

logger = logging.getLogger(__name__)


class StringifyStats:
    """Render counters shared by all factories in the process"""

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._renders = 0
            self._failures = 0
            self._short_circuits = 0
            self._total_time = 0.0

    def record(self, duration: float, success: bool, short_circuited: bool = False) -> None:
        with self._lock:
            self._renders += 1
            self._total_time += duration
            if not success:
                self._failures += 1
            if short_circuited:
                self._short_circuits += 1

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            renders = self._renders
            return {
                "renders": renders,
                "failures": self._failures,
                "short_circuits": self._short_circuits,
                "total_time_ms": round(self._total_time * 1000, 3),
                "average_time_ms": round(self._total_time * 1000 / renders, 3) if renders else 0.0,
            }


_stats = StringifyStats()


class StringifyContextFactory:
    """
    Creates render sessions that share one configuration and one set of caches

    Stringifier classes in the chain are instantiated once per factory through
    ``Stringifier.create(factory)``; instances are used as registered. The
    chain is rebuilt when process-wide registrations change.
    """

    def __init__(
        self,
        config: Optional[StringifyConfig] = None,
        contract_accessor: Optional[StringifyTypeContractAccessor] = None,
    ):
        self.config = config if config is not None else get_default_config()
        self.contract_accessor = (
            contract_accessor if contract_accessor is not None else StringifyTypeContractAccessor()
        )
        self.member_info_stringifier = MemberInfoStringifier(self.config)
        self.reflection_helper = ReflectionStringifyHelper(self)
        self._instances: Dict[int, Stringifier] = {}
        self._chain: Optional[List[Stringifier]] = None
        self._chain_version = -1
        self._lock = threading.Lock()

    @property
    def stringifiers(self) -> List[Stringifier]:
        """The ordered handler chain"""
        version = get_global_registrations_version()
        chain = self._chain
        if chain is not None and self._chain_version == version:
            return chain
        with self._lock:
            if self._chain is None or self._chain_version != version:
                self._chain = self._build_chain()
                self._chain_version = version
            return self._chain

    def _build_chain(self) -> List[Stringifier]:
        registrations = get_effective_registrations(self.config.custom_registrations)
        chain = [self._instantiate(registration) for registration in registrations]
        logger.debug(
            "Stringifier chain: "
            + ", ".join(f"{type(s).__name__}({r.priority})" for s, r in zip(chain, registrations))
        )
        return chain

    def _instantiate(self, registration: StringifierRegistration) -> Stringifier:
        stringifier = registration.stringifier
        if not isinstance(stringifier, type):
            return stringifier
        instance = self._instances.get(id(stringifier))
        if instance is None:
            instance = self._instances[id(stringifier)] = stringifier.create(self)
        return instance

    def make_context(self) -> StringifyContext:
        """A fresh render session with the overall configuration applied"""
        config = self.config
        return StringifyContext(
            self.stringifiers,
            self.member_info_stringifier,
            config.make_variable_configuration(),
            max_time=config.max_time,
            max_total_length=config.get_effective_max_total_length(),
            meta_property_key_comparison=config.meta_property_key_comparison,
        )

    def to_stringifiable(self, obj: Any) -> Stringifiable:
        return self.make_context().to_stringifiable(obj)

    def stringify(
        self,
        obj: Any,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> str:
        """
        Render ``obj`` within the configured budgets

        Args:
            obj: Value to render
            configure_variables: Callback or mapping overriding variable settings
            configure_meta_properties: Callback or mapping setting meta properties

        Returns:
            The bounded rendering
        """
        start_time = time.perf_counter()
        success = False
        short_circuited = False
        try:
            context = self.make_context()
            try:
                context.compose_and_append(
                    obj,
                    configure_variables=configure_variables,
                    configure_meta_properties=configure_meta_properties,
                )
            except ShortCircuit:
                short_circuited = True
                context.append_ellipsis()
            success = True
            return context.getvalue()
        finally:
            _stats.record(time.perf_counter() - start_time, success, short_circuited)

    def prepare_clone(self) -> "StringifyContextFactoryBuilder":
        """A builder seeded with a copy of this factory's configuration and its contracts"""
        builder = StringifyContextFactoryBuilder(self.config.clone())
        builder._contract_accessor = self.contract_accessor
        return builder


class StringifyContextFactoryBuilder:
    """
    Fluent construction of a factory

    Example:
        factory = (
            StringifyContextFactoryBuilder()
            .configure_overall({"max_depth": 3})
            .configure_contracts(lambda c: c.get_or_add(Order).configure("secret", lambda m: m.exclude()))
            .register_stringifier(MoneyStringifier)
            .build()
        )
    """

    def __init__(self, config: Optional[StringifyConfig] = None):
        self._config = config if config is not None else get_default_config().clone()
        self._contract_accessor = StringifyTypeContractAccessor()

    def configure_overall(
        self,
        configure: Union[StringifyConfig, Callable[[StringifyConfig], Any], Mapping[str, Any]],
    ) -> "StringifyContextFactoryBuilder":
        if isinstance(configure, StringifyConfig):
            self._config = configure.clone()
        elif isinstance(configure, Mapping):
            self._config.update(**configure)
        else:
            configure(self._config)
        return self

    def configure_contracts(
        self, configure: Callable[[StringifyTypeContractAccessor], Any]
    ) -> "StringifyContextFactoryBuilder":
        configure(self._contract_accessor)
        return self

    def register_stringifier(
        self, stringifier: StringifierLike, priority: int = 0
    ) -> "StringifyContextFactoryBuilder":
        self._config.custom_registrations.append(StringifierRegistration(stringifier, priority))
        return self

    def build(self) -> StringifyContextFactory:
        return StringifyContextFactory(self._config.clone(), self._contract_accessor)


# Global default factory
_default_factory: Optional[StringifyContextFactory] = None
_default_factory_is_explicit = False
_default_factory_lock = threading.Lock()


def get_default_factory() -> StringifyContextFactory:
    """
    Get the default factory

    Unless one was set explicitly, it is built from the default configuration
    and rebuilt whenever that configuration is replaced.
    """
    global _default_factory
    factory = _default_factory
    if factory is not None and (
        _default_factory_is_explicit or factory.config is get_default_config()
    ):
        return factory
    with _default_factory_lock:
        config = get_default_config()
        if _default_factory is None or (
            not _default_factory_is_explicit and _default_factory.config is not config
        ):
            _default_factory = StringifyContextFactory(config)
        return _default_factory


def set_default_factory(factory: Optional[StringifyContextFactory]) -> None:
    """Set the default factory; None goes back to one built from the default configuration"""
    global _default_factory, _default_factory_is_explicit
    with _default_factory_lock:
        _default_factory = factory
        _default_factory_is_explicit = factory is not None


def stringify(
    obj: Any,
    factory: Optional[StringifyContextFactory] = None,
    configure_variables: ConfigureVariables = None,
    configure_meta_properties: ConfigureMetaProperties = None,
) -> str:
    """
    Render any value as bounded, human-readable text

    Args:
        obj: Value to render
        factory: Factory to use (default factory when omitted)
        configure_variables: Callback or mapping overriding variable settings
        configure_meta_properties: Callback or mapping setting meta properties

    Returns:
        The rendering, never longer than the configured total length
    """
    factory = factory or get_default_factory()
    return factory.stringify(obj, configure_variables, configure_meta_properties)


def to_stringifiable(obj: Any, factory: Optional[StringifyContextFactory] = None) -> Stringifiable:
    return (factory or get_default_factory()).to_stringifiable(obj)


def get_stringify_stats() -> Dict[str, Any]:
    """Get render statistics"""
    return _stats.get_stats()


def reset_stringify_stats() -> None:
    """Reset render statistics"""
    _stats.reset()
