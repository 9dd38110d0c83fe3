"""
Configuration for stringification budgets and type-name rendering
"""

import os
import re
from dataclasses import dataclass, field, fields
from datetime import timedelta
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Pattern, Union

from .budget import Expiration, InheritableThreshold, Threshold

MetaPropertyKeyComparison = Literal["ignore_case", "ordinal"]

_THRESHOLD_FIELDS = frozenset(
    {
        "max_string_length",
        "max_collection_item_count",
        "max_tuple_item_count",
        "max_method_parameter_count",
        "max_depth",
    }
)
_INHERITABLE_FIELDS = frozenset(
    {
        "max_dictionary_item_count",
        "max_memberwise_property_count",
        "max_anonymous_object_property_count",
    }
)
_PATTERN_FIELDS = frozenset({"implicit_namespaces", "explicit_namespaces"})


@dataclass
class StringifyVariableConfiguration:
    """
    Settings that can be overridden for a sub-tree of a render

    Threshold fields accept ints and ``None`` (unlimited); inheritable ones also
    accept ``"inherit"``. Namespace patterns accept strings or compiled regexes.
    """

    max_string_length: Threshold = Threshold(50)
    max_collection_item_count: Threshold = Threshold(20)
    max_dictionary_item_count: InheritableThreshold = InheritableThreshold(10)
    max_memberwise_property_count: InheritableThreshold = InheritableThreshold.INHERITED
    max_anonymous_object_property_count: InheritableThreshold = InheritableThreshold.INHERITED
    max_tuple_item_count: Threshold = Threshold(4)
    max_method_parameter_count: Threshold = Threshold(5)
    max_depth: Threshold = Threshold(5)

    # Type-name namespace rendering
    implicit_namespaces: Optional[Pattern] = None
    explicit_namespaces: Optional[Pattern] = None
    is_namespace_explicit_if_unspecified: bool = False
    is_namespace_explicit_if_ambiguous: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _THRESHOLD_FIELDS:
            value = Threshold.coerce(value)
            if name == "max_depth" and value.value == 0:
                raise ValueError("Expected positive max_depth")
        elif name in _INHERITABLE_FIELDS:
            value = InheritableThreshold.coerce(value)
        elif name in _PATTERN_FIELDS and isinstance(value, str):
            value = re.compile(value)
        super().__setattr__(name, value)

    def update(self, **overrides: Any) -> "StringifyVariableConfiguration":
        """Apply overrides in place and return self, so callbacks can be lambdas"""
        known = {f.name for f in fields(StringifyVariableConfiguration)}
        for name, value in overrides.items():
            if name not in known:
                raise ValueError(f"Unknown variable configuration setting: {name}")
            setattr(self, name, value)
        return self

    def copy(self) -> "StringifyVariableConfiguration":
        """Detached copy of the variable settings only"""
        return StringifyVariableConfiguration(
            **{f.name: getattr(self, f.name) for f in fields(StringifyVariableConfiguration)}
        )

    # Effective values

    def get_effective_max_string_length(self) -> Optional[int]:
        return self.max_string_length.value

    def get_effective_max_collection_item_count(self) -> Optional[int]:
        return self.max_collection_item_count.value

    def get_effective_max_dictionary_item_count(self) -> Optional[int]:
        return self.max_dictionary_item_count.get_value(self.max_collection_item_count)

    def get_effective_max_memberwise_property_count(self) -> Optional[int]:
        return self.max_memberwise_property_count.get_value(
            self.max_collection_item_count, self.max_dictionary_item_count
        )

    def get_effective_max_anonymous_object_property_count(self) -> Optional[int]:
        return self.max_anonymous_object_property_count.get_value(
            self.max_collection_item_count,
            self.max_dictionary_item_count,
            self.max_memberwise_property_count,
        )

    def get_effective_max_tuple_item_count(self) -> Optional[int]:
        return self.max_tuple_item_count.value

    def get_effective_max_method_parameter_count(self) -> Optional[int]:
        return self.max_method_parameter_count.value

    def get_effective_max_depth(self) -> Optional[int]:
        return self.max_depth.value


ConfigureVariables = Union[
    Callable[[StringifyVariableConfiguration], Any], Mapping[str, Any], None
]
ConfigureMetaProperties = Union[Callable[[Dict[str, Any]], Any], Mapping[str, Any], None]


def apply_configure_variables(
    configure: ConfigureVariables, target: StringifyVariableConfiguration
) -> None:
    """Run a variables callback, or apply a mapping of overrides"""
    if configure is None:
        return
    if isinstance(configure, Mapping):
        target.update(**configure)
    else:
        configure(target)


@dataclass
class StringifyConfig(StringifyVariableConfiguration):
    """Overall configuration: variable defaults plus session-wide settings"""

    max_time: Expiration = Expiration(timedelta(milliseconds=50))
    max_total_length: Threshold = Threshold(300)
    shorten_known_types: bool = True
    is_memberwise_stringifiable_by_default: bool = True
    meta_property_key_comparison: MetaPropertyKeyComparison = "ignore_case"
    custom_registrations: List[Any] = field(default_factory=list)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "max_total_length":
            value = Threshold.coerce(value)
            if value.value == 0:
                raise ValueError("Expected positive max_total_length")
        elif name == "max_time":
            value = Expiration.coerce(value)
        elif name == "meta_property_key_comparison" and value not in ("ignore_case", "ordinal"):
            raise ValueError(f"Unrecognized meta property key comparison: {value!r}")
        super().__setattr__(name, value)

    def update(self, **overrides: Any) -> "StringifyConfig":
        """Apply overrides in place, including the overall settings"""
        known = {f.name for f in fields(self)}
        for name, value in overrides.items():
            if name not in known:
                raise ValueError(f"Unknown configuration setting: {name}")
            setattr(self, name, value)
        return self

    def get_effective_max_total_length(self) -> Optional[int]:
        return self.max_total_length.value

    def make_variable_configuration(self) -> StringifyVariableConfiguration:
        return StringifyVariableConfiguration.copy(self)

    def clone(self) -> "StringifyConfig":
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["custom_registrations"] = list(self.custom_registrations)
        return StringifyConfig(**values)

    @classmethod
    def _parse_bool_env(cls, key: str, default: str = "false") -> bool:
        """Parse boolean from environment variable"""
        return os.getenv(key, default).lower() == "true"

    @classmethod
    def _parse_threshold_env(cls, key: str, default: Any) -> Any:
        """Parse a threshold from environment variable ('none'/'unlimited' means no cap)"""
        raw = os.getenv(key)
        if raw is None:
            return default
        raw = raw.strip().lower()
        if raw in ("none", "unlimited"):
            return None
        if raw == "inherit":
            return "inherit"
        return int(raw)

    @classmethod
    def from_env(cls) -> "StringifyConfig":
        """Create configuration from environment variables"""
        defaults = cls()
        max_time_ms = cls._parse_threshold_env("STRINGIFY_MAX_TIME_MS", 50)

        return cls(
            max_string_length=cls._parse_threshold_env(
                "STRINGIFY_MAX_STRING_LENGTH", defaults.max_string_length
            ),
            max_collection_item_count=cls._parse_threshold_env(
                "STRINGIFY_MAX_COLLECTION_ITEMS", defaults.max_collection_item_count
            ),
            max_dictionary_item_count=cls._parse_threshold_env(
                "STRINGIFY_MAX_DICTIONARY_ITEMS", defaults.max_dictionary_item_count
            ),
            max_memberwise_property_count=cls._parse_threshold_env(
                "STRINGIFY_MAX_MEMBERWISE_PROPERTIES", defaults.max_memberwise_property_count
            ),
            max_anonymous_object_property_count=cls._parse_threshold_env(
                "STRINGIFY_MAX_ANONYMOUS_PROPERTIES",
                defaults.max_anonymous_object_property_count,
            ),
            max_tuple_item_count=cls._parse_threshold_env(
                "STRINGIFY_MAX_TUPLE_ITEMS", defaults.max_tuple_item_count
            ),
            max_method_parameter_count=cls._parse_threshold_env(
                "STRINGIFY_MAX_METHOD_PARAMETERS", defaults.max_method_parameter_count
            ),
            max_depth=cls._parse_threshold_env("STRINGIFY_MAX_DEPTH", defaults.max_depth),
            implicit_namespaces=os.getenv("STRINGIFY_IMPLICIT_NAMESPACES") or None,
            explicit_namespaces=os.getenv("STRINGIFY_EXPLICIT_NAMESPACES") or None,
            is_namespace_explicit_if_unspecified=cls._parse_bool_env(
                "STRINGIFY_NAMESPACE_EXPLICIT_IF_UNSPECIFIED"
            ),
            is_namespace_explicit_if_ambiguous=cls._parse_bool_env(
                "STRINGIFY_NAMESPACE_EXPLICIT_IF_AMBIGUOUS"
            ),
            max_time=Expiration.from_milliseconds(max_time_ms),
            max_total_length=cls._parse_threshold_env(
                "STRINGIFY_MAX_TOTAL_LENGTH", defaults.max_total_length
            ),
            shorten_known_types=cls._parse_bool_env("STRINGIFY_SHORTEN_KNOWN_TYPES", "true"),
            is_memberwise_stringifiable_by_default=cls._parse_bool_env(
                "STRINGIFY_MEMBERWISE_BY_DEFAULT", "true"
            ),
            meta_property_key_comparison=os.getenv(
                "STRINGIFY_META_PROPERTY_KEY_COMPARISON", "ignore_case"
            ),
        )


# Global default configuration
_default_config: Optional[StringifyConfig] = None


def get_default_config() -> StringifyConfig:
    """Get the default stringify configuration"""
    global _default_config
    if _default_config is None:
        _default_config = StringifyConfig.from_env()
    return _default_config


def set_default_config(config: StringifyConfig) -> None:
    """Set the default stringify configuration"""
    global _default_config
    _default_config = config
