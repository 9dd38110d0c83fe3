"""
Deferred rendering for log arguments
"""

from typing import TYPE_CHECKING, Any, Optional

from .config import ConfigureMetaProperties, ConfigureVariables

if TYPE_CHECKING:
    from .factory import StringifyContextFactory


class LazyStringified:
    """
    Wrapper that renders its object only when converted to text

    Log records keep the wrapper; the rendering cost is paid only if a handler
    actually formats the message.
    """

    __slots__ = (
        "_obj",
        "_factory",
        "_configure_variables",
        "_configure_meta_properties",
        "_rendered",
    )

    def __init__(
        self,
        obj: Any,
        factory: Optional["StringifyContextFactory"] = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ):
        self._obj = obj
        self._factory = factory
        self._configure_variables = configure_variables
        self._configure_meta_properties = configure_meta_properties
        self._rendered: Optional[str] = None

    def __repr__(self) -> str:
        """Same as str, so %r placeholders also get the bounded rendering"""
        return self._get_rendered()

    def __str__(self) -> str:
        """Convert to string - triggers rendering if needed"""
        return self._get_rendered()

    def __format__(self, format_spec: str) -> str:
        return format(self._get_rendered(), format_spec)

    def _get_rendered(self) -> str:
        if self._rendered is None:
            from .factory import get_default_factory

            factory = self._factory or get_default_factory()
            self._rendered = factory.stringify(
                self._obj, self._configure_variables, self._configure_meta_properties
            )
        return self._rendered

    def is_rendered(self) -> bool:
        """Check if rendering has been performed"""
        return self._rendered is not None

    def get_original(self) -> Any:
        """Get the original object without triggering rendering"""
        return self._obj

    def force_render(self) -> str:
        """Force rendering and return the result"""
        return self._get_rendered()


def lazy_stringify(
    obj: Any,
    factory: Optional["StringifyContextFactory"] = None,
    configure_variables: ConfigureVariables = None,
    configure_meta_properties: ConfigureMetaProperties = None,
) -> LazyStringified:
    """
    Create a lazy rendering wrapper for an object

    Args:
        obj: Object to wrap
        factory: Factory to render with (default factory when omitted)
        configure_variables: Callback or mapping overriding variable settings
        configure_meta_properties: Callback or mapping setting meta properties

    Returns:
        LazyStringified wrapper
    """
    return LazyStringified(obj, factory, configure_variables, configure_meta_properties)
