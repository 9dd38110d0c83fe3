"""
Chainable helpers for appending bounded sequences of members and items
"""

from typing import TYPE_CHECKING, Any, Optional

from . import tokens
from .budget import AllottedCounter
from .config import ConfigureMetaProperties, ConfigureVariables
from .short_circuit import MaxAllottedShortCircuit

if TYPE_CHECKING:
    from .context import StringifyContext


class _BoundedAppender:
    def __init__(
        self,
        context: "StringifyContext",
        counter: AllottedCounter,
        separator: str,
    ):
        self._context = context
        self._counter = counter
        self._separator = separator
        self._is_alive = True

    @property
    def is_alive(self) -> bool:
        """False once the budget ran out and the ellipsis was written"""
        return self._is_alive

    def _append(self, append_value, first: bool) -> None:
        if not self._is_alive:
            return
        if not first:
            self._context.append_direct(self._separator)
        try:
            self._counter.decrement()
            self._context.raise_if_time_is_over()
            append_value()
        except MaxAllottedShortCircuit:
            self._context.append_ellipsis()
            self._is_alive = False

    def end(self) -> "StringifyContext":
        return self._context


class MemberAppender(_BoundedAppender):
    """Appends ``name:value`` pairs under the memberwise property budget"""

    def _append_member(
        self,
        member_name: str,
        member_value: Any,
        atomic: Optional[bool],
        configure_variables: ConfigureVariables,
        configure_meta_properties: ConfigureMetaProperties,
        first: bool,
    ) -> "MemberAppender":
        def append_value():
            self._context.append_direct(member_name).append_direct(tokens.VALUE)
            self._context.compose_and_append(
                member_value,
                atomic=atomic,
                configure_variables=configure_variables,
                configure_meta_properties=configure_meta_properties,
            )

        self._append(append_value, first)
        return self

    def then_member(
        self,
        member_name: str,
        member_value: Any,
        atomic: Optional[bool] = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> "MemberAppender":
        return self._append_member(
            member_name,
            member_value,
            atomic,
            configure_variables,
            configure_meta_properties,
            first=False,
        )


class ItemAppender(_BoundedAppender):
    """Appends values under the collection item budget"""

    def _append_item(
        self,
        item_value: Any,
        atomic: Optional[bool],
        configure_variables: ConfigureVariables,
        configure_meta_properties: ConfigureMetaProperties,
        first: bool,
    ) -> "ItemAppender":
        def append_value():
            self._context.compose_and_append(
                item_value,
                atomic=atomic,
                configure_variables=configure_variables,
                configure_meta_properties=configure_meta_properties,
            )

        self._append(append_value, first)
        return self

    def then_item(
        self,
        item_value: Any,
        atomic: Optional[bool] = None,
        configure_variables: ConfigureVariables = None,
        configure_meta_properties: ConfigureMetaProperties = None,
    ) -> "ItemAppender":
        return self._append_item(
            item_value, atomic, configure_variables, configure_meta_properties, first=False
        )
