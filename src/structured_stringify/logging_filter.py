"""
Standard logging integration: render ``%``-style log arguments with bounded output
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from .context import VALUE_TYPES
from .lazy import LazyStringified

if TYPE_CHECKING:
    from .factory import StringifyContextFactory


class StringifyArgsFilter(logging.Filter):
    """
    Wraps non-primitive log arguments so they format through the stringifier

    Arguments are wrapped, not rendered: the work happens only if a handler
    formats the record. Records are never dropped.
    """

    def __init__(self, name: str = "", factory: Optional["StringifyContextFactory"] = None):
        super().__init__(name)
        self.factory = factory

    def _wrap(self, value: Any) -> Any:
        if value is None or isinstance(value, VALUE_TYPES) or isinstance(value, LazyStringified):
            return value
        return LazyStringified(value, self.factory)

    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if not args:
            return True
        if isinstance(args, Mapping):
            record.args = {key: self._wrap(value) for key, value in args.items()}
        elif isinstance(args, tuple):
            record.args = tuple(self._wrap(value) for value in args)
        return True


def get_logger(
    name: str, factory: Optional["StringifyContextFactory"] = None
) -> logging.Logger:
    """Get a logger whose ``%`` arguments are rendered by the stringifier"""
    logger = logging.getLogger(name)
    if not any(isinstance(f, StringifyArgsFilter) for f in logger.filters):
        logger.addFilter(StringifyArgsFilter(factory=factory))
    return logger
