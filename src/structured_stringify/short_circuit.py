"""
Control-flow signals used to unwind a render when a budget is spent or a cycle is found

These never escape a top-level render: count signals are caught by the nearest
bounded sequence, time signals by the nearest atomic section and cycle signals
by the composition that registered the repeated object.
"""

from typing import Any


class ShortCircuit(Exception):
    """Base class for render short-circuit signals"""


class MaxAllottedShortCircuit(ShortCircuit):
    """A count or time budget has been exhausted"""


class MaxAllottedCountShortCircuit(MaxAllottedShortCircuit):
    """An item-count budget reached zero"""


class MaxAllottedTimeShortCircuit(MaxAllottedShortCircuit):
    """The render deadline expired"""


class AlreadySeenShortCircuit(ShortCircuit):
    """The subject is already being rendered further up the stack"""

    def __init__(self, subject: Any, depth_delta: int):
        super().__init__(f"{type(subject).__name__} already seen {depth_delta} level(s) up")
        self.subject = subject
        self.depth_delta = depth_delta
