"""
Discrete events that a node sends to the host accessibility service,
such as "a scroll completed".

See also: SemanticsNode.send_event()
"""

from __future__ import annotations

from a11ytree.semantics.types import TextDirection
from enum import Enum
from typing import Any, Dict


class Axis(Enum):
    HORIZONTAL = 0
    VERTICAL = 1


class SemanticsEvent:  # abstract
    """
    An event with a type tag and a type-specific payload.
    """
    def __init__(self, type: str) -> None:
        self.type = type

    def to_map(self) -> Dict[str, Any]:
        """Returns the payload of this event."""
        raise NotImplementedError()

    def __repr__(self) -> str:
        fields = ', '.join(f'{k}: {v!r}' for (k, v) in sorted(self.to_map().items()))
        return f'{type(self).__name__}({fields})'


class ScrollCompletedSemanticsEvent(SemanticsEvent):
    """
    Notifies that a scroll action completed.

    Hosts may give feedback such as a sound when they receive this event.
    """
    def __init__(self,
            *, axis: Axis,
            pixels: float,
            min_scroll_extent: float,
            max_scroll_extent: float,
            ) -> None:
        super().__init__('scroll')
        self.axis = axis
        self.pixels = pixels
        self.min_scroll_extent = min_scroll_extent
        self.max_scroll_extent = max_scroll_extent

    def to_map(self) -> Dict[str, Any]:
        return {
            'axis': self.axis.value,
            'pixels': self.pixels,
            'minScrollExtent': self.min_scroll_extent,
            'maxScrollExtent': self.max_scroll_extent,
        }


class AnnounceSemanticsEvent(SemanticsEvent):
    """
    Asks the host to announce a message to the user.
    """
    def __init__(self, message: str, text_direction: TextDirection) -> None:
        super().__init__('announce')
        self.message = message
        self.text_direction = text_direction

    def to_map(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'textDirection': self.text_direction.value,
        }
