"""
Vocabulary shared by the semantics tree and its hosts:
actions, flags, text directions, tags, and dump orders.
"""

from __future__ import annotations

from enum import Enum, IntFlag
from typing import Protocol


class SemanticsAction(IntFlag):
    """
    An action that an assistive technology may ask a node to perform.

    Each member is a single bit so that a set of actions
    can be serialized as one integer.
    """
    TAP = 1 << 0
    LONG_PRESS = 1 << 1
    SCROLL_LEFT = 1 << 2
    SCROLL_RIGHT = 1 << 3
    SCROLL_UP = 1 << 4
    SCROLL_DOWN = 1 << 5
    INCREASE = 1 << 6
    DECREASE = 1 << 7
    SHOW_ON_SCREEN = 1 << 8

    @classmethod
    def values(cls) -> list[SemanticsAction]:
        """Returns every single-bit action, in bit order."""
        return _members_in_bit_order(cls)  # type: ignore[return-value]

    def debug_name(self) -> str:
        """Returns the camelCase name of this action, such as "showOnScreen"."""
        return _camel_name(self)

    def __str__(self) -> str:
        return f'SemanticsAction.{self.debug_name()}'


class SemanticsFlag(IntFlag):
    """
    A Boolean property of a node that an assistive technology may report.
    """
    HAS_CHECKED_STATE = 1 << 0
    IS_CHECKED = 1 << 1
    IS_SELECTED = 1 << 2

    @classmethod
    def values(cls) -> list[SemanticsFlag]:
        return _members_in_bit_order(cls)  # type: ignore[return-value]

    def debug_name(self) -> str:
        return _camel_name(self)

    def __str__(self) -> str:
        return f'SemanticsFlag.{self.debug_name()}'


def _members_in_bit_order(cls: type[IntFlag]) -> list[IntFlag]:
    return sorted(cls.__members__.values(), key=lambda m: m.value)


def _camel_name(member: Enum) -> str:
    (first, *rest) = (member.name or '').lower().split('_')
    return first + ''.join(part.title() for part in rest)


def parse_action(name: str) -> SemanticsAction:
    """
    Parses an action name such as "tap", "showOnScreen" or "show_on_screen".

    Raises:
    * ValueError -- if the name does not name an action.
    """
    return _parse_member(SemanticsAction, name)  # type: ignore[return-value]


def parse_flag(name: str) -> SemanticsFlag:
    """
    Parses a flag name such as "isChecked" or "is_checked".

    Raises:
    * ValueError -- if the name does not name a flag.
    """
    return _parse_member(SemanticsFlag, name)  # type: ignore[return-value]


def _parse_member(cls: type[IntFlag], name: str) -> IntFlag:
    normalized = name.replace('_', '').replace('-', '').lower()
    for member in cls.__members__.values():
        if (member.name or '').replace('_', '').lower() == normalized:
            return member
    raise ValueError(f'Unknown {cls.__name__} name: {name!r}')


class TextDirection(Enum):
    RTL = 'rtl'
    LTR = 'ltr'

    def __str__(self) -> str:
        return f'TextDirection.{self.value}'


class DebugSemanticsDumpOrder(Enum):
    """
    The order in which a semantics dump lists the children of each node.
    """
    # Children in the order they were added, which is paint order
    INVERSE_HIT_TEST = 'inverse-hit-test'
    # Children sorted by the top then the left edge of their transformed rect
    TRAVERSAL = 'traversal'


class SemanticsTag:
    """
    A marker attached to a node that is never sent to the host.

    A parent may inspect the tags of a child to decide how to treat it.
    Two tags with the same name are different tags unless they are
    the same object.
    """
    __slots__ = ('name',)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.name})'


class SemanticsActionHandler(Protocol):
    """
    Something that can respond to an action performed on a node.

    The handler is only called for an action that was added
    to the node with `SemanticsNode.add_action`.
    """
    def perform_action(self, action: SemanticsAction) -> None:
        ...


class Unicode:
    """Unicode directional control characters."""

    # Left-to-right embedding
    LRE = '\u202A'
    # Right-to-left embedding
    RLE = '\u202B'
    # Pop directional formatting
    PDF = '\u202C'
    # Left-to-right override
    LRO = '\u202D'
    # Right-to-left override
    RLO = '\u202E'
