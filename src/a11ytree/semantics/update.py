"""
The batch of changed nodes that a flush sends to the host,
and the sinks that receive batches and events.
"""

from __future__ import annotations

from a11ytree.geometry import Matrix4, Rect
from a11ytree.semantics.types import TextDirection
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol

# Sent in place of a transform when a node has none
IDENTITY_TRANSFORM = Matrix4.identity().storage  # type: tuple[float, ...]


@dataclass(frozen=True)
class SemanticsNodeUpdate:
    """The serialized state of one changed node."""
    id: int
    flags: int
    actions: int
    rect: Rect
    label: str
    text_direction: TextDirection | None
    # 16 floats, column-major
    transform: tuple[float, ...]
    # Ids of the direct children in inverse hit test order.
    # Empty if the node merges its descendants.
    children: tuple[int, ...]

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'flags': int(self.flags),
            'actions': int(self.actions),
            'rect': list(self.rect),
            'label': self.label,
            'textDirection': (
                self.text_direction.value
                if self.text_direction is not None
                else None
            ),
            'transform': list(self.transform),
            'children': list(self.children),
        }


@dataclass(frozen=True)
class SemanticsUpdate:
    """All nodes that changed during one flush, in increasing depth order."""
    nodes: tuple[SemanticsNodeUpdate, ...]

    def __len__(self) -> int:
        return len(self.nodes)

    def to_json(self) -> List[Dict[str, Any]]:
        return [n.to_json() for n in self.nodes]


class SemanticsUpdateBuilder:
    """Accumulates node updates into a SemanticsUpdate."""
    def __init__(self) -> None:
        self._nodes = []  # type: List[SemanticsNodeUpdate]

    def update_node(self,
            *, id: int,
            flags: int,
            actions: int,
            rect: Rect,
            label: str,
            text_direction: TextDirection | None,
            transform: tuple[float, ...],
            children: tuple[int, ...],
            ) -> None:
        assert len(transform) == 16
        self._nodes.append(SemanticsNodeUpdate(
            id=id,
            flags=flags,
            actions=actions,
            rect=rect,
            label=label,
            text_direction=text_direction,
            transform=transform,
            children=children,
        ))

    def build(self) -> SemanticsUpdate:
        return SemanticsUpdate(tuple(self._nodes))


# ------------------------------------------------------------------------------
# Sinks

class SemanticsUpdateSink(Protocol):
    """The host accessibility service, which receives one batch per flush."""
    def update_semantics(self, update: SemanticsUpdate) -> None:
        ...


class SemanticsEventSink(Protocol):
    """The host accessibility service, which receives events from nodes."""
    def send(self, message: Dict[str, Any]) -> None:
        ...


class RecordingUpdateSink:
    """Remembers every batch it receives."""
    def __init__(self) -> None:
        self.updates = []  # type: List[SemanticsUpdate]

    def update_semantics(self, update: SemanticsUpdate) -> None:
        self.updates.append(update)

    @property
    def last_update(self) -> SemanticsUpdate | None:
        return self.updates[-1] if len(self.updates) != 0 else None


class RecordingEventSink:
    """Remembers every event message it receives."""
    def __init__(self) -> None:
        self.messages = []  # type: List[Dict[str, Any]]

    def send(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)
