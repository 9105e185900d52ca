"""
Base class for nodes of a tree that can be attached to an owner.

A node is "attached" while it has an owner. Attaching a node attaches
all of its children. Adopting a child under an attached parent attaches the child.
"""

from __future__ import annotations

from typing import Generic, TypeVar

_O = TypeVar('_O')


class AbstractNode(Generic[_O]):
    """
    A node in a tree with a parent pointer, a depth, and an optional owner.

    Subclasses that have children must override `attach`, `detach` and
    `redepth_children` so that those operations reach every child.

    The depth of a child is always greater than the depth of its parent.
    Depths are otherwise arbitrary and are only used for ordering.
    """

    # Optimize per-instance memory use, since there may be very many nodes
    __slots__ = (
        '_depth',
        '_owner',
        '_parent',
    )

    def __init__(self) -> None:
        self._depth = 0
        self._owner = None  # type: _O | None
        self._parent = None  # type: AbstractNode[_O] | None

    # === Properties ===

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def owner(self) -> _O | None:
        return self._owner

    @property
    def attached(self) -> bool:
        return self._owner is not None

    @property
    def parent(self) -> AbstractNode[_O] | None:
        return self._parent

    def root_ancestor(self) -> AbstractNode[_O]:
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    def is_descendant_of(self, ancestor: AbstractNode[_O]) -> bool:
        node = self._parent
        while node is not None:
            if node is ancestor:
                return True
            node = node._parent
        return False

    # === Operations: Depth ===

    def redepth_child(self, child: AbstractNode[_O]) -> None:
        """
        Adjusts the depth of the given child to be greater than this node's
        depth, and does the same for the child's descendants if needed.
        """
        assert child.owner is self.owner
        if child._depth <= self._depth:
            child._depth = self._depth + 1
            child.redepth_children()

    def redepth_children(self) -> None:
        """
        Calls `redepth_child` for each child. Subclasses override.
        """
        pass

    # === Operations: Attach & Detach ===

    def attach(self, owner: _O) -> None:
        """
        Marks this node as attached to the given owner.

        Subclasses with children should override to attach their children too.
        """
        assert owner is not None
        assert self._owner is None, \
            f'{self!r} is already attached to {self._owner!r}'
        self._owner = owner

    def detach(self) -> None:
        """
        Marks this node as detached.

        Subclasses with children should override to detach their children too.
        """
        assert self._owner is not None
        self._owner = None

    # === Operations: Children ===

    def adopt_child(self, child: AbstractNode[_O]) -> None:
        """
        Makes the given node a child of this node,
        attaching it if this node is attached.
        """
        assert child is not None
        assert child._parent is None, \
            f'{child!r} already has parent {child._parent!r}'
        assert child is not self
        assert self.root_ancestor() is not child, \
            f'Adopting {child!r} under {self!r} would create a cycle'
        child._parent = self
        if self.attached:
            assert self._owner is not None
            child.attach(self._owner)
        self.redepth_child(child)

    def drop_child(self, child: AbstractNode[_O]) -> None:
        """
        Disconnects the given child from this node,
        detaching it if this node is attached.
        """
        assert child is not None
        assert child._parent is self
        assert child.attached == self.attached
        child._parent = None
        if self.attached:
            child.detach()
