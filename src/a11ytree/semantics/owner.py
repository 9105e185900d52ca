"""
The owner of a semantics tree, which sends the nodes that changed during
a frame to the host and routes actions from the host back to the nodes.
"""

from __future__ import annotations

from a11ytree.diagnostics import describe_identity
from a11ytree.geometry import Offset
from a11ytree.semantics.node import ROOT_ID, SemanticsNode
from a11ytree.semantics.types import (
    DebugSemanticsDumpOrder, SemanticsAction, SemanticsActionHandler,
)
from a11ytree.semantics.update import (
    SemanticsEventSink, SemanticsUpdate, SemanticsUpdateBuilder,
    SemanticsUpdateSink,
)
from a11ytree.util.bulkheads import capture_crashes_to_stderr, run_bulkhead_call
from a11ytree.util.listenable import ListenableMixin
from collections.abc import Callable
import os
from sortedcontainers import SortedKeyList
import sys
from typing import Any, Dict, Optional, Set

_VERBOSE_UPDATES = os.environ.get('A11YTREE_VERBOSE_UPDATES', 'False') == 'True'


class SemanticsOwner(ListenableMixin):
    """
    Owns the nodes of one semantics tree.

    Keeps track of which nodes are attached (by id), which are dirty,
    and which were detached since the last update.

    Listeners may implement:
    * semantics_did_update(owner: SemanticsOwner) -> None
        -- Called after each update is sent to the host.
           Must be decorated with @capture_crashes_to*.
    """

    def __init__(self,
            *, update_sink: SemanticsUpdateSink | None=None,
            event_sink: SemanticsEventSink | None=None,
            ) -> None:
        super().__init__()
        self.update_sink = update_sink
        self.event_sink = event_sink

        self._nodes = {}  # type: Dict[int, SemanticsNode]
        self._dirty_nodes = set()  # type: Set[SemanticsNode]
        self._detached_nodes = set()  # type: Set[SemanticsNode]
        # Nodes adopted by a new parent since the last update
        self._adopted_nodes = set()  # type: Set[SemanticsNode]

    # === Properties ===

    @property
    def root_semantics_node(self) -> SemanticsNode | None:
        """The root node of the tree, or None if the tree is empty."""
        return self._nodes.get(ROOT_ID)

    def get_node(self, id: int) -> SemanticsNode | None:
        return self._nodes.get(id)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def dirty_nodes(self) -> frozenset[SemanticsNode]:
        return frozenset(self._dirty_nodes)

    @property
    def detached_nodes(self) -> frozenset[SemanticsNode]:
        return frozenset(self._detached_nodes)

    # === Operations: Update ===

    def send_update(self) -> SemanticsUpdate | None:
        """
        Sends every node that changed since the last update to the host,
        as one batch in increasing depth order.

        Returns the batch that was sent, or None if no node was dirty.
        """
        if len(self._dirty_nodes) == 0:
            return None

        visited_nodes = SortedKeyList(key=_depth_order_key)
        while len(self._dirty_nodes) != 0:
            # Nodes detached since the last iteration are not sent
            local_dirty_nodes = sorted(
                [n for n in self._dirty_nodes if n not in self._detached_nodes],
                key=_depth_order_key)
            self._dirty_nodes.clear()
            self._detached_nodes.clear()
            visited_nodes.update(local_dirty_nodes)
            # Parents before children, so that a parent's merge state
            # reaches its children before they are processed
            for node in local_dirty_nodes:
                assert node.dirty
                self._propagate_merge(node)

        builder = SemanticsUpdateBuilder()
        for node in visited_nodes:
            # A node may be visited more than once, or reset and
            # then dropped from the tree entirely
            if node.dirty and node.attached:
                node._add_to_update(builder)
        self._dirty_nodes.clear()
        self._forget_adoptions()

        update = builder.build()
        if _VERBOSE_UPDATES:
            print(
                f'*** Sending semantics update with {len(update)} node(s): '
                    f'{[n.id for n in update.nodes]!r}',
                file=sys.stderr)
        if self.update_sink is not None:
            self.update_sink.update_semantics(update)

        for lis in self.listeners:
            if hasattr(lis, 'semantics_did_update'):
                run_bulkhead_call(lis.semantics_did_update, self)  # type: ignore[attr-defined]
        return update

    def _forget_adoptions(self) -> None:
        for node in self._adopted_nodes:
            node._adopted_this_pass = False
        self._adopted_nodes.clear()

    @staticmethod
    def _propagate_merge(node: SemanticsNode) -> None:
        """
        Pushes the effective merge state of the node's parent into the node,
        and the node's own effective merge state into its children.

        Every node whose state changes is marked dirty and so will be
        processed in the next iteration of send_update().
        """
        parent = node.parent
        if parent is not None:
            node._set_inherited_merge(parent.should_merge_all_descendants_into_this_node)
            if parent.should_merge_all_descendants_into_this_node:
                # The parent reports this node's data, so must be sent too
                parent.mark_dirty()
        should_merge = node.should_merge_all_descendants_into_this_node
        for child in node.children:
            if child.parent is node:
                child._set_inherited_merge(should_merge)

    # === Operations: Actions ===

    def _get_action_handler_for_id(self,
            id: int,
            action: SemanticsAction,
            ) -> SemanticsActionHandler | None:
        result = self._nodes.get(id)
        if (result is not None and
                result.should_merge_all_descendants_into_this_node and
                not result.can_perform_action(action)):
            result = _find_descendant_that_can_perform(result, action) or result
        if result is None or not result.can_perform_action(action):
            return None
        return result.action_handler

    def perform_action(self, id: int, action: SemanticsAction) -> None:
        """
        Asks the node with the given id to perform the given action.

        If the node merges its descendants and cannot perform the action itself
        then the first descendant that can perform it does so instead.
        Does nothing if no such node can perform the action, except that
        SHOW_ON_SCREEN falls back to the node's show_on_screen callback.
        """
        handler = self._get_action_handler_for_id(id, action)
        if handler is not None:
            run_bulkhead_call(_call_action_handler, handler, action)
            return

        node = self._nodes.get(id)
        if (action == SemanticsAction.SHOW_ON_SCREEN and
                node is not None and
                node.show_on_screen is not None):
            run_bulkhead_call(_call_show_on_screen, node.show_on_screen)

    def _get_action_handler_for_position(self,
            node: SemanticsNode,
            position: Offset,
            action: SemanticsAction,
            ) -> SemanticsActionHandler | None:
        if node.transform is not None:
            inverse = node.transform.inverted()
            if inverse is None:
                return None
            position = inverse.transform_point(position)
        if not node.rect.contains(position):
            return None
        if node.should_merge_all_descendants_into_this_node:
            if node.can_perform_action(action):
                return node.action_handler
            found = _find_descendant_that_can_perform(node, action)
            return found.action_handler if found is not None else None
        # Topmost child first
        for child in reversed(node.children):
            handler = self._get_action_handler_for_position(child, position, action)
            if handler is not None:
                return handler
        return node.action_handler if node.can_perform_action(action) else None

    def perform_action_at(self, position: Offset, action: SemanticsAction) -> None:
        """
        Asks the topmost node at the given position, in the root's
        coordinate system, to perform the given action.

        The search does not descend into a node that merges its descendants.
        Such a node performs the action itself if it can. Otherwise the first
        descendant in pre-order that can perform the action does so.

        Does nothing if no node there can perform the action.
        """
        node = self.root_semantics_node
        if node is None:
            return
        handler = self._get_action_handler_for_position(node, position, action)
        if handler is not None:
            run_bulkhead_call(_call_action_handler, handler, action)

    # === Operations: Events ===

    def send_event(self, message: Dict[str, Any]) -> None:
        if self.event_sink is not None:
            self.event_sink.send(message)

    # === Lifecycle ===

    def dispose(self) -> None:
        """Forgets every node and listener."""
        self._dirty_nodes.clear()
        self._nodes.clear()
        self._detached_nodes.clear()
        self._forget_adoptions()
        self.listeners.clear()

    def __repr__(self) -> str:
        return describe_identity(self)


def _depth_order_key(node: SemanticsNode) -> tuple[int, int]:
    return (node.depth, node.id)


def _find_descendant_that_can_perform(
        node: SemanticsNode,
        action: SemanticsAction,
        ) -> SemanticsNode | None:
    result = None  # type: Optional[SemanticsNode]
    def visit(descendant: SemanticsNode) -> bool:
        nonlocal result
        if descendant.can_perform_action(action):
            result = descendant
            return False  # found. stop.
        return True
    node._visit_descendants(visit)
    return result


@capture_crashes_to_stderr
def _call_action_handler(handler: SemanticsActionHandler, action: SemanticsAction) -> None:
    handler.perform_action(action)


@capture_crashes_to_stderr
def _call_show_on_screen(show_on_screen: Callable[[], None]) -> None:
    show_on_screen()


# ------------------------------------------------------------------------------
# Debug

def debug_dump_semantics_tree(
        owner: SemanticsOwner | None,
        child_order: DebugSemanticsDumpOrder=DebugSemanticsDumpOrder.TRAVERSAL,
        ) -> str:
    """
    Returns a multi-line description of the owner's semantics tree.
    """
    root = owner.root_semantics_node if owner is not None else None
    if root is None:
        return 'Semantics not collected.'
    return root.to_string_deep(child_order=child_order)
