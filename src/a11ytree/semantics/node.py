"""
Nodes of the semantics tree.

A SemanticsNode describes one accessibility-relevant element of a user
interface: what it is (label, flags), what can be done with it (actions),
and where it is (rect, transform). Nodes form a tree that is owned by a
SemanticsOwner, which sends the nodes that changed to the host at the end
of every frame.

Producers rebuild the tree bottom-up every frame. For each node they:
1. set its fields, which marks it dirty if anything actually changed,
2. propose its children with one or more calls to add_children(), and
3. call finalize_children() exactly once.
"""

from __future__ import annotations

from a11ytree.diagnostics import (
    DiagnosticableTree, DiagnosticableTreeNode, DiagnosticPropertiesBuilder,
    DiagnosticsNode, DiagnosticsProperty, DiagnosticsTreeStyle, EnumProperty,
    FlagProperty, IterableProperty, StringProperty,
)
from a11ytree.geometry import Matrix4, matrix_equals, Rect
from a11ytree.semantics.events import SemanticsEvent
from a11ytree.semantics.types import (
    DebugSemanticsDumpOrder, SemanticsAction, SemanticsActionHandler,
    SemanticsFlag, SemanticsTag, TextDirection, Unicode,
)
from a11ytree.semantics.update import IDENTITY_TRANSFORM, SemanticsUpdateBuilder
from a11ytree.tree_node import AbstractNode
from collections.abc import Callable, Iterable
from dataclasses import dataclass
import itertools
from typing import FrozenSet, List, Optional, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from a11ytree.semantics.owner import SemanticsOwner


ROOT_ID = 0

# Ids are never reused, even after the node that held one is gone
_next_id = itertools.count(1)

def _generate_new_id() -> int:
    return next(_next_id)


SemanticsNodeVisitor = Callable[['SemanticsNode'], bool]


# ------------------------------------------------------------------------------
# SemanticsData

@dataclass(frozen=True)
class SemanticsData:
    """
    The full semantics of a node.

    If the node merges all of its descendants into itself then this includes
    the flags, actions, labels and tags of those descendants.
    The rect and transform are always the node's own.

    Typically obtained from SemanticsNode.get_semantics_data().
    """
    flags: SemanticsFlag
    actions: SemanticsAction
    label: str
    text_direction: TextDirection | None
    rect: Rect
    tags: FrozenSet[SemanticsTag]
    transform: Matrix4 | None = None

    def __post_init__(self) -> None:
        assert self.label == '' or self.text_direction is not None, \
            f'A SemanticsData object with label "{self.label}" had a null text_direction.'

    def has_flag(self, flag: SemanticsFlag) -> bool:
        return (self.flags & flag) != 0

    def has_action(self, action: SemanticsAction) -> bool:
        return (self.actions & action) != 0

    def __repr__(self) -> str:
        parts = [repr(self.rect)]
        if self.transform is not None:
            parts.append(repr(self.transform))
        for action in SemanticsAction.values():
            if self.has_action(action):
                parts.append(str(action))
        for flag in SemanticsFlag.values():
            if self.has_flag(flag):
                parts.append(str(flag))
        if self.label != '':
            parts.append(f'"{self.label}"')
        if self.text_direction is not None:
            parts.append(str(self.text_direction))
        return f'{type(self).__name__}({"; ".join(parts)})'


# ------------------------------------------------------------------------------
# SemanticsNode

class SemanticsNode(AbstractNode['SemanticsOwner'], DiagnosticableTree):
    """
    A node in the semantics tree.

    Every node has an id that is unique among the nodes that were ever created
    in this process. The root node has the reserved id ROOT_ID.
    """

    def __init__(self,
            *, handler: SemanticsActionHandler | None=None,
            show_on_screen: Callable[[], None] | None=None,
            ) -> None:
        self._initialize(_generate_new_id(), handler, show_on_screen)

    @classmethod
    def root(cls,
            *, owner: SemanticsOwner,
            handler: SemanticsActionHandler | None=None,
            show_on_screen: Callable[[], None] | None=None,
            ) -> SemanticsNode:
        """
        Creates the root node of a semantics tree and attaches it to the owner.
        """
        node = cls.__new__(cls)
        node._initialize(ROOT_ID, handler, show_on_screen)
        node.attach(owner)
        return node

    def _initialize(self,
            id: int,
            handler: SemanticsActionHandler | None,
            show_on_screen: Callable[[], None] | None,
            ) -> None:
        AbstractNode.__init__(self)
        self._id = id
        self._action_handler = handler
        self._show_on_screen = show_on_screen

        self._transform = None  # type: Optional[Matrix4]
        self._rect = Rect.ZERO  # type: ignore[attr-defined]
        # Whether the rect might have been reduced by clips of ancestors. Debug only.
        self.was_affected_by_clip = False

        self._actions = SemanticsAction(0)
        self._flags = SemanticsFlag(0)
        self._label = ''
        self._text_direction = None  # type: Optional[TextDirection]
        self._tags = set()  # type: Set[SemanticsTag]
        self._merge_all_descendants_into_this_node = False
        self._inherited_merge_all_descendants_into_this_node = False

        # In inverse hit test order (i.e. paint order)
        self._children = []  # type: List[SemanticsNode]
        # Proposed by add_children() and consumed by finalize_children()
        self._new_children = []  # type: List[SemanticsNode]
        self._dead = False
        self._dirty = False
        # Whether a parent adopted this node since its owner's last update
        self._adopted_this_pass = False

    # === Properties: Identity & Linkage ===

    @property
    def id(self) -> int:
        return self._id

    @property
    def owner(self) -> SemanticsOwner | None:
        return self._owner

    @property
    def parent(self) -> SemanticsNode | None:
        return self._parent  # type: ignore[return-value]

    @property
    def children(self) -> tuple[SemanticsNode, ...]:
        """The current children, in inverse hit test order."""
        return tuple(self._children)

    @property
    def has_children(self) -> bool:
        return len(self._children) != 0

    @property
    def children_count(self) -> int:
        return len(self._children)

    def visit_children(self, visitor: SemanticsNodeVisitor) -> None:
        """
        Calls visitor for each child until it returns False.
        """
        for child in self._children:
            if not visitor(child):
                return

    def _visit_descendants(self, visitor: SemanticsNodeVisitor) -> bool:
        """
        Calls visitor for each descendant in pre-order until it returns False.

        Returns whether every call returned True.
        """
        for child in self._children:
            if not visitor(child) or not child._visit_descendants(visitor):
                return False
        return True

    # === Properties: Geometry ===

    def _get_transform(self) -> Matrix4 | None:
        """
        The transform from this node's coordinate system to its parent's,
        or None if it is the identity.
        """
        return self._transform
    def _set_transform(self, value: Matrix4 | None) -> None:
        if not matrix_equals(self._transform, value):
            self._transform = None if (value is None or value.is_identity()) else value
            self.mark_dirty()
    transform = property(_get_transform, _set_transform)

    def _get_rect(self) -> Rect:
        """The bounding box of this node in its own coordinate system."""
        return self._rect
    def _set_rect(self, value: Rect) -> None:
        assert value is not None
        if self._rect != value:
            self._rect = value
            self.mark_dirty()
    rect = property(_get_rect, _set_rect)

    # === Properties: Actions & Flags ===

    def _get_actions(self) -> SemanticsAction:
        return self._actions
    def _set_actions(self, value: SemanticsAction) -> None:
        value = SemanticsAction(value)
        if self._actions != value:
            self._actions = value
            self.mark_dirty()
    actions = property(_get_actions, _set_actions)

    def add_action(self, action: SemanticsAction) -> None:
        """
        Adds the given action to the set of actions that this node's
        handler can perform.
        """
        if (self._actions & action) == 0:
            self._actions |= action
            self.mark_dirty()

    def add_horizontal_scrolling_actions(self) -> None:
        self.add_action(SemanticsAction.SCROLL_LEFT)
        self.add_action(SemanticsAction.SCROLL_RIGHT)

    def add_vertical_scrolling_actions(self) -> None:
        self.add_action(SemanticsAction.SCROLL_UP)
        self.add_action(SemanticsAction.SCROLL_DOWN)

    def add_adjustment_actions(self) -> None:
        self.add_action(SemanticsAction.INCREASE)
        self.add_action(SemanticsAction.DECREASE)

    def can_perform_action(self, action: SemanticsAction) -> bool:
        return self._action_handler is not None and (self._actions & action) != 0

    @property
    def action_handler(self) -> SemanticsActionHandler | None:
        return self._action_handler

    @property
    def show_on_screen(self) -> Callable[[], None] | None:
        return self._show_on_screen

    def _get_flags(self) -> SemanticsFlag:
        return self._flags
    def _set_flags(self, value: SemanticsFlag) -> None:
        value = SemanticsFlag(value)
        if self._flags != value:
            self._flags = value
            self.mark_dirty()
    flags = property(_get_flags, _set_flags)

    def _set_flag(self, flag: SemanticsFlag, value: bool) -> None:
        if value:
            self.flags = self._flags | flag
        else:
            self.flags = self._flags & ~flag

    def _get_has_checked_state(self) -> bool:
        """Whether this node has Boolean state that the user can control."""
        return (self._flags & SemanticsFlag.HAS_CHECKED_STATE) != 0
    def _set_has_checked_state(self, value: bool) -> None:
        self._set_flag(SemanticsFlag.HAS_CHECKED_STATE, value)
    has_checked_state = property(_get_has_checked_state, _set_has_checked_state)

    def _get_is_checked(self) -> bool:
        return (self._flags & SemanticsFlag.IS_CHECKED) != 0
    def _set_is_checked(self, value: bool) -> None:
        self._set_flag(SemanticsFlag.IS_CHECKED, value)
    is_checked = property(_get_is_checked, _set_is_checked)

    def _get_is_selected(self) -> bool:
        return (self._flags & SemanticsFlag.IS_SELECTED) != 0
    def _set_is_selected(self, value: bool) -> None:
        self._set_flag(SemanticsFlag.IS_SELECTED, value)
    is_selected = property(_get_is_selected, _set_is_selected)

    # === Properties: Label & Tags ===

    def _get_label(self) -> str:
        """
        A textual description of this node,
        read in the direction given by text_direction.
        """
        return self._label
    def _set_label(self, value: str) -> None:
        assert value is not None
        if self._label != value:
            self._label = value
            self.mark_dirty()
    label = property(_get_label, _set_label)

    def _get_text_direction(self) -> TextDirection | None:
        return self._text_direction
    def _set_text_direction(self, value: TextDirection | None) -> None:
        if self._text_direction != value:
            self._text_direction = value
            self.mark_dirty()
    text_direction = property(_get_text_direction, _set_text_direction)

    def _get_tags(self) -> FrozenSet[SemanticsTag]:
        return frozenset(self._tags)
    def _set_tags(self, value: Iterable[SemanticsTag]) -> None:
        value = set(value)
        if self._tags != value:
            self._tags = value
            self.mark_dirty()
    tags = property(_get_tags, _set_tags)

    def add_tag(self, tag: SemanticsTag) -> None:
        """
        Tags this node. Tags are never sent to the host.
        """
        assert tag is not None
        if tag not in self._tags:
            self._tags.add(tag)
            self.mark_dirty()

    def has_tag(self, tag: SemanticsTag) -> bool:
        return tag in self._tags

    # === Properties: Merging ===

    def _get_merge_all_descendants_into_this_node(self) -> bool:
        """
        Whether this node and all of its descendants should be reported
        to the host as one logical element.
        """
        return self._merge_all_descendants_into_this_node
    def _set_merge_all_descendants_into_this_node(self, value: bool) -> None:
        if self._merge_all_descendants_into_this_node != value:
            self._merge_all_descendants_into_this_node = value
            self.mark_dirty()
    merge_all_descendants_into_this_node = property(
        _get_merge_all_descendants_into_this_node,
        _set_merge_all_descendants_into_this_node)

    def _get_inherited_merge(self) -> bool:
        """Whether an ancestor merges this node into itself."""
        return self._inherited_merge_all_descendants_into_this_node
    def _set_inherited_merge(self, value: bool) -> None:
        if self._inherited_merge_all_descendants_into_this_node != value:
            self._inherited_merge_all_descendants_into_this_node = value
            self.mark_dirty()
    inherited_merge_all_descendants_into_this_node = property(_get_inherited_merge)

    @property
    def should_merge_all_descendants_into_this_node(self) -> bool:
        """
        The effective merge state: whether this node either merges its
        descendants itself or is merged into an ancestor.
        """
        return (
            self._merge_all_descendants_into_this_node or
            self._inherited_merge_all_descendants_into_this_node
        )

    @property
    def is_merged_into_parent(self) -> bool:
        return (
            self.parent is not None and
            self.parent.should_merge_all_descendants_into_this_node
        )

    # === Properties: Dirty Tracking ===

    @property
    def dirty(self) -> bool:
        """Whether this node changed since it was last sent to the host."""
        return self._dirty

    def mark_dirty(self) -> None:
        if self._dirty:
            return
        self._dirty = True
        owner = self.owner
        if owner is not None:
            assert self not in owner._detached_nodes
            owner._dirty_nodes.add(self)

    def reset(self) -> None:
        """
        Restores this node to its unconfigured state and marks it dirty.

        Whether an ancestor merges this node into itself is left untouched.
        """
        self._actions = SemanticsAction(0)
        self._flags = SemanticsFlag(0)
        self._label = ''
        self._text_direction = None
        self._tags.clear()
        self.mark_dirty()

    # === Operations: Children ===

    def add_children(self, children_in_inverse_hit_test_order: Iterable[SemanticsNode]) -> None:
        """
        Proposes the given nodes as children of this node.

        Children must be added in inverse hit test order (i.e. paint order).
        finalize_children() must be called after all children have been added.

        Raises:
        * AssertionError -- if a proposed child is this node, is the root of
                            this node's tree, or was already proposed.
        """
        self._new_children.extend(children_in_inverse_hit_test_order)
        if any(child is self for child in self._new_children):
            raise AssertionError(f'{self!r} cannot be a child of itself')
        root = self.root_ancestor()
        if any(child is root for child in self._new_children):
            raise AssertionError(f'{root!r} is an ancestor of {self!r} and cannot be its child')
        seen_children = set()  # type: Set[SemanticsNode]
        for child in self._new_children:
            if child in seen_children:
                raise AssertionError(f'{child!r} was added as a child of {self!r} more than once')
            seen_children.add(child)

    def finalize_children(self) -> None:
        """
        Replaces the children of this node with the children proposed
        by add_children() since the last call to this method.

        Children that are no longer present are dropped. New children are
        adopted, taking them away from any previous parent. If the children
        were added, removed, or merely reordered then this node is marked dirty.

        Raises:
        * AssertionError -- if a proposed child was already adopted by a
                            different parent since the owner's last update.
        """
        old_children = self._children
        new_children = self._new_children

        for child in old_children:
            child._dead = True
        for child in new_children:
            child._dead = False

        saw_change = False
        for child in old_children:
            if child._dead:
                # A deeper node may have already stolen this child
                if child.parent is self:
                    self.drop_child(child)
                saw_change = True

        for child in new_children:
            if child.parent is not self:
                old_parent = child.parent
                if old_parent is not None:
                    # Bottom-up rebuild: the child may have belonged to an ancestor
                    # last frame. It must not have been claimed during this frame.
                    if child._adopted_this_pass:
                        raise AssertionError(
                            f'{child!r} was adopted by both {old_parent!r} and {self!r} '
                            f'during the same update')
                    old_parent.drop_child(child)
                assert not child.attached
                self.adopt_child(child)
                child._adopted_this_pass = True
                if child.owner is not None:
                    child.owner._adopted_nodes.add(child)
                saw_change = True

        if not saw_change:
            assert len(new_children) == len(old_children)
            # Did the order change?
            for (old_child, new_child) in zip(old_children, new_children):
                if old_child.id != new_child.id:
                    saw_change = True
                    break

        # Reuse the old list as the buffer for the next frame's proposals
        self._children = new_children
        old_children.clear()
        self._new_children = old_children

        if saw_change:
            self.mark_dirty()

    def redepth_children(self) -> None:
        for child in self._children:
            # The list may be stale and contain nodes adopted by another parent
            if child.parent is self:
                self.redepth_child(child)

    # === Operations: Attach & Detach ===

    def attach(self, owner: SemanticsOwner) -> None:
        """
        Registers this node and its children with the owner.

        Raises:
        * ValueError -- if this node is already attached.
        * AssertionError -- if the owner already has a node with this node's id.
        """
        if self.attached:
            raise ValueError(f'{self!r} is already attached to {self.owner!r}')
        assert self._id not in owner._nodes, \
            f'Owner already has a semantics node with id {self._id}'
        super().attach(owner)
        owner._nodes[self._id] = self
        owner._detached_nodes.discard(self)
        if self._adopted_this_pass:
            # Adopted while unattached. Forget the claim at the next update.
            owner._adopted_nodes.add(self)
        if self._dirty:
            # Register with the new owner
            self._dirty = False
            self.mark_dirty()
        if self.parent is not None:
            self._set_inherited_merge(self.parent.should_merge_all_descendants_into_this_node)
        for child in self._children:
            if child.parent is self:
                child.attach(owner)

    def detach(self) -> None:
        """
        Unregisters this node and its children from their owner.

        The node is marked dirty, so that it is sent again in full
        if it is ever attached again.
        """
        owner = self.owner
        assert owner is not None
        assert owner._nodes.get(self._id) is self
        assert self not in owner._detached_nodes
        del owner._nodes[self._id]
        owner._detached_nodes.add(self)
        super().detach()
        for child in self._children:
            # The list may be stale and contain nodes adopted by another parent
            if child.parent is self:
                child.detach()
        self.mark_dirty()

    # === Operations: Serialization ===

    def get_semantics_data(self) -> SemanticsData:
        """
        Returns a summary of the semantics of this node.

        If this node merges its descendants into itself then the summary
        includes the flags, actions, tags and labels of all descendants.
        """
        flags = self._flags
        actions = self._actions
        label = self._label
        text_direction = self._text_direction
        tags = set(self._tags)

        if self.should_merge_all_descendants_into_this_node:
            def merge(node: SemanticsNode) -> bool:
                nonlocal flags, actions, label, text_direction
                flags |= node._flags
                actions |= node._actions
                if text_direction is None:
                    text_direction = node._text_direction
                tags.update(node._tags)
                if node._label != '':
                    nested_label = node._label
                    if node._text_direction is not None and node._text_direction != text_direction:
                        if node._text_direction == TextDirection.RTL:
                            nested_label = f'{Unicode.RLE}{nested_label}{Unicode.PDF}'
                        else:
                            nested_label = f'{Unicode.LRE}{nested_label}{Unicode.PDF}'
                    if label == '':
                        label = nested_label
                    else:
                        label = f'{label}\n{nested_label}'
                return True
            self._visit_descendants(merge)

        return SemanticsData(
            flags=flags,
            actions=actions,
            label=label,
            text_direction=text_direction,
            rect=self._rect,
            tags=frozenset(tags),
            transform=self._transform,
        )

    def _add_to_update(self, builder: SemanticsUpdateBuilder) -> None:
        assert self._dirty
        data = self.get_semantics_data()
        if not self.has_children or self.should_merge_all_descendants_into_this_node:
            # Merged descendants must not also be reported on their own
            children = ()  # type: tuple[int, ...]
        else:
            children = tuple(child.id for child in self._children)
        builder.update_node(
            id=self._id,
            flags=data.flags,
            actions=data.actions,
            rect=data.rect,
            label=data.label,
            text_direction=data.text_direction,
            transform=(
                data.transform.storage
                if data.transform is not None
                else IDENTITY_TRANSFORM
            ),
            children=children,
        )
        self._dirty = False

    def send_event(self, event: SemanticsEvent) -> None:
        """
        Sends an event about this node to the host.

        Does nothing if this node is not attached.
        """
        owner = self.owner
        if owner is None:
            return
        owner.send_event({
            'nodeId': self._id,
            'type': event.type,
            'data': event.to_map(),
        })

    # === Diagnostics ===

    def to_string_short(self) -> str:
        return f'SemanticsNode#{self._id}'

    def __repr__(self) -> str:
        return self.to_string_short()

    def debug_fill_properties(self, properties: DiagnosticPropertiesBuilder) -> None:
        super().debug_fill_properties(properties)
        hide_owner = True
        if self._dirty:
            in_dirty_nodes = self.owner is not None and self in self.owner._dirty_nodes
            properties.add(FlagProperty(
                'in_dirty_nodes', value=in_dirty_nodes, if_true='dirty', if_false='STALE'))
            hide_owner = in_dirty_nodes
        properties.add(DiagnosticsProperty('owner', self.owner, hidden=hide_owner))
        properties.add(FlagProperty(
            'is_merged_into_parent', value=self.is_merged_into_parent, if_true='merged up'))
        properties.add(FlagProperty(
            'merge_all_descendants_into_this_node',
            value=self._merge_all_descendants_into_this_node,
            if_true='merge boundary'))
        properties.add(DiagnosticsProperty(
            'rect', self._rect, description=self._describe_rect(), show_name=False))
        properties.add(FlagProperty(
            'was_affected_by_clip', value=self.was_affected_by_clip, if_true='clipped'))
        action_names = sorted(a.debug_name() for a in SemanticsAction.values() if a in self._actions)
        properties.add(IterableProperty('actions', action_names, hidden=len(action_names) == 0))
        tag_names = sorted(repr(t) for t in self._tags)
        properties.add(IterableProperty('tags', tag_names, hidden=len(tag_names) == 0))
        if self.has_checked_state:
            properties.add(FlagProperty(
                'is_checked', value=self.is_checked, if_true='checked', if_false='unchecked'))
        properties.add(FlagProperty('is_selected', value=self.is_selected, if_true='selected'))
        properties.add(StringProperty('label', self._label, default_value=''))
        properties.add(EnumProperty('text_direction', self._text_direction, default_value=None))

    def _describe_rect(self) -> str:
        transform = self._transform
        if transform is None:
            return repr(self._rect)
        offset = transform.get_as_translation()
        if offset is not None:
            return repr(self._rect.shift(offset))
        scale = transform.get_as_scale()
        if scale is not None:
            return f'{self._rect!r} scaled by {scale:.1f}x'
        matrix = '; '.join(
            # Rounding first avoids printing -0.0
            ','.join(f'{round(v, 1) + 0.0:.1f}' for v in transform.row(r))
            for r in range(4)
        )
        return f'{self._rect!r} with transform [{matrix}]'

    def debug_describe_children(self,
            child_order: DebugSemanticsDumpOrder=DebugSemanticsDumpOrder.TRAVERSAL,
            ) -> list[DiagnosticsNode]:
        return [
            child.to_diagnostics_node(child_order=child_order)
            for child in self.get_children_in_order(child_order)
        ]

    def to_diagnostics_node(self,
            *, name: str | None=None,
            style: DiagnosticsTreeStyle | None=DiagnosticsTreeStyle.SPARSE,
            child_order: DebugSemanticsDumpOrder=DebugSemanticsDumpOrder.TRAVERSAL,
            ) -> DiagnosticsNode:
        return _SemanticsDiagnosticableNode(
            name=name,
            value=self,
            style=style,
            child_order=child_order,
        )

    def to_string_deep(self,
            prefix_line_one: str='',
            prefix_other_lines: str | None=None,
            *, child_order: DebugSemanticsDumpOrder=DebugSemanticsDumpOrder.TRAVERSAL,
            ) -> str:
        """
        Renders this node and its descendants as multi-line text,
        listing the children of each node in the given order.
        """
        return self.to_diagnostics_node(child_order=child_order).to_string_deep(
            prefix_line_one, prefix_other_lines)

    def get_children_in_order(self, child_order: DebugSemanticsDumpOrder) -> list[SemanticsNode]:
        if child_order == DebugSemanticsDumpOrder.INVERSE_HIT_TEST:
            return list(self._children)
        elif child_order == DebugSemanticsDumpOrder.TRAVERSAL:
            return sorted(self._children, key=_geometry_sort_key)
        else:
            raise ValueError(f'Unknown child order: {child_order!r}')


def _geometry_sort_key(node: SemanticsNode) -> tuple[float, float]:
    rect = (
        node.rect
        if node.transform is None
        else node.transform.transform_rect(node.rect)
    )
    return (rect.top, rect.left)


class _SemanticsDiagnosticableNode(DiagnosticableTreeNode):
    _value: SemanticsNode

    def __init__(self,
            *, name: str | None,
            value: SemanticsNode,
            style: DiagnosticsTreeStyle | None,
            child_order: DebugSemanticsDumpOrder,
            ) -> None:
        super().__init__(name=name, value=value, style=style)
        self.child_order = child_order

    def get_children(self) -> list[DiagnosticsNode]:
        return self._value.debug_describe_children(child_order=self.child_order)
