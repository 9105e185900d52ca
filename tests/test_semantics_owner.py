from a11ytree.geometry import Matrix4, Rect
from a11ytree.semantics import (
    AnnounceSemanticsEvent, Axis, debug_dump_semantics_tree,
    IDENTITY_TRANSFORM, RecordingEventSink, RecordingUpdateSink,
    ScrollCompletedSemanticsEvent, SemanticsAction, SemanticsFlag,
    SemanticsNode, SemanticsOwner, SemanticsTag, TextDirection, Unicode,
)
from a11ytree.util.bulkheads import capture_crashes_to_stderr
from a11ytree.util.listenable import ListenableMixin
from contextlib import redirect_stderr
import gc
from io import StringIO
from unittest.mock import patch


# ------------------------------------------------------------------------------
# Test: send_update

class TestSendUpdate:
    """Tests the batch of changed nodes that the owner sends to the host."""

    def test_given_no_dirty_nodes_when_update_sent_then_nothing_sent(self) -> None:
        sink = RecordingUpdateSink()
        owner = SemanticsOwner(update_sink=sink)
        SemanticsNode.root(owner=owner)

        assert owner.send_update() is None
        assert [] == sink.updates

    def test_given_dirty_nodes_when_update_sent_then_one_batch_sent_in_increasing_depth_order(self) -> None:
        sink = RecordingUpdateSink()
        owner = SemanticsOwner(update_sink=sink)
        root = SemanticsNode.root(owner=owner)
        root.rect = Rect(0, 0, 100, 100)
        child = _node(Rect(0, 0, 50, 50))
        grandchild = _node(Rect(0, 0, 10, 10))
        child.add_children([grandchild])
        child.finalize_children()
        root.add_children([child])
        root.finalize_children()

        update = owner.send_update()
        assert update is not None
        assert [update] == sink.updates
        assert [root.id, child.id, grandchild.id] == [n.id for n in update.nodes]
        assert (child.id,) == update.nodes[0].children
        assert (grandchild.id,) == update.nodes[1].children
        assert () == update.nodes[2].children
        assert frozenset() == owner.dirty_nodes

    def test_only_changed_nodes_are_sent_in_later_updates(self) -> None:
        (owner, root, [a, b]) = _flushed_tree(2)

        b.label = 'B'
        b.text_direction = TextDirection.LTR
        update = owner.send_update()
        assert update is not None
        assert [b.id] == [n.id for n in update.nodes]

        assert owner.send_update() is None

    def test_node_update_carries_serialized_fields(self) -> None:
        owner = SemanticsOwner(update_sink=RecordingUpdateSink())
        root = SemanticsNode.root(owner=owner)
        root.rect = Rect(1, 2, 3, 4)
        root.label = 'Hello'
        root.text_direction = TextDirection.RTL
        root.add_action(SemanticsAction.TAP)
        root.add_action(SemanticsAction.SHOW_ON_SCREEN)
        root.is_selected = True
        root.add_tag(SemanticsTag('not sent'))

        update = owner.send_update()
        assert update is not None
        assert 1 == len(update)
        assert {
            'id': 0,
            'flags': int(SemanticsFlag.IS_SELECTED),
            'actions': int(SemanticsAction.TAP | SemanticsAction.SHOW_ON_SCREEN),
            'rect': [1.0, 2.0, 3.0, 4.0],
            'label': 'Hello',
            'textDirection': 'rtl',
            'transform': list(IDENTITY_TRANSFORM),
            'children': [],
        } == update.nodes[0].to_json()

    def test_node_update_carries_transform_when_node_has_one(self) -> None:
        owner = SemanticsOwner(update_sink=RecordingUpdateSink())
        root = SemanticsNode.root(owner=owner)
        root.transform = Matrix4.translation_values(10, 20)

        update = owner.send_update()
        assert update is not None
        assert Matrix4.translation_values(10, 20).storage == update.nodes[0].transform

    def test_given_node_detached_then_reattached_without_changes_then_node_sent_again(self) -> None:
        (owner, root, [a, b]) = _flushed_tree(2)

        root.add_children([a])
        root.finalize_children()
        update = owner.send_update()
        assert update is not None
        assert b.id not in [n.id for n in update.nodes]

        root.add_children([a, b])
        root.finalize_children()
        update = owner.send_update()
        assert update is not None
        assert [root.id, b.id] == [n.id for n in update.nodes]

    def test_given_node_detached_and_reattached_in_same_frame_then_node_sent(self) -> None:
        (owner, root, [a, b]) = _flushed_tree(2)
        holder = _node(Rect(0, 0, 100, 100))

        # b moves under a new node
        holder.add_children([b])
        holder.finalize_children()
        assert not b.attached
        root.add_children([a, holder])
        root.finalize_children()
        assert b.attached
        assert b not in owner.detached_nodes

        update = owner.send_update()
        assert update is not None
        assert set([root.id, holder.id, b.id]) == set(n.id for n in update.nodes)

    def test_verbose_updates_are_reported_to_stderr(self) -> None:
        owner = SemanticsOwner()
        root = SemanticsNode.root(owner=owner)
        root.rect = Rect(0, 0, 1, 1)

        with patch('a11ytree.semantics.owner._VERBOSE_UPDATES', True), \
                redirect_stderr(StringIO()) as captured_stderr:
            owner.send_update()
        assert '*** Sending semantics update with 1 node(s): [0]' in captured_stderr.getvalue()


# ------------------------------------------------------------------------------
# Test: Merging

class TestMerging:
    """
    Tests nodes that merge all of their descendants into themselves,
    so that the host sees the whole subtree as one element.
    """

    def test_merging_node_reports_combined_semantics_of_descendants(self) -> None:
        (owner, p, x, y) = _flushed_merge_candidate()

        p.merge_all_descendants_into_this_node = True
        update = owner.send_update()
        assert update is not None
        p_update = _update_for(update, p)
        assert int(SemanticsAction.TAP | SemanticsAction.LONG_PRESS) == p_update.actions
        assert int(SemanticsFlag.IS_CHECKED) == p_update.flags
        assert f'X\n{Unicode.RLE}Y{Unicode.PDF}' == p_update.label
        assert TextDirection.LTR == p_update.text_direction
        assert () == p_update.children

    def test_merging_node_keeps_its_own_rect(self) -> None:
        (owner, p, x, y) = _flushed_merge_candidate()

        p.merge_all_descendants_into_this_node = True
        data = p.get_semantics_data()
        assert p.rect == data.rect

    def test_when_node_starts_merging_then_descendants_are_marked_as_merged(self) -> None:
        (owner, p, x, y) = _flushed_merge_candidate()

        p.merge_all_descendants_into_this_node = True
        owner.send_update()
        assert x.inherited_merge_all_descendants_into_this_node
        assert y.inherited_merge_all_descendants_into_this_node
        assert x.is_merged_into_parent
        assert not p.is_merged_into_parent

    def test_merge_state_reaches_every_level_of_descendants(self) -> None:
        (owner, p, x, y) = _flushed_merge_candidate()
        z = _node(Rect(0, 0, 1, 1))
        z.label = 'Z'
        z.text_direction = TextDirection.LTR
        x.add_children([z])
        x.finalize_children()
        p.add_children([x, y])
        p.finalize_children()
        owner.send_update()

        p.merge_all_descendants_into_this_node = True
        update = owner.send_update()
        assert update is not None
        assert z.inherited_merge_all_descendants_into_this_node
        # Descendants are visited in pre-order
        assert f'X\nZ\n{Unicode.RLE}Y{Unicode.PDF}' == _update_for(update, p).label
        assert () == _update_for(update, x).children

    def test_when_merged_descendant_changes_then_merging_ancestor_sent_again(self) -> None:
        (owner, p, x, y) = _flushed_merge_candidate()
        p.merge_all_descendants_into_this_node = True
        owner.send_update()
        assert not p.dirty

        x.label = 'X2'
        update = owner.send_update()
        assert update is not None
        assert [p.id, x.id] == [n.id for n in update.nodes]
        assert f'X2\n{Unicode.RLE}Y{Unicode.PDF}' == update.nodes[0].label

    def test_when_node_stops_merging_then_descendants_are_no_longer_merged(self) -> None:
        (owner, p, x, y) = _flushed_merge_candidate()
        p.merge_all_descendants_into_this_node = True
        owner.send_update()

        p.merge_all_descendants_into_this_node = False
        update = owner.send_update()
        assert update is not None
        assert not x.inherited_merge_all_descendants_into_this_node
        assert not y.inherited_merge_all_descendants_into_this_node
        p_update = _update_for(update, p)
        assert (x.id, y.id) == p_update.children
        assert '' == p_update.label

    def test_child_adopted_by_merging_node_is_merged_immediately(self) -> None:
        (owner, p, x, y) = _flushed_merge_candidate()
        p.merge_all_descendants_into_this_node = True
        owner.send_update()

        w = _node(Rect(0, 0, 1, 1))
        p.add_children([x, y, w])
        p.finalize_children()
        assert w.inherited_merge_all_descendants_into_this_node

    def test_merged_descendant_with_same_direction_is_not_wrapped(self) -> None:
        owner = SemanticsOwner()
        root = SemanticsNode.root(owner=owner)
        root.label = 'Root'
        root.text_direction = TextDirection.RTL
        root.merge_all_descendants_into_this_node = True
        child = _node(Rect(0, 0, 1, 1))
        child.label = 'Child'
        child.text_direction = TextDirection.RTL
        root.add_children([child])
        root.finalize_children()

        assert 'Root\nChild' == root.get_semantics_data().label


# ------------------------------------------------------------------------------
# Test: Listeners

def test_listeners_are_told_after_each_update_is_sent() -> None:
    class Listener:
        def __init__(self) -> None:
            self.update_counts = []  # type: list[int]

        @capture_crashes_to_stderr
        def semantics_did_update(self, owner: SemanticsOwner) -> None:
            self.update_counts.append(len(sink.updates))

    sink = RecordingUpdateSink()
    owner = SemanticsOwner(update_sink=sink)
    listener = Listener()
    owner.listeners.append(listener)
    root = SemanticsNode.root(owner=owner)

    root.rect = Rect(0, 0, 1, 1)
    owner.send_update()
    owner.send_update()  # nothing dirty
    root.rect = Rect(0, 0, 2, 2)
    owner.send_update()
    assert [1, 2] == listener.update_counts


def test_listeners_without_update_method_are_skipped() -> None:
    owner = SemanticsOwner()
    owner.listeners.append(object())
    root = SemanticsNode.root(owner=owner)
    root.rect = Rect(0, 0, 1, 1)
    assert owner.send_update() is not None


def test_given_leak_warnings_enabled_when_owner_with_listeners_is_finalized_then_warns() -> None:
    with patch.object(ListenableMixin, '_WARN_IF_LEAKING_LISTENERS', True), \
            redirect_stderr(StringIO()) as captured_stderr:
        owner = SemanticsOwner()
        owner.listeners.append(object())
        del owner
        gc.collect()
    assert 'still had listeners when it was finalized' in captured_stderr.getvalue()


# ------------------------------------------------------------------------------
# Test: Events

def test_attached_node_sends_event_tagged_with_its_id() -> None:
    events = RecordingEventSink()
    owner = SemanticsOwner(event_sink=events)
    root = SemanticsNode.root(owner=owner)

    root.send_event(AnnounceSemanticsEvent('Saved', TextDirection.LTR))
    root.send_event(ScrollCompletedSemanticsEvent(
        axis=Axis.VERTICAL, pixels=50.0, min_scroll_extent=0.0, max_scroll_extent=100.0))
    assert [
        {
            'nodeId': 0,
            'type': 'announce',
            'data': {'message': 'Saved', 'textDirection': 'ltr'},
        },
        {
            'nodeId': 0,
            'type': 'scroll',
            'data': {
                'axis': 1,
                'pixels': 50.0,
                'minScrollExtent': 0.0,
                'maxScrollExtent': 100.0,
            },
        },
    ] == events.messages


def test_detached_node_sends_no_events() -> None:
    events = RecordingEventSink()
    owner = SemanticsOwner(event_sink=events)
    SemanticsNode.root(owner=owner)
    node = SemanticsNode()

    node.send_event(AnnounceSemanticsEvent('Saved', TextDirection.LTR))
    assert [] == events.messages


def test_event_repr_lists_payload() -> None:
    event = AnnounceSemanticsEvent('Saved', TextDirection.RTL)
    assert "AnnounceSemanticsEvent(message: 'Saved', textDirection: 'rtl')" == repr(event)


# ------------------------------------------------------------------------------
# Test: Dispose & Dump

def test_dispose_forgets_every_node_and_listener() -> None:
    (owner, root, [a, b]) = _flushed_tree(2)
    owner.listeners.append(object())
    a.label = 'changed'

    owner.dispose()
    assert owner.root_semantics_node is None
    assert 0 == owner.node_count
    assert frozenset() == owner.dirty_nodes
    assert [] == owner.listeners


def test_dump_of_empty_tree_says_semantics_not_collected() -> None:
    assert 'Semantics not collected.' == debug_dump_semantics_tree(SemanticsOwner())
    assert 'Semantics not collected.' == debug_dump_semantics_tree(None)


# ------------------------------------------------------------------------------
# Utility

def _node(rect: Rect) -> SemanticsNode:
    node = SemanticsNode()
    node.rect = rect
    return node


def _flushed_tree(count: int) -> tuple[SemanticsOwner, SemanticsNode, list[SemanticsNode]]:
    owner = SemanticsOwner(update_sink=RecordingUpdateSink())
    root = SemanticsNode.root(owner=owner)
    root.rect = Rect(0, 0, 100, 100)
    children = [_node(Rect(0, i * 10, 10, i * 10 + 10)) for i in range(count)]
    root.add_children(children)
    root.finalize_children()
    owner.send_update()
    return (owner, root, children)


def _flushed_merge_candidate() -> tuple[SemanticsOwner, SemanticsNode, SemanticsNode, SemanticsNode]:
    """
    Creates the tree root -> [p -> [x, y]], where x and y are labeled
    in opposite directions, and sends the first update.
    """
    owner = SemanticsOwner(update_sink=RecordingUpdateSink())
    root = SemanticsNode.root(owner=owner)
    root.rect = Rect(0, 0, 100, 100)

    x = _node(Rect(0, 0, 40, 20))
    x.label = 'X'
    x.text_direction = TextDirection.LTR
    x.add_action(SemanticsAction.TAP)
    x.is_checked = True

    y = _node(Rect(0, 20, 40, 40))
    y.label = 'Y'
    y.text_direction = TextDirection.RTL
    y.add_action(SemanticsAction.LONG_PRESS)

    p = _node(Rect(0, 0, 50, 50))
    p.add_children([x, y])
    p.finalize_children()
    root.add_children([p])
    root.finalize_children()
    owner.send_update()
    return (owner, p, x, y)


def _update_for(update, node: SemanticsNode):
    (node_update,) = [n for n in update.nodes if n.id == node.id]
    return node_update
