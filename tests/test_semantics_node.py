from a11ytree.geometry import Matrix4, Rect
from a11ytree.semantics import (
    RecordingUpdateSink, ROOT_ID, SemanticsAction, SemanticsData,
    SemanticsFlag, SemanticsNode, SemanticsOwner, SemanticsTag, TextDirection,
)
import pytest


# ------------------------------------------------------------------------------
# Test: Identity

class TestIdentity:
    """Tests how nodes are numbered."""

    def test_root_node_has_reserved_id(self) -> None:
        owner = SemanticsOwner()
        root = SemanticsNode.root(owner=owner)
        assert ROOT_ID == root.id
        assert 0 == root.id
        assert root is owner.root_semantics_node
        assert root is owner.get_node(ROOT_ID)

    def test_roots_of_different_owners_share_reserved_id(self) -> None:
        root1 = SemanticsNode.root(owner=SemanticsOwner())
        root2 = SemanticsNode.root(owner=SemanticsOwner())
        assert root1.id == root2.id == ROOT_ID

    def test_nodes_created_one_after_another_have_consecutive_ids(self) -> None:
        node1 = SemanticsNode()
        node2 = SemanticsNode()
        node3 = SemanticsNode()
        assert node1.id != ROOT_ID
        assert node2.id == node1.id + 1
        assert node3.id == node2.id + 1

    def test_root_node_is_attached_when_created_and_other_nodes_are_not(self) -> None:
        owner = SemanticsOwner()
        root = SemanticsNode.root(owner=owner)
        node = SemanticsNode()
        assert root.attached
        assert owner is root.owner
        assert not node.attached
        assert node.owner is None

    def test_repr_shows_id(self) -> None:
        node = SemanticsNode()
        assert f'SemanticsNode#{node.id}' == repr(node)


# ------------------------------------------------------------------------------
# Test: Dirty Tracking

class TestDirtyTracking:
    """Tests when a node is marked as changed since the last update."""

    def test_new_node_is_not_dirty(self) -> None:
        node = SemanticsNode()
        assert not node.dirty

    def test_setting_field_to_new_value_marks_node_dirty(self) -> None:
        for mutate in [
                lambda n: setattr(n, 'rect', Rect(0, 0, 10, 10)),
                lambda n: setattr(n, 'label', 'Hello'),
                lambda n: setattr(n, 'text_direction', TextDirection.RTL),
                lambda n: setattr(n, 'actions', SemanticsAction.TAP),
                lambda n: setattr(n, 'flags', SemanticsFlag.IS_SELECTED),
                lambda n: setattr(n, 'is_checked', True),
                lambda n: setattr(n, 'merge_all_descendants_into_this_node', True),
                lambda n: setattr(n, 'transform', Matrix4.translation_values(5, 5)),
                lambda n: n.add_tag(SemanticsTag('tag')),
                lambda n: n.add_action(SemanticsAction.LONG_PRESS),
                ]:
            node = SemanticsNode()
            mutate(node)
            assert node.dirty

    def test_setting_field_to_current_value_does_not_mark_node_dirty(self) -> None:
        for mutate in [
                lambda n: setattr(n, 'rect', Rect(0, 0, 0, 0)),
                lambda n: setattr(n, 'label', ''),
                lambda n: setattr(n, 'text_direction', None),
                lambda n: setattr(n, 'actions', SemanticsAction(0)),
                lambda n: setattr(n, 'flags', SemanticsFlag(0)),
                lambda n: setattr(n, 'is_selected', False),
                lambda n: setattr(n, 'merge_all_descendants_into_this_node', False),
                lambda n: setattr(n, 'transform', None),
                lambda n: setattr(n, 'tags', []),
                ]:
            node = SemanticsNode()
            mutate(node)
            assert not node.dirty

    def test_given_attached_node_when_changed_repeatedly_then_registered_in_dirty_set_once(self) -> None:
        (owner, root) = _flushed_owner()
        assert root not in owner.dirty_nodes

        root.label = 'A'
        root.label = 'B'
        root.label = 'B'
        root.rect = Rect(0, 0, 1, 1)
        assert root.dirty
        assert {root} == owner.dirty_nodes

    def test_given_detached_node_when_changed_then_not_registered_with_any_owner(self) -> None:
        owner = SemanticsOwner()
        SemanticsNode.root(owner=owner)
        node = SemanticsNode()
        node.label = 'A'
        assert node.dirty
        assert node not in owner.dirty_nodes

    def test_node_is_clean_after_update_and_dirty_after_next_change(self) -> None:
        (owner, root) = _flushed_owner()
        assert not root.dirty

        root.add_action(SemanticsAction.TAP)
        assert root.dirty
        owner.send_update()
        assert not root.dirty

        root.add_action(SemanticsAction.TAP)
        assert not root.dirty

    def test_adding_existing_tag_does_not_mark_node_dirty(self) -> None:
        (owner, root) = _flushed_owner()
        tag = SemanticsTag('header')
        root.add_tag(tag)
        owner.send_update()

        root.add_tag(tag)
        assert not root.dirty
        assert root.has_tag(tag)
        assert not root.has_tag(SemanticsTag('header'))


# ------------------------------------------------------------------------------
# Test: Fields

class TestFields:
    def test_identity_transform_is_stored_as_none(self) -> None:
        node = SemanticsNode()
        node.transform = Matrix4.identity()
        assert node.transform is None
        assert not node.dirty

        node.transform = Matrix4.translation_values(10, 20)
        assert Matrix4.translation_values(10, 20) == node.transform
        assert node.dirty

        node.transform = Matrix4.identity()
        assert node.transform is None

    def test_scrolling_and_adjustment_actions_are_added_in_pairs(self) -> None:
        node = SemanticsNode()
        node.add_horizontal_scrolling_actions()
        node.add_vertical_scrolling_actions()
        node.add_adjustment_actions()
        assert (
            SemanticsAction.SCROLL_LEFT | SemanticsAction.SCROLL_RIGHT |
            SemanticsAction.SCROLL_UP | SemanticsAction.SCROLL_DOWN |
            SemanticsAction.INCREASE | SemanticsAction.DECREASE
        ) == node.actions

    def test_checked_state_flags_are_independent(self) -> None:
        node = SemanticsNode()
        node.has_checked_state = True
        node.is_checked = True
        assert SemanticsFlag.HAS_CHECKED_STATE | SemanticsFlag.IS_CHECKED == node.flags

        node.is_checked = False
        assert node.has_checked_state
        assert not node.is_checked

    def test_node_can_only_perform_actions_it_has_with_a_handler(self) -> None:
        class Handler:
            def perform_action(self, action: SemanticsAction) -> None:
                pass

        node_without_handler = SemanticsNode()
        node_without_handler.add_action(SemanticsAction.TAP)
        assert not node_without_handler.can_perform_action(SemanticsAction.TAP)

        node = SemanticsNode(handler=Handler())
        node.add_action(SemanticsAction.TAP)
        assert node.can_perform_action(SemanticsAction.TAP)
        assert not node.can_perform_action(SemanticsAction.LONG_PRESS)


# ------------------------------------------------------------------------------
# Test: Reset

def test_reset_clears_configuration_and_marks_node_dirty() -> None:
    (owner, root) = _flushed_owner()
    root.label = 'Hello'
    root.text_direction = TextDirection.LTR
    root.add_action(SemanticsAction.TAP)
    root.is_selected = True
    root.add_tag(SemanticsTag('tag'))
    root.rect = Rect(0, 0, 50, 50)
    owner.send_update()
    assert not root.dirty

    root.reset()
    assert root.dirty
    assert '' == root.label
    assert root.text_direction is None
    assert SemanticsAction(0) == root.actions
    assert SemanticsFlag(0) == root.flags
    assert frozenset() == root.tags
    # Geometry is not configuration
    assert Rect(0, 0, 50, 50) == root.rect


def test_reset_preserves_whether_node_is_merged_into_ancestor() -> None:
    (owner, root) = _flushed_owner()
    child = SemanticsNode()
    child.rect = Rect(0, 0, 10, 10)
    root.merge_all_descendants_into_this_node = True
    root.add_children([child])
    root.finalize_children()
    owner.send_update()
    assert child.inherited_merge_all_descendants_into_this_node

    child.reset()
    assert child.inherited_merge_all_descendants_into_this_node
    assert child.should_merge_all_descendants_into_this_node


# ------------------------------------------------------------------------------
# Test: Attach & Detach

def test_attaching_node_that_is_already_attached_is_an_error() -> None:
    owner = SemanticsOwner()
    root = SemanticsNode.root(owner=owner)
    with pytest.raises(ValueError):
        root.attach(owner)


def test_attaching_node_whose_id_is_already_registered_is_an_error() -> None:
    owner = SemanticsOwner()
    SemanticsNode.root(owner=owner)
    with pytest.raises(AssertionError):
        SemanticsNode.root(owner=owner)


def test_attaching_subtree_registers_every_node_in_it() -> None:
    owner = SemanticsOwner()
    grandchild = SemanticsNode()
    child = SemanticsNode()
    child.add_children([grandchild])
    child.finalize_children()
    assert not grandchild.attached

    root = SemanticsNode.root(owner=owner)
    root.add_children([child])
    root.finalize_children()
    assert child.attached
    assert grandchild.attached
    assert child is owner.get_node(child.id)
    assert grandchild is owner.get_node(grandchild.id)
    assert 3 == owner.node_count
    assert 0 == root.depth < child.depth < grandchild.depth


# ------------------------------------------------------------------------------
# Test: SemanticsData

def test_semantics_data_with_label_requires_text_direction() -> None:
    with pytest.raises(AssertionError):
        SemanticsData(
            flags=SemanticsFlag(0),
            actions=SemanticsAction(0),
            label='Hello',
            text_direction=None,
            rect=Rect(0, 0, 1, 1),
            tags=frozenset(),
        )


def test_semantics_data_repr_lists_what_is_set() -> None:
    data = SemanticsData(
        flags=SemanticsFlag.IS_SELECTED,
        actions=SemanticsAction.TAP | SemanticsAction.SHOW_ON_SCREEN,
        label='OK',
        text_direction=TextDirection.LTR,
        rect=Rect(0, 0, 10, 20),
        tags=frozenset(),
    )
    assert (
        'SemanticsData(Rect.from_ltrb(0.0, 0.0, 10.0, 20.0); '
        'SemanticsAction.tap; SemanticsAction.showOnScreen; '
        'SemanticsFlag.isSelected; "OK"; TextDirection.ltr)'
    ) == repr(data)
    assert data.has_action(SemanticsAction.TAP)
    assert not data.has_action(SemanticsAction.LONG_PRESS)
    assert data.has_flag(SemanticsFlag.IS_SELECTED)


# ------------------------------------------------------------------------------
# Utility

def _flushed_owner() -> tuple[SemanticsOwner, SemanticsNode]:
    owner = SemanticsOwner(update_sink=RecordingUpdateSink())
    root = SemanticsNode.root(owner=owner)
    root.rect = Rect(0, 0, 100, 100)
    owner.send_update()
    return (owner, root)
