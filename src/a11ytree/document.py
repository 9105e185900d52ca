"""
Reads semantics trees from JSON documents.

A document lists nodes flatly, each with a unique key, and refers to
children by key:

    {
        "root": "app",
        "nodes": [
            {"key": "app", "rect": [0, 0, 800, 600], "children": ["ok"]},
            {"key": "ok", "label": "OK", "text_direction": "ltr",
             "rect": [10, 10, 90, 40], "actions": ["tap"]}
        ]
    }

If "root" is omitted then the first node is the root.
"""

from a11ytree.geometry import Rect
from a11ytree.semantics import (
    parse_action, parse_flag, SemanticsAction, SemanticsFlag, SemanticsNode,
    SemanticsOwner, TextDirection,
)
import json
from typing import Dict, List, Literal, TypedDict, Union
import trycast
from trycast import checkcast


class DocumentError(ValueError):
    """Raised when a document is malformed or describes an invalid tree."""


# ------------------------------------------------------------------------------
# Schema

class _NodeDocumentRequired(TypedDict):
    key: str

class NodeDocument(_NodeDocumentRequired, total=False):
    label: str
    text_direction: Literal['ltr', 'rtl']
    # [left, top, right, bottom]
    rect: List[Union[int, float]]
    actions: List[str]
    flags: List[str]
    merge_all_descendants: bool
    children: List[str]


class _TreeDocumentRequired(TypedDict):
    nodes: List[NodeDocument]

class TreeDocument(_TreeDocumentRequired, total=False):
    root: str


# ------------------------------------------------------------------------------
# Loading

def load_document(text: str) -> TreeDocument:
    """
    Parses a document from JSON text.

    Raises:
    * DocumentError -- if the text is not JSON or does not match the schema.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f'Invalid JSON: {e}') from e
    try:
        document = checkcast(TreeDocument, data)
    except trycast.ValidationError as e:
        raise DocumentError('Document does not match the expected schema') from e
    if len(document['nodes']) == 0:
        raise DocumentError('Document has no nodes')
    return document


def build_tree(document: TreeDocument, owner: SemanticsOwner) -> Dict[str, SemanticsNode]:
    """
    Builds the tree described by the document, attached to the owner.

    Nodes are finalized bottom-up, the same way a producer rebuilds
    a tree during a frame.

    Returns the nodes by key.

    Raises:
    * DocumentError -- if the document describes an invalid tree.
    """
    node_docs = {}  # type: Dict[str, NodeDocument]
    for node_doc in document['nodes']:
        key = node_doc['key']
        if key in node_docs:
            raise DocumentError(f'Duplicate node key: {key!r}')
        node_docs[key] = node_doc

    root_key = document.get('root', document['nodes'][0]['key'])
    if root_key not in node_docs:
        raise DocumentError(f'Unknown root key: {root_key!r}')

    parent_of = {}  # type: Dict[str, str]
    for (key, node_doc) in node_docs.items():
        for child_key in node_doc.get('children', []):
            if child_key not in node_docs:
                raise DocumentError(f'Node {key!r} has unknown child {child_key!r}')
            if child_key == root_key:
                raise DocumentError(f'Node {key!r} lists the root {root_key!r} as a child')
            if child_key in parent_of:
                raise DocumentError(
                    f'Node {child_key!r} is a child of both '
                    f'{parent_of[child_key]!r} and {key!r}')
            parent_of[child_key] = key

    nodes = {}  # type: Dict[str, SemanticsNode]
    for key in node_docs:
        if key == root_key:
            nodes[key] = SemanticsNode.root(owner=owner)
        else:
            nodes[key] = SemanticsNode()

    # Configure and finalize children before their parents
    finalized = set()  # type: set[str]
    def finalize(key: str) -> None:
        node_doc = node_docs[key]
        child_keys = node_doc.get('children', [])
        for child_key in child_keys:
            finalize(child_key)
        _configure_node(nodes[key], node_doc)
        nodes[key].add_children([nodes[k] for k in child_keys])
        nodes[key].finalize_children()
        finalized.add(key)
    finalize(root_key)

    unreachable = [k for k in node_docs if k not in finalized]
    if len(unreachable) != 0:
        raise DocumentError(f'Nodes not reachable from the root: {unreachable!r}')
    return nodes


def _configure_node(node: SemanticsNode, node_doc: NodeDocument) -> None:
    key = node_doc['key']

    label = node_doc.get('label', '')
    text_direction_name = node_doc.get('text_direction')
    if label != '' and text_direction_name is None:
        raise DocumentError(f'Node {key!r} has a label but no text_direction')
    node.label = label
    node.text_direction = (
        TextDirection(text_direction_name)
        if text_direction_name is not None
        else None
    )

    if 'rect' in node_doc:
        rect = node_doc['rect']
        if len(rect) != 4:
            raise DocumentError(f'Node {key!r} has a rect with {len(rect)} values instead of 4')
        node.rect = Rect(*(float(v) for v in rect))

    actions = SemanticsAction(0)
    for name in node_doc.get('actions', []):
        try:
            actions |= parse_action(name)
        except ValueError as e:
            raise DocumentError(f'Node {key!r}: {e}') from e
    node.actions = actions

    flags = SemanticsFlag(0)
    for name in node_doc.get('flags', []):
        try:
            flags |= parse_flag(name)
        except ValueError as e:
            raise DocumentError(f'Node {key!r}: {e}') from e
    node.flags = flags

    node.merge_all_descendants_into_this_node = node_doc.get('merge_all_descendants', False)
