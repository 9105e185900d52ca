"""
The accessibility semantics tree.

See SemanticsNode and SemanticsOwner.
"""

from a11ytree.semantics.events import (
    AnnounceSemanticsEvent, Axis, ScrollCompletedSemanticsEvent, SemanticsEvent,
)
from a11ytree.semantics.node import (
    ROOT_ID, SemanticsData, SemanticsNode, SemanticsNodeVisitor,
)
from a11ytree.semantics.owner import debug_dump_semantics_tree, SemanticsOwner
from a11ytree.semantics.types import (
    DebugSemanticsDumpOrder, parse_action, parse_flag, SemanticsAction,
    SemanticsActionHandler, SemanticsFlag, SemanticsTag, TextDirection, Unicode,
)
from a11ytree.semantics.update import (
    IDENTITY_TRANSFORM, RecordingEventSink, RecordingUpdateSink,
    SemanticsEventSink, SemanticsNodeUpdate, SemanticsUpdate,
    SemanticsUpdateBuilder, SemanticsUpdateSink,
)

__all__ = [
    'AnnounceSemanticsEvent',
    'Axis',
    'debug_dump_semantics_tree',
    'DebugSemanticsDumpOrder',
    'IDENTITY_TRANSFORM',
    'parse_action',
    'parse_flag',
    'RecordingEventSink',
    'RecordingUpdateSink',
    'ROOT_ID',
    'ScrollCompletedSemanticsEvent',
    'SemanticsAction',
    'SemanticsActionHandler',
    'SemanticsData',
    'SemanticsEvent',
    'SemanticsEventSink',
    'SemanticsFlag',
    'SemanticsNode',
    'SemanticsNodeUpdate',
    'SemanticsNodeVisitor',
    'SemanticsOwner',
    'SemanticsTag',
    'SemanticsUpdate',
    'SemanticsUpdateBuilder',
    'SemanticsUpdateSink',
    'TextDirection',
    'Unicode',
]
