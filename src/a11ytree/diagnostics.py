"""
Renders trees of objects as annotated multi-line text for debugging.

An object that wants to be rendered subclasses Diagnosticable
(or DiagnosticableTree if it has children) and describes itself by adding
properties in debug_fill_properties(). The renderer walks the resulting tree
of DiagnosticsNodes and draws it using one of several line-art styles:

    Root#00001
     │ size: 3
     │
     ├─Child#00002
     │   label: "a"
     │
     └─Child#00003
         label: "b"
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
import textwrap
from typing import Any, Generic, TypeVar

_T = TypeVar('_T')

# Properties longer than this are word-wrapped in styles that
# put each property on its own line
_WRAP_WIDTH = 65
_WRAP_INDENT = '  '


# ------------------------------------------------------------------------------
# Styles

class DiagnosticsTreeStyle(Enum):
    # Sparse line art, with a blank line between each subtree
    SPARSE = 'sparse'
    # Like SPARSE but with dashed lines, for subtrees that are not shown on screen
    OFFSTAGE = 'offstage'
    # Compact line art, with all properties of a node on the same line
    DENSE = 'dense'
    # A box around each child, for showing that a subtree replaced another
    TRANSITION = 'transition'
    # No line art at all. Only indentation.
    WHITESPACE = 'whitespace'
    # Everything on a single line. Children are not shown.
    SINGLE_LINE = 'single-line'


@dataclass(frozen=True)
class TextTreeConfiguration:
    """
    The line art and layout rules used to render a tree in a particular style.
    """
    # Prefix of the first line of a child that is not the last child
    prefix_line_one: str
    # Prefix of the other lines of a child
    prefix_other_lines: str
    # Prefix of the first line of the last child
    prefix_last_child_line_one: str
    # Prefix of the other lines of the root node
    prefix_other_lines_root_node: str
    # Character that connects a parent to the children that follow it
    link_character: str
    # Prefix of a property line when the node has children
    property_prefix_if_children: str
    # Prefix of a property line when the node has no children
    property_prefix_no_children: str
    line_break: str = '\n'
    # Whether each property is put on its own line
    line_break_properties: bool = True
    after_name: str = ':'
    # Written after the description when there are properties or children
    after_description_if_body: str = ''
    before_properties: str = ''
    after_properties: str = ''
    property_separator: str = ''
    body_indent: str = ''
    footer: str = ''
    show_children: bool = True
    add_blank_line_if_no_children: bool = True
    is_name_on_own_line: bool = False
    is_blank_line_between_properties_and_children: bool = True
    child_link_space: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'child_link_space', ' ' * len(self.link_character))


SPARSE_TEXT_CONFIGURATION = TextTreeConfiguration(
    prefix_line_one=              '├─',
    prefix_other_lines=           ' ',
    prefix_last_child_line_one=   '└─',
    link_character=               '│',
    property_prefix_if_children=  '│ ',
    property_prefix_no_children=  '  ',
    prefix_other_lines_root_node= ' ',
)

DASHED_TEXT_CONFIGURATION = TextTreeConfiguration(
    prefix_line_one=              '╎╌',
    prefix_last_child_line_one=   '└╌',
    prefix_other_lines=           ' ',
    link_character=               '╎',
    # Solid, so that the properties do not look disabled
    property_prefix_if_children=  '│ ',
    property_prefix_no_children=  '  ',
    prefix_other_lines_root_node= ' ',
)

DENSE_TEXT_CONFIGURATION = TextTreeConfiguration(
    property_separator=', ',
    before_properties='(',
    after_properties=')',
    line_break_properties=False,
    prefix_line_one=              '├',
    prefix_other_lines=           '',
    prefix_last_child_line_one=   '└',
    link_character=               '│',
    property_prefix_if_children=  '│',
    property_prefix_no_children=  ' ',
    prefix_other_lines_root_node= '',
    add_blank_line_if_no_children=False,
    is_blank_line_between_properties_and_children=False,
)

TRANSITION_TEXT_CONFIGURATION = TextTreeConfiguration(
    prefix_line_one=              '╞═╦══ ',
    prefix_last_child_line_one=   '╘═╦══ ',
    prefix_other_lines=           ' ║ ',
    footer=                       ' ╚═══════════\n',
    link_character=               '│',
    property_prefix_if_children=  '',
    property_prefix_no_children=  '',
    prefix_other_lines_root_node= '',
    after_name=                   ' ═══',
    after_description_if_body=    ':',
    body_indent=                  '  ',
    is_name_on_own_line=True,
    add_blank_line_if_no_children=False,
    is_blank_line_between_properties_and_children=False,
)

WHITESPACE_TEXT_CONFIGURATION = TextTreeConfiguration(
    prefix_line_one='',
    prefix_last_child_line_one='',
    prefix_other_lines=' ',
    prefix_other_lines_root_node='  ',
    body_indent='',
    property_prefix_if_children='',
    property_prefix_no_children='',
    link_character=' ',
    add_blank_line_if_no_children=False,
    after_description_if_body=':',
    is_blank_line_between_properties_and_children=False,
)

SINGLE_LINE_TEXT_CONFIGURATION = TextTreeConfiguration(
    property_separator=', ',
    before_properties='(',
    after_properties=')',
    prefix_line_one='',
    prefix_other_lines='',
    prefix_last_child_line_one='',
    line_break='',
    line_break_properties=False,
    add_blank_line_if_no_children=False,
    show_children=False,
    property_prefix_if_children='',
    property_prefix_no_children='',
    link_character='',
    prefix_other_lines_root_node='',
)

_CONFIGURATION_FOR_STYLE = {
    DiagnosticsTreeStyle.SPARSE: SPARSE_TEXT_CONFIGURATION,
    DiagnosticsTreeStyle.OFFSTAGE: DASHED_TEXT_CONFIGURATION,
    DiagnosticsTreeStyle.DENSE: DENSE_TEXT_CONFIGURATION,
    DiagnosticsTreeStyle.TRANSITION: TRANSITION_TEXT_CONFIGURATION,
    DiagnosticsTreeStyle.WHITESPACE: WHITESPACE_TEXT_CONFIGURATION,
    DiagnosticsTreeStyle.SINGLE_LINE: SINGLE_LINE_TEXT_CONFIGURATION,
}


class _PrefixedStringBuilder:
    """
    Builds a string where the first line starts with `prefix_line_one`
    and every other line starts with `prefix_other_lines`.
    """
    def __init__(self, prefix_line_one: str, prefix_other_lines: str) -> None:
        self.prefix_line_one = prefix_line_one
        self.prefix_other_lines = prefix_other_lines
        self._parts = []  # type: list[str]
        self._at_line_start = True
        self._has_multiple_lines = False

    @property
    def has_multiple_lines(self) -> bool:
        return self._has_multiple_lines

    def _append(self, s: str) -> None:
        if s != '':
            self._parts.append(s)

    def write(self, s: str) -> None:
        if s == '':
            return

        if s == '\n':
            # Avoid trailing whitespace on a line that the caller left empty
            if len(self._parts) == 0:
                self._append(self.prefix_line_one.rstrip())
            elif self._at_line_start:
                self._append(self.prefix_other_lines.rstrip())
                self._has_multiple_lines = True
            self._append('\n')
            self._at_line_start = True
            return

        if len(self._parts) == 0:
            self._append(self.prefix_line_one)
        elif self._at_line_start:
            self._append(self.prefix_other_lines)
            self._has_multiple_lines = True

        line_terminated = s.endswith('\n')
        if line_terminated:
            s = s[:-1]
        (first, *rest) = s.split('\n')
        self._append(first)
        for part in rest:
            self._append('\n')
            self._append(self.prefix_other_lines)
            self._append(part)
        if line_terminated:
            self._append('\n')

        self._at_line_start = line_terminated

    def write_raw(self, text: str) -> None:
        """Writes text without adding any prefixes."""
        if text == '':
            return
        self._append(text)
        self._at_line_start = text.endswith('\n')

    def write_raw_line(self, line: str) -> None:
        """Writes a line without adding any prefixes, ending it if needed."""
        if line == '':
            return
        self._append(line)
        if not line.endswith('\n'):
            self._append('\n')
        self._at_line_start = True

    def __str__(self) -> str:
        return ''.join(self._parts)


# ------------------------------------------------------------------------------
# DiagnosticsNode

class _NoDefaultValue(Enum):
    VALUE = 1

NO_DEFAULT_VALUE = _NoDefaultValue.VALUE


class DiagnosticsNode:
    """
    A node in a tree of diagnostic information, with a name, a description,
    properties and children.
    """
    def __init__(self,
            name: str | None,
            *, style: DiagnosticsTreeStyle | None=None,
            show_name: bool=True,
            show_separator: bool=True,
            ) -> None:
        # The ':' is added automatically when a description is generated
        assert name is None or not name.endswith(':'), \
            'Names of diagnostic nodes must not end with colons.'
        self.name = name
        self._style = style
        self.show_name = show_name
        self.show_separator = show_separator

    @staticmethod
    def message(
            message: str,
            *, style: DiagnosticsTreeStyle=DiagnosticsTreeStyle.SINGLE_LINE,
            ) -> DiagnosticsNode:
        """Creates a node that displays only the given message."""
        return DiagnosticsProperty(
            '',
            None,
            description=message,
            style=style,
            show_name=False,
        )

    # === Properties ===

    @property
    def style(self) -> DiagnosticsTreeStyle | None:
        return self._style

    @property
    def hidden(self) -> bool:
        raise NotImplementedError()

    @property
    def value(self) -> object:
        raise NotImplementedError()

    @property
    def empty_body_description(self) -> str | None:
        """Description shown when the node has no properties or children."""
        return None

    def get_properties(self) -> list[DiagnosticsNode]:
        raise NotImplementedError()

    def get_children(self) -> list[DiagnosticsNode]:
        raise NotImplementedError()

    def to_description(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str | None:
        raise NotImplementedError()

    @property
    def text_tree_configuration(self) -> TextTreeConfiguration:
        assert self.style is not None
        return _CONFIGURATION_FOR_STYLE[self.style]

    @property
    def _separator(self) -> str:
        return ':' if self.show_separator else ''

    # === Rendering ===

    def to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        """
        Renders this node on a single line if its style is SINGLE_LINE,
        or as its name followed by its description otherwise.
        """
        assert self.style is not None
        if self.style == DiagnosticsTreeStyle.SINGLE_LINE:
            return self.to_string_deep('', '', parent_configuration)

        description = self.to_description(parent_configuration=parent_configuration) or ''
        if not self.name or not self.show_name:
            return description
        if '\n' in description:
            return f'{self.name}{self._separator}\n{description}'
        else:
            return f'{self.name}{self._separator} {description}'

    def __str__(self) -> str:
        return self.to_string()

    def _child_text_configuration(self,
            child: DiagnosticsNode,
            text_style: TextTreeConfiguration,
            ) -> TextTreeConfiguration:
        if child.style != DiagnosticsTreeStyle.SINGLE_LINE:
            return child.text_tree_configuration
        else:
            return text_style

    def to_string_deep(self,
            prefix_line_one: str='',
            prefix_other_lines: str | None=None,
            parent_configuration: TextTreeConfiguration | None=None,
            ) -> str:
        """
        Renders this node, its properties and all of its descendants
        as multi-line text.
        """
        if prefix_other_lines is None:
            prefix_other_lines = prefix_line_one

        children = self.get_children()
        config = self.text_tree_configuration
        if prefix_other_lines == '':
            prefix_other_lines += config.prefix_other_lines_root_node

        builder = _PrefixedStringBuilder(prefix_line_one, prefix_other_lines)

        description = self.to_description(parent_configuration=parent_configuration)
        if not description:
            if self.show_name and self.name is not None:
                builder.write(self.name)
        else:
            if self.name and self.show_name:
                builder.write(self.name)
                if self.show_separator:
                    builder.write(config.after_name)
                builder.write(
                    '\n' if config.is_name_on_own_line or '\n' in description else ' ')
            builder.prefix_other_lines += (
                config.property_prefix_no_children
                if len(children) == 0
                else config.property_prefix_if_children
            )
            builder.write(description)

        properties = [p for p in self.get_properties() if not p.hidden]
        if len(properties) != 0 or len(children) != 0 or self.empty_body_description is not None:
            builder.write(config.after_description_if_body)

        if config.line_break_properties:
            builder.write(config.line_break)

        if len(properties) != 0:
            builder.write(config.before_properties)

        builder.prefix_other_lines += config.body_indent

        if (self.empty_body_description is not None and
                len(properties) == 0 and
                len(children) == 0 and
                prefix_line_one != ''):
            builder.write(self.empty_body_description)
            if config.line_break_properties:
                builder.write(config.line_break)

        for (i, property) in enumerate(properties):
            if i > 0:
                builder.write(config.property_separator)

            if property.style != DiagnosticsTreeStyle.SINGLE_LINE:
                property_style = property.text_tree_configuration
                builder.write_raw(property.to_string_deep(
                    f'{builder.prefix_other_lines}{property_style.prefix_line_one}',
                    f'{builder.prefix_other_lines}{property_style.link_character}{property_style.prefix_other_lines}',
                    config,
                ))
                continue

            message = property.to_string(parent_configuration=config)
            if not config.line_break_properties or len(message) < _WRAP_WIDTH:
                builder.write(message)
            else:
                # Wrap each line separately so that existing line breaks survive
                for (j, line) in enumerate(message.split('\n')):
                    if j > 0:
                        builder.write(config.line_break)
                    builder.write('\n'.join(_word_wrap(line)))
            if config.line_break_properties:
                builder.write(config.line_break)

        if len(properties) != 0:
            builder.write(config.after_properties)

        if not config.line_break_properties:
            builder.write(config.line_break)

        prefix_children = f'{prefix_other_lines}{config.body_indent}'

        if (len(children) == 0 and
                config.add_blank_line_if_no_children and
                builder.has_multiple_lines):
            prefix = prefix_children.rstrip()
            if prefix != '':
                builder.write_raw(f'{prefix}{config.line_break}')

        if len(children) != 0 and config.show_children:
            if (config.is_blank_line_between_properties_and_children and
                    len(properties) != 0 and
                    children[0].text_tree_configuration.is_blank_line_between_properties_and_children):
                builder.write(config.line_break)

            for (i, child) in enumerate(children):
                child_config = self._child_text_configuration(child, config)
                if i == len(children) - 1:
                    builder.write_raw_line(child.to_string_deep(
                        f'{prefix_children}{child_config.prefix_last_child_line_one}',
                        f'{prefix_children}{child_config.child_link_space}{child_config.prefix_other_lines}',
                        config,
                    ))
                    if child_config.footer != '':
                        builder.write_raw(
                            f'{prefix_children}{child_config.child_link_space}{child_config.footer}')
                else:
                    next_child_config = self._child_text_configuration(children[i + 1], config)
                    builder.write_raw_line(child.to_string_deep(
                        f'{prefix_children}{child_config.prefix_line_one}',
                        f'{prefix_children}{next_child_config.link_character}{child_config.prefix_other_lines}',
                    ))
                    if child_config.footer != '':
                        builder.write_raw(
                            f'{prefix_children}{next_child_config.link_character}{child_config.footer}')
        return str(builder)


def _word_wrap(line: str) -> list[str]:
    lines = textwrap.wrap(
        line,
        width=_WRAP_WIDTH,
        subsequent_indent=_WRAP_INDENT,
        break_long_words=False,
        break_on_hyphens=False)
    return lines or [line]


# ------------------------------------------------------------------------------
# Properties

class DiagnosticsProperty(DiagnosticsNode, Generic[_T]):
    """
    A named value, displayed as "name: description".

    The value may be computed lazily (see `lazy`). If computing it raises,
    the property is described as "EXCEPTION (ExceptionType)".
    """
    def __init__(self,
            name: str | None,
            value: _T | None,
            *, description: str | None=None,
            hidden: bool=False,
            if_null: str | None=None,
            if_empty: str | None=None,
            show_name: bool=True,
            show_separator: bool=True,
            default_value: object=NO_DEFAULT_VALUE,
            tooltip: str | None=None,
            style: DiagnosticsTreeStyle=DiagnosticsTreeStyle.SINGLE_LINE,
            ) -> None:
        super().__init__(
            name,
            style=style,
            show_name=show_name,
            show_separator=show_separator)
        self._description = description
        self._value = value
        self._value_computed = True
        self._compute_value = None  # type: Callable[[], _T | None] | None
        self._exception = None  # type: Exception | None
        self._hidden = hidden
        self.if_null = if_null
        self.if_empty = if_empty
        self.default_value = default_value
        self.tooltip = tooltip

    @classmethod
    def lazy(cls,
            name: str | None,
            compute_value: Callable[[], Any],
            **kwargs: Any,
            ) -> DiagnosticsProperty:
        """
        Creates a property whose value is computed the first time it is needed.
        """
        property = cls(name, None, **kwargs)
        property._value_computed = False
        property._compute_value = compute_value
        return property

    # === Properties ===

    @property
    def value(self) -> _T | None:
        self._maybe_cache_value()
        return self._value

    @property
    def exception(self) -> Exception | None:
        """The exception raised while computing a lazy value, if any."""
        self._maybe_cache_value()
        return self._exception

    def _maybe_cache_value(self) -> None:
        if self._value_computed:
            return
        self._value_computed = True
        assert self._compute_value is not None
        try:
            self._value = self._compute_value()
        except Exception as e:
            self._exception = e
            self._value = None

    @property
    def hidden(self) -> bool:
        if self._hidden:
            return True
        if self.default_value is not NO_DEFAULT_VALUE:
            if self.exception is not None:
                return False
            return self.value == self.default_value
        return False

    def get_properties(self) -> list[DiagnosticsNode]:
        return []

    def get_children(self) -> list[DiagnosticsNode]:
        return []

    # === Description ===

    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        v = self.value
        # A tree value would be too large to describe fully
        if isinstance(v, DiagnosticableTree):
            return v.to_string_short()
        return str(v)

    def to_description(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        if self._description is not None:
            return self._add_tooltip(self._description)

        if self.exception is not None:
            return f'EXCEPTION ({type(self.exception).__name__})'

        if self.if_null is not None and self.value is None:
            return self._add_tooltip(self.if_null)

        result = self.value_to_string(parent_configuration=parent_configuration)
        if result == '' and self.if_empty is not None:
            result = self.if_empty
        return self._add_tooltip(result)

    def _add_tooltip(self, text: str) -> str:
        return text if self.tooltip is None else f'{text} ({self.tooltip})'


class MessageProperty(DiagnosticsProperty[None]):
    """A property that displays a message instead of a value."""
    def __init__(self, name: str, message: str) -> None:
        super().__init__(name, None, description=message)


class StringProperty(DiagnosticsProperty[str]):
    """
    A string value, quoted by default.

    Line breaks are escaped when the parent renders all of its properties
    on a single line.
    """
    def __init__(self,
            name: str,
            value: str | None,
            *, description: str | None=None,
            show_name: bool=True,
            default_value: object=NO_DEFAULT_VALUE,
            hidden: bool=False,
            quoted: bool=True,
            if_empty: str | None=None,
            ) -> None:
        super().__init__(
            name,
            value,
            description=description,
            default_value=default_value,
            show_name=show_name,
            hidden=hidden,
            if_empty=if_empty)
        self.quoted = quoted

    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        text = self._description if self._description is not None else self.value
        if (parent_configuration is not None and
                not parent_configuration.line_break_properties and
                text is not None):
            text = text.replace('\n', '\\n')

        if self.quoted and text is not None:
            # An empty value would not look empty once quoted
            if self.if_empty is not None and text == '':
                return self.if_empty
            return f'"{text}"'
        return str(text)


class _NumProperty(DiagnosticsProperty[_T]):
    def __init__(self,
            name: str,
            value: _T | None,
            *, unit: str | None=None,
            **kwargs: Any,
            ) -> None:
        super().__init__(name, value, **kwargs)
        self.unit = unit

    def number_to_string(self) -> str:
        raise NotImplementedError()

    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        if self.value is None:
            return str(self.value)
        if self.unit is not None:
            return f'{self.number_to_string()}{self.unit}'
        else:
            return self.number_to_string()


class DoubleProperty(_NumProperty[float]):
    """A floating point value, shown with one decimal place."""
    def number_to_string(self) -> str:
        return f'{self.value:.1f}'


class IntProperty(_NumProperty[int]):
    def number_to_string(self) -> str:
        return str(self.value)


class PercentProperty(DoubleProperty):
    """
    A fraction between 0.0 and 1.0, shown as a percentage.
    Values outside that range are clamped.
    """
    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        if self.value is None:
            return str(self.value)
        if self.unit is not None:
            return f'{self.number_to_string()} {self.unit}'
        else:
            return self.number_to_string()

    def number_to_string(self) -> str:
        if self.value is None:
            return str(self.value)
        clamped = min(max(self.value, 0.0), 1.0)
        return f'{clamped * 100.0:.1f}%'


class FlagProperty(DiagnosticsProperty[bool]):
    """
    A Boolean value shown as `if_true` or `if_false`.

    The property is hidden when the message for its current value is None.
    """
    def __init__(self,
            name: str,
            *, value: bool | None,
            if_true: str | None=None,
            if_false: str | None=None,
            show_name: bool=False,
            hidden: bool=False,
            default_value: object=None,
            ) -> None:
        assert if_true is not None or if_false is not None
        super().__init__(
            name,
            value,
            show_name=show_name,
            hidden=hidden,
            default_value=default_value)
        self.if_true = if_true
        self.if_false = if_false

    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        if self.value is True:
            return self.if_true or ''
        if self.value is False:
            return self.if_false or ''
        return ''

    @property
    def hidden(self) -> bool:
        if self._hidden or self.value == self.default_value:
            return True
        if self.value is True:
            return self.if_true is None
        if self.value is False:
            return self.if_false is None
        return True


class IterableProperty(DiagnosticsProperty[Iterable[_T]]):
    """A collection of values, joined with commas."""
    def __init__(self,
            name: str,
            value: Iterable[_T] | None,
            *, default_value: object=NO_DEFAULT_VALUE,
            if_null: str | None=None,
            if_empty: str | None='[]',
            style: DiagnosticsTreeStyle=DiagnosticsTreeStyle.SINGLE_LINE,
            hidden: bool=False,
            ) -> None:
        super().__init__(
            name,
            value,
            default_value=default_value,
            if_null=if_null,
            if_empty=if_empty,
            style=style,
            hidden=hidden)

    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        if self.value is None:
            return str(self.value)
        items = [str(v) for v in self.value]
        if parent_configuration is not None and not parent_configuration.line_break_properties:
            # Brackets avoid ambiguity when all properties share one line
            return '[' + ', '.join(items) + ']'
        separator = ', ' if self.style == DiagnosticsTreeStyle.SINGLE_LINE else '\n'
        return separator.join(items)


class EnumProperty(DiagnosticsProperty[_T]):
    """An enum value, shown as its hyphenated member name."""
    def __init__(self,
            name: str,
            value: _T | None,
            *, default_value: object=NO_DEFAULT_VALUE,
            hidden: bool=False,
            ) -> None:
        super().__init__(name, value, default_value=default_value, hidden=hidden)

    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        if self.value is None:
            return str(self.value)
        return _hyphenated_member_name(describe_enum(self.value))


class ObjectFlagProperty(DiagnosticsProperty[_T]):
    """
    Shows whether a value is present, rather than the value itself.
    """
    def __init__(self,
            name: str,
            value: _T | None,
            *, if_present: str | None=None,
            if_null: str | None=None,
            show_name: bool=False,
            hidden: bool=False,
            ) -> None:
        assert if_present is not None or if_null is not None
        super().__init__(name, value, show_name=show_name, hidden=hidden, if_null=if_null)
        self.if_present = if_present

    @classmethod
    def has(cls, name: str, value: _T | None) -> ObjectFlagProperty[_T]:
        """Shows "has NAME" if the value is present and nothing otherwise."""
        return cls(name, value, if_present=f'has {name}')

    def value_to_string(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        if self.value is not None:
            return self.if_present or ''
        return self.if_null or ''

    @property
    def hidden(self) -> bool:
        if super().hidden:
            return True
        if self.value is not None:
            return self.if_present is None
        return self.if_null is None


# ------------------------------------------------------------------------------
# Diagnosticable

class DiagnosticPropertiesBuilder:
    """Collects the properties that an object describes about itself."""
    def __init__(self) -> None:
        self.properties = []  # type: list[DiagnosticsNode]
        self.default_diagnostics_tree_style = DiagnosticsTreeStyle.SPARSE
        self.empty_body_description = None  # type: str | None

    def add(self, property: DiagnosticsNode) -> None:
        self.properties.append(property)


class Diagnosticable:
    """
    An object that can describe itself with diagnostic properties.

    Subclasses override `debug_fill_properties`, calling super.
    """
    def to_string_short(self) -> str:
        return describe_identity(self)

    def __str__(self) -> str:
        return self.to_diagnostics_node(style=DiagnosticsTreeStyle.SINGLE_LINE).to_string()

    def to_diagnostics_node(self,
            *, name: str | None=None,
            style: DiagnosticsTreeStyle | None=None,
            ) -> DiagnosticsNode:
        return DiagnosticableNode(name=name, value=self, style=style)

    def debug_fill_properties(self, properties: DiagnosticPropertiesBuilder) -> None:
        pass


class DiagnosticableTree(Diagnosticable):
    """
    A Diagnosticable that also has children.

    Subclasses override `debug_describe_children`.
    """
    def to_string_shallow(self, joiner: str=', ') -> str:
        """Describes this object and its properties, but not its children."""
        builder = DiagnosticPropertiesBuilder()
        self.debug_fill_properties(builder)
        return joiner.join(
            [str(self)] +
            [str(p) for p in builder.properties if not p.hidden]
        )

    def to_string_deep(self,
            prefix_line_one: str='',
            prefix_other_lines: str | None=None,
            ) -> str:
        return self.to_diagnostics_node().to_string_deep(prefix_line_one, prefix_other_lines)

    def to_diagnostics_node(self,
            *, name: str | None=None,
            style: DiagnosticsTreeStyle | None=None,
            ) -> DiagnosticsNode:
        return DiagnosticableTreeNode(name=name, value=self, style=style)

    def debug_describe_children(self) -> list[DiagnosticsNode]:
        return []


class DiagnosticableNode(DiagnosticsNode):
    """
    Describes a Diagnosticable using the properties it fills in.
    """
    def __init__(self,
            *, name: str | None,
            value: Diagnosticable,
            style: DiagnosticsTreeStyle | None,
            ) -> None:
        super().__init__(name, style=style)
        self._value = value
        self._cached_builder = None  # type: DiagnosticPropertiesBuilder | None

    @property
    def value(self) -> Diagnosticable:
        return self._value

    @property
    def _builder(self) -> DiagnosticPropertiesBuilder:
        if self._cached_builder is None:
            self._cached_builder = DiagnosticPropertiesBuilder()
            self._value.debug_fill_properties(self._cached_builder)
        return self._cached_builder

    @property
    def style(self) -> DiagnosticsTreeStyle:
        return self._style or self._builder.default_diagnostics_tree_style

    @property
    def empty_body_description(self) -> str | None:
        return self._builder.empty_body_description

    @property
    def hidden(self) -> bool:
        return False

    def get_properties(self) -> list[DiagnosticsNode]:
        return self._builder.properties

    def get_children(self) -> list[DiagnosticsNode]:
        return []

    def to_description(self, *, parent_configuration: TextTreeConfiguration | None=None) -> str:
        return self._value.to_string_short()


class DiagnosticableTreeNode(DiagnosticableNode):
    """
    Describes a DiagnosticableTree, including its children.
    """
    _value: DiagnosticableTree

    def get_children(self) -> list[DiagnosticsNode]:
        return self._value.debug_describe_children()


# ------------------------------------------------------------------------------
# Utility

def short_hash(obj: object) -> str:
    """Returns a 5-character hexadecimal hash of the object."""
    return format(hash(obj) & 0xFFFFF, '05x')


def describe_identity(obj: object) -> str:
    """Returns a short description of the object's type and identity."""
    return f'{type(obj).__name__}#{short_hash(obj)}'


def describe_enum(enum_entry: object) -> str:
    """
    Returns the member name of an enum value, without its type name.
    """
    if isinstance(enum_entry, Enum):
        assert enum_entry.name is not None
        return enum_entry.name
    description = str(enum_entry)
    index_of_dot = description.find('.')
    assert index_of_dot != -1 and index_of_dot < len(description) - 1
    return description[index_of_dot + 1:]


def camel_case_to_hyphenated_name(word: str) -> str:
    """
    Converts "camelCase" to "camel-case".
    """
    lower_word = word.lower()
    if word == lower_word:
        return word
    result = []
    for (i, (c, lower)) in enumerate(zip(word, lower_word)):
        if c != lower and i > 0:
            result.append('-')
        result.append(lower)
    return ''.join(result)


def _hyphenated_member_name(name: str) -> str:
    if name.isupper() or '_' in name:
        # UPPER_SNAKE_CASE
        return name.lower().replace('_', '-')
    return camel_case_to_hyphenated_name(name)


# ------------------------------------------------------------------------------
