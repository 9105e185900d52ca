import os
import sys
from typing import TextIO

# ------------------------------------------------------------------------------
# Terminal Colors

_USE_COLORS = os.environ.get('A11YTREE_NO_COLORS', 'False') != 'True'

# ANSI color codes
# Obtained from: http://www.bri1.com/files/06-2008/pretty.py
TERMINAL_FG_RED =           '\033[0;31m'
TERMINAL_FG_YELLOW =        '\033[0;33m'
TERMINAL_RESET =            '\033[0m'


def print_warning(message: str, file: TextIO | None=None) -> None:
    print(colorize(TERMINAL_FG_YELLOW, message), file=file if file is not None else sys.stderr)


def colorize(color_code: str, str_value: str) -> str:
    return (color_code + str_value + TERMINAL_RESET) if _USE_COLORS else str_value


def color_code(color_code: str) -> str:
    """
    Returns the specified ANSI color code, or the empty string if
    colors are disabled.
    """
    return color_code if _USE_COLORS else ''


# ------------------------------------------------------------------------------
