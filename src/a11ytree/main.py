#!/usr/bin/env python
"""
Home of the main function, which starts the program.

Usage:
    a11ytree dump TREE.json [--order traversal|inverse-hit-test]
    a11ytree flush TREE.json
"""

from __future__ import annotations

# NOTE: Avoid importing anything outside the Python standard library
#       at the top-level of this module, including from the "a11ytree" package,
#       so that an import failure is reported by main() rather than at load time.
import argparse
import json
import os
import sys
from typing import Never


def main() -> Never:
    """
    Main function. Starts the program.
    """
    # 1. Enable terminal colors on Windows, by wrapping stdout and stderr
    # 2. Strip colorizing ANSI escape sequences when printing to a file
    import colorama
    colorama.init()

    try:
        _main(sys.argv[1:])
    except SystemExit:
        raise
    else:
        raise SystemExit(getattr(os, 'EX_OK', 0))  # success


def _main(args: list[str]) -> None:
    from a11ytree import __version__
    from a11ytree.document import build_tree, DocumentError, load_document
    from a11ytree.semantics import (
        debug_dump_semantics_tree, DebugSemanticsDumpOrder,
        RecordingUpdateSink, SemanticsOwner,
    )

    # Parse CLI arguments
    parser = argparse.ArgumentParser(
        prog='a11ytree',
        description='a11ytree: Builds accessibility semantics trees and shows what a host would receive.',
        add_help=False,
    )
    parser.add_argument(
        '--help', '-h',
        action='help',
        help='Show this help message and exit.'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'a11ytree {__version__}',
        help='Show the version number and exit.',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    dump_parser = subparsers.add_parser(
        'dump',
        help='Print the semantics tree described by a JSON document.',
    )
    dump_parser.add_argument(
        'tree_filepath',
        help='Path to a JSON tree document.',
        type=str,
    )
    dump_parser.add_argument(
        '--order',
        help='The order in which to list the children of each node (default: traversal).',
        choices=[o.value for o in DebugSemanticsDumpOrder],
        default=DebugSemanticsDumpOrder.TRAVERSAL.value,
    )

    flush_parser = subparsers.add_parser(
        'flush',
        help='Print the update batch that the first flush of a tree sends to the host, as JSON.',
    )
    flush_parser.add_argument(
        'tree_filepath',
        help='Path to a JSON tree document.',
        type=str,
    )
    parsed_args = parser.parse_args(args)  # may raise SystemExit

    # Read document
    try:
        with open(parsed_args.tree_filepath, encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        # NOTE: Error message format and exit code are similar to those used by argparse
        print(f'error: cannot read {parsed_args.tree_filepath}: {e.strerror}', file=sys.stderr)
        sys.exit(2)

    # Build tree
    sink = RecordingUpdateSink()
    owner = SemanticsOwner(update_sink=sink)
    try:
        build_tree(load_document(text), owner)
    except DocumentError as e:
        # NOTE: Error message format and exit code are similar to those used by argparse
        print(f'error: {parsed_args.tree_filepath}: {e}', file=sys.stderr)
        sys.exit(2)

    try:
        if parsed_args.command == 'dump':
            order = DebugSemanticsDumpOrder(parsed_args.order)
            print(debug_dump_semantics_tree(owner, order).rstrip('\n'))
        elif parsed_args.command == 'flush':
            update = owner.send_update()
            print(json.dumps(
                update.to_json() if update is not None else [],
                indent=2,
                ensure_ascii=False))
        else:
            raise AssertionError(f'Unknown command: {parsed_args.command!r}')
    finally:
        owner.dispose()


if __name__ == '__main__':
    main()
