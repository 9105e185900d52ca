from a11ytree.util import cli
from collections.abc import Callable
from functools import wraps
import sys
import traceback
from typing import overload, Protocol, TypeVar
from typing_extensions import ParamSpec

_P = ParamSpec('_P')
_R = TypeVar('_R')
_RT = TypeVar('_RT')
_RF = TypeVar('_RF')


# ------------------------------------------------------------------------------
# Bulkheads

CrashReason = BaseException  # with .__traceback__ set to a TracebackType


class Bulkhead(Protocol):  # abstract
    """
    A sink for unhandled exceptions (i.e. crashes).
    """
    crash_reason: CrashReason | None


class BulkheadCell(Bulkhead):
    """
    A concrete Bulkhead which stores any crash that occurs,
    but takes no special action to report such crashes.
    """
    crash_reason: CrashReason | None

    def __init__(self, value: CrashReason | None=None) -> None:
        self.crash_reason = value


@overload
def capture_crashes_to(
        bulkhead: Bulkhead
        ) -> Callable[[Callable[_P, _RT]], Callable[_P, _RT | None]]:
    ...

@overload
def capture_crashes_to(
        bulkhead: Bulkhead,
        return_if_crashed: _RF
        ) -> Callable[[Callable[_P, _RT]], Callable[_P, _RT | _RF]]:
    ...

def capture_crashes_to(
        bulkhead: Bulkhead,
        return_if_crashed=None  # _RF
        ) -> Callable[[Callable[_P, _RT]], Callable[_P, _RT | _RF]]:
    """
    A method that captures any raised exceptions to the specified Bulkhead,
    as the "crash reason" of the bulkhead.

    If the bulkhead was already crashed (with a non-None "crash reason") then
    this method will immediately abort, returning `return_if_crashed`.

    Examples:
        @capture_crashes_to(bulkhead)
        def semantics_did_update(owner) -> None:
            ...
    """
    def decorate(func: Callable[_P, _RT]) -> Callable[_P, _RT | _RF]:
        @wraps(func)
        @_mark_bulkhead_call
        def bulkhead_call(*args: _P.args, **kwargs: _P.kwargs) -> _RT | _RF:
            if bulkhead.crash_reason is not None:
                # Bulkhead has already crashed. Abort.
                return return_if_crashed
            try:
                return func(*args, **kwargs)
            except BaseException as e:
                e.__full_traceback__ = _extract_bulkhead_traceback(e)  # type: ignore[attr-defined]

                # Print traceback to assist in debugging in the terminal,
                # including ancestor callers of bulkhead_call
                _print_bulkhead_exception(e)

                # Crash the bulkhead. Abort.
                bulkhead.crash_reason = e
                return return_if_crashed
        return bulkhead_call
    return decorate


@overload
def capture_crashes_to_stderr(
        func: Callable[_P, _RT]
        ) -> Callable[_P, _RT | None]:
    ...

@overload
def capture_crashes_to_stderr(
        *, return_if_crashed: _RF
        ) -> Callable[[Callable[_P, _RT]], Callable[_P, _RT | _RF]]:
    ...

@overload
def capture_crashes_to_stderr(
        ) -> Callable[[Callable[_P, _RT]], Callable[_P, _RT | None]]:
    ...

def capture_crashes_to_stderr(
        func: Callable[_P, _RT] | None=None,
        *, return_if_crashed=None  # _RF
        ):
    """
    A method that captures any raised exceptions, and prints them to stderr.

    Examples:
        @capture_crashes_to_stderr
        def semantics_did_update(self, owner) -> None:
            ...

        @capture_crashes_to_stderr(return_if_crashed=False)
        def perform_action(self, action) -> bool:
            ...
    """
    def decorate(func: Callable[_P, _RT]) -> Callable[_P, _RT | _RF]:
        @wraps(func)
        @_mark_bulkhead_call
        def bulkhead_call(*args: _P.args, **kwargs: _P.kwargs) -> _RT | _RF:
            try:
                return func(*args, **kwargs)
            except BaseException as e:
                e.__full_traceback__ = _extract_bulkhead_traceback(e)  # type: ignore[attr-defined]

                # Print traceback to assist in debugging in the terminal,
                # including ancestor callers of bulkhead_call
                _print_bulkhead_exception(e, is_error=True)

                # Abort.
                return return_if_crashed
        return bulkhead_call
    if func is None:
        return decorate
    else:
        return decorate(func)


def _mark_bulkhead_call(bulkhead_call: Callable[_P, _R]) -> Callable[_P, _R]:
    bulkhead_call._captures_crashes = True  # type: ignore[attr-defined]
    return bulkhead_call


_ExtractedTraceback = list[traceback.FrameSummary]

def _extract_bulkhead_traceback(
        e: BaseException,
        *, extra_stacklevel: int=0
        ) -> _ExtractedTraceback | None:
    if e.__traceback__ is None:
        return None
    here_tb = traceback.extract_stack(sys._getframe(1 + extra_stacklevel))
    exc_tb = traceback.extract_tb(e.__traceback__)
    return here_tb[:-1] + exc_tb


def _print_bulkhead_exception(e: BaseException, *, is_error: bool=False) -> None:
    err_file = sys.stderr
    print(
        cli.color_code(cli.TERMINAL_FG_RED if is_error else cli.TERMINAL_FG_YELLOW),
        end='', file=err_file)
    full_tb_summary = getattr(e, '__full_traceback__', Ellipsis)
    if full_tb_summary is Ellipsis:
        full_tb_summary = _extract_bulkhead_traceback(e, extra_stacklevel=1)
    if full_tb_summary is not None:
        print('Exception in bulkhead:', file=err_file)
        print('Traceback (most recent call last):', file=err_file)
        for x in traceback.format_list(full_tb_summary):
            print(x, end='', file=err_file)
    for x in traceback.format_exception_only(type(e), e):
        print(x, end='', file=err_file)
    print(cli.color_code(cli.TERMINAL_RESET), end='', file=err_file)
    err_file.flush()


def run_bulkhead_call(
        bulkhead_call: Callable[_P, _R],
        /, *args: _P.args,
        **kwargs: _P.kwargs
        ) -> '_R':
    """
    Calls a function marked as @capture_crashes_to*,
    which does not reraise exceptions from its interior.

    Raises AssertionError if the specified function is not actually
    marked with @capture_crashes_to*.
    """
    ensure_is_bulkhead_call(bulkhead_call)
    return bulkhead_call(*args, **kwargs)


def ensure_is_bulkhead_call(callable: Callable) -> None:
    """
    Raises AssertionError if the specified function is not actually
    marked with @capture_crashes_to*.
    """
    if not is_bulkhead_call(callable):
        raise AssertionError(f'Expected callable {callable!r} to be decorated with @capture_crashes_to*')


def is_bulkhead_call(callable: Callable) -> bool:
    """
    Returns whether the specified function is marked with @capture_crashes_to*.
    """
    return getattr(callable, '_captures_crashes', False) == True


# ------------------------------------------------------------------------------
