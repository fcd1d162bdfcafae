"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Generator
from .progress import get_progress
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Progress reporting on stderr
    - Clean JSON output on stdout (one object per line)
    - Consistent error handling and exit codes

    The wrapped command may return a dict, a list, a generator or None
    (None means the command handled its own output). Generators are
    consumed inside the error handling, so a command can yield its result
    and then raise to set the exit status.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        verbose = kwargs.get('verbose', False)
        quiet = kwargs.get('quiet', False)

        progress = get_progress(enabled=verbose or None)
        kwargs['progress'] = progress

        try:
            result = func(*args, **kwargs)

            if isinstance(result, Generator):
                for item in result:
                    if not quiet:
                        output_result(item)
            elif result is not None and not quiet:
                output_result(result)

            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            progress.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            progress.error(str(e))
            hint = getattr(e, 'hint', None)
            if hint:
                progress.error(hint)
            if not quiet:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": e.exit_code
                }
                if hint:
                    error_obj['hint'] = hint
                if hasattr(e, 'conflicts'):
                    error_obj['branch'] = e.branch
                    error_obj['conflicts'] = e.conflicts
                print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(e.exit_code)
        except Exception as e:
            progress.error(f"Command failed: {e}")
            if not quiet:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__
                }
                print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def output_result(result: Any):
    """
    Standard output handler for results.

    Args:
        result: The result to output (dict, list, or generator)
    """
    if isinstance(result, (list, tuple, Generator)):
        for item in result:
            print(json.dumps(item, ensure_ascii=False), flush=True)
    elif isinstance(result, dict):
        print(json.dumps(result, ensure_ascii=False), flush=True)
    else:
        print(result, flush=True)


# Standard options that many commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                           help='Force progress output and debug logging'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                         help='Suppress data output, show only progress'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'quiet')
        def my_command(verbose, quiet):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
