"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Generator

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Clean JSONL output on stdout
    - Error messages on stderr
    - Consistent error handling and exit codes

    The command returns a generator, list or dict to have it printed as
    JSONL, or None when it handled its own output (e.g. --pretty tables).
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
            output_result(result)
            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except (click.ClickException, click.Abort):
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            click.echo(f"Error: {e}", err=True)
            _print_error(e, e.exit_code)
            sys.exit(e.exit_code)
        except Exception as e:
            click.echo(f"Error: {e}", err=True)
            code = get_exit_code_for_exception(e)
            _print_error(e, code)
            sys.exit(code)

    return wrapper


def _print_error(exc: BaseException, exit_code: int) -> None:
    error_obj = {
        "error": str(exc),
        "type": type(exc).__name__,
        "exit_code": exit_code,
    }
    print(json.dumps(error_obj, ensure_ascii=False), flush=True)


def output_result(result: Any):
    """
    Standard output handler for results.

    Args:
        result: The result to output (dict, list, or generator)
    """
    if isinstance(result, Generator):
        for item in result:
            print(json.dumps(item, ensure_ascii=False), flush=True)
    elif isinstance(result, (list, tuple)):
        for item in result:
            print(json.dumps(item, ensure_ascii=False), flush=True)
    elif isinstance(result, dict):
        print(json.dumps(result, ensure_ascii=False), flush=True)


# Standard options that many commands share
common_options = {
    'pretty': click.option('--pretty', is_flag=True,
                           help='Render a table instead of JSONL'),
    'page': click.option('--page', type=int, default=1, show_default=True,
                         help='Page number (1-based)'),
    'per_page': click.option('--per-page', type=int, default=25, show_default=True,
                             help='Items per page (max 200)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('pretty', 'page')
        def my_command(pretty, page):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
