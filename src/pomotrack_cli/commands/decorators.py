"""Decorators for command functions."""

import asyncio
import functools
import time
import traceback
from collections.abc import Callable

import typer
from pydantic import ValidationError

from pomotrack_cli.errors import PomotrackError
from pomotrack_cli.utils.exit_codes import ERROR_GENERAL, ERROR_INVALID_ARGS, exit_code_for
from pomotrack_cli.utils.logger import get_logger
from pomotrack_cli.utils.ui.console import format_error


def command_wrapper(func: Callable) -> Callable:
    """Log the command, run it (awaiting coroutines) and map errors to exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if asyncio.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            logger.info("command completed: %s (%.3fs)", cmd, time.monotonic() - start)
            return result

        except PomotrackError as e:
            logger.error(
                "command failed: %s (%.3fs) - %s", cmd, time.monotonic() - start, e
            )
            format_error(str(e))
            raise typer.Exit(code=exit_code_for(e)) from e

        except (ValidationError, ValueError, KeyError) as e:
            logger.error("command rejected: %s - %s", cmd, e)
            format_error(f"Invalid value: {e}")
            raise typer.Exit(code=ERROR_INVALID_ARGS) from e

        except typer.Exit:
            raise

        except Exception as e:
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                time.monotonic() - start,
                e,
                traceback.format_exc(),
            )
            format_error(f"An unexpected error occurred: {e}")
            raise typer.Exit(code=ERROR_GENERAL) from e

    return wrapper
