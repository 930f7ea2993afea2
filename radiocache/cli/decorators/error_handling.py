"""Error handling decorators for CLI commands."""

import json
import logging
import sys
import traceback
from collections.abc import Callable
from functools import wraps
from typing import Any

import typer

from radiocache.core.errors import (
    CacheServiceError,
    ConfigError,
    KeyValueStoreError,
)
from radiocache.core.structlog_logger import get_struct_logger


__all__ = ["handle_errors", "print_stack_trace_if_verbose"]

logger = get_struct_logger(__name__)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to handle common exceptions in CLI commands.

    Known failures are logged with their context and turned into exit code 1.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except CacheServiceError as e:
            logger.error("cache_error", **e.to_dict())
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except KeyValueStoreError as e:
            logger.error("store_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except ConfigError as e:
            logger.error("configuration_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except json.JSONDecodeError as e:
            logger.error("invalid_json", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except Exception as e:
            exc_info = logger.isEnabledFor(logging.DEBUG)
            logger.error("unexpected_error", error=str(e), exc_info=exc_info)
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e

    return wrapper


def print_stack_trace_if_verbose() -> None:
    """Print stack trace if verbose/debug mode is enabled."""
    if any(arg in sys.argv for arg in ["-v", "-vv", "--verbose", "--debug"]):
        print("\nStack trace:", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
