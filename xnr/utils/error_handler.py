"""Centralized error handler for xnr commands."""

from collections.abc import Callable
from functools import wraps
from typing import Any

import click

from xnr.errors import XnrError
from xnr.utils.logging import logger


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator that turns build failures into clean CLI errors."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        """Inner wrapper that implements the try-except logic."""
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit):
            raise
        except XnrError as e:
            logger.debug("Command '{cmd}' failed: {err}", cmd=func.__name__, err=str(e))
            raise click.ClickException(str(e)) from e
        except Exception as e:
            logger.opt(exception=True).error(
                "Command '{cmd}' failed: {err}",
                cmd=func.__name__,
                err=str(e),
            )
            raise click.ClickException(f"{type(e).__name__}: {e}") from e

    return wrapper
