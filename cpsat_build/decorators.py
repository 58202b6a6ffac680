import functools
import sys

import click

from .cli_logger import logger
from .errors import BuildError


def handle_build_errors(func):
    """Log build failures with their context and turn them into exit code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("Command aborted by user.")
            raise
        except BuildError as e:
            logger.error(e.format_message())
            raise click.exceptions.Exit(1)
        except (click.exceptions.Exit, click.ClickException):
            raise
        except Exception as e:
            logger.error(f"An unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            raise click.exceptions.Exit(1)
    return wrapper
