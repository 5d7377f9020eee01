"""
Common CLI utilities and decorators for consistent command behavior.
"""

import logging
import sys
import click
from functools import wraps

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)

logger = logging.getLogger(__name__)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Reports on stdout, diagnostics on stderr
    - CommandErrors become an error message and their exit code
    - Any other exception is logged and mapped to an exit code
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            logger.error(str(e))
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            logger.debug("Traceback:", exc_info=True)
            sys.exit(get_exit_code_for_exception(e))
        sys.exit(SUCCESS)

    return wrapper


# Standard options that commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                            help='Enable debug logging on stderr'),
    'config': click.option('-c', '--config', 'config_path', default=None,
                           type=click.Path(dir_okay=False),
                           help='Config file (default: ~/.tunasync-monitor/config.*)'),
    'servers': click.option('-s', '--server', 'servers', multiple=True,
                            help='Mirror server to poll (repeatable, overrides config)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'config')
        def my_command(verbose, config_path):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
