"""
Standard exit codes for tunasync-monitor commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
FETCH_ERROR = 64         # A mirror status endpoint could not be fetched or decoded
QUERY_ERROR = 65         # The traffic query against Elasticsearch failed
CONFIG_ERROR = 66        # Configuration file error
PARTIAL_SUCCESS = 71     # Some servers were skipped, the rest were reported
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for exceptions that are not CommandErrors
EXCEPTION_EXIT_CODES = {
    'ConnectionError': FETCH_ERROR,
    'TimeoutError': FETCH_ERROR,
    'JSONDecodeError': FETCH_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class FetchError(CommandError):
    """Raised when a mirror's status manifest cannot be obtained."""
    def __init__(self, message: str, server: Optional[str] = None):
        super().__init__(message, FETCH_ERROR)
        self.server = server


class TransportError(FetchError):
    """Network, DNS, timeout or HTTP-level failure talking to a mirror."""


class DecodeError(FetchError):
    """Status body is not JSON or does not look like a tunasync manifest."""


class TrafficQueryError(CommandError):
    """Raised when the traffic phase cannot complete."""
    def __init__(self, message: str):
        super().__init__(message, QUERY_ERROR)


class QueryError(TrafficQueryError):
    """Elasticsearch unreachable or answered with an error status."""


class ResponseShapeError(TrafficQueryError):
    """Elasticsearch answered, but without the expected aggregation."""


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class PartialSuccessError(CommandError):
    """Raised when some servers were reported and some were skipped."""
    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, PARTIAL_SUCCESS)
        self.succeeded = succeeded
        self.failed = failed
