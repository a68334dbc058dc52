"""
Standard exit codes for coderoom commands.

Following Unix/POSIX conventions for command-line tools.
"""

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_FOUND = 64           # Repository not indexed, or nothing matched
GIT_ERROR = 65           # Repository history could not be read
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
DATA_ERROR = 70          # Data format or validation error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'NotFoundError': NOT_FOUND,
    'GitError': GIT_ERROR,
    'ConfigError': CONFIG_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ValueError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Base classes are consulted too, so every GitError subclass maps to
    GIT_ERROR.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    for cls in type(exc).__mro__:
        if cls.__name__ in EXCEPTION_EXIT_CODES:
            return EXCEPTION_EXIT_CODES[cls.__name__]
    return GENERAL_ERROR


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class NoRootsConfiguredError(CommandError):
    """Raised when a command needs scan roots and none are configured."""
    def __init__(self, message: str = "No roots configured; use 'coderoom roots add PATH' or 'coderoom scan --root PATH'"):
        super().__init__(message, CONFIG_ERROR)
