"""
Exit codes for Pomotrack CLI.

Semantic exit codes so that scripts wrapping the CLI can tell what
happened and react (retry later, prompt for login, fix arguments).
"""

from pomotrack_cli.errors import (
    AuthError,
    ConflictError,
    InvalidTransitionError,
    NetworkError,
    NoActiveSessionError,
    PomotrackError,
    SessionAlreadyActiveError,
    SessionValidationError,
    StorageError,
)

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Authentication failure (no token, refresh rejected)
ERROR_AUTH_FAILURE = 3

# Network or API error (server unreachable, timeout, etc.)
ERROR_NETWORK = 4

# No such session
ERROR_NOT_FOUND = 5

# Operation not allowed in the current session state
ERROR_INVALID_STATE = 6

# Local and remote records diverge
ERROR_CONFLICT = 7

# Local database unreadable or unwritable
ERROR_STORAGE = 8


_CODE_NAMES = {
    SUCCESS: "SUCCESS",
    ERROR_GENERAL: "ERROR_GENERAL",
    ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
    ERROR_AUTH_FAILURE: "ERROR_AUTH_FAILURE",
    ERROR_NETWORK: "ERROR_NETWORK",
    ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
    ERROR_INVALID_STATE: "ERROR_INVALID_STATE",
    ERROR_CONFLICT: "ERROR_CONFLICT",
    ERROR_STORAGE: "ERROR_STORAGE",
}

_DESCRIPTIONS = {
    SUCCESS: "Command executed successfully",
    ERROR_GENERAL: "A general error occurred",
    ERROR_INVALID_ARGS: "Invalid arguments or validation error",
    ERROR_AUTH_FAILURE: "Authentication failure - check the API token",
    ERROR_NETWORK: "Network or API error - actions stay queued",
    ERROR_NOT_FOUND: "Session not found",
    ERROR_INVALID_STATE: "Not allowed in the current session state",
    ERROR_CONFLICT: "Local and remote records diverge",
    ERROR_STORAGE: "Local database error",
}

# Checked in order, so subclasses come before their bases
_EXCEPTION_CODES: list[tuple[type[Exception], int]] = [
    (SessionValidationError, ERROR_INVALID_ARGS),
    (InvalidTransitionError, ERROR_INVALID_STATE),
    (SessionAlreadyActiveError, ERROR_INVALID_STATE),
    (NoActiveSessionError, ERROR_NOT_FOUND),
    (AuthError, ERROR_AUTH_FAILURE),
    (NetworkError, ERROR_NETWORK),
    (ConflictError, ERROR_CONFLICT),
    (StorageError, ERROR_STORAGE),
    (PomotrackError, ERROR_GENERAL),
]


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    return _CODE_NAMES.get(code, f"UNKNOWN({code})")


def get_exit_code_description(code: int) -> str:
    """Get a human-readable description of an exit code."""
    return _DESCRIPTIONS.get(code, "Unknown error")


def exit_code_for(error: Exception) -> int:
    """Map an exception to its semantic exit code."""
    for exc_type, code in _EXCEPTION_CODES:
        if isinstance(error, exc_type):
            return code
    return ERROR_GENERAL
