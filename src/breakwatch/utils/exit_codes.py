"""
Exit codes for breakwatch.

Semantic exit codes so scripts wrapping the CLI can react to what happened.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Requested transition not allowed in the current timer state
ERROR_INVALID_STATE = 3

# A platform capability was unavailable and a fallback was used
ERROR_DEGRADED = 4


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_INVALID_STATE: "ERROR_INVALID_STATE",
        ERROR_DEGRADED: "ERROR_DEGRADED",
    }
    return code_names.get(code, f"UNKNOWN({code})")
