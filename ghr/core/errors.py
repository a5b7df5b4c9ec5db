"""Error codes for CLI exit status.

The codes map to process exit statuses so a failing CI step can be told
apart by its exit code as well as by its error message.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the ``ghr`` CLI.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (no tag, unmatched files under strict mode)
    - 2: Config error (missing or malformed environment)
    - 4: Network error (API failure, upload failure)
    - 5: I/O error (unreadable asset or body file)
    """

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5
