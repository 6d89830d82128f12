"""Process exit codes.

Every failed run maps to one of these codes; see `cvb.output.errors` for the
mapping from error kinds.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the `cvb` command.

    These values are part of the CLI contract and should remain stable:
    - 0: Success
    - 1: User error (bad version, bad selection, bad arguments)
    - 2: Environment error (no repository, dirty tree, tag exists, missing remote)
    - 3: Version-control error (stage, commit or tag failed)
    - 4: Network error (push failed)
    - 5: I/O error (manifest unreadable or not writable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    VCS_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
