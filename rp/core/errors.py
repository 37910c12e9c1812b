"""Exit codes for the pipeline CLI.

Each stage terminates with one of these codes. Zero means the stage (or the
whole pipeline) completed; every fatal condition maps to a non-zero code so
the hosting platform marks the run as failed.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are stable and must not be renumbered.

    - 0: Success (or tag skipped by the trigger)
    - 1: User error (bad arguments, tag does not trigger a release)
    - 2: Environment error (missing toolchain, missing credentials)
    - 3: Build error (cargo failed)
    - 4: Network error (registry unreachable)
    - 5: I/O error (binary missing, empty artifact, nothing to download)
    - 6: Release error (registry rejected the draft release)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    RELEASE_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
