"""Centralized exit codes for the xnr CLI."""


class ExitCodes:
    """Exit codes used by xnr itself (a run propagates the child's code instead)."""

    SUCCESS = 0

    BUILD_FAILED = 1
    NOTHING_TO_RUN = 1

    # Shells report a child killed by signal N as 128 + N
    SIGNAL_BASE = 128

    @classmethod
    def from_returncode(cls, returncode: int) -> int:
        """Map a subprocess return code to a process exit code."""
        if returncode < 0:
            return cls.SIGNAL_BASE - returncode
        return returncode

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get human-readable description for an exit code."""
        if code == cls.SUCCESS:
            return "Success"
        if code > cls.SIGNAL_BASE:
            return f"Terminated by signal {code - cls.SIGNAL_BASE}"
        return f"Exited with code {code}"
