"""Exception types raised inside the pipeline."""


class CodeGuardError(Exception):
    """Base class for CodeGuard errors."""


class LockTimeoutError(CodeGuardError):
    """Raised when a path lock could not be acquired in time."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"Lock timeout: could not acquire {path} within {timeout}s")


class SnapshotError(CodeGuardError):
    """Raised when a snapshot cannot be captured."""
