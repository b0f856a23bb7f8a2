"""
Error types raised by git_sync.

Per-repository errors (update, detection, cleanup) are caught by the
syncer and logged. ConfigError is the only one that ends the run.
"""


class SyncError(Exception):
    """Base class for all git_sync errors."""


class CommandError(SyncError):
    """A git invocation could not be started or exited non-zero."""

    def __init__(self, args: tuple[str, ...], status: int | None, output: str):
        self.command_args = tuple(args)
        self.status = status
        self.output = output
        super().__init__(self._describe())

    def _describe(self) -> str:
        command = " ".join(("git",) + self.command_args)
        if self.status is None:
            return f"'{command}' could not be started"
        return f"'{command}' exited with code {self.status}"

    @property
    def reason(self) -> str:
        """Short form used inside higher level messages."""
        if self.status is None:
            return "command not started"
        return f"exit code {self.status}"


class UpdateError(SyncError):
    """Checkout, fetch, merge or push failed while updating a repository."""


class DetectionError(SyncError):
    """Merged branch detection could not finish."""

    def __init__(self, message: str, branches: list[str] | None = None):
        super().__init__(message)
        # Branches that qualified before the failure
        self.branches = list(branches or [])


class CleanupError(SyncError):
    """Deleting a local or remote branch failed."""

    def __init__(self, message: str, branch: str, side: str):
        super().__init__(message)
        self.branch = branch
        self.side = side  # 'local' or 'remote'


class ConfigError(SyncError):
    """Missing arguments or an unreadable repository list."""
