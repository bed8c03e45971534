"""Exception hierarchy for aptsync.

Every failure in the synchronization pipeline is terminal for the current
run; these classes let callers tell the categories apart.
"""

from typing import List, Optional


class AptSyncError(Exception):
    """Base class for all aptsync errors."""


class PreconditionError(AptSyncError):
    """Raised before any mutation when the repository cannot be synchronized."""


class ConfigError(PreconditionError):
    """Raised for missing or invalid configuration values."""


class ToolError(AptSyncError):
    """Raised when an external tool exits non-zero."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class PushError(ToolError):
    """Raised when a local commit was created but pushing it failed."""


class NothingToCommit(AptSyncError):
    """Raised when the working tree holds no recognized changes."""
