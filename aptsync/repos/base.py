"""Data structures shared by the synchronization pipeline.

Defines run outcomes, change events and monitor states passed between the
index, release, publication and monitoring components.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional


class SyncStatus(Enum):
    """Status of a synchronization run."""

    SUCCESS = auto()
    NO_CHANGES = auto()
    PUSHED_PENDING = auto()  # Nothing new; an earlier unpushed commit was pushed


class EventKind(Enum):
    """Kind of filesystem mutation seen under the pool."""

    CREATED = "created"
    DELETED = "deleted"
    MODIFIED = "modified"
    MOVED = "moved"


class MonitorState(Enum):
    """State of the change monitor."""

    IDLE = auto()
    WATCHING = auto()
    DEBOUNCING = auto()
    SYNCHRONIZING = auto()


@dataclass(frozen=True)
class ChangeEvent:
    """A single filesystem mutation, consumed immediately by the monitor."""

    directory: str
    kind: EventKind
    filename: str

    @property
    def path(self) -> str:
        return str(Path(self.directory) / self.filename)


@dataclass
class PublishOutcome:
    """Result of the publication step."""

    status: SyncStatus
    message: Optional[str] = None
    pushed: bool = False


@dataclass
class SyncResult:
    """Result of a repository synchronization run."""

    status: SyncStatus
    repo_root: str
    sync_date: str
    commit_message: Optional[str] = None
    index_files: List[str] = field(default_factory=list)
    release_file: Optional[str] = None
    restart_requested: bool = False
    duration_seconds: float = 0.0

    @property
    def published(self) -> bool:
        """Check if this run sent anything to the remote."""
        return self.status in (SyncStatus.SUCCESS, SyncStatus.PUSHED_PENDING)
