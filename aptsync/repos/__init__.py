"""Repository synchronization pipeline.

Regenerates the package index, writes and signs the Release file, and
publishes the result through version control, either once or whenever the
pool changes.
"""

from .base import (
    ChangeEvent,
    EventKind,
    MonitorState,
    PublishOutcome,
    SyncResult,
    SyncStatus,
)
from .checksums import ChecksumManifestBuilder
from .index import PackageIndexBuilder
from .layout import RepoLayout
from .monitor import ChangeMonitor, PoolEventStream
from .pipeline import SyncPipeline, working_directory
from .publish import PublicationCommitter, derive_commit_message
from .release import ReleaseDescriptorGenerator
from .upgrade import UpgradeCheck

__all__ = [
    "ChangeEvent",
    "ChangeMonitor",
    "ChecksumManifestBuilder",
    "EventKind",
    "MonitorState",
    "PackageIndexBuilder",
    "PoolEventStream",
    "PublicationCommitter",
    "PublishOutcome",
    "ReleaseDescriptorGenerator",
    "RepoLayout",
    "SyncPipeline",
    "SyncResult",
    "SyncStatus",
    "UpgradeCheck",
    "derive_commit_message",
    "working_directory",
]
