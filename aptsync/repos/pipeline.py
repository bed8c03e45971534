"""Synchronization pipeline coordinator.

Runs index -> release/sign -> commit/push strictly in sequence for one
repository, then checks whether aptsync itself needs restarting.
"""

import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from ..common.config import SyncConfig
from ..common.errors import AptSyncError, ConfigError, NothingToCommit
from ..common.logger import get_logger
from ..tools import ToolSet
from .base import ChangeEvent, PublishOutcome, SyncResult, SyncStatus
from .index import PackageIndexBuilder
from .layout import RepoLayout
from .publish import PublicationCommitter
from .release import ReleaseDescriptorGenerator, utc_now
from .upgrade import UpgradeCheck

logger = get_logger("pipeline")


@contextmanager
def working_directory(path: Path) -> Iterator[Path]:
    """Run a block with ``path`` as the current directory.

    The previous directory is restored on every exit path.
    """
    previous = os.getcwd()
    os.chdir(path)
    try:
        yield path
    finally:
        os.chdir(previous)


class SyncPipeline:
    """Coordinates one synchronization of a repository."""

    def __init__(
        self,
        config: SyncConfig,
        tools: ToolSet,
        layout: Optional[RepoLayout] = None,
        upgrade_check: Optional[UpgradeCheck] = None,
        clock=utc_now,
    ):
        """Initialize pipeline.

        Args:
            config: Process configuration with defaults resolved
            tools: External capabilities
            layout: Repository layout; derived from config when omitted
            upgrade_check: Self-upgrade detector; derived from config when omitted
            clock: Source of the Release date
        """
        self.config = config
        self.tools = tools
        self.layout = layout or RepoLayout.from_config(config.repository)
        self.upgrade_check = upgrade_check or UpgradeCheck(
            package=config.service.package,
            log_paths=config.service.upgrade_logs,
        )

        self.index_builder = PackageIndexBuilder(self.layout, tools.indexer)
        self.release_generator = ReleaseDescriptorGenerator(
            config, self.layout, tools.signer, clock=clock
        )
        self.committer = PublicationCommitter(
            tools.vcs, self.layout.root, config.git.remote, config.git.branch
        )

    def validate(self) -> None:
        """Check preconditions before anything is modified.

        Raises:
            PreconditionError: If the repository tree is incomplete
            ConfigError: If required values could not be resolved
        """
        self.layout.validate()
        if not self.config.signing.key:
            raise ConfigError("signing.key is required")
        if not self.config.repository.maintainer:
            raise ConfigError(
                "repository.maintainer is not set and no git identity is configured"
            )

    def run(self) -> SyncResult:
        """Synchronize the repository once.

        Returns:
            SyncResult for the run

        Raises:
            PreconditionError: Before any mutation, on missing layout/config
            ToolError: If indexing, signing, committing or restarting fails
            PushError: If the commit was created but not pushed
        """
        start_time = datetime.now()
        logger.info(f"Starting synchronization of {self.layout.root}")

        try:
            self.validate()
            with working_directory(self.layout.root):
                index_files = self.index_builder.build()
                release = self.release_generator.generate()
                outcome = self._publish()
        except AptSyncError as e:
            logger.error(f"Synchronization failed: {e}")
            raise

        result = SyncResult(
            status=outcome.status,
            repo_root=str(self.layout.root),
            sync_date=datetime.now().isoformat(),
            commit_message=outcome.message,
            index_files=[self.layout.relative(p) for p in index_files],
            release_file=self.layout.relative(release),
            duration_seconds=(datetime.now() - start_time).total_seconds(),
        )
        logger.info(
            f"Synchronization finished: {result.status.name.lower()} "
            f"in {result.duration_seconds:.1f}s"
        )

        result.restart_requested = self.upgrade_check.restart_if_upgraded(
            self.tools.services, self.config.service.name
        )
        return result

    def _publish(self) -> PublishOutcome:
        try:
            return self.committer.publish()
        except NothingToCommit:
            logger.warning("Nothing to commit; repository already up to date")
            return PublishOutcome(status=SyncStatus.NO_CHANGES)

    def on_change(self, events: List[ChangeEvent]) -> SyncResult:
        """Change monitor callback: one run per debounced burst."""
        logger.debug(f"Triggered by {len(events)} event(s)")
        return self.run()
