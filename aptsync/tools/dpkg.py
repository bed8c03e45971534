"""dpkg-based tools: package indexing and host architecture."""

from pathlib import Path
from typing import Optional

from ..common.logger import get_logger
from .base import ExternalTool, PackageIndexer

logger = get_logger("tools.dpkg")


class DpkgScanPackages(ExternalTool, PackageIndexer):
    """Package indexer using dpkg-scanpackages."""

    def __init__(self, binary: str = "dpkg-scanpackages", timeout: Optional[int] = None):
        super().__init__(binary, timeout)

    def index(self, repo_root: Path, pool: Path, architecture: str) -> str:
        """Scan the pool for one architecture.

        The scan runs from the repository root so that ``Filename:`` fields
        come out relative to it.

        Args:
            repo_root: Repository root
            pool: Pool directory relative to the repository root
            architecture: Debian architecture name

        Returns:
            Packages index text
        """
        result = self._run(
            ["--multiversion", "--arch", architecture, str(pool)],
            cwd=repo_root,
        )
        stderr = result.stderr.decode(errors="replace").strip() if result.stderr else ""
        if stderr:
            # dpkg-scanpackages reports its summary ("Wrote N entries") on stderr
            logger.debug(stderr)
        return result.stdout.decode()


class DpkgArchitecture(ExternalTool):
    """Reports the host's native Debian architecture."""

    def __init__(self, binary: str = "dpkg", timeout: Optional[int] = 10):
        super().__init__(binary, timeout)

    def native_architecture(self) -> str:
        result = self._run(["--print-architecture"])
        return result.stdout.decode().strip()
