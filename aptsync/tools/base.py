"""Base classes for the external tools aptsync drives.

Each capability (indexing, signing, version control, service management)
has a narrow interface so the pipeline can be exercised with fakes, and a
subprocess-backed implementation built on ExternalTool.
"""

import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..common.errors import ToolError
from ..common.logger import get_logger

logger = get_logger("tools")


@dataclass(frozen=True)
class SignedDocument:
    """Detached and clear-signed renditions of one document."""

    detached: str
    clearsigned: str


class ExternalTool:
    """Runs one external binary synchronously.

    Commands are never retried. No timeout is applied unless one is
    configured, so a hung tool blocks the caller.
    """

    def __init__(self, binary: str, timeout: Optional[int] = None):
        """Initialize the tool wrapper.

        Args:
            binary: Executable name or path
            timeout: Optional command timeout in seconds
        """
        self.binary = binary
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        cwd: Optional[Path] = None,
        input_data: Optional[bytes] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run the tool with the given arguments.

        Args:
            args: Command arguments (without the binary)
            cwd: Working directory for the child process
            input_data: Bytes written to the child's stdin
            check: Whether to raise on non-zero exit

        Returns:
            CompletedProcess result with bytes stdout/stderr

        Raises:
            ToolError: If the command fails, times out or is missing
        """
        cmd = [self.binary] + args
        logger.debug(f"Running {' '.join(cmd)} (cwd={cwd})")

        try:
            return subprocess.run(
                cmd,
                cwd=str(cwd) if cwd is not None else None,
                input=input_data,
                capture_output=True,
                timeout=self.timeout,
                check=check,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
            raise ToolError(
                f"{self.binary} exited with status {e.returncode}: {stderr or 'no output'}",
                command=cmd,
                returncode=e.returncode,
                stderr=stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ToolError(
                f"{self.binary} timed out after {self.timeout}s", command=cmd
            ) from e
        except FileNotFoundError as e:
            if cwd is not None and not os.path.isdir(cwd):
                raise ToolError(
                    f"Working directory {cwd} does not exist", command=cmd
                ) from e
            raise ToolError(f"{self.binary} not available", command=cmd) from e


class PackageIndexer(ABC):
    """Produces a Packages index for the pool."""

    @abstractmethod
    def index(self, repo_root: Path, pool: Path, architecture: str) -> str:
        """Return the Packages index text for one architecture.

        Args:
            repo_root: Repository root, used as the tool's working directory
            pool: Pool directory relative to the repository root
            architecture: Debian architecture name

        Raises:
            ToolError: If indexing fails
        """
        pass


class Signer(ABC):
    """Signs documents with a named identity."""

    @abstractmethod
    def sign(self, document: str, identity: str) -> SignedDocument:
        """Produce detached and clear-signed signatures of a document.

        Raises:
            ToolError: If signing fails
        """
        pass


class VersionControl(ABC):
    """Version-control operations used for publication."""

    @abstractmethod
    def status_lines(self, repo_root: Path) -> List[str]:
        """Return short-format status lines of the working tree."""
        pass

    @abstractmethod
    def add_all(self, repo_root: Path) -> None:
        """Stage every working-tree change."""
        pass

    @abstractmethod
    def commit(self, repo_root: Path, message: str) -> None:
        """Commit the staged changes."""
        pass

    @abstractmethod
    def push(self, repo_root: Path, remote: str, branch: str) -> None:
        """Push the branch to the remote."""
        pass

    @abstractmethod
    def unpushed_commits(self, repo_root: Path, remote: str, branch: str) -> int:
        """Count local commits not yet on the remote branch."""
        pass

    @abstractmethod
    def config_value(self, repo_root: Path, key: str) -> Optional[str]:
        """Read a configuration value, or None when unset."""
        pass


class ServiceManager(ABC):
    """Controls the background service running the monitor."""

    @abstractmethod
    def restart(self, service_name: str) -> None:
        """Restart a service.

        Raises:
            ToolError: If the restart fails
        """
        pass
