"""Git client used for publication.

All git operations go through this client, with the repository root passed
explicitly as the working directory of every command.
"""

from pathlib import Path
from typing import List, Optional

from ..common.errors import PushError, ToolError
from ..common.logger import get_logger
from .base import ExternalTool, VersionControl

logger = get_logger("tools.git")


class GitClient(ExternalTool, VersionControl):
    """Version control backed by the git command-line tool."""

    def __init__(self, binary: str = "git", timeout: Optional[int] = None):
        super().__init__(binary, timeout)

    def status_lines(self, repo_root: Path) -> List[str]:
        """Return ``git status --short`` output, one entry per line.

        Non-ASCII paths are reported verbatim rather than octal-escaped.
        """
        result = self._run(
            ["-c", "core.quotePath=false", "status", "--short"], cwd=repo_root
        )
        return [line for line in result.stdout.decode().splitlines() if line.strip()]

    def add_all(self, repo_root: Path) -> None:
        self._run(["add", "-A"], cwd=repo_root)

    def commit(self, repo_root: Path, message: str) -> None:
        self._run(["commit", "--quiet", "-m", message], cwd=repo_root)

    def push(self, repo_root: Path, remote: str, branch: str) -> None:
        """Push a branch.

        Raises:
            PushError: If the push fails
        """
        try:
            self._run(["push", remote, branch], cwd=repo_root)
        except ToolError as e:
            raise PushError(
                f"Push to {remote}/{branch} failed: {e.stderr or e}",
                command=e.command,
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e

    def unpushed_commits(self, repo_root: Path, remote: str, branch: str) -> int:
        """Count commits on HEAD that are missing from ``remote/branch``.

        Returns 0 when the remote-tracking ref is unknown.
        """
        result = self._run(
            ["rev-list", "--count", f"{remote}/{branch}..HEAD"],
            cwd=repo_root,
            check=False,
        )
        if result.returncode != 0:
            logger.debug(f"No remote-tracking ref {remote}/{branch}")
            return 0
        try:
            return int(result.stdout.decode().strip() or 0)
        except ValueError:
            return 0

    def config_value(self, repo_root: Path, key: str) -> Optional[str]:
        """Read a git config value; returns None when it is not set."""
        result = self._run(["config", "--get", key], cwd=repo_root, check=False)
        if result.returncode != 0:
            return None
        value = result.stdout.decode().strip()
        return value or None
