"""Host facts used to fill configuration defaults."""

from pathlib import Path
from typing import Optional

from .base import VersionControl
from .dpkg import DpkgArchitecture


class HostProbe:
    """Answers the default-value questions asked at process start."""

    def __init__(self, vcs: VersionControl, dpkg: Optional[DpkgArchitecture] = None):
        self.vcs = vcs
        self.dpkg = dpkg or DpkgArchitecture()

    def native_architecture(self) -> str:
        return self.dpkg.native_architecture()

    def git_identity(self, repo_root: Path) -> Optional[str]:
        """Return ``Name <email>`` from the git configuration.

        Args:
            repo_root: Repository whose configuration is consulted

        Returns:
            Maintainer string, or None if no user name is configured or the
            repository does not exist yet
        """
        if not Path(repo_root).is_dir():
            return None
        name = self.vcs.config_value(repo_root, "user.name")
        email = self.vcs.config_value(repo_root, "user.email")
        if not name:
            return None
        if email:
            return f"{name} <{email}>"
        return name
