"""Filesystem layout of a Debian repository.

Every path the pipeline touches is derived here from the repository root,
so no component depends on the process working directory.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from ..common.config import RepositoryConfig
from ..common.errors import PreconditionError

POOL_DIR = "pool"
DISTS_DIR = "dists"
PACKAGES_FILE = "Packages"
RELEASE_FILE = "Release"
DETACHED_SIGNATURE_FILE = "Release.gpg"
INLINE_SIGNED_FILE = "InRelease"

RELEASE_ARTIFACTS = (RELEASE_FILE, DETACHED_SIGNATURE_FILE, INLINE_SIGNED_FILE)


@dataclass(frozen=True)
class RepoLayout:
    """Paths of one repository suite."""

    root: Path
    suite: str
    components: Tuple[str, ...] = ("main",)
    architectures: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, repo: RepositoryConfig) -> "RepoLayout":
        return cls(
            root=Path(repo.root).resolve(),
            suite=repo.suite,
            components=tuple(repo.components),
            architectures=tuple(repo.architectures),
        )

    @property
    def pool(self) -> Path:
        return self.root / POOL_DIR

    @property
    def suite_dir(self) -> Path:
        return self.root / DISTS_DIR / self.suite

    @property
    def release(self) -> Path:
        return self.suite_dir / RELEASE_FILE

    @property
    def release_gpg(self) -> Path:
        return self.suite_dir / DETACHED_SIGNATURE_FILE

    @property
    def in_release(self) -> Path:
        return self.suite_dir / INLINE_SIGNED_FILE

    def binary_dir(self, component: str, architecture: str) -> Path:
        return self.suite_dir / component / f"binary-{architecture}"

    def packages_file(self, component: str, architecture: str) -> Path:
        return self.binary_dir(component, architecture) / PACKAGES_FILE

    def binary_dirs(self) -> List[Path]:
        return [
            self.binary_dir(component, arch)
            for component in self.components
            for arch in self.architectures
        ]

    def relative(self, path: Path) -> str:
        """Return ``path`` relative to the repository root as a POSIX string."""
        return path.relative_to(self.root).as_posix()

    def validate(self) -> None:
        """Check that the repository tree exists.

        Raises:
            PreconditionError: If the root, pool or any binary directory is missing
        """
        if not self.root.is_dir():
            raise PreconditionError(f"Repository root not found: {self.root}")
        if not self.pool.is_dir():
            raise PreconditionError(f"Pool directory not found: {self.pool}")
        if not self.architectures:
            raise PreconditionError("No architectures configured")

        missing = [str(d) for d in self.binary_dirs() if not d.is_dir()]
        if missing:
            raise PreconditionError(
                f"Missing metadata directories: {', '.join(missing)}"
            )

    def create(self) -> List[Path]:
        """Create the pool and metadata directories.

        Returns:
            Directories that did not exist before
        """
        created = []
        for directory in [self.pool] + self.binary_dirs():
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                created.append(directory)
        return created
