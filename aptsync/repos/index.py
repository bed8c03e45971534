"""Package index builder.

Regenerates ``Packages`` for every configured component and architecture
from the pool, then derives the ``Packages.gz`` and ``Packages.xz``
siblings from the freshly written plaintext.
"""

import gzip
import lzma
from pathlib import Path
from typing import Callable, Dict, List

from ..common.logger import get_logger
from ..tools.base import PackageIndexer
from .files import atomic_write
from .layout import POOL_DIR, RepoLayout

logger = get_logger("index")

FILENAME_FIELD = "Filename:"


def _gzip(data: bytes) -> bytes:
    # mtime=0 keeps the output identical for identical input
    return gzip.compress(data, compresslevel=9, mtime=0)


def _xz(data: bytes) -> bytes:
    return lzma.compress(data, format=lzma.FORMAT_XZ)


COMPRESSORS: Dict[str, Callable[[bytes], bytes]] = {
    ".gz": _gzip,
    ".xz": _xz,
}


def strip_path_prefix(path: str, repo_root: Path) -> str:
    """Make a pool path relative to the repository root.

    Removes an absolute repository-root prefix and any leading ``./`` or
    ``../`` markers.

    Args:
        path: Path as emitted by the indexing tool
        repo_root: Absolute repository root

    Returns:
        Clean relative path, e.g. ``pool/main/h/hello/hello_1.0_amd64.deb``
    """
    root_prefix = repo_root.as_posix().rstrip("/") + "/"
    if path.startswith(root_prefix):
        path = path[len(root_prefix):]

    while True:
        if path.startswith("./"):
            path = path[2:]
        elif path.startswith("../"):
            path = path[3:]
        else:
            break
    return path.lstrip("/")


def normalize_index(text: str, repo_root: Path) -> str:
    """Rewrite the ``Filename:`` fields of an index to clean relative paths.

    Args:
        text: Packages index as produced by the indexing tool
        repo_root: Absolute repository root

    Returns:
        Normalized index text
    """
    lines = []
    for line in text.splitlines():
        if line.startswith(FILENAME_FIELD):
            value = line[len(FILENAME_FIELD):].strip()
            line = f"{FILENAME_FIELD} {strip_path_prefix(value, repo_root)}"
        lines.append(line)

    if not lines:
        return ""
    return "\n".join(lines) + "\n"


class PackageIndexBuilder:
    """Builds the package indices of one repository suite."""

    def __init__(self, layout: RepoLayout, indexer: PackageIndexer):
        """Initialize index builder.

        Args:
            layout: Repository layout
            indexer: Tool producing raw index text from the pool
        """
        self.layout = layout
        self.indexer = indexer

    def build(self) -> List[Path]:
        """Regenerate every Packages file and its compressed variants.

        Returns:
            Paths of all files written

        Raises:
            ToolError: If the indexing tool fails; no index is replaced
        """
        written: List[Path] = []
        for component in self.layout.components:
            for arch in self.layout.architectures:
                written.extend(self.build_one(component, arch))
        return written

    def build_one(self, component: str, architecture: str) -> List[Path]:
        """Regenerate the index for one component and architecture.

        Args:
            component: Repository component, e.g. ``main``
            architecture: Debian architecture name

        Returns:
            Paths of the plaintext and compressed index files
        """
        target = self.layout.packages_file(component, architecture)
        logger.info(
            f"Indexing {self.layout.relative(self.layout.pool)} "
            f"for {component}/{architecture}"
        )

        # The tool output is captured in memory; the index on disk is only
        # replaced once the tool has succeeded.
        raw = self.indexer.index(self.layout.root, Path(POOL_DIR), architecture)
        text = normalize_index(raw, self.layout.root)

        atomic_write(target, text.encode())
        written = [target]
        written.extend(self.compress(target))

        count = sum(1 for line in text.splitlines() if line.startswith("Package:"))
        logger.info(f"Wrote {self.layout.relative(target)} with {count} package(s)")
        return written

    def compress(self, plain: Path) -> List[Path]:
        """Write compressed siblings of a freshly written index.

        Each variant replaces its predecessor atomically; if compressing
        fails the previous variant stays in place and the error propagates.

        Args:
            plain: Plaintext index file

        Returns:
            Paths of the compressed files
        """
        data = plain.read_bytes()
        written = []
        for suffix, compress in COMPRESSORS.items():
            target = plain.with_name(plain.name + suffix)
            atomic_write(target, compress(data))
            logger.debug(f"Compressed {plain.name} -> {target.name}")
            written.append(target)
        return written
