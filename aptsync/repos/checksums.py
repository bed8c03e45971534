"""Checksum manifest builder for Release files.

Walks the suite metadata tree and produces one ``<digest> <size> <path>``
line per regular file for each configured hash algorithm.
"""

import hashlib
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Sequence, Tuple

from ..common.logger import get_logger
from .layout import RELEASE_ARTIFACTS

logger = get_logger("checksums")

DigestFactory = Callable[[], Any]

HASH_ALGORITHMS: Dict[str, DigestFactory] = {
    "MD5Sum": hashlib.md5,
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}

CHUNK_SIZE = 65536


def file_digest(path: Path, digest_factory: DigestFactory) -> str:
    """Hash a file in chunks.

    Args:
        path: File to hash
        digest_factory: hashlib constructor, e.g. ``hashlib.sha256``

    Returns:
        Hex digest
    """
    digest = digest_factory()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ChecksumManifestBuilder:
    """Builds checksum blocks over a metadata tree."""

    def __init__(self, metadata_root: Path, exclude: Iterable[str] = RELEASE_ARTIFACTS):
        """Initialize manifest builder.

        Args:
            metadata_root: Directory that paths are made relative to
                (the suite directory holding the Release file)
            exclude: File names directly under ``metadata_root`` to skip
        """
        self.metadata_root = Path(metadata_root)
        self.exclude = frozenset(exclude)

    def entries(self) -> List[Tuple[str, Path, int]]:
        """List the files covered by the manifest.

        Traversal is sorted so the result does not depend on directory
        ordering of the filesystem.

        Returns:
            ``(relative_path, absolute_path, size)`` tuples
        """
        found = []
        for dirpath, dirnames, filenames in os.walk(self.metadata_root):
            dirnames.sort()
            current = Path(dirpath)
            for name in sorted(filenames):
                path = current / name
                relative = path.relative_to(self.metadata_root).as_posix()
                if relative in self.exclude:
                    continue
                # Skip symlinks, sockets and temp files of in-flight writes
                if path.is_symlink() or not path.is_file():
                    continue
                if name.startswith("."):
                    continue
                found.append((relative, path, path.stat().st_size))
        return found

    def lines(self, algorithm: str, digest_factory: DigestFactory) -> List[str]:
        """Produce the manifest lines for one algorithm.

        Args:
            algorithm: Block label, used for logging
            digest_factory: hashlib constructor

        Returns:
            Lines of the form ``<digest> <size> <relative-path>``
        """
        result = []
        for relative, path, size in self.entries():
            result.append(f"{file_digest(path, digest_factory)} {size} {relative}")
        logger.debug(f"{algorithm}: {len(result)} entries")
        return result

    def blocks(self, algorithms: Sequence[str]) -> Iterator[Tuple[str, List[str]]]:
        """Produce one manifest block per algorithm.

        Args:
            algorithms: Algorithm labels, e.g. ``("MD5Sum", "SHA1", "SHA256")``

        Yields:
            ``(label, lines)`` pairs in the given order

        Raises:
            KeyError: If an algorithm label is unknown
        """
        for algorithm in algorithms:
            yield algorithm, self.lines(algorithm, HASH_ALGORITHMS[algorithm])
