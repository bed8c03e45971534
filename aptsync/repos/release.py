"""Release descriptor generator.

Assembles the Release file of a suite (metadata fields followed by one
checksum block per hash algorithm) and signs it into ``Release.gpg`` and
``InRelease``.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from ..common.config import SyncConfig
from ..common.logger import get_logger
from ..tools.base import Signer
from .checksums import ChecksumManifestBuilder
from .files import atomic_write, remove_if_exists
from .layout import RepoLayout

logger = get_logger("release")

RELEASE_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S UTC"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReleaseDescriptorGenerator:
    """Writes and signs the Release file of one suite."""

    def __init__(
        self,
        config: SyncConfig,
        layout: RepoLayout,
        signer: Signer,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize release generator.

        Args:
            config: Process configuration
            layout: Repository layout
            signer: Signing capability
            clock: Source of the Release ``Date`` field
        """
        self.config = config
        self.layout = layout
        self.signer = signer
        self.clock = clock
        self.manifest = ChecksumManifestBuilder(layout.suite_dir)

    def fields(self) -> List[Tuple[str, str]]:
        """Return the ordered header fields of the Release file."""
        repo = self.config.repository
        return [
            ("Origin", repo.effective_origin),
            ("Label", repo.effective_label),
            ("Suite", repo.suite),
            ("Codename", repo.effective_codename),
            ("Version", repo.version),
            ("Architectures", " ".join(self.layout.architectures)),
            ("Components", " ".join(self.layout.components)),
            ("Description", repo.description),
            ("Maintainer", repo.maintainer or ""),
            ("Date", self.clock().astimezone(timezone.utc).strftime(RELEASE_DATE_FORMAT)),
        ]

    def render(self, blocks: Sequence[Tuple[str, List[str]]]) -> str:
        """Render the Release document.

        Args:
            blocks: ``(label, lines)`` checksum blocks

        Returns:
            Release text ending in a newline
        """
        out = [f"{key}: {value}" for key, value in self.fields()]
        for label, lines in blocks:
            out.append(f"{label}:")
            out.extend(f" {line}" for line in lines)
        return "\n".join(out) + "\n"

    def remove_signatures(self) -> List[Path]:
        """Delete signatures left by a previous run.

        Returns:
            Paths that were removed
        """
        removed = [
            path
            for path in (self.layout.release_gpg, self.layout.in_release)
            if remove_if_exists(path)
        ]
        for path in removed:
            logger.debug(f"Removed stale {self.layout.relative(path)}")
        return removed

    def generate(self, identity: Optional[str] = None) -> Path:
        """Regenerate and sign the Release file.

        Stale signatures are removed first, so a failed signing step leaves
        no signature that does not match the new Release.

        Args:
            identity: Signing key; defaults to the configured key

        Returns:
            Path of the Release file

        Raises:
            ToolError: If signing fails
        """
        identity = identity or self.config.signing.key

        self.remove_signatures()

        blocks = list(self.manifest.blocks(self.config.hash_algorithms))
        document = self.render(blocks)
        atomic_write(self.layout.release, document.encode())
        entry_count = len(blocks[0][1]) if blocks else 0
        logger.info(
            f"Wrote {self.layout.relative(self.layout.release)} "
            f"({len(blocks)} checksum blocks, {entry_count} files)"
        )

        signed = self.signer.sign(document, identity)
        atomic_write(self.layout.release_gpg, signed.detached.encode())
        atomic_write(self.layout.in_release, signed.clearsigned.encode())
        logger.info(f"Signed Release with key {identity}")

        return self.layout.release
