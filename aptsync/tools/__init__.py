"""External tool abstractions.

The pipeline never calls subprocess directly; it goes through these
capability interfaces so any tool can be replaced by a fake in tests.
"""

from dataclasses import dataclass
from typing import Optional

from .base import (
    ExternalTool,
    PackageIndexer,
    ServiceManager,
    SignedDocument,
    Signer,
    VersionControl,
)
from .dpkg import DpkgArchitecture, DpkgScanPackages
from .git import GitClient
from .gpg import GpgSigner
from .host import HostProbe
from .systemd import Systemctl


@dataclass
class ToolSet:
    """The external capabilities one pipeline run depends on."""

    indexer: PackageIndexer
    signer: Signer
    vcs: VersionControl
    services: ServiceManager

    @classmethod
    def system(cls, gpg_binary: str = "gpg", timeout: Optional[int] = None) -> "ToolSet":
        """Build the subprocess-backed tool set."""
        return cls(
            indexer=DpkgScanPackages(timeout=timeout),
            signer=GpgSigner(binary=gpg_binary, timeout=timeout),
            vcs=GitClient(timeout=timeout),
            services=Systemctl(),
        )


__all__ = [
    "DpkgArchitecture",
    "DpkgScanPackages",
    "ExternalTool",
    "GitClient",
    "GpgSigner",
    "HostProbe",
    "PackageIndexer",
    "ServiceManager",
    "SignedDocument",
    "Signer",
    "Systemctl",
    "ToolSet",
    "VersionControl",
]
