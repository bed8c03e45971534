"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import List, Optional

import pytest

from aptsync.common.config import parse_config
from aptsync.common.errors import PushError, ToolError
from aptsync.tools import ToolSet
from aptsync.tools.base import (
    PackageIndexer,
    ServiceManager,
    SignedDocument,
    Signer,
    VersionControl,
)

HELLO_STANZA = """Package: hello
Version: 1.0
Architecture: amd64
Maintainer: Repo Bot <bot@example.com>
Filename: ./pool/main/h/hello/hello_1.0_amd64.deb
Size: 4
SHA256: 0000
Description: greeting program
"""


class FakeIndexer(PackageIndexer):
    """Indexer returning canned text."""

    def __init__(self, text: str = HELLO_STANZA, fail: bool = False):
        self.text = text
        self.fail = fail
        self.calls = []

    def index(self, repo_root: Path, pool: Path, architecture: str) -> str:
        self.calls.append((repo_root, pool, architecture))
        if self.fail:
            raise ToolError("dpkg-scanpackages exited with status 2", returncode=2)
        return self.text


class FakeSigner(Signer):
    """Signer producing recognizable fake signatures."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.signed: List[str] = []

    def sign(self, document: str, identity: str) -> SignedDocument:
        if self.fail:
            raise ToolError("gpg exited with status 2: no secret key", returncode=2)
        self.signed.append(document)
        return SignedDocument(
            detached=f"-----BEGIN PGP SIGNATURE-----\n{identity}\n-----END PGP SIGNATURE-----\n",
            clearsigned=f"-----BEGIN PGP SIGNED MESSAGE-----\n\n{document}",
        )


class FakeVcs(VersionControl):
    """In-memory version control recording every call."""

    def __init__(
        self,
        status: Optional[List[str]] = None,
        pending: int = 0,
        push_fails: bool = False,
        identity: Optional[dict] = None,
    ):
        self.status = status if status is not None else ["A  dists/stable/Release"]
        self.pending = pending
        self.push_fails = push_fails
        self.identity = identity or {}
        self.calls: List[tuple] = []

    def status_lines(self, repo_root: Path) -> List[str]:
        self.calls.append(("status",))
        return list(self.status)

    def add_all(self, repo_root: Path) -> None:
        self.calls.append(("add",))

    def commit(self, repo_root: Path, message: str) -> None:
        self.calls.append(("commit", message))

    def push(self, repo_root: Path, remote: str, branch: str) -> None:
        self.calls.append(("push", remote, branch))
        if self.push_fails:
            raise PushError(f"Push to {remote}/{branch} failed: rejected")

    def unpushed_commits(self, repo_root: Path, remote: str, branch: str) -> int:
        self.calls.append(("unpushed",))
        return self.pending

    def config_value(self, repo_root: Path, key: str) -> Optional[str]:
        return self.identity.get(key)

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeServices(ServiceManager):
    """Service manager recording restarts."""

    def __init__(self):
        self.restarted: List[str] = []

    def restart(self, service_name: str) -> None:
        self.restarted.append(service_name)


@pytest.fixture
def repo_root(tmp_path):
    """Repository tree with one package in the pool."""
    root = tmp_path / "repo"
    package_dir = root / "pool" / "main" / "h" / "hello"
    package_dir.mkdir(parents=True)
    (package_dir / "hello_1.0_amd64.deb").write_bytes(b"!<arch>\n")
    (root / "dists" / "stable" / "main" / "binary-amd64").mkdir(parents=True)
    return root


@pytest.fixture
def config_dict(repo_root, tmp_path):
    """Configuration dictionary for the test repository."""
    return {
        "repository": {
            "root": str(repo_root),
            "suite": "stable",
            "architectures": ["amd64"],
            "origin": "Example",
            "label": "Example Packages",
            "maintainer": "Repo Bot <bot@example.com>",
        },
        "signing": {"key": "ABCDEF0123456789"},
        "git": {"remote": "origin", "branch": "main"},
        "service": {"upgrade_logs": [str(tmp_path / "dpkg.log")]},
        "logging": {"dir": str(tmp_path / "logs"), "syslog": False},
    }


@pytest.fixture
def sync_config(config_dict):
    """Parsed configuration for the test repository."""
    return parse_config(config_dict)


@pytest.fixture
def tools():
    """Tool set made of fakes."""
    return ToolSet(
        indexer=FakeIndexer(),
        signer=FakeSigner(),
        vcs=FakeVcs(),
        services=FakeServices(),
    )
