"""Publication committer.

Stages the working tree, derives a commit message from the short status
output and pushes the commit to the configured remote.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..common.errors import NothingToCommit
from ..common.logger import get_logger
from ..tools.base import VersionControl
from .base import PublishOutcome, SyncStatus

logger = get_logger("publish")

STATUS_PHRASES = {
    "R": "Renamed",
    "M": "Modified",
    "A": "Added",
    "C": "Copied",
}

# XY status code followed by the path part, e.g. "M  pool/foo.deb"
STATUS_LINE = re.compile(r"^\s*([A-Z?!]{1,2})\s+(.+?)\s*$")
RENAME_ARROW = " -> "

# Escapes git uses inside quoted paths: octal bytes and C control characters
QUOTED_ESCAPE = re.compile(rb"\\([0-7]{3}|.)")
C_ESCAPES = {
    b"a": b"\a", b"b": b"\b", b"t": b"\t", b"n": b"\n",
    b"v": b"\v", b"f": b"\f", b"r": b"\r",
}


def _unescape(match: "re.Match[bytes]") -> bytes:
    code = match.group(1)
    if len(code) == 3:
        return bytes([int(code, 8)])
    return C_ESCAPES.get(code, code)


def _unquote(path: str) -> str:
    """Undo git's C-style quoting of a path."""
    if len(path) < 2 or path[0] != '"' or path[-1] != '"':
        return path
    raw = QUOTED_ESCAPE.sub(_unescape, path[1:-1].encode())
    return raw.decode(errors="replace")


def parse_status_line(line: str) -> Optional[Tuple[str, str]]:
    """Split a short status line into its code and the resulting path.

    For renames and copies the destination path is returned.

    Args:
        line: One line of ``git status --short`` output

    Returns:
        ``(code, path)`` or None if the line is not a status entry
    """
    match = STATUS_LINE.match(line)
    if not match:
        return None
    code, rest = match.groups()

    if code[0] in ("R", "C"):
        if RENAME_ARROW in rest:
            rest = rest.split(RENAME_ARROW)[-1]
        else:
            parts = rest.split()
            if len(parts) == 2:
                rest = parts[1]

    return code, _unquote(rest.strip())


def derive_commit_message(status_lines: Iterable[str]) -> str:
    """Build a commit message with one sentence per changed path.

    Status codes other than renamed, modified, added and copied are ignored.

    Args:
        status_lines: ``git status --short`` lines

    Returns:
        Message such as ``"Modified foo.deb. Added bar.deb."``, or an empty
        string when nothing recognized changed
    """
    phrases: List[str] = []
    for line in status_lines:
        parsed = parse_status_line(line)
        if parsed is None:
            continue
        code, path = parsed
        phrase = STATUS_PHRASES.get(code[0])
        if phrase is None:
            continue
        phrases.append(f"{phrase} {path}.")
    return " ".join(phrases)


class PublicationCommitter:
    """Commits the regenerated repository and pushes it."""

    def __init__(self, vcs: VersionControl, repo_root: Path, remote: str, branch: str):
        """Initialize committer.

        Args:
            vcs: Version-control capability
            repo_root: Working tree to publish
            remote: Remote name, e.g. ``origin``
            branch: Branch to push
        """
        self.vcs = vcs
        self.repo_root = repo_root
        self.remote = remote
        self.branch = branch

    def publish(self) -> PublishOutcome:
        """Stage, commit and push all working-tree changes.

        When there is nothing new but earlier commits never reached the
        remote (a previous push failed), they are pushed without creating
        another commit.

        Returns:
            PublishOutcome describing what was done

        Raises:
            NothingToCommit: If there are no recognized changes and nothing
                is pending on the remote
            PushError: If the push fails; the local commit remains
            ToolError: If staging or committing fails
        """
        self.vcs.add_all(self.repo_root)
        message = derive_commit_message(self.vcs.status_lines(self.repo_root))

        if not message:
            pending = self.vcs.unpushed_commits(self.repo_root, self.remote, self.branch)
            if pending:
                logger.warning(
                    f"No new changes; pushing {pending} pending commit(s) "
                    f"to {self.remote}/{self.branch}"
                )
                self.vcs.push(self.repo_root, self.remote, self.branch)
                return PublishOutcome(status=SyncStatus.PUSHED_PENDING, pushed=True)
            raise NothingToCommit("No changes to commit")

        logger.info(f"Committing: {message}")
        self.vcs.commit(self.repo_root, message)

        logger.info(f"Pushing to {self.remote}/{self.branch}")
        self.vcs.push(self.repo_root, self.remote, self.branch)

        return PublishOutcome(status=SyncStatus.SUCCESS, message=message, pushed=True)
