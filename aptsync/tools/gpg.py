"""GnuPG signer.

Produces the armored detached signature (Release.gpg) and the clear-signed
document (InRelease) for a Release file. Documents are passed on stdin and
signatures read from stdout, so no temporary files are involved.
"""

from typing import List, Optional

from ..common.logger import get_logger
from .base import ExternalTool, SignedDocument, Signer

logger = get_logger("tools.gpg")


class GpgSigner(ExternalTool, Signer):
    """Signer backed by the gpg command-line tool."""

    def __init__(
        self,
        binary: str = "gpg",
        timeout: Optional[int] = None,
        homedir: Optional[str] = None,
    ):
        """Initialize the signer.

        Args:
            binary: gpg executable
            timeout: Optional command timeout in seconds
            homedir: Optional GnuPG home directory
        """
        super().__init__(binary, timeout)
        self.homedir = homedir

    def _base_args(self, identity: str) -> List[str]:
        args = ["--batch", "--yes", "--armor", "--local-user", identity]
        if self.homedir:
            args = ["--homedir", self.homedir] + args
        return args

    def sign(self, document: str, identity: str) -> SignedDocument:
        """Sign a document twice: detached and inline.

        Args:
            document: Text to sign
            identity: Key id, fingerprint or user id of the signing key

        Returns:
            SignedDocument with both signature forms

        Raises:
            ToolError: If gpg exits non-zero
        """
        data = document.encode()

        logger.debug(f"Creating detached signature with key {identity}")
        detached = self._run(
            self._base_args(identity) + ["--detach-sign", "--output", "-"],
            input_data=data,
        )

        logger.debug(f"Creating clear-signed document with key {identity}")
        clearsigned = self._run(
            self._base_args(identity) + ["--clearsign", "--output", "-"],
            input_data=data,
        )

        return SignedDocument(
            detached=detached.stdout.decode(),
            clearsigned=clearsigned.stdout.decode(),
        )
