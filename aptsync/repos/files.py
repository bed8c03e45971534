"""Atomic file replacement helpers."""

import os
import tempfile
from pathlib import Path

PUBLISHED_FILE_MODE = 0o644


def atomic_write(path: Path, data: bytes, mode: int = PUBLISHED_FILE_MODE) -> Path:
    """Replace ``path`` with ``data`` via a temp file in the same directory.

    Readers see either the previous content or the new content, never a
    partially written file. On failure the previous file is left untouched.

    Args:
        path: Destination file
        data: New file content
        mode: Permission bits for the new file

    Returns:
        The destination path
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def remove_if_exists(path: Path) -> bool:
    """Delete a file if present.

    Returns:
        True if a file was removed
    """
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
