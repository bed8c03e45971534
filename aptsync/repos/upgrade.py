"""Self-upgrade detection.

Reads the dpkg log to find out whether aptsync's own package was upgraded
today, in which case the running service is stale and gets restarted.
"""

import gzip
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from ..common.logger import get_logger
from ..tools.base import ServiceManager

logger = get_logger("upgrade")

UPGRADE_ACTION = "upgrade"


def _read_lines(path: Path) -> Iterator[str]:
    opener = gzip.open if path.suffix == ".gz" else open
    with opener(path, "rt", errors="replace") as f:
        yield from f


def rotated_logs(log_path: Path) -> List[Path]:
    """Return a log file followed by its rotated siblings that exist.

    ``dpkg.log`` yields ``dpkg.log``, ``dpkg.log.1``, ``dpkg.log.2.gz``...
    """
    paths = [log_path] if log_path.is_file() else []
    if log_path.parent.is_dir():
        siblings = [
            p for p in log_path.parent.glob(f"{log_path.name}.*")
            if p.is_file()
        ]
        paths.extend(sorted(siblings))
    return paths


def parse_upgrade_line(line: str, package: str) -> Optional[date]:
    """Return the date of a dpkg log ``upgrade`` entry for ``package``.

    Example line::

        2026-10-19 10:22:01 upgrade aptsync:all 1.0-1 1.1-1

    Args:
        line: dpkg log line
        package: Package name to match (architecture qualifier ignored)

    Returns:
        Date of the upgrade, or None if the line does not match
    """
    parts = line.split()
    if len(parts) < 4 or parts[2] != UPGRADE_ACTION:
        return None
    if parts[3].split(":", 1)[0] != package:
        return None
    try:
        return datetime.strptime(parts[0], "%Y-%m-%d").date()
    except ValueError:
        return None


class UpgradeCheck:
    """Detects upgrades of aptsync's own package."""

    def __init__(
        self,
        package: str,
        log_paths: Iterable[str],
        today: Callable[[], date] = date.today,
    ):
        """Initialize upgrade check.

        Args:
            package: Package name of the tool
            log_paths: dpkg log files to inspect (rotations are included)
            today: Source of the current date
        """
        self.package = package
        self.log_paths = [Path(p) for p in log_paths]
        self.today = today

    def latest_upgrade(self) -> Optional[date]:
        """Find the most recent upgrade date of the package."""
        latest = None
        for log_path in self.log_paths:
            for path in rotated_logs(log_path):
                for line in _read_lines(path):
                    found = parse_upgrade_line(line, self.package)
                    if found and (latest is None or found > latest):
                        latest = found
        return latest

    def upgraded_today(self) -> bool:
        latest = self.latest_upgrade()
        return latest is not None and latest == self.today()

    def restart_if_upgraded(self, services: ServiceManager, service_name: str) -> bool:
        """Restart the service if the package was upgraded today.

        Returns:
            True if a restart was issued

        Raises:
            ToolError: If the restart fails
        """
        if not self.upgraded_today():
            return False
        logger.warning(
            f"Package {self.package} was upgraded today; restarting {service_name}"
        )
        services.restart(service_name)
        return True
