"""systemd service control."""

from typing import Optional

from ..common.logger import get_logger
from .base import ExternalTool, ServiceManager

logger = get_logger("tools.systemd")


class Systemctl(ExternalTool, ServiceManager):
    """Service manager backed by systemctl."""

    def __init__(self, binary: str = "systemctl", timeout: Optional[int] = 60):
        super().__init__(binary, timeout)

    def restart(self, service_name: str) -> None:
        """Queue a restart without waiting for it.

        The service may be the calling process itself, which systemd stops
        as part of the restart.
        """
        logger.info(f"Restarting service {service_name}")
        self._run(["--no-block", "restart", service_name])
