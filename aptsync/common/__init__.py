"""Common utilities for aptsync."""

from .logger import setup_logger, get_logger
from .config import load_config, load_typed_config, SyncConfig
from .errors import (
    AptSyncError,
    ConfigError,
    NothingToCommit,
    PreconditionError,
    PushError,
    ToolError,
)

__all__ = [
    "AptSyncError",
    "ConfigError",
    "NothingToCommit",
    "PreconditionError",
    "PushError",
    "SyncConfig",
    "ToolError",
    "get_logger",
    "load_config",
    "load_typed_config",
    "setup_logger",
]
