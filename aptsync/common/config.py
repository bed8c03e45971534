"""Configuration management for aptsync.

Handles loading and validation of YAML configuration files. The parsed
configuration is an immutable dataclass built once at process start and
passed explicitly to every component.
"""

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_PATH = "/etc/aptsync/config.yaml"
CONFIG_ENV_VAR = "APTSYNC_CONFIG"

# Ordered from weakest to strongest; Release blocks are emitted in this order.
SUPPORTED_HASH_ALGORITHMS = ("MD5Sum", "SHA1", "SHA256", "SHA512")
MIN_HASH_ALGORITHMS = 3


@dataclass(frozen=True)
class RepositoryConfig:
    """Repository layout and Release metadata."""

    root: str
    suite: str = "stable"
    codename: Optional[str] = None
    components: Tuple[str, ...] = ("main",)
    architectures: Tuple[str, ...] = ()
    origin: Optional[str] = None
    label: Optional[str] = None
    version: str = "1.0"
    description: str = "Debian package repository"
    maintainer: Optional[str] = None

    @property
    def effective_codename(self) -> str:
        return self.codename or self.suite

    @property
    def effective_origin(self) -> str:
        return self.origin or Path(self.root).name

    @property
    def effective_label(self) -> str:
        return self.label or self.effective_origin


@dataclass(frozen=True)
class SigningConfig:
    """Configuration for Release signing."""

    key: str
    gpg_binary: str = "gpg"


@dataclass(frozen=True)
class GitConfig:
    """Configuration for publication."""

    remote: str = "origin"
    branch: str = "main"


@dataclass(frozen=True)
class MonitorConfig:
    """Configuration for the change monitor."""

    debounce_seconds: float = 5.0


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration for the self-restart check."""

    name: str = "aptsync"
    package: str = "aptsync"
    upgrade_logs: Tuple[str, ...] = ("/var/log/dpkg.log",)


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging output."""

    level: str = "INFO"
    dir: str = "/var/log/aptsync"
    syslog: bool = True


@dataclass(frozen=True)
class SyncConfig:
    """Top-level configuration for aptsync."""

    repository: RepositoryConfig
    signing: SigningConfig
    git: GitConfig = field(default_factory=GitConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    hash_algorithms: Tuple[str, ...] = SUPPORTED_HASH_ALGORITHMS
    tool_timeout: Optional[int] = None


class DefaultsProbe(Protocol):
    """Host facts used to fill in unset configuration values."""

    def native_architecture(self) -> str: ...

    def git_identity(self, repo_root: Path) -> Optional[str]: ...


def _as_tuple(value: Any, key: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    raise ConfigError(f"{key} must be a list or a space separated string")


def _section(config_dict: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_dict.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping")
    return section


def parse_repository_config(repo_dict: Dict[str, Any]) -> RepositoryConfig:
    """Parse the ``repository`` section.

    Args:
        repo_dict: Repository configuration dictionary

    Returns:
        RepositoryConfig instance

    Raises:
        ConfigError: If the repository root is missing
    """
    root = repo_dict.get("root")
    if not root:
        raise ConfigError("repository.root is required")

    components = _as_tuple(repo_dict.get("components"), "repository.components")

    return RepositoryConfig(
        root=str(root),
        suite=repo_dict.get("suite") or "stable",
        codename=repo_dict.get("codename"),
        components=components or ("main",),
        architectures=_as_tuple(
            repo_dict.get("architectures"), "repository.architectures"
        ),
        origin=repo_dict.get("origin"),
        label=repo_dict.get("label"),
        version=str(repo_dict.get("version", "1.0")),
        description=repo_dict.get("description", "Debian package repository"),
        maintainer=repo_dict.get("maintainer"),
    )


def parse_signing_config(signing_dict: Dict[str, Any]) -> SigningConfig:
    """Parse the ``signing`` section.

    Raises:
        ConfigError: If no signing key is configured
    """
    key = signing_dict.get("key")
    if not key:
        raise ConfigError("signing.key is required")
    return SigningConfig(
        key=str(key),
        gpg_binary=signing_dict.get("gpg_binary", "gpg"),
    )


def parse_hash_algorithms(value: Any) -> Tuple[str, ...]:
    """Validate and order the configured hash algorithms.

    Raises:
        ConfigError: On unknown algorithms or fewer than the minimum
    """
    if value is None:
        return SUPPORTED_HASH_ALGORITHMS

    requested = _as_tuple(value, "hash_algorithms")
    unknown = [name for name in requested if name not in SUPPORTED_HASH_ALGORITHMS]
    if unknown:
        raise ConfigError(
            f"Unknown hash algorithm(s): {', '.join(unknown)}. "
            f"Supported: {', '.join(SUPPORTED_HASH_ALGORITHMS)}"
        )
    ordered = tuple(name for name in SUPPORTED_HASH_ALGORITHMS if name in requested)
    if len(ordered) < MIN_HASH_ALGORITHMS:
        raise ConfigError(
            f"At least {MIN_HASH_ALGORITHMS} hash algorithms are required, "
            f"got {len(ordered)}"
        )
    return ordered


def parse_config(config_dict: Dict[str, Any]) -> SyncConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        SyncConfig instance

    Raises:
        ConfigError: If required values are missing or invalid
    """
    git_dict = _section(config_dict, "git")
    monitor_dict = _section(config_dict, "monitor")
    service_dict = _section(config_dict, "service")
    logging_dict = _section(config_dict, "logging")

    try:
        debounce = float(monitor_dict.get("debounce_seconds", 5.0))
    except (TypeError, ValueError) as e:
        raise ConfigError("monitor.debounce_seconds must be a number") from e
    if debounce < 0:
        raise ConfigError("monitor.debounce_seconds must not be negative")

    upgrade_logs = _as_tuple(service_dict.get("upgrade_logs"), "service.upgrade_logs")

    return SyncConfig(
        repository=parse_repository_config(_section(config_dict, "repository")),
        signing=parse_signing_config(_section(config_dict, "signing")),
        git=GitConfig(
            remote=git_dict.get("remote", "origin"),
            branch=git_dict.get("branch", "main"),
        ),
        monitor=MonitorConfig(debounce_seconds=debounce),
        service=ServiceConfig(
            name=service_dict.get("name", "aptsync"),
            package=service_dict.get("package", "aptsync"),
            upgrade_logs=upgrade_logs or ("/var/log/dpkg.log",),
        ),
        logging=LoggingConfig(
            level=logging_dict.get("level", "INFO"),
            dir=logging_dict.get("dir", "/var/log/aptsync"),
            syslog=bool(logging_dict.get("syslog", True)),
        ),
        hash_algorithms=parse_hash_algorithms(config_dict.get("hash_algorithms")),
        tool_timeout=config_dict.get("tool_timeout"),
    )


def resolve_defaults(config: SyncConfig, probe: DefaultsProbe) -> SyncConfig:
    """Fill in host-derived defaults that the file left unset.

    The architecture defaults to the host's native architecture and the
    maintainer to the git identity of the repository.

    Args:
        config: Parsed configuration
        probe: Source of host facts

    Returns:
        A new SyncConfig with defaults applied
    """
    repo = config.repository
    changes: Dict[str, Any] = {}

    if not repo.architectures:
        changes["architectures"] = (probe.native_architecture(),)
    if not repo.maintainer:
        identity = probe.git_identity(Path(repo.root))
        if identity:
            changes["maintainer"] = identity

    if not changes:
        return config
    return dataclasses.replace(config, repository=dataclasses.replace(repo, **changes))


def default_config_path() -> str:
    """Return the config path from the environment or the packaged default."""
    return os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        TypeError: If the document root is not a mapping
    """
    config_file = Path(config_path or default_config_path())

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: Optional[str] = None) -> SyncConfig:
    """Load and parse configuration into typed dataclass.

    Args:
        config_path: Path to configuration file

    Returns:
        SyncConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        TypeError: If the document root is not a mapping
        ConfigError: If required values are missing or invalid
    """
    return parse_config(load_config(config_path))
