"""YAML configuration loading for swarm-mcp.

Example .swarm-mcp/config.yaml:

    version: 1

    logging:
      level: DEBUG
      format: json
      log_dir: logs          # relative to this config file

    files:
      max_file_size: 409600
      backup_dir: .mcp_backups
      backup_max_age_days: 7
      backup_max_count: 100

Environment overrides (applied after the file):
    SWARM_MCP_LOGGING_LEVEL   debug | info | warn | error
    SWARM_MCP_LOGGING_FORMAT  json | text
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from loguru import logger
from pydantic import BaseModel, Field, PrivateAttr, field_validator

from sm.paths import CONFIG_ENV, get_config_path, get_project_root

# Current config schema version
CURRENT_CONFIG_VERSION = 1

ENV_PREFIX = "SWARM_MCP_"

_LEVEL_ALIASES = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["text", "json"] = Field(
        default="text", description="Log record format on stderr"
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (relative to config dir). None disables file logging",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _LEVEL_ALIASES.get(value.lower(), value.upper())
        return value


class FileConfig(BaseModel):
    """File operation configuration."""

    max_file_size: int = Field(
        default=400 * 1024,
        ge=1,
        description="Max size in bytes of a file that can be read",
    )
    max_display_chars: int = Field(
        default=50_000,
        ge=100,
        description="Text content longer than this is truncated on read",
    )
    backup_dir: str = Field(
        default=".mcp_backups",
        description="Backup directory name, relative to the project root",
    )
    backup_max_age_days: float = Field(
        default=7,
        ge=0,
        description="Backups older than this are removed by cleanup",
    )
    backup_max_count: int = Field(
        default=100,
        ge=0,
        description="Cleanup keeps at most this many backups (newest first)",
    )
    default_max_depth: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Recursive listing depth when the caller gives none",
    )
    default_page_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Page size when pagination is requested without a limit",
    )

    @field_validator("backup_dir")
    @classmethod
    def _relative_backup_dir(cls, value: str) -> str:
        if not value or Path(value).is_absolute() or ".." in Path(value).parts:
            raise ValueError("backup_dir must be a relative path inside the project")
        return value


class SwarmConfig(BaseModel):
    """Root configuration for swarm-mcp."""

    # Private attribute to track config file location (not serialized)
    _config_dir: Path | None = PrivateAttr(default=None)

    version: int = Field(
        default=CURRENT_CONFIG_VERSION,
        description="Config schema version for migration support",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    files: FileConfig = Field(default_factory=FileConfig)

    def get_log_dir_path(self) -> Path | None:
        """Get the resolved log directory, or None when file logging is off.

        Relative paths resolve against the config file directory, falling
        back to <project root>/.swarm-mcp.
        """
        if self.logging.log_dir is None:
            return None

        path = Path(self.logging.log_dir).expanduser()
        if path.is_absolute():
            return path
        base = self._config_dir or get_project_root() / ".swarm-mcp"
        return (base / path).resolve()


def resolve_config_path(config_path: Path | str | None) -> Path | None:
    """Resolve config path from explicit path, env var, or default locations.

    Resolution order:
    1. Explicit config_path if provided
    2. SWARM_MCP_CONFIG env var
    3. <project root>/.swarm-mcp/config.yaml
    4. ~/.swarm-mcp/config.yaml
    5. None (use defaults)
    """
    if config_path is not None:
        return Path(config_path)

    env_config = os.getenv(CONFIG_ENV)
    if env_config:
        return Path(env_config)

    return get_config_path()


def _load_yaml_file(config_path: Path) -> dict[str, Any]:
    """Load and parse YAML file with error handling.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If YAML is invalid or file can't be read.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open() as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Error reading {config_path}: {e}") from e

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ValueError(f"Invalid configuration in {config_path}: expected a mapping")
    return raw_data


def _validate_version(data: dict[str, Any], config_path: Path) -> None:
    """Validate config version and set default if missing.

    Raises:
        ValueError: If version is unsupported.
    """
    config_version = data.get("version")
    if config_version is None:
        logger.warning(
            f"Config file missing 'version' field, assuming version 1. "
            f"Add 'version: {CURRENT_CONFIG_VERSION}' to {config_path}"
        )
        data["version"] = CURRENT_CONFIG_VERSION
    elif not isinstance(config_version, int) or config_version > CURRENT_CONFIG_VERSION:
        raise ValueError(
            f"Config version {config_version} is not supported. "
            f"Maximum supported version is {CURRENT_CONFIG_VERSION}."
        )


def _apply_env_overrides(config: SwarmConfig) -> SwarmConfig:
    """Apply SWARM_MCP_LOGGING_* overrides. Invalid values are ignored."""
    updates: dict[str, str] = {}

    level = os.getenv(f"{ENV_PREFIX}LOGGING_LEVEL")
    if level is not None:
        normalized = _LEVEL_ALIASES.get(level.strip().lower())
        if normalized:
            updates["level"] = normalized
        else:
            logger.warning(f"Ignoring invalid {ENV_PREFIX}LOGGING_LEVEL={level!r}")

    fmt = os.getenv(f"{ENV_PREFIX}LOGGING_FORMAT")
    if fmt is not None:
        if fmt.strip().lower() in ("json", "text"):
            updates["format"] = fmt.strip().lower()
        else:
            logger.warning(f"Ignoring invalid {ENV_PREFIX}LOGGING_FORMAT={fmt!r}")

    if updates:
        config.logging = config.logging.model_copy(update=updates)
        logger.debug(f"Environment overrides applied: {sorted(updates)}")

    return config


def load_config(config_path: Path | str | None = None) -> SwarmConfig:
    """Load swarm-mcp configuration from YAML file.

    Args:
        config_path: Path to config file (overrides resolution)

    Returns:
        Validated SwarmConfig

    Raises:
        FileNotFoundError: If explicit config path doesn't exist
        ValueError: If YAML is invalid or validation fails
    """
    resolved_path = resolve_config_path(config_path)

    if resolved_path is None:
        logger.debug("No config file found, using defaults")
        return _apply_env_overrides(SwarmConfig())

    logger.debug(f"Loading config from {resolved_path}")

    raw_data = _load_yaml_file(resolved_path)
    _validate_version(raw_data, resolved_path)

    try:
        config = SwarmConfig.model_validate(raw_data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {resolved_path}: {e}") from e

    config._config_dir = resolved_path.parent.resolve()
    logger.info(f"Config loaded: version {config.version}")

    return _apply_env_overrides(config)


# Global config instance
_config: SwarmConfig | None = None


def get_config(
    config_path: Path | str | None = None, reload: bool = False
) -> SwarmConfig:
    """Get or load the global configuration.

    Args:
        config_path: Path to config file (only used on first load)
        reload: Force reload configuration

    Returns:
        SwarmConfig instance
    """
    global _config

    if _config is None or reload:
        _config = load_config(config_path)

    return _config
