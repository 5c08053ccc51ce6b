"""Centralized configuration for swarm-mcp.

Usage:
    from sm.config import get_config

    config = get_config()
    print(config.logging.level)
    print(config.files.backup_dir)
"""

from sm.config.loader import (
    FileConfig,
    LoggingConfig,
    SwarmConfig,
    get_config,
    load_config,
)

__all__ = [
    "FileConfig",
    "LoggingConfig",
    "SwarmConfig",
    "get_config",
    "load_config",
]
