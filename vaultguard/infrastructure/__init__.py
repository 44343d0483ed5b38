"""VaultGuard Infrastructure Layer.

This layer provides services used by the engine layers:
- ConfigManager: Layered YAML/environment configuration
- ResultCache: TTL result cache with oldest-first eviction
- Logger: Structured logging system
"""

from .cache_manager import CacheConfig, CacheEntry, ResultCache, content_fingerprint
from .config_manager import ConfigError, ConfigManager, ConfigSource, ConfigValue
from .logger import LogLevel, Logger, configure_logging, get_logger, set_global_logger

__all__ = [
    # Logger exports
    "Logger",
    "LogLevel",
    "get_logger",
    "set_global_logger",
    "configure_logging",
    # Cache exports
    "CacheEntry",
    "CacheConfig",
    "ResultCache",
    "content_fingerprint",
    # ConfigManager exports
    "ConfigSource",
    "ConfigValue",
    "ConfigError",
    "ConfigManager",
]
