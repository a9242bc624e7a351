"""Core infrastructure: configuration and logging."""

from swarmrest.core.config import (
    ApiConfig,
    LoggingConfig,
    MemoryHostConfig,
    ServerConfig,
    SwarmRestConfig,
    load_config,
)
from swarmrest.core.logging import configure_logging, get_logger, request_context

__all__ = [
    "ApiConfig",
    "LoggingConfig",
    "MemoryHostConfig",
    "ServerConfig",
    "SwarmRestConfig",
    "configure_logging",
    "get_logger",
    "load_config",
    "request_context",
]
