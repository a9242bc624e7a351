# src/swarmrest/core/config.py
"""Configuration schema and loading for the swarm-rest server.

Uses Pydantic for validation with frozen (immutable) models.
Configuration precedence: CLI > YAML file > defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from swarmrest.contracts.operations import MAX_PARALLEL_OPENS


def normalize_route(route: str) -> str:
    """Canonical route prefix: ``""`` for root, else ``/prefix`` without trailing slash."""
    route = route.strip().rstrip("/")
    if route and not route.startswith("/"):
        route = "/" + route
    return route


class ServerConfig(BaseModel):
    """Server binding configuration.

    The in-memory host lives in the server process, so there is exactly
    one uvicorn worker.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    host: str = Field(
        default="127.0.0.1",
        description="Host address to bind to",
    )
    port: int = Field(
        default=8000,
        gt=0,
        le=65535,
        description="Port to listen on",
    )


class ApiConfig(BaseModel):
    """Request handling configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    route: str = Field(
        default="",
        description="Path prefix the API is served under ('' or '/' for root)",
    )
    max_parallel_opens: int = Field(
        default=MAX_PARALLEL_OPENS,
        ge=1,
        description="Maximum objects opened concurrently per request",
    )

    @field_validator("route")
    @classmethod
    def _normalize_route(cls, value: str) -> str:
        return normalize_route(value)


class LoggingConfig(BaseModel):
    """Structured logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_output: bool = Field(
        default=False,
        description="Emit JSON lines instead of console output",
    )


class MemoryHostConfig(BaseModel):
    """Seed data for the in-memory Object Host used by ``swarmrest serve``."""

    model_config = {"frozen": True, "extra": "forbid"}

    host_id: str = Field(
        default="swarm~mem",
        pattern=r"^[0-9A-Za-z_~]+$",
        description="Host identity embedded in logical timestamps",
    )
    models: dict[str, dict[str, Any]] = Field(
        default_factory=lambda: {"Mouse": {"x": 0, "y": 0, "symbol": "?", "ms": 0}},
        description="Model types and their default state",
    )
    collections: list[str] = Field(
        default_factory=lambda: ["Mice"],
        description="Collection type names",
    )
    objects: dict[str, Any] = Field(
        default_factory=dict,
        description="Initial state keyed by /Type#id (mapping for models, entry list for collections)",
    )


class SwarmRestConfig(BaseModel):
    """Top-level configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    server: ServerConfig = Field(
        default_factory=ServerConfig,
        description="Server binding configuration",
    )
    api: ApiConfig = Field(
        default_factory=ApiConfig,
        description="Request handling configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    memory_host: MemoryHostConfig = Field(
        default_factory=MemoryHostConfig,
        description="In-memory host seed data",
    )


# === Loading ===


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, with override taking precedence.

    Returns:
        Merged configuration dict (new dict, does not mutate inputs).
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    *,
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> SwarmRestConfig:
    """Load configuration with precedence handling.

    Precedence (highest to lowest):
    1. cli_overrides - Direct overrides from CLI flags
    2. config_file - User's YAML configuration file
    3. defaults - Built-in Pydantic defaults

    Raises:
        FileNotFoundError: If config_file does not exist.
        yaml.YAMLError: If YAML is malformed.
        ValueError: If the YAML document is not a mapping.
        pydantic.ValidationError: If final config fails validation.
    """
    config_dict: dict[str, Any] = {}

    if config_file is not None:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        with config_file.open() as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"Config file {config_file} must be a YAML mapping, got {type(file_config).__name__}")
        config_dict = deep_merge(config_dict, file_config)

    if cli_overrides is not None:
        config_dict = deep_merge(config_dict, cli_overrides)

    return SwarmRestConfig(**config_dict)
