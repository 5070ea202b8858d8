"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_int_env, require_env_var, require_env_vars
from .errors import ConfigurationError, InvalidTeamSpecError, MissingConfigurationError
from .grafana import BearerAuth, GrafanaConfig, get_grafana_config, parse_auth
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .team import TeamSpec

__all__ = [
    "BearerAuth",
    "ConfigurationError",
    "DatabaseConfig",
    "GrafanaConfig",
    "InvalidTeamSpecError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "TeamSpec",
    "configure_logging",
    "get_database_config",
    "get_grafana_config",
    "get_storage_config",
    "optional_int_env",
    "parse_auth",
    "require_env_var",
    "require_env_vars",
]
