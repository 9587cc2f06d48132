"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .ledger import LedgerConfig, build_ledger_resilience, get_ledger_config
from .sources import SourcesConfig, get_sources_config, load_zone, parse_filter_date
from .storage import StorageConfig, get_storage_config

__all__ = [
    "ConfigurationError",
    "LedgerConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SourcesConfig",
    "StorageConfig",
    "build_ledger_resilience",
    "get_ledger_config",
    "get_sources_config",
    "get_storage_config",
    "load_zone",
    "optional_env_var",
    "parse_filter_date",
    "require_env_var",
    "require_env_vars",
]
