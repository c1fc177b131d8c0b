"""設定管理モジュール"""

from repochat.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from repochat.config.models import (
    DEFAULT_MODELS,
    AssistantSettings,
    Config,
    DatabaseConfig,
    LoggingConfig,
    ProviderConfig,
    ProvidersConfig,
    RetentionConfig,
    SecretsConfig,
)

__all__ = [
    "DEFAULT_MODELS",
    "AssistantSettings",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "DatabaseConfig",
    "EnvironmentVariableError",
    "LoggingConfig",
    "ProviderConfig",
    "ProvidersConfig",
    "RetentionConfig",
    "SecretsConfig",
    "expand_env_vars",
    "load_config",
]
