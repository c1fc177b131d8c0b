"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from repochat.config.models import (
    DEFAULT_MODELS,
    AssistantSettings,
    Config,
    DatabaseConfig,
    LoggingConfig,
    ProvidersConfig,
    RetentionConfig,
    SecretsConfig,
)
from repochat.domain.entities.chat_message import AIProvider


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する"""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _parse_provider(value: str, path: str) -> AIProvider:
    """プロバイダ名を AIProvider に変換する

    Raises:
        ConfigValidationError: 未知のプロバイダ名
    """
    try:
        return AIProvider(value)
    except ValueError as e:
        raise ConfigValidationError(
            f"Unknown provider '{value}' at '{path}'"
        ) from e


def _load_assistant(data: dict[str, Any]) -> AssistantSettings:
    """assistant セクションを読み込む"""
    models = dict(DEFAULT_MODELS)
    for key, model in (data.get("models") or {}).items():
        models[_parse_provider(key, f"assistant.models.{key}")] = model

    preferred = data.get("preferred_provider", AIProvider.GEMINI.value)
    return AssistantSettings(
        preferred_provider=_parse_provider(
            preferred, "assistant.preferred_provider"
        ),
        models=models,
        max_response_tokens=data.get("max_response_tokens", 2048),
        temperature=data.get("temperature", 0.7),
        request_timeout_seconds=data.get("request_timeout_seconds", 30.0),
        history_limit=data.get("history_limit", 100),
    )


def _load_providers(data: dict[str, Any]) -> ProvidersConfig:
    """providers セクションを読み込む"""
    defaults = ProvidersConfig()
    gemini = data.get("gemini") or {}
    openrouter = data.get("openrouter") or {}
    return ProvidersConfig(
        gemini_base_url=gemini.get("base_url", defaults.gemini_base_url),
        openrouter_base_url=openrouter.get("base_url", defaults.openrouter_base_url),
        openrouter_referer=openrouter.get("referer", defaults.openrouter_referer),
        openrouter_title=openrouter.get("title", defaults.openrouter_title),
        http_retries=data.get("http_retries", defaults.http_retries),
        timeout_seconds=data.get("timeout_seconds", defaults.timeout_seconds),
    )


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    # 環境変数を展開
    data = _expand_recursive(raw_data or {})

    # DatabaseConfig
    database_data = _validate_required_field(data, "database")
    database = DatabaseConfig(
        path=_validate_required_field(database_data, "path", "database"),
    )

    assistant = _load_assistant(data.get("assistant") or {})
    providers = _load_providers(data.get("providers") or {})
    secrets = SecretsConfig(env_names=dict(data.get("secrets") or {}))

    # RetentionConfig
    retention_data = data.get("retention") or {}
    retention = RetentionConfig(
        enabled=retention_data.get("enabled", False),
        days=retention_data.get("days", 30),
        interval_seconds=retention_data.get("interval_seconds", 86400),
    )
    if retention.days <= 0:
        raise ConfigValidationError("'retention.days' must be positive")

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
        )

    return Config(
        database=database,
        assistant=assistant,
        providers=providers,
        secrets=secrets,
        retention=retention,
        logging=logging_config,
    )
