"""設定データクラス"""

from dataclasses import dataclass, field

from repochat.domain.entities.chat_message import AIProvider

DEFAULT_MODELS: dict[AIProvider, str] = {
    AIProvider.GEMINI: "gemini-flash",
    AIProvider.OLLAMA: "llama2",
    AIProvider.OPENROUTER: "anthropic/claude-3-5-sonnet",
}


@dataclass(frozen=True)
class ProviderConfig:
    """1 回のリクエストに適用するプロバイダ設定

    AssistantSettings から導出され、単体では永続化しない。
    """

    provider: AIProvider
    model: str
    max_tokens: int = 2048
    temperature: float = 0.7


@dataclass(frozen=True)
class AssistantSettings:
    """アシスタントのユーザー設定

    Attributes:
        preferred_provider: 既定のプロバイダ
        models: プロバイダごとのモデル名
        max_response_tokens: 応答の最大トークン数
        temperature: サンプリング温度
        request_timeout_seconds: プロバイダ呼び出しのタイムアウト秒数
        history_limit: 履歴読み込みの最大件数
    """

    preferred_provider: AIProvider = AIProvider.GEMINI
    models: dict[AIProvider, str] = field(
        default_factory=lambda: dict(DEFAULT_MODELS)
    )
    max_response_tokens: int = 2048
    temperature: float = 0.7
    request_timeout_seconds: float = 30.0
    history_limit: int = 100

    def model_for(self, provider: AIProvider) -> str:
        """プロバイダのモデル名を解決する（未設定なら既定値）"""
        return self.models.get(provider) or DEFAULT_MODELS[provider]

    def provider_config(self, provider: AIProvider) -> ProviderConfig:
        """ProviderConfig を導出する

        Args:
            provider: 対象プロバイダ

        Returns:
            現在の設定値から組み立てた ProviderConfig
        """
        return ProviderConfig(
            provider=provider,
            model=self.model_for(provider),
            max_tokens=self.max_response_tokens,
            temperature=self.temperature,
        )


@dataclass
class DatabaseConfig:
    """データベース設定"""

    path: str


@dataclass
class ProvidersConfig:
    """プロバイダ接続設定（認証情報は SecretStore 側）"""

    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_referer: str = "https://repochat.app"
    openrouter_title: str = "repochat"
    http_retries: int = 2
    timeout_seconds: float = 30.0


@dataclass
class SecretsConfig:
    """シークレットキー -> 環境変数名の対応表"""

    env_names: dict[str, str] = field(default_factory=dict)


@dataclass
class RetentionConfig:
    """古いメッセージの自動削除設定"""

    enabled: bool = False
    days: int = 30
    interval_seconds: int = 86400


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None


@dataclass
class Config:
    """アプリケーション設定"""

    database: DatabaseConfig
    assistant: AssistantSettings = field(default_factory=AssistantSettings)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    secrets: SecretsConfig = field(default_factory=SecretsConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    logging: LoggingConfig | None = None
