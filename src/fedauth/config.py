"""Pydantic V2 ベースのサインイン設定"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fedauth.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
DEFAULT_CONFIG_PATHS = (
    Path("fedauth.yaml"),
    Path.home() / ".config" / "fedauth" / "config.yaml",
)

_SECRET_FIELDS = ("google_client_secret", "identity_toolkit_api_key")


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """APIキーやクライアントシークレットを末尾だけ残して伏せる

    visible の2倍以下の長さの値は全体を伏せる。
    """
    if not value:
        return "<unset>"
    if len(value) <= visible * 2:
        return "***"
    return f"***{value[-visible:]}"


class FedAuthSettings(BaseSettings):
    """サインイン処理の統合設定"""

    model_config = SettingsConfigDict(
        env_prefix="FEDAUTH_",
        env_file=".env",
        extra="forbid",
    )

    # Google 設定
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_redirect_uri: Optional[str] = None
    google_scopes: List[str] = Field(
        default_factory=lambda: ["openid", "email", "profile"]
    )

    # Apple 設定
    apple_hash_nonce: bool = False
    nonce_length: int = Field(default=32, ge=1)

    # Facebook 設定
    facebook_permissions: List[str] = Field(
        default_factory=lambda: ["public_profile", "email"]
    )

    # IDバックエンド設定
    identity_toolkit_api_key: Optional[str] = None
    identity_toolkit_url: str = DEFAULT_IDENTITY_TOOLKIT_URL
    request_uri: str = "http://localhost"
    request_timeout: float = Field(default=10.0, gt=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[Any, ...]:
        """環境変数を設定ファイルの値より優先する

        load_settings はYAMLの値を初期化引数として渡すため、
        init_settings を最後に置く。secrets ディレクトリは使用しない。
        """
        return (env_settings, dotenv_settings, init_settings)

    @field_validator("google_client_id", "identity_toolkit_api_key")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        """空白のみの値は未設定として扱う"""
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("identity_toolkit_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def dump_masked(self) -> dict:
        """機微情報をマスクした設定を返却する"""
        data = self.model_dump()
        for key in _SECRET_FIELDS:
            if data.get(key):
                data[key] = mask_secret(data[key])
        return data


def load_settings(config_path: Optional[Path] = None) -> FedAuthSettings:
    """YAMLファイルと環境変数から設定を読み込む

    優先順位は 環境変数 > 設定ファイル > デフォルト。

    Args:
        config_path: 設定ファイルのパス（省略時はデフォルトパスを検索）

    Returns:
        FedAuthSettings: 読み込んだ設定

    Raises:
        ConfigError: 設定ファイルが読めない、または形式が不正な場合
    """
    file_values = _load_from_file(config_path)
    settings = FedAuthSettings(**file_values)
    logger.debug("Loaded settings: %s", settings.dump_masked())
    return settings


def _load_from_file(config_path: Optional[Path]) -> Dict[str, Any]:
    if config_path is None:
        for path in DEFAULT_CONFIG_PATHS:
            if path.exists():
                config_path = path
                break

    if config_path is None or not config_path.exists():
        return {}

    try:
        with config_path.open("r", encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Failed to read config file %s: %s", config_path, exc)
        raise ConfigError(f"設定ファイルを読み込めません: {config_path}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"設定ファイルの形式が不正です（マッピングが必要です）: {config_path}")
    return data
