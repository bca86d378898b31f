"""
エラー定義

サインイン処理で使用されるエラー種別と例外クラス
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from fedauth.models import ProviderKind


AUTHENTICATION_FAILED_MESSAGE = "Authentication failed."


class SignInErrorKind(Enum):
    """サインインエラー種別

    プロバイダ間で自動変換されない閉じた集合:
    - MISSING_ROOT_SCREEN: 表示先が無くサインインを開始できない
    - USER_CANCELED: ユーザーがプロバイダのUIを閉じた
    - AUTHORIZATION_FAILED: プロバイダの応答形式が想定外
    - AUTHENTICATION_FAILED: トークン素材の欠落、またはバックエンドの応答が利用不可
    - MISSING_CONFIGURATION: クライアントIDなどの設定が未設定
    - INCOMPLETE_CREDENTIAL: プロバイダの成功応答にトークンが揃っていない
    """
    MISSING_ROOT_SCREEN = "missing_root_screen"
    USER_CANCELED = "user_canceled"
    AUTHORIZATION_FAILED = "authorization_failed"
    AUTHENTICATION_FAILED = "authentication_failed"
    MISSING_CONFIGURATION = "missing_configuration"
    INCOMPLETE_CREDENTIAL = "incomplete_credential"


ERROR_KIND_LOG_LEVEL: Dict[SignInErrorKind, int] = {
    SignInErrorKind.MISSING_ROOT_SCREEN: logging.WARNING,
    SignInErrorKind.USER_CANCELED: logging.INFO,
    SignInErrorKind.AUTHORIZATION_FAILED: logging.ERROR,
    SignInErrorKind.AUTHENTICATION_FAILED: logging.ERROR,
    SignInErrorKind.MISSING_CONFIGURATION: logging.ERROR,
    SignInErrorKind.INCOMPLETE_CREDENTIAL: logging.ERROR,
}

_DEFAULT_MESSAGES: Dict[SignInErrorKind, str] = {
    SignInErrorKind.MISSING_ROOT_SCREEN: "表示先のウィンドウが見つかりません。",
    SignInErrorKind.USER_CANCELED: "ユーザーがサインインをキャンセルしました。",
    SignInErrorKind.AUTHORIZATION_FAILED: "プロバイダから想定外の認可応答が返されました。",
    SignInErrorKind.AUTHENTICATION_FAILED: AUTHENTICATION_FAILED_MESSAGE,
    SignInErrorKind.MISSING_CONFIGURATION: "サインインに必要な設定がありません。",
    SignInErrorKind.INCOMPLETE_CREDENTIAL: "プロバイダの応答にトークンが不足しています。",
}


class SignInError(Exception):
    """サインイン例外

    プロバイダ固有の失敗を分類した結果。分類できない失敗は
    この例外で包まずにそのまま送出される。

    Attributes:
        kind: エラー種別
        provider: 失敗したプロバイダ（バックエンド由来の場合はNone）
        message: エラーメッセージ
        details: 追加のエラー詳細情報
        log_level: ログ出力レベル
    """

    def __init__(
        self,
        kind: SignInErrorKind,
        message: Optional[str] = None,
        *,
        provider: Optional["ProviderKind"] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.kind = kind
        self.provider = provider
        self.message = message or _DEFAULT_MESSAGES[kind]
        self.details = details
        self.log_level = ERROR_KIND_LOG_LEVEL.get(kind, logging.ERROR)
        super().__init__(f"[{kind.value}] {self.message}")

    @property
    def is_user_cancellation(self) -> bool:
        """ユーザー操作による中断かどうか"""
        return self.kind is SignInErrorKind.USER_CANCELED


class ConfigError(Exception):
    """設定ファイルの読み込みに失敗した場合の例外"""
