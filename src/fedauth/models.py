"""
共通データモデル

サインイン処理全体で使用されるデータ構造を定義
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProviderKind(Enum):
    """外部IDプロバイダの種別

    値はIDバックエンドが用いるプロバイダIDと一致する。
    """
    APPLE = "apple.com"
    GOOGLE = "google.com"
    FACEBOOK = "facebook.com"

    @property
    def provider_id(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ProviderCredential:
    """プロバイダが発行した本人確認情報

    1回のサインイン試行の中でアダプタが生成し、
    FederatedAuthClientが1度だけ消費する。

    Attributes:
        provider: 発行元プロバイダ
        id_token: IDトークン（Apple/Google）
        access_token: アクセストークン（Google/Facebook）
        raw_nonce: リクエストに結び付けた生のnonce（Appleのみ）
    """
    provider: ProviderKind
    id_token: Optional[str] = None
    access_token: Optional[str] = None
    raw_nonce: Optional[str] = field(default=None, repr=False)

    def __repr__(self) -> str:
        return (
            f"ProviderCredential(provider={self.provider.name}, "
            f"id_token={'<redacted>' if self.id_token else None}, "
            f"access_token={'<redacted>' if self.access_token else None})"
        )


@dataclass(frozen=True, slots=True)
class UnifiedUser:
    """IDバックエンドが返すプロバイダ非依存のユーザー

    Attributes:
        uid: 一意かつ不変のユーザーID
        display_name: 表示名
        email: メールアドレス
        photo_url: プロフィール画像のURL
    """
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None


@dataclass(slots=True)
class IdentitySession:
    """IDバックエンドのサインイン応答

    userがNoneの場合、バックエンドは成功を返したが利用可能なユーザーを含まない。
    """
    user: Optional[UnifiedUser]
    id_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)
    expires_in: Optional[int] = None
    is_new_user: bool = False


@dataclass(frozen=True, slots=True)
class AppleSignInUser:
    uid: str
    name: Optional[str]
    email: Optional[str]


@dataclass(frozen=True, slots=True)
class GoogleSignInUser:
    uid: str
    name: Optional[str]
    email: Optional[str]
    profile_image_url: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FacebookSignInUser:
    uid: str
    name: Optional[str]
    email: Optional[str]
    profile_image_url: Optional[str] = None
