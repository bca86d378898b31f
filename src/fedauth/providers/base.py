"""プロバイダアダプタ基盤。

各IDプロバイダのアダプタが共通で実装すべきインターフェースを定義する。
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from fedauth.errors import SignInError, SignInErrorKind
from fedauth.models import ProviderCredential, ProviderKind, UnifiedUser


@dataclass(slots=True)
class SignInAttempt:
    """1回のサインイン試行に閉じた状態。

    アダプタ自身は試行ごとの状態を持たず、このオブジェクトを受け取って処理する。
    """

    anchor: Any
    generation: int = 0
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    pending_nonce: Optional[str] = field(default=None, repr=False)


class SignInAdapter(ABC):
    """IDプロバイダアダプタの抽象基底クラス。

    プロバイダ固有のサインインUIから資格情報を取得し、
    統一ユーザーをプロバイダ固有の形に射影する。
    """

    kind: ProviderKind

    @abstractmethod
    async def obtain_credential(self, attempt: SignInAttempt) -> ProviderCredential:
        """プロバイダのサインインを実行し、資格情報を返す。"""

    @abstractmethod
    def project_user(self, user: UnifiedUser) -> Any:
        """統一ユーザーをプロバイダ固有のユーザー型に変換する。"""

    async def sign_out_native(self) -> None:
        """プロバイダ自身のセッションを破棄する。既定では何もしない。"""

    def error(self, kind: SignInErrorKind, message: Optional[str] = None, **details: Any) -> SignInError:
        """このプロバイダに紐づくSignInErrorを作成する。"""
        return SignInError(kind, message, provider=self.kind, details=details or None)
