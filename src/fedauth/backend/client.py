"""IDバックエンドとの資格情報交換。"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from fedauth.errors import AUTHENTICATION_FAILED_MESSAGE, SignInError, SignInErrorKind
from fedauth.models import IdentitySession, ProviderCredential, UnifiedUser

logger = logging.getLogger(__name__)


@runtime_checkable
class IdentityBackend(Protocol):
    """外部IDバックエンドの唯一の接点。"""

    async def sign_in_with_credential(
        self, credential: ProviderCredential
    ) -> Optional[IdentitySession]:
        """プロバイダの資格情報でサインインし、セッションを返す。"""

    async def sign_out(self) -> None:
        """現在のセッションを破棄する。"""


class FederatedAuthClient:
    """プロバイダ資格情報を統一ユーザーへ交換する。

    全アダプタで共有され、バックエンドと通信する唯一のコンポーネント。
    失敗した交換は再試行せず、1度だけ報告する。
    """

    def __init__(self, backend: IdentityBackend) -> None:
        self._backend = backend

    async def exchange(self, credential: ProviderCredential) -> UnifiedUser:
        """資格情報をバックエンドに提出し、統一ユーザーを返す。

        Args:
            credential: アダプタが生成した資格情報。

        Returns:
            UnifiedUser: バックエンドが返したユーザー。

        Raises:
            SignInError: バックエンドが成功を返したがユーザーを含まない場合。
            Exception: バックエンドのエラーはそのまま送出される。
        """

        logger.debug("Exchanging %s credential", credential.provider.name)
        session = await self._backend.sign_in_with_credential(credential)

        user = session.user if session is not None else None
        if user is None:
            logger.error(
                "Identity backend returned success without a user (provider=%s)",
                credential.provider.name,
            )
            raise SignInError(
                SignInErrorKind.AUTHENTICATION_FAILED,
                AUTHENTICATION_FAILED_MESSAGE,
                details={"provider_id": credential.provider.provider_id},
            )

        logger.info(f"Signed in to identity backend: uid={user.uid}")
        return user

    async def sign_out(self) -> None:
        """バックエンドからサインアウトする。エラーは変換しない。"""

        await self._backend.sign_out()
        logger.info("Signed out from identity backend")
