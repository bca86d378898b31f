"""Google サインインアダプタ。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from fedauth.errors import SignInErrorKind
from fedauth.models import GoogleSignInUser, ProviderCredential, ProviderKind, UnifiedUser
from fedauth.providers.base import SignInAdapter, SignInAttempt

logger = logging.getLogger(__name__)

GOOGLE_SIGN_IN_UNKNOWN_CODE = -1
GOOGLE_SIGN_IN_CANCELED_CODE = -5


class GoogleSignInSDKError(RuntimeError):
    """Google サインインSDKのエラー。codeで原因を区別する。"""

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        super().__init__(message or f"Google sign-in failed (code={code})")


@dataclass(frozen=True, slots=True)
class GoogleSignInResult:
    """Google サインインの結果"""

    id_token: Optional[str]
    access_token: Optional[str]
    user_id: Optional[str] = None
    email: Optional[str] = None


@runtime_checkable
class GoogleSignInClient(Protocol):
    """Google のホスト型サインインフロー。"""

    async def sign_in(self, anchor: Any, client_id: str) -> GoogleSignInResult:
        """サインインUIを表示し、トークンを返す。失敗時はGoogleSignInSDKErrorなどを送出する。"""


class GoogleSignInAdapter(SignInAdapter):
    """Google サインインを実行する。nonce保護はSDK側に委ねる。"""

    kind = ProviderKind.GOOGLE

    def __init__(self, client: GoogleSignInClient, client_id: Optional[str]) -> None:
        self._client = client
        self._client_id = client_id

    async def obtain_credential(self, attempt: SignInAttempt) -> ProviderCredential:
        if not self._client_id:
            raise self.error(
                SignInErrorKind.MISSING_CONFIGURATION,
                "GoogleのクライアントIDが未設定です。",
            )

        try:
            result = await self._client.sign_in(attempt.anchor, self._client_id)
        except GoogleSignInSDKError as exc:
            if exc.code == GOOGLE_SIGN_IN_CANCELED_CODE:
                raise self.error(SignInErrorKind.USER_CANCELED) from exc
            raise

        if not result.id_token or not result.access_token:
            logger.error(
                "Google sign-in result is missing tokens "
                f"(id_token={bool(result.id_token)}, access_token={bool(result.access_token)})"
            )
            raise self.error(
                SignInErrorKind.INCOMPLETE_CREDENTIAL,
                missing=[
                    name
                    for name, value in (("id_token", result.id_token), ("access_token", result.access_token))
                    if not value
                ],
            )

        return ProviderCredential(
            provider=self.kind,
            id_token=result.id_token,
            access_token=result.access_token,
        )

    def project_user(self, user: UnifiedUser) -> GoogleSignInUser:
        return GoogleSignInUser(
            uid=user.uid,
            name=user.display_name,
            email=user.email,
            profile_image_url=user.photo_url,
        )
