"""Sign in with Apple アダプタ。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence, Union, runtime_checkable

import jwt

from fedauth.errors import SignInErrorKind
from fedauth.models import AppleSignInUser, ProviderCredential, ProviderKind, UnifiedUser
from fedauth.nonce import DEFAULT_NONCE_LENGTH, generate_nonce, hash_nonce
from fedauth.providers.base import SignInAdapter, SignInAttempt

logger = logging.getLogger(__name__)

APPLE_SCOPES = ("full_name", "email")


@dataclass(frozen=True, slots=True)
class AppleIDRequest:
    """Apple ID 認可リクエスト"""

    requested_scopes: Sequence[str]
    nonce: str


@dataclass(frozen=True, slots=True)
class AppleIDCredential:
    """Apple ID 認可で返される資格情報"""

    user: str
    identity_token: Union[bytes, str, None]
    email: Optional[str] = None
    full_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AppleAuthorization:
    """認可結果。credentialはAppleIDCredential以外の型もあり得る。"""

    credential: Any


@runtime_checkable
class AppleAuthorizationController(Protocol):
    """Apple のネイティブ認可フロー。"""

    async def perform_requests(self, request: AppleIDRequest, anchor: Any) -> AppleAuthorization:
        """認可UIを表示し、結果を返す。失敗時は例外を送出する。"""


class AppleSignInAdapter(SignInAdapter):
    """Sign in with Apple を nonce 付きで実行する。"""

    kind = ProviderKind.APPLE

    def __init__(
        self,
        controller: AppleAuthorizationController,
        *,
        nonce_length: int = DEFAULT_NONCE_LENGTH,
        hash_request_nonce: bool = False,
        nonce_factory: Callable[[int], str] = generate_nonce,
    ) -> None:
        """AppleSignInAdapterを初期化する。

        Args:
            controller: Apple の認可コントローラ。
            nonce_length: nonceの長さ。
            hash_request_nonce: リクエストにSHA-256ハッシュ済みnonceを送るかどうか。
            nonce_factory: nonce生成関数。
        """

        self._controller = controller
        self._nonce_length = nonce_length
        self._hash_request_nonce = hash_request_nonce
        self._nonce_factory = nonce_factory

    async def obtain_credential(self, attempt: SignInAttempt) -> ProviderCredential:
        raw_nonce = self._nonce_factory(self._nonce_length)
        attempt.pending_nonce = raw_nonce
        request = AppleIDRequest(
            requested_scopes=APPLE_SCOPES,
            nonce=self._request_nonce(raw_nonce),
        )

        logger.debug(f"Apple authorization requested (attempt={attempt.attempt_id})")
        authorization = await self._controller.perform_requests(request, attempt.anchor)

        credential = authorization.credential
        if not isinstance(credential, AppleIDCredential):
            raise self.error(
                SignInErrorKind.AUTHORIZATION_FAILED,
                credential_type=type(credential).__name__,
            )

        nonce = attempt.pending_nonce
        id_token = self._decode_identity_token(credential.identity_token)
        if nonce is None or id_token is None:
            raise self.error(SignInErrorKind.AUTHENTICATION_FAILED)

        if self._returned_nonce(id_token) != self._request_nonce(nonce):
            logger.warning(f"Apple identity token nonce mismatch (attempt={attempt.attempt_id})")
            raise self.error(
                SignInErrorKind.AUTHENTICATION_FAILED,
                "IDトークンのnonceがリクエストと一致しません。",
            )

        return ProviderCredential(provider=self.kind, id_token=id_token, raw_nonce=nonce)

    def project_user(self, user: UnifiedUser) -> AppleSignInUser:
        return AppleSignInUser(uid=user.uid, name=user.display_name, email=user.email)

    def _request_nonce(self, raw_nonce: str) -> str:
        if self._hash_request_nonce:
            return hash_nonce(raw_nonce)
        return raw_nonce

    @staticmethod
    def _decode_identity_token(identity_token: Union[bytes, str, None]) -> Optional[str]:
        if not identity_token:
            return None
        if isinstance(identity_token, str):
            return identity_token
        try:
            return identity_token.decode("utf-8")
        except UnicodeDecodeError:
            return None

    @staticmethod
    def _returned_nonce(id_token: str) -> Optional[str]:
        # 署名検証はバックエンドが行う。ここではnonceの照合のみ。
        try:
            claims = jwt.decode(id_token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None
        nonce = claims.get("nonce")
        return nonce if isinstance(nonce, str) else None
