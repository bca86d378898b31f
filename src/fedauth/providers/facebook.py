"""Facebook ログインアダプタ。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

from fedauth.errors import SignInErrorKind
from fedauth.models import FacebookSignInUser, ProviderCredential, ProviderKind, UnifiedUser
from fedauth.providers.base import SignInAdapter, SignInAttempt

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS = ("public_profile", "email")


@dataclass(frozen=True, slots=True)
class FacebookLoginResult:
    """Facebook SDK のログイン結果。

    エラー・キャンセル・トークンは互いに排他ではない。
    """

    token: Optional[str] = None
    is_cancelled: bool = False
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class LoginFailed:
    error: Exception


@dataclass(frozen=True, slots=True)
class LoginCancelled:
    pass


@dataclass(frozen=True, slots=True)
class LoginSucceeded:
    token: str


@dataclass(frozen=True, slots=True)
class LoginEmpty:
    pass


LoginOutcome = Union[LoginFailed, LoginCancelled, LoginSucceeded, LoginEmpty]


def classify_login_result(result: Optional[FacebookLoginResult]) -> LoginOutcome:
    """ログイン結果を1つの結果に確定する。

    優先順位: エラー > キャンセル > トークン。
    """

    if result is None:
        return LoginEmpty()
    if result.error is not None:
        return LoginFailed(result.error)
    if result.is_cancelled:
        return LoginCancelled()
    if result.token:
        return LoginSucceeded(result.token)
    return LoginEmpty()


@runtime_checkable
class FacebookLoginManager(Protocol):
    """Facebook のネイティブログインフロー。"""

    async def log_in(self, permissions: Sequence[str], anchor: Any) -> FacebookLoginResult:
        """ログインUIを表示し、結果を返す。"""

    def log_out(self) -> None:
        """Facebook 自身のセッションを破棄する。"""


class FacebookSignInAdapter(SignInAdapter):
    """Facebook ログインを実行する。"""

    kind = ProviderKind.FACEBOOK

    def __init__(
        self,
        login_manager: FacebookLoginManager,
        permissions: Sequence[str] = DEFAULT_PERMISSIONS,
    ) -> None:
        self._login_manager = login_manager
        self._permissions = tuple(permissions)

    async def obtain_credential(self, attempt: SignInAttempt) -> ProviderCredential:
        result = await self._login_manager.log_in(self._permissions, attempt.anchor)
        outcome = classify_login_result(result)

        if isinstance(outcome, LoginFailed):
            raise outcome.error
        if isinstance(outcome, LoginCancelled):
            raise self.error(SignInErrorKind.USER_CANCELED)
        if isinstance(outcome, LoginEmpty):
            raise self.error(SignInErrorKind.INCOMPLETE_CREDENTIAL)

        return ProviderCredential(provider=self.kind, access_token=outcome.token)

    def project_user(self, user: UnifiedUser) -> FacebookSignInUser:
        return FacebookSignInUser(
            uid=user.uid,
            name=user.display_name,
            email=user.email,
            profile_image_url=user.photo_url,
        )

    async def sign_out_native(self) -> None:
        self._login_manager.log_out()
        logger.info("Facebook login session cleared")
