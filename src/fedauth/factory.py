"""サインインファサードの生成。"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fedauth.backend.client import FederatedAuthClient, IdentityBackend
from fedauth.backend.identity_toolkit import IdentityToolkitBackend
from fedauth.config import FedAuthSettings
from fedauth.errors import SignInError, SignInErrorKind
from fedauth.facade import SignInFacade
from fedauth.models import ProviderKind
from fedauth.presentation import PresentationSurfaceProvider, StaticPresentationProvider
from fedauth.providers.apple import AppleAuthorizationController, AppleSignInAdapter
from fedauth.providers.base import SignInAdapter
from fedauth.providers.facebook import FacebookLoginManager, FacebookSignInAdapter
from fedauth.providers.google import GoogleSignInAdapter, GoogleSignInClient
from fedauth.providers.google_loopback import LoopbackGoogleSignInClient

logger = logging.getLogger(__name__)


def create_auth_client(
    settings: FedAuthSettings,
    backend: Optional[IdentityBackend] = None,
) -> FederatedAuthClient:
    """設定からFederatedAuthClientを生成する。

    Raises:
        SignInError: バックエンドが渡されず、APIキーも未設定の場合。
    """

    if backend is None:
        if not settings.identity_toolkit_api_key:
            raise SignInError(
                SignInErrorKind.MISSING_CONFIGURATION,
                "IDバックエンドのAPIキーが未設定です。環境変数 FEDAUTH_IDENTITY_TOOLKIT_API_KEY を設定してください。",
            )
        backend = IdentityToolkitBackend(
            settings.identity_toolkit_api_key,
            base_url=settings.identity_toolkit_url,
            request_uri=settings.request_uri,
            timeout=settings.request_timeout,
        )
    return FederatedAuthClient(backend)


def create_sign_in_facade(
    provider: ProviderKind | str,
    settings: FedAuthSettings,
    *,
    auth_client: FederatedAuthClient,
    presentation: Optional[PresentationSurfaceProvider] = None,
    sdk: Optional[Any] = None,
) -> SignInFacade:
    """プロバイダ種別に応じたファサードを生成する。

    Args:
        provider: プロバイダ種別（"apple" / "google" / "facebook" も可）。
        settings: サインイン設定。
        auth_client: 全ファサードで共有するFederatedAuthClient。
        presentation: 表示先の提供元（省略時、ループバック版Googleのみブラウザを表示先とする）。
        sdk: プロバイダSDKの実装。Googleのみ省略可能。

    Returns:
        SignInFacade: 生成したファサード。

    Raises:
        ValueError: 未対応のプロバイダ、またはSDKが不足している場合。
    """

    kind = _normalize_provider(provider)
    if kind is ProviderKind.GOOGLE and sdk is None:
        sdk = LoopbackGoogleSignInClient(
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
            scopes=settings.google_scopes,
        )
    adapter = _create_adapter(kind, settings, sdk)
    if presentation is None:
        presentation = _default_presentation(sdk)
    logger.debug("Created sign-in facade for %s", kind.name)
    return SignInFacade(adapter, auth_client, presentation)


def _default_presentation(sdk: Any) -> StaticPresentationProvider:
    # ブラウザで完結するループバック方式以外は、呼び出し側がanchorを設定するまで未設定
    if isinstance(sdk, LoopbackGoogleSignInClient):
        return StaticPresentationProvider(anchor="browser")
    return StaticPresentationProvider()


def _create_adapter(kind: ProviderKind, settings: FedAuthSettings, sdk: Optional[Any]) -> SignInAdapter:
    if kind is ProviderKind.APPLE:
        if not isinstance(sdk, AppleAuthorizationController):
            raise ValueError("Appleには AppleAuthorizationController の実装が必要です。")
        return AppleSignInAdapter(
            sdk,
            nonce_length=settings.nonce_length,
            hash_request_nonce=settings.apple_hash_nonce,
        )
    if kind is ProviderKind.GOOGLE:
        if not isinstance(sdk, GoogleSignInClient):
            raise ValueError("Googleには GoogleSignInClient の実装が必要です。")
        return GoogleSignInAdapter(sdk, settings.google_client_id)
    if not isinstance(sdk, FacebookLoginManager):
        raise ValueError("Facebookには FacebookLoginManager の実装が必要です。")
    return FacebookSignInAdapter(sdk, permissions=settings.facebook_permissions)


def _normalize_provider(provider: ProviderKind | str) -> ProviderKind:
    if isinstance(provider, ProviderKind):
        return provider

    normalized = provider.strip().lower()
    aliases = {
        "apple": ProviderKind.APPLE,
        "apple.com": ProviderKind.APPLE,
        "google": ProviderKind.GOOGLE,
        "google.com": ProviderKind.GOOGLE,
        "facebook": ProviderKind.FACEBOOK,
        "facebook.com": ProviderKind.FACEBOOK,
    }
    if normalized not in aliases:
        raise ValueError(f"未対応のプロバイダです: {provider}")
    return aliases[normalized]
