"""Identity Toolkit REST API を使うIDバックエンド。"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from fedauth.config import DEFAULT_IDENTITY_TOOLKIT_URL, mask_secret
from fedauth.models import IdentitySession, ProviderCredential, UnifiedUser

logger = logging.getLogger(__name__)

SIGN_IN_WITH_IDP_PATH = "/accounts:signInWithIdp"


class IdentityToolkitBackend:
    """signInWithIdp エンドポイントで資格情報を交換する。

    セッションはメモリ上にのみ保持し、永続化しない。
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_IDENTITY_TOOLKIT_URL,
        request_uri: str = "http://localhost",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """IdentityToolkitBackendを初期化する。

        Args:
            api_key: Web APIキー。
            base_url: Identity Toolkit のベースURL。
            request_uri: IdPに登録されたリクエストURI。
            timeout: HTTPタイムアウト秒数。
            http_client: 共有するHTTPクライアント（テスト用）。
        """

        if not api_key:
            raise ValueError("api_keyが未設定です。")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._request_uri = request_uri
        self._timeout = timeout
        self._http_client = http_client
        self._session: Optional[IdentitySession] = None

    @property
    def current_session(self) -> Optional[IdentitySession]:
        return self._session

    def __repr__(self) -> str:
        return (
            f"IdentityToolkitBackend(base_url={self._base_url}, "
            f"api_key={mask_secret(self._api_key)})"
        )

    async def sign_in_with_credential(self, credential: ProviderCredential) -> IdentitySession:
        """資格情報でサインインし、セッションを返す。

        HTTPエラーは httpx.HTTPStatusError のまま送出する。
        """

        payload = {
            "postBody": self._build_post_body(credential),
            "requestUri": self._request_uri,
            "returnSecureToken": True,
            "returnIdpCredential": True,
        }
        url = f"{self._base_url}{SIGN_IN_WITH_IDP_PATH}"

        response = await self._post(url, payload)
        if response.is_error:
            logger.error(f"signInWithIdp failed: status={response.status_code} body={response.text}")
            response.raise_for_status()

        try:
            data = response.json()
        except ValueError:
            logger.error(f"signInWithIdp returned a non-JSON body: status={response.status_code}")
            data = None

        session = self._parse_session(data)
        self._session = session
        return session

    async def sign_out(self) -> None:
        self._session = None

    async def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        params = {"key": self._api_key}
        if self._http_client is not None:
            return await self._http_client.post(url, params=params, json=payload, timeout=self._timeout)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(url, params=params, json=payload)

    def _build_post_body(self, credential: ProviderCredential) -> str:
        fields = {"providerId": credential.provider.provider_id}
        if credential.id_token:
            fields["id_token"] = credential.id_token
        if credential.access_token:
            fields["access_token"] = credential.access_token
        if credential.raw_nonce:
            fields["nonce"] = credential.raw_nonce
        return urlencode(fields)

    def _parse_session(self, data: Any) -> IdentitySession:
        if not isinstance(data, dict):
            return IdentitySession(user=None)

        uid = data.get("localId")
        user = None
        if isinstance(uid, str) and uid:
            user = UnifiedUser(
                uid=uid,
                display_name=data.get("displayName") or None,
                email=data.get("email") or None,
                photo_url=data.get("photoUrl") or None,
            )

        expires_in = data.get("expiresIn")
        try:
            expires_in_value = int(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            expires_in_value = None

        return IdentitySession(
            user=user,
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
            expires_in=expires_in_value,
            is_new_user=bool(data.get("isNewUser", False)),
        )
