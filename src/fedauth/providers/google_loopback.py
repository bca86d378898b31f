"""デスクトップ向け Google サインイン（OAuth 2.0 + PKCE, ループバック）。"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import secrets
import threading
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional, Sequence
from urllib.parse import parse_qs, urlparse

import httpx

from fedauth.providers.google import (
    GOOGLE_SIGN_IN_CANCELED_CODE,
    GOOGLE_SIGN_IN_UNKNOWN_CODE,
    GoogleSignInResult,
    GoogleSignInSDKError,
)

logger = logging.getLogger(__name__)

DEFAULT_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_SCOPES = ("openid", "email", "profile")
DEFAULT_CALLBACK_PATH = "/callback"


class _AuthCallbackServer(HTTPServer):
    """認可コールバックを一度だけ受け取るループバックサーバー。"""

    def __init__(self, server_address: tuple[str, int], callback_path: str = DEFAULT_CALLBACK_PATH) -> None:
        super().__init__(server_address, _AuthCallbackHandler)
        self.callback_path = callback_path
        self.auth_code: str | None = None
        self.auth_error: str | None = None
        self.auth_state: str | None = None
        self.event = threading.Event()

    def accept_callback(self, query: dict[str, list[str]]) -> None:
        self.auth_code = query.get("code", [None])[0]
        self.auth_error = query.get("error", [None])[0]
        self.auth_state = query.get("state", [None])[0]
        self.event.set()


class _AuthCallbackHandler(BaseHTTPRequestHandler):
    server: _AuthCallbackServer

    def do_GET(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        if parsed.path != self.server.callback_path:
            self._reply(404, b"Not Found")
            return

        self.server.accept_callback(parse_qs(parsed.query))
        self._reply(200, b"Sign-in complete. You can close this window.")

    def _reply(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A003
        return


class LoopbackGoogleSignInClient:
    """システムブラウザとループバックサーバーで Google サインインを行う。

    表示先はブラウザであり、anchorは使用しない。
    """

    def __init__(
        self,
        *,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        scopes: Sequence[str] = DEFAULT_SCOPES,
        auth_url: str = DEFAULT_AUTH_URL,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout_seconds: float = 180.0,
    ) -> None:
        """LoopbackGoogleSignInClientを初期化する。

        Args:
            client_secret: デスクトップアプリのクライアントシークレット。
            redirect_uri: ループバックのリダイレクトURI（省略時は空きポート）。
            scopes: 要求するスコープ。
            auth_url: 認可エンドポイント。
            token_url: トークンエンドポイント。
            timeout_seconds: コールバック待機タイムアウト。
        """

        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._scopes = tuple(scopes)
        self._auth_url = auth_url
        self._token_url = token_url
        self._timeout_seconds = timeout_seconds

    async def sign_in(self, anchor: Any, client_id: str) -> GoogleSignInResult:
        """ブラウザ認証フローを実行し、トークンを返す。"""

        verifier = self._generate_verifier()
        challenge = self._generate_challenge(verifier)
        state = secrets.token_urlsafe(16)

        host, port, callback_path = self._split_redirect_uri()
        server = _AuthCallbackServer((host, port), callback_path)

        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()

        try:
            redirect_uri = self._resolve_redirect_uri(server.server_address[1])
            auth_url = self._build_auth_url(client_id, redirect_uri, challenge, state)
            await asyncio.to_thread(webbrowser.open, auth_url)

            received = await asyncio.to_thread(server.event.wait, self._timeout_seconds)
            if not received:
                raise GoogleSignInSDKError(GOOGLE_SIGN_IN_UNKNOWN_CODE, "認証のコールバックがタイムアウトしました。")
            code = self._check_callback(server.auth_code, server.auth_error, server.auth_state, state)

            tokens = await self._exchange_code_for_token(
                client_id=client_id,
                code=code,
                verifier=verifier,
                redirect_uri=redirect_uri,
            )
        finally:
            server.shutdown()
            server.server_close()
            thread.join(timeout=1)

        return GoogleSignInResult(
            id_token=tokens.get("id_token"),
            access_token=tokens.get("access_token"),
        )

    def _check_callback(
        self,
        code: Optional[str],
        error: Optional[str],
        returned_state: Optional[str],
        expected_state: str,
    ) -> str:
        if error == "access_denied":
            raise GoogleSignInSDKError(GOOGLE_SIGN_IN_CANCELED_CODE, "ユーザーが認証を拒否しました。")
        if error:
            raise GoogleSignInSDKError(GOOGLE_SIGN_IN_UNKNOWN_CODE, f"認証エラーが返されました: {error}")
        if returned_state != expected_state:
            raise GoogleSignInSDKError(GOOGLE_SIGN_IN_UNKNOWN_CODE, "stateが一致しません。")
        if not code:
            raise GoogleSignInSDKError(GOOGLE_SIGN_IN_UNKNOWN_CODE, "認証コードが取得できませんでした。")
        return code

    def _split_redirect_uri(self) -> tuple[str, int, str]:
        if not self._redirect_uri:
            return "127.0.0.1", 0, DEFAULT_CALLBACK_PATH
        parsed = urlparse(self._redirect_uri)
        return parsed.hostname or "127.0.0.1", parsed.port or 0, parsed.path or DEFAULT_CALLBACK_PATH

    def _resolve_redirect_uri(self, port: int) -> str:
        host, _, callback_path = self._split_redirect_uri()
        scheme = urlparse(self._redirect_uri).scheme if self._redirect_uri else ""
        return f"{scheme or 'http'}://{host}:{port}{callback_path}"

    def _build_auth_url(self, client_id: str, redirect_uri: str, challenge: str, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self._scopes),
            "code_challenge": challenge,
            "code_challenge_method": "S256",
            "state": state,
        }
        query = httpx.QueryParams(params)
        return f"{self._auth_url}?{query}"

    async def _exchange_code_for_token(
        self, client_id: str, code: str, verifier: str, redirect_uri: str
    ) -> dict[str, Any]:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": client_id,
            "code_verifier": verifier,
            "redirect_uri": redirect_uri,
        }
        if self._client_secret:
            data["client_secret"] = self._client_secret

        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            response = await client.post(self._token_url, data=data, headers={"Accept": "application/json"})

        if response.is_error:
            logger.error(f"Token exchange failed: {response.text}")
            response.raise_for_status()

        return response.json()

    def _generate_verifier(self) -> str:
        return self._base64_url_encode(secrets.token_bytes(32))

    def _generate_challenge(self, verifier: str) -> str:
        digest = hashlib.sha256(verifier.encode("utf-8")).digest()
        return self._base64_url_encode(digest)

    def _base64_url_encode(self, raw: bytes) -> str:
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
