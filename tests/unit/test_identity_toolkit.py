"""IdentityToolkitBackendのユニットテスト"""

import json
import unittest
from urllib.parse import parse_qs

import httpx

from fedauth.backend.client import FederatedAuthClient
from fedauth.backend.identity_toolkit import IdentityToolkitBackend
from fedauth.errors import AUTHENTICATION_FAILED_MESSAGE, SignInError, SignInErrorKind
from fedauth.models import ProviderCredential, ProviderKind


class TestIdentityToolkitBackend(unittest.IsolatedAsyncioTestCase):
    """signInWithIdp 呼び出しのテスト"""

    def setUp(self):
        self.requests = []
        self.response_status = 200
        self.response_body = {
            "localId": "u1",
            "email": "a@b.com",
            "displayName": "Alice",
            "photoUrl": "https://example.com/a.png",
            "idToken": "session-token",
            "refreshToken": "refresh-token",
            "expiresIn": "3600",
            "isNewUser": True,
        }
        self.response_text = None

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if self.response_text is not None:
                return httpx.Response(self.response_status, text=self.response_text)
            return httpx.Response(self.response_status, json=self.response_body)

        self.http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        self.backend = IdentityToolkitBackend(
            "api-key-1234",
            base_url="https://identity.test/v1/",
            request_uri="http://localhost",
            http_client=self.http_client,
        )

    async def asyncTearDown(self):
        await self.http_client.aclose()

    async def test_posts_credential_to_sign_in_with_idp(self):
        """資格情報がpostBodyとして送られること"""
        credential = ProviderCredential(
            provider=ProviderKind.APPLE, id_token="id-token", raw_nonce="raw-nonce"
        )

        await self.backend.sign_in_with_credential(credential)

        request = self.requests[0]
        self.assertEqual(request.url.path, "/v1/accounts:signInWithIdp")
        self.assertEqual(request.url.params["key"], "api-key-1234")
        payload = json.loads(request.content)
        self.assertTrue(payload["returnSecureToken"])
        self.assertEqual(payload["requestUri"], "http://localhost")
        post_body = parse_qs(payload["postBody"])
        self.assertEqual(post_body["providerId"], ["apple.com"])
        self.assertEqual(post_body["id_token"], ["id-token"])
        self.assertEqual(post_body["nonce"], ["raw-nonce"])
        self.assertNotIn("access_token", post_body)

    async def test_parses_session(self):
        """応答からセッションとユーザーを組み立てること"""
        credential = ProviderCredential(provider=ProviderKind.FACEBOOK, access_token="fb-token")

        session = await self.backend.sign_in_with_credential(credential)

        self.assertEqual(session.user.uid, "u1")
        self.assertEqual(session.user.display_name, "Alice")
        self.assertEqual(session.user.email, "a@b.com")
        self.assertEqual(session.user.photo_url, "https://example.com/a.png")
        self.assertEqual(session.expires_in, 3600)
        self.assertTrue(session.is_new_user)
        self.assertIs(self.backend.current_session, session)
        post_body = parse_qs(json.loads(self.requests[0].content)["postBody"])
        self.assertEqual(post_body["access_token"], ["fb-token"])
        self.assertEqual(post_body["providerId"], ["facebook.com"])

    async def test_missing_local_id_yields_no_user(self):
        """localIdが無い成功応答はuser=None"""
        self.response_body = {"idToken": "x"}
        credential = ProviderCredential(provider=ProviderKind.GOOGLE, id_token="a", access_token="b")

        session = await self.backend.sign_in_with_credential(credential)

        self.assertIsNone(session.user)

    async def test_empty_success_body_yields_no_user(self):
        """本文が空の成功応答はuser=Noneとして扱う"""
        self.response_text = ""
        credential = ProviderCredential(provider=ProviderKind.GOOGLE, id_token="a", access_token="b")

        with self.assertLogs("fedauth.backend.identity_toolkit", level="ERROR"):
            session = await self.backend.sign_in_with_credential(credential)

        self.assertIsNone(session.user)

    async def test_non_json_success_body_becomes_authentication_failed(self):
        """JSONでない成功応答は固定メッセージの認証失敗になる"""
        self.response_text = "<html>ok</html>"
        client = FederatedAuthClient(self.backend)
        credential = ProviderCredential(provider=ProviderKind.GOOGLE, id_token="a", access_token="b")

        with self.assertLogs("fedauth", level="ERROR"):
            with self.assertRaises(SignInError) as ctx:
                await client.exchange(credential)

        self.assertEqual(ctx.exception.kind, SignInErrorKind.AUTHENTICATION_FAILED)
        self.assertEqual(ctx.exception.message, AUTHENTICATION_FAILED_MESSAGE)

    async def test_http_error_passes_through(self):
        """HTTPエラーはhttpx.HTTPStatusErrorのまま送出される"""
        self.response_status = 400
        self.response_body = {"error": {"message": "INVALID_IDP_RESPONSE"}}
        credential = ProviderCredential(provider=ProviderKind.GOOGLE, id_token="a", access_token="b")

        with self.assertLogs("fedauth.backend.identity_toolkit", level="ERROR"):
            with self.assertRaises(httpx.HTTPStatusError):
                await self.backend.sign_in_with_credential(credential)
        self.assertIsNone(self.backend.current_session)

    async def test_sign_out_clears_session(self):
        """サインアウトでメモリ上のセッションを破棄すること"""
        credential = ProviderCredential(provider=ProviderKind.GOOGLE, id_token="a", access_token="b")
        await self.backend.sign_in_with_credential(credential)

        await self.backend.sign_out()

        self.assertIsNone(self.backend.current_session)


class TestIdentityToolkitBackendInit(unittest.TestCase):
    """初期化のテスト"""

    def test_api_key_required(self):
        with self.assertRaises(ValueError):
            IdentityToolkitBackend("")

    def test_repr_masks_api_key(self):
        backend = IdentityToolkitBackend("secret-api-key")
        self.assertNotIn("secret-api-key", repr(backend))
        self.assertIn("***-key", repr(backend))


if __name__ == "__main__":
    unittest.main()
