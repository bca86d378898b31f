"""FederatedAuthClientのユニットテスト"""

import unittest
from unittest.mock import AsyncMock, MagicMock

from fedauth.backend.client import FederatedAuthClient
from fedauth.errors import AUTHENTICATION_FAILED_MESSAGE, SignInError, SignInErrorKind
from fedauth.models import IdentitySession, ProviderCredential, ProviderKind, UnifiedUser


def make_backend(session=None, error=None):
    backend = MagicMock()
    backend.sign_in_with_credential = AsyncMock(return_value=session, side_effect=error)
    backend.sign_out = AsyncMock()
    return backend


class TestFederatedAuthClientExchange(unittest.IsolatedAsyncioTestCase):
    """exchangeのテスト"""

    def setUp(self):
        self.credential = ProviderCredential(
            provider=ProviderKind.APPLE, id_token="token", raw_nonce="nonce"
        )

    async def test_returns_backend_user(self):
        """バックエンドのユーザーをそのまま返す"""
        user = UnifiedUser(uid="u1", email="a@b.com")
        backend = make_backend(session=IdentitySession(user=user))

        result = await FederatedAuthClient(backend).exchange(self.credential)

        self.assertIs(result, user)
        backend.sign_in_with_credential.assert_awaited_once_with(self.credential)

    async def test_missing_user_is_authentication_failed(self):
        """ユーザーを含まない成功応答は固定メッセージのAUTHENTICATION_FAILED"""
        backend = make_backend(session=IdentitySession(user=None))

        with self.assertLogs("fedauth.backend.client", level="ERROR"):
            with self.assertRaises(SignInError) as ctx:
                await FederatedAuthClient(backend).exchange(self.credential)

        self.assertIs(ctx.exception.kind, SignInErrorKind.AUTHENTICATION_FAILED)
        self.assertEqual(ctx.exception.message, AUTHENTICATION_FAILED_MESSAGE)

    async def test_missing_session_is_authentication_failed(self):
        """セッション自体がNoneでも同じ扱い"""
        backend = make_backend(session=None)

        with self.assertLogs("fedauth.backend.client", level="ERROR"):
            with self.assertRaises(SignInError) as ctx:
                await FederatedAuthClient(backend).exchange(self.credential)

        self.assertEqual(ctx.exception.message, "Authentication failed.")

    async def test_backend_error_passes_through(self):
        """バックエンドのエラーは変換されず、再試行もされない"""
        failure = ConnectionError("backend down")
        backend = make_backend(error=failure)

        with self.assertRaises(ConnectionError) as ctx:
            await FederatedAuthClient(backend).exchange(self.credential)

        self.assertIs(ctx.exception, failure)
        self.assertEqual(backend.sign_in_with_credential.await_count, 1)


class TestFederatedAuthClientSignOut(unittest.IsolatedAsyncioTestCase):
    """sign_outのテスト"""

    async def test_delegates_to_backend(self):
        backend = make_backend()
        await FederatedAuthClient(backend).sign_out()
        backend.sign_out.assert_awaited_once()

    async def test_error_passes_through(self):
        backend = make_backend()
        backend.sign_out.side_effect = RuntimeError("sign-out failed")

        with self.assertRaises(RuntimeError):
            await FederatedAuthClient(backend).sign_out()


if __name__ == "__main__":
    unittest.main()
