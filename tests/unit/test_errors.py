"""
エラー定義のユニットテスト
"""

import logging
import unittest

from fedauth.errors import (
    AUTHENTICATION_FAILED_MESSAGE,
    ERROR_KIND_LOG_LEVEL,
    SignInError,
    SignInErrorKind,
)
from fedauth.models import ProviderKind


class TestSignInErrorKind(unittest.TestCase):
    """SignInErrorKind列挙型のテスト"""

    def test_closed_set(self):
        """定義済みの種別だけが存在すること"""
        self.assertEqual(
            {kind.value for kind in SignInErrorKind},
            {
                "missing_root_screen",
                "user_canceled",
                "authorization_failed",
                "authentication_failed",
                "missing_configuration",
                "incomplete_credential",
            },
        )

    def test_every_kind_has_log_level(self):
        """全種別にログレベルが対応付けられていること"""
        for kind in SignInErrorKind:
            self.assertIn(kind, ERROR_KIND_LOG_LEVEL)


class TestSignInError(unittest.TestCase):
    """SignInError例外のテスト"""

    def test_default_message(self):
        """メッセージ省略時は種別ごとの既定メッセージ"""
        error = SignInError(SignInErrorKind.AUTHENTICATION_FAILED)
        self.assertEqual(error.message, AUTHENTICATION_FAILED_MESSAGE)
        self.assertEqual(str(error), "[authentication_failed] Authentication failed.")

    def test_provider_and_details(self):
        """プロバイダと詳細情報を保持すること"""
        error = SignInError(
            SignInErrorKind.INCOMPLETE_CREDENTIAL,
            "不足",
            provider=ProviderKind.GOOGLE,
            details={"missing": ["id_token"]},
        )
        self.assertIs(error.provider, ProviderKind.GOOGLE)
        self.assertEqual(error.details, {"missing": ["id_token"]})
        self.assertEqual(error.message, "不足")

    def test_user_cancellation_flag(self):
        """キャンセルとインフラ障害を区別できること"""
        self.assertTrue(SignInError(SignInErrorKind.USER_CANCELED).is_user_cancellation)
        self.assertFalse(SignInError(SignInErrorKind.AUTHORIZATION_FAILED).is_user_cancellation)

    def test_cancellation_logs_at_info(self):
        """キャンセルはINFOで記録される"""
        self.assertEqual(SignInError(SignInErrorKind.USER_CANCELED).log_level, logging.INFO)
        self.assertEqual(SignInError(SignInErrorKind.AUTHORIZATION_FAILED).log_level, logging.ERROR)


if __name__ == "__main__":
    unittest.main()
