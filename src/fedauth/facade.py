"""
サインインファサード

プロバイダアダプタとFederatedAuthClientを組み合わせ、
プロバイダに依存しない sign_in / sign_out の契約を提供する。
"""

from __future__ import annotations

import logging
from typing import Any

from fedauth.backend.client import FederatedAuthClient
from fedauth.errors import SignInError, SignInErrorKind
from fedauth.models import ProviderKind
from fedauth.presentation import PresentationSurfaceProvider
from fedauth.providers.base import SignInAdapter, SignInAttempt

logger = logging.getLogger(__name__)


class SignInFacade:
    """1つのプロバイダに対する統一サインイン窓口

    試行ごとの状態はSignInAttemptに閉じているため、
    同一インスタンスでの並行サインインも安全に行える。
    """

    def __init__(
        self,
        adapter: SignInAdapter,
        auth_client: FederatedAuthClient,
        presentation: PresentationSurfaceProvider,
    ):
        """SignInFacadeを初期化

        Args:
            adapter: プロバイダアダプタ
            auth_client: 共有のFederatedAuthClient
            presentation: 表示先の提供元
        """
        self._adapter = adapter
        self._auth_client = auth_client
        self._presentation = presentation
        self._sign_out_generation = 0

    @property
    def provider(self) -> ProviderKind:
        return self._adapter.kind

    async def sign_in(self) -> Any:
        """サインインを実行し、プロバイダ固有のユーザーを返す

        Returns:
            AppleSignInUser / GoogleSignInUser / FacebookSignInUser

        Raises:
            SignInError: 分類済みの失敗
            Exception: プロバイダSDKやバックエンドの未分類エラー（変換しない）
        """
        anchor = self._presentation.current_anchor()
        if anchor is None:
            error = SignInError(SignInErrorKind.MISSING_ROOT_SCREEN, provider=self.provider)
            self._log_error(error)
            raise error

        attempt = SignInAttempt(anchor=anchor, generation=self._sign_out_generation)
        logger.info(f"Sign-in started: provider={self.provider.name} attempt={attempt.attempt_id}")

        try:
            credential = await self._adapter.obtain_credential(attempt)
            if attempt.generation != self._sign_out_generation:
                raise SignInError(
                    SignInErrorKind.AUTHENTICATION_FAILED,
                    "サインイン中にサインアウトされたため、試行を破棄しました。",
                    provider=self.provider,
                )
            user = await self._auth_client.exchange(credential)
        except SignInError as exc:
            self._log_error(exc, attempt)
            raise
        except Exception as exc:
            logger.error(
                "Sign-in failed: provider=%s attempt=%s error=%s: %s",
                self.provider.name,
                attempt.attempt_id,
                type(exc).__name__,
                exc,
            )
            raise

        logger.info(f"Sign-in completed: provider={self.provider.name} attempt={attempt.attempt_id}")
        return self._adapter.project_user(user)

    async def sign_out(self) -> None:
        """バックエンドとプロバイダのセッションを破棄する

        バックエンドのサインアウトに失敗した場合、プロバイダ側のログアウトは行わない。
        """
        self._sign_out_generation += 1
        await self._auth_client.sign_out()
        await self._adapter.sign_out_native()

    def _log_error(self, error: SignInError, attempt: SignInAttempt | None = None) -> None:
        attempt_id = attempt.attempt_id if attempt is not None else "-"
        logger.log(
            error.log_level,
            "Sign-in failed: provider=%s attempt=%s kind=%s",
            self.provider.name,
            attempt_id,
            error.kind.value,
        )
