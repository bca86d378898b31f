"""IDプロバイダアダプタの公開API。"""

from __future__ import annotations

from fedauth.providers.apple import (
    AppleAuthorization,
    AppleAuthorizationController,
    AppleIDCredential,
    AppleIDRequest,
    AppleSignInAdapter,
)
from fedauth.providers.base import SignInAdapter, SignInAttempt
from fedauth.providers.facebook import (
    FacebookLoginManager,
    FacebookLoginResult,
    FacebookSignInAdapter,
    classify_login_result,
)
from fedauth.providers.google import (
    GOOGLE_SIGN_IN_CANCELED_CODE,
    GoogleSignInAdapter,
    GoogleSignInClient,
    GoogleSignInResult,
    GoogleSignInSDKError,
)
from fedauth.providers.google_loopback import LoopbackGoogleSignInClient

__all__ = [
    "AppleAuthorization",
    "AppleAuthorizationController",
    "AppleIDCredential",
    "AppleIDRequest",
    "AppleSignInAdapter",
    "FacebookLoginManager",
    "FacebookLoginResult",
    "FacebookSignInAdapter",
    "GOOGLE_SIGN_IN_CANCELED_CODE",
    "GoogleSignInAdapter",
    "GoogleSignInClient",
    "GoogleSignInResult",
    "GoogleSignInSDKError",
    "LoopbackGoogleSignInClient",
    "SignInAdapter",
    "SignInAttempt",
    "classify_login_result",
]
