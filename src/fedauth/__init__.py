"""fedauth - 外部IDプロバイダによるサインインを統一するクライアントライブラリ"""

from fedauth.backend import FederatedAuthClient, IdentityBackend, IdentityToolkitBackend
from fedauth.config import FedAuthSettings, load_settings
from fedauth.errors import SignInError, SignInErrorKind
from fedauth.facade import SignInFacade
from fedauth.factory import create_auth_client, create_sign_in_facade
from fedauth.models import (
    AppleSignInUser,
    FacebookSignInUser,
    GoogleSignInUser,
    ProviderCredential,
    ProviderKind,
    UnifiedUser,
)
from fedauth.nonce import EntropySourceError, generate_nonce

__version__ = "0.1.0"

__all__ = [
    "AppleSignInUser",
    "EntropySourceError",
    "FacebookSignInUser",
    "FedAuthSettings",
    "FederatedAuthClient",
    "GoogleSignInUser",
    "IdentityBackend",
    "IdentityToolkitBackend",
    "ProviderCredential",
    "ProviderKind",
    "SignInError",
    "SignInErrorKind",
    "SignInFacade",
    "UnifiedUser",
    "create_auth_client",
    "create_sign_in_facade",
    "generate_nonce",
    "load_settings",
]
