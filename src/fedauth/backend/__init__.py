"""IDバックエンドとの連携。"""

from __future__ import annotations

from fedauth.backend.client import FederatedAuthClient, IdentityBackend
from fedauth.backend.identity_toolkit import IdentityToolkitBackend

__all__ = [
    "FederatedAuthClient",
    "IdentityBackend",
    "IdentityToolkitBackend",
]
