from __future__ import annotations

from .base import (
    NoSecretProvider,
    SecretCredentials,
    SecretProvider,
    SecretProviderError,
)
from .http_provider import HttpSecretProvider

__all__ = [
    "HttpSecretProvider",
    "NoSecretProvider",
    "SecretCredentials",
    "SecretProvider",
    "SecretProviderError",
]
