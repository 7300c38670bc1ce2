"""Base class for secret providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class SecretProviderError(RuntimeError):
    """Raised when credentials cannot be retrieved."""


@dataclass(frozen=True)
class SecretCredentials:
    """Credentials granting a script runtime access to a tenant's secrets."""

    url: str
    token: str = field(repr=False)
    expires_at: float | None = None


class SecretProvider(ABC):
    """Looks up secret credentials for a tenant."""

    @abstractmethod
    async def get_secret_credentials(self, tenant_id: int) -> SecretCredentials | None:
        """Fetch the current credentials for a tenant.

        Args:
            tenant_id: Global tenant id

        Returns:
            The credentials, or None if the tenant has none configured
        """
        pass


class NoSecretProvider(SecretProvider):
    """Provider for deployments without a secrets backend."""

    async def get_secret_credentials(self, tenant_id: int) -> SecretCredentials | None:
        return None
