"""Secret provider backed by the tenant secrets HTTP API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import backoff
import requests

from .base import SecretCredentials, SecretProvider, SecretProviderError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _is_permanent(e: Exception) -> bool:
    if isinstance(e, requests.exceptions.JSONDecodeError):
        return True
    return (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRYABLE_STATUS_CODES
    )


class HttpSecretProvider(SecretProvider):
    """Fetches secret credentials from the secrets API.

    Transient failures (transport errors, 429 and 5xx) are retried with
    exponential backoff. A 404 means the tenant has no credentials.
    """

    def __init__(
        self,
        api_url: str,
        api_token: str | None = None,
        *,
        max_tries: int = 3,
        request_timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.max_tries = max_tries
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        if api_token:
            self.session.headers["Authorization"] = f"Bearer {api_token}"

    def credentials_url(self, tenant_id: int) -> str:
        return f"{self.api_url}/api/v1/tenants/{tenant_id}/secrets/credentials"

    def _get(self, url: str) -> dict[str, Any] | None:
        response = self.session.get(url, timeout=self.request_timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    async def get_secret_credentials(self, tenant_id: int) -> SecretCredentials | None:
        url = self.credentials_url(tenant_id)

        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self.max_tries,
            giveup=_is_permanent,
            jitter=backoff.full_jitter,
        )
        async def _get_with_retry() -> dict[str, Any] | None:
            return await asyncio.to_thread(self._get, url)

        try:
            payload = await _get_with_retry()
        except requests.exceptions.RequestException as e:
            logger.error("Failed to fetch secret credentials for tenant %d: %s", tenant_id, e)
            raise SecretProviderError(
                f"cannot fetch secret credentials for tenant {tenant_id}: {e}"
            ) from e

        if payload is None:
            logger.debug("No secret credentials configured for tenant %d", tenant_id)
            return None

        try:
            return SecretCredentials(
                url=payload["url"],
                token=payload["token"],
                expires_at=payload.get("expiresAt"),
            )
        except (KeyError, TypeError) as e:
            raise SecretProviderError(
                f"malformed secret credentials for tenant {tenant_id}: {e}"
            ) from e
