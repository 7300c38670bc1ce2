"""Runner that delegates script execution to a remote runner service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import backoff
import requests

from .base import Runner, RunnerError
from .script import RunResponse, Script, SecretStore

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


def _on_backoff(details: Any) -> None:
    logger.warning(
        "Runner request failed (attempt %d), retrying in %.1fs: %s",
        details["tries"],
        details["wait"],
        details.get("exception"),
    )


class HttpRunner(Runner):
    """Posts scripts to a runner service and decodes its response.

    The request body carries the script (base64), its settings, the check
    metadata and the secret store credentials.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        *,
        max_tries: int = 3,
        timeout_grace: float = 20.0,
        session: requests.Session | None = None,
    ):
        self.url = url.rstrip("/")
        self.max_tries = max_tries
        self.timeout_grace = timeout_grace
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def build_request(self, script: Script, secret_store: SecretStore) -> dict[str, Any]:
        body = script.to_dict()
        body["secretStore"] = secret_store.to_dict()
        return body

    def _post(self, body: dict[str, Any], timeout: float) -> dict[str, Any]:
        response = self.session.post(f"{self.url}/run", json=body, timeout=timeout)
        response.raise_for_status()
        return response.json()

    async def run(self, script: Script, secret_store: SecretStore) -> RunResponse:
        body = self.build_request(script, secret_store)
        request_timeout = script.settings.timeout + self.timeout_grace

        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self.max_tries,
            giveup=_is_permanent,
            jitter=backoff.full_jitter,
            on_backoff=_on_backoff,
        )
        async def _post_with_retry() -> dict[str, Any]:
            return await asyncio.to_thread(self._post, body, request_timeout)

        try:
            payload = await _post_with_retry()
        except requests.exceptions.RequestException as e:
            raise RunnerError(f"runner request to {self.url} failed: {e}") from e

        if not isinstance(payload, dict):
            raise RunnerError(f"unexpected runner response: {payload!r}")

        try:
            return RunResponse.from_dict(payload)
        except (ValueError, TypeError) as e:
            raise RunnerError(f"cannot decode runner response: {e}") from e
