"""Prober for checks defined by a user-supplied script."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from prometheus_client import CollectorRegistry

from ..model import Check, CheckType
from ..runner import (
    Processor,
    Runner,
    Script,
    SecretStore,
    Settings,
    check_info_from_check,
)
from ..secrets import SecretProvider
from .base import BaseProber

PROBER_NAME = CheckType.SCRIPTED.value


class UnsupportedCheckError(ValueError):
    """Raised when a check is not of the kind a prober handles."""


@dataclass(frozen=True)
class Module:
    """Execution descriptor built once per prober."""

    prober: str
    script: Script


@dataclass(frozen=True)
class CredentialsRetriever:
    """Fetches the tenant's secret store credentials on every call.

    Results are never cached. Retrying is left to the provider.
    """

    provider: SecretProvider
    tenant_id: int

    async def resolve(self) -> SecretStore:
        credentials = await self.provider.get_secret_credentials(self.tenant_id)
        if credentials is None:
            return SecretStore()
        return SecretStore(url=credentials.url, token=credentials.token)


class ScriptedProber(BaseProber):
    """Runs a check's script through the execution engine.

    Raises on construction if the check is not scripted or the engine
    rejects the script.
    """

    def __init__(
        self,
        check: Check,
        logger: logging.Logger,
        runner: Runner,
        store: SecretProvider,
    ):
        if check.settings.scripted is None:
            raise UnsupportedCheckError(
                f"unsupported check: check {check.id} is not a {PROBER_NAME} check"
            )

        self._module = Module(
            prober=PROBER_NAME,
            script=Script(
                script=check.settings.scripted.script,
                settings=Settings(timeout=check.timeout),
                check_info=check_info_from_check(check),
            ),
        )
        self._processor = Processor(self._module.script, runner)
        self._logger = logger
        self._credentials = CredentialsRetriever(
            provider=store, tenant_id=check.global_tenant_id()
        )

    @property
    def name(self) -> str:
        return PROBER_NAME

    @property
    def module(self) -> Module:
        return self._module

    @property
    def credentials(self) -> CredentialsRetriever:
        return self._credentials

    async def probe(
        self,
        target: str,
        registry: CollectorRegistry,
        result_logger: logging.Logger,
    ) -> tuple[bool, float]:
        """Run the script once.

        Credential and engine failures are logged and reported as a failed
        probe. Duration is always 0.
        """
        try:
            secret_store = await self._credentials.resolve()
        except Exception as e:
            self._logger.error("running probe: %s", e, exc_info=True)
            return False, 0.0

        try:
            success = await self._processor.run(
                registry, result_logger, self._logger, secret_store
            )
        except Exception as e:
            self._logger.error("running probe: %s", e, exc_info=True)
            return False, 0.0

        # TODO: extract the script's own duration from its metrics once the
        # runner reports it.
        return success, 0.0


def new_prober(
    check: Check,
    logger: logging.Logger,
    runner: Runner,
    store: SecretProvider,
) -> ScriptedProber:
    return ScriptedProber(check, logger, runner, store)
