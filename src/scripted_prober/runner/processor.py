"""Binds a script to a runner and turns runner output into a probe outcome."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator

from prometheus_client import CollectorRegistry
from prometheus_client.metrics_core import Metric
from prometheus_client.parser import text_string_to_metric_families

from .base import MetricsError, Runner, ScriptRejectedError, ScriptTimeoutError
from .script import RunResponse, Script, SecretStore


class _ScriptMetricsCollector:
    """Exposes the metric families reported by one script execution."""

    def __init__(self, families: list[Metric]):
        self._families = families

    def describe(self) -> list[Metric]:
        return self._families

    def collect(self) -> Iterator[Metric]:
        return iter(self._families)


def parse_metrics(text: bytes) -> list[Metric]:
    """Parse Prometheus text exposition into metric families.

    Raises:
        MetricsError: If the payload is not valid exposition text
    """
    try:
        return list(text_string_to_metric_families(text.decode("utf-8")))
    except (UnicodeDecodeError, ValueError) as e:
        raise MetricsError(f"invalid metrics from script: {e}") from e


class Processor:
    """Handle that runs one bound script on a runner."""

    def __init__(self, script: Script, runner: Runner):
        if not script.script:
            raise ScriptRejectedError("script is empty")
        if script.settings.timeout <= 0:
            raise ScriptRejectedError(
                f"script timeout must be positive, got {script.settings.timeout}"
            )
        self._script = script
        self._runner = runner

    @property
    def script(self) -> Script:
        return self._script

    @property
    def deadline(self) -> float:
        """Seconds to wait for the runner, including its own allowance."""
        return self._script.settings.timeout + self._runner.timeout_grace

    async def run(
        self,
        registry: CollectorRegistry,
        result_logger: logging.Logger,
        diagnostic_logger: logging.Logger,
        secret_store: SecretStore,
    ) -> bool:
        """Execute the bound script and report whether it succeeded.

        Script log lines go to result_logger and script metrics are
        registered on registry.

        Returns:
            True if the script ran and passed, False if it ran and failed

        Raises:
            ScriptTimeoutError: If the runner does not answer before the deadline
            RunnerError: If the runner could not execute the script
            MetricsError: If the reported metrics cannot be registered
        """
        try:
            response = await asyncio.wait_for(
                self._runner.run(self._script, secret_store), timeout=self.deadline
            )
        except asyncio.TimeoutError as e:
            raise ScriptTimeoutError(
                f"script did not finish within {self.deadline:.1f}s"
            ) from e

        self._forward_logs(response, result_logger)
        self._register_metrics(response, registry)

        if response.failed:
            result_logger.error(
                "script failed: error=%r error_code=%r",
                response.error,
                response.error_code,
            )
            diagnostic_logger.debug(
                "script reported failure: error=%r error_code=%r",
                response.error,
                response.error_code,
            )
            return False

        return True

    @staticmethod
    def _forward_logs(response: RunResponse, result_logger: logging.Logger) -> None:
        for line in response.logs.decode("utf-8", errors="replace").splitlines():
            if line.strip():
                result_logger.info(line)

    @staticmethod
    def _register_metrics(response: RunResponse, registry: CollectorRegistry) -> None:
        if not response.metrics:
            return
        families = parse_metrics(response.metrics)
        try:
            registry.register(_ScriptMetricsCollector(families))
        except ValueError as e:
            raise MetricsError(f"cannot register script metrics: {e}") from e
