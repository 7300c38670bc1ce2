"""Base class for script runners."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .script import RunResponse, Script, SecretStore


class RunnerError(RuntimeError):
    """Raised when the engine fails to execute a script."""


class ScriptRejectedError(RunnerError):
    """Raised when a script cannot be bound to a runner."""


class ScriptTimeoutError(RunnerError):
    """Raised when a script does not finish within its timeout."""


class MetricsError(RunnerError):
    """Raised when metrics produced by a script cannot be collected."""


class Runner(ABC):
    """Executes scripts on behalf of the probers."""

    # Extra seconds the runner may take beyond the script timeout.
    timeout_grace: float = 0.0

    @abstractmethod
    async def run(self, script: Script, secret_store: SecretStore) -> RunResponse:
        """Execute the script and return its raw outcome.

        Raises:
            RunnerError: If the script could not be executed at all
        """
        pass
