"""Base class for probers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from prometheus_client import CollectorRegistry


class BaseProber(ABC):
    """Base class for all probers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier of the prober kind, used for logging and labels."""
        pass

    @abstractmethod
    async def probe(
        self,
        target: str,
        registry: CollectorRegistry,
        result_logger: logging.Logger,
    ) -> tuple[bool, float]:
        """Probe the target once.

        Returns:
            (success, duration in seconds)
        """
        pass
