from __future__ import annotations

from .base import BaseProber
from .scripted import (
    PROBER_NAME,
    CredentialsRetriever,
    Module,
    ScriptedProber,
    UnsupportedCheckError,
    new_prober,
)

__all__ = [
    "BaseProber",
    "CredentialsRetriever",
    "Module",
    "PROBER_NAME",
    "ScriptedProber",
    "UnsupportedCheckError",
    "new_prober",
]
