from __future__ import annotations

from .base import (
    MetricsError,
    Runner,
    RunnerError,
    ScriptRejectedError,
    ScriptTimeoutError,
)
from .http_runner import HttpRunner
from .processor import Processor
from .script import (
    CheckInfo,
    RunResponse,
    Script,
    SecretStore,
    Settings,
    check_info_from_check,
)

__all__ = [
    "CheckInfo",
    "HttpRunner",
    "MetricsError",
    "Processor",
    "RunResponse",
    "Runner",
    "RunnerError",
    "Script",
    "ScriptRejectedError",
    "ScriptTimeoutError",
    "SecretStore",
    "Settings",
    "check_info_from_check",
]
