"""Scripted check prober."""

from __future__ import annotations

from .probers import ScriptedProber, UnsupportedCheckError, new_prober

__all__ = ["ScriptedProber", "UnsupportedCheckError", "new_prober"]
