"""Core module exports."""

from __future__ import annotations

from .enums import ReconciliationMode, Severity, ViolationCode

__all__ = [
    "ReconciliationMode",
    "Severity",
    "ViolationCode",
]
