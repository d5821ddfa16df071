"""Declarative configuration model for Redis failover topologies."""

from __future__ import annotations

from .config import TopologyDefaults
from .core import ReconciliationMode, Severity, ViolationCode
from .exceptions import CRDGenerationError, DescriptorRejectedError, RedisFailoverError
from .topology import (
    TopologyDescriptor,
    TopologySpec,
    ValidationResult,
    Violation,
    generate_crd,
    render_crd,
    validate_descriptor,
    validate_spec,
)

__all__ = [
    "CRDGenerationError",
    "DescriptorRejectedError",
    "ReconciliationMode",
    "RedisFailoverError",
    "Severity",
    "TopologyDefaults",
    "TopologyDescriptor",
    "TopologySpec",
    "ValidationResult",
    "Violation",
    "ViolationCode",
    "generate_crd",
    "render_crd",
    "validate_descriptor",
    "validate_spec",
]
