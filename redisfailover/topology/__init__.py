"""RedisFailover topology descriptor: wire schema, normalized model and validation.

Usage
-----
Validate a descriptor delivered by the hosting platform::

    result = validate_descriptor(document)
    if result.ok:
        reconcile(result.descriptor)
    else:
        report(result.violations)

Or insist on a normalized spec::

    spec = validate_spec(document["spec"]).unwrap()
"""

from .crd import CRDSettings, PrinterColumn, generate_crd, render_crd, spec_schema
from .documents import (
    AuthDocument,
    BootstrapDocument,
    CommandRenameDocument,
    DescriptorDocument,
    ExporterDocument,
    MetadataDocument,
    RedisDocument,
    SentinelDocument,
    SpecDocument,
    StorageDocument,
)
from .models import (
    AuthRef,
    BootstrapRef,
    CommandRename,
    EphemeralStorage,
    Exporter,
    ObjectIdentity,
    PersistentClaimStorage,
    RedisTier,
    SentinelTier,
    Storage,
    TopologyDescriptor,
    TopologySpec,
)
from .validation import validate_descriptor, validate_spec
from .violations import DefaultApplied, ValidationResult, Violation

__all__ = [
    # Validation
    "validate_descriptor",
    "validate_spec",
    "DefaultApplied",
    "ValidationResult",
    "Violation",
    # Normalized model
    "AuthRef",
    "BootstrapRef",
    "CommandRename",
    "EphemeralStorage",
    "Exporter",
    "ObjectIdentity",
    "PersistentClaimStorage",
    "RedisTier",
    "SentinelTier",
    "Storage",
    "TopologyDescriptor",
    "TopologySpec",
    # Wire schema
    "AuthDocument",
    "BootstrapDocument",
    "CommandRenameDocument",
    "DescriptorDocument",
    "ExporterDocument",
    "MetadataDocument",
    "RedisDocument",
    "SentinelDocument",
    "SpecDocument",
    "StorageDocument",
    # CRD
    "CRDSettings",
    "PrinterColumn",
    "generate_crd",
    "render_crd",
    "spec_schema",
]
