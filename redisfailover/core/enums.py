from __future__ import annotations

from enum import StrEnum


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class ReconciliationMode(StrEnum):
    FRESH = "fresh"
    ADOPT = "adopt"


class ViolationCode(StrEnum):
    """Machine-readable reason attached to every violation record."""

    MALFORMED_FIELD = "MalformedField"
    NAME_TOO_LONG = "NameTooLong"
    REDIS_REPLICAS_NEGATIVE = "RedisReplicasNegative"
    SENTINEL_REPLICAS_NEGATIVE = "SentinelReplicasNegative"
    SENTINEL_QUORUM_TOO_SMALL = "SentinelQuorumTooSmall"
    EMPTY_COMMAND_RENAME_SOURCE = "EmptyCommandRenameSource"
    DUPLICATE_COMMAND_RENAME_SOURCE = "DuplicateCommandRenameSource"
    CONFLICTING_STORAGE_BACKENDS = "ConflictingStorageBackends"
    BOOTSTRAP_MISSING_ENDPOINT = "BootstrapMissingEndpoint"
    BOOTSTRAP_INVALID_PORT = "BootstrapInvalidPort"
    INVALID_AUTH_REFERENCE = "InvalidAuthReference"
