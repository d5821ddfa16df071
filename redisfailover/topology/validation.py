"""Validation and defaulting of RedisFailover descriptors.

Both entry points are pure: they take one raw document and return one
immutable :class:`ValidationResult`. Every rule runs to completion and all
violations are returned together, so an author can fix everything in a
single edit. Defaults are only applied once no error-severity violation was
found; a rejected input never yields a partially defaulted spec.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from ..config import TopologyDefaults
from ..core.enums import Severity, ViolationCode
from ..logger import get_logger
from .documents import (
    AuthDocument,
    BootstrapDocument,
    DescriptorDocument,
    ExporterDocument,
    MetadataDocument,
    RedisDocument,
    SentinelDocument,
    SpecDocument,
    TierDocument,
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
    TopologyDescriptor,
    TopologySpec,
)
from .violations import DefaultApplied, ValidationResult, Violation

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails
    from structlog.stdlib import BoundLogger

    from .models import Storage

logger: BoundLogger = get_logger(__name__)

_PASSTHROUGH_FIELDS = (
    "image_pull_policy",
    "resources",
    "affinity",
    "security_context",
    "node_selector",
    "pod_annotations",
    "service_annotations",
    "priority_class_name",
    "service_account_name",
)
_SEQUENCE_FIELDS = ("custom_config", "command", "image_pull_secrets", "tolerations")


class _Findings:
    """Accumulates violations and default substitutions for one run."""

    def __init__(self) -> None:
        self.violations: list[Violation] = []
        self.defaults: list[DefaultApplied] = []
        self.malformed: set[str] = set()

    @property
    def has_errors(self) -> bool:
        return any(v.fatal for v in self.violations)

    def malformed_field(self, path: str, message: str) -> None:
        if path in self.malformed:
            return
        self.malformed.add(path)
        self.violations.append(
            Violation(code=ViolationCode.MALFORMED_FIELD, severity=Severity.ERROR, path=path, message=message)
        )

    def error(self, code: ViolationCode, path: str, message: str) -> None:
        # A field already reported as malformed was pruned before the rules ran.
        if path in self.malformed:
            return
        self.violations.append(Violation(code=code, severity=Severity.ERROR, path=path, message=message))

    def warn(self, code: ViolationCode, path: str, message: str) -> None:
        self.violations.append(Violation(code=code, severity=Severity.WARNING, path=path, message=message))

    def default(self, path: str, value: Any) -> None:
        self.defaults.append(DefaultApplied(path=path, value=value))


def _format_loc(loc: tuple[int | str, ...], prefix: str) -> str:
    path = prefix
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else part
    return path or "<root>"


def _offending_key(data: dict[str, Any], loc: tuple[int | str, ...]) -> tuple[int | str, ...] | None:
    """Return the location of the deepest mapping key that ``loc`` reaches in ``data``.

    Union branch tags in ``loc`` do not exist in the data and are skipped by
    stopping at the last real node. A bad list item resolves to the key that
    holds the whole list, so sibling item indices never shift.
    """
    node: Any = data
    reached: list[int | str] = []
    for part in loc:
        if isinstance(node, dict) and isinstance(part, str) and part in node:
            node = node[part]
        elif isinstance(node, list) and isinstance(part, int) and 0 <= part < len(node):
            node = node[part]
        else:
            break
        reached.append(part)
    while reached and isinstance(reached[-1], int):
        reached.pop()
    return tuple(reached) or None


def _prune(data: dict[str, Any], key: tuple[int | str, ...]) -> None:
    node: Any = data
    for part in key[:-1]:
        node = node[part]
    del node[key[-1]]


def _parse[M: BaseModel](model: type[M], raw: Mapping[str, Any] | None, prefix: str, findings: _Findings) -> M | None:
    """Parse ``raw`` into ``model``, cutting out every field that does not fit.

    Each offending field is reported as ``MalformedField`` and removed from a
    private copy of the document, which is then parsed again. The semantic
    rules therefore still see every well-formed part of the input. ``None`` is
    returned only when the document itself is not a mapping.
    """
    if raw is not None and not isinstance(raw, Mapping):
        findings.malformed_field(prefix or "<root>", "Input should be a valid dictionary")
        return None
    data: dict[str, Any] = copy.deepcopy(dict(raw or {}))
    while True:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            errors: list[ErrorDetails] = exc.errors(include_url=False)

        offending: dict[tuple[int | str, ...], str] = {}
        for err in errors:
            key = _offending_key(data, err["loc"])
            if key is None:
                findings.malformed_field(_format_loc(err["loc"], prefix), err["msg"])
                return None
            offending.setdefault(key, err["msg"])

        pruned: list[tuple[int | str, ...]] = []
        for key in sorted(offending, key=len):
            if any(key[: len(done)] == done for done in pruned):
                continue
            findings.malformed_field(_format_loc(key, prefix), offending[key])
            _prune(data, key)
            pruned.append(key)


def _is_blank(value: str | int | None) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# Rules


def _check_replicas(spec: SpecDocument, defaults: TopologyDefaults, findings: _Findings) -> None:
    redis = spec.redis or RedisDocument()
    if redis.replicas is not None and redis.replicas < 0:
        findings.error(
            ViolationCode.REDIS_REPLICAS_NEGATIVE,
            "spec.redis.replicas",
            f"redis replicas must be >= 0, got {redis.replicas}",
        )

    sentinel = spec.sentinel or SentinelDocument()
    count = sentinel.replicas if sentinel.replicas is not None else defaults.sentinel_replicas
    delegated = spec.bootstrap_node is not None and bool(spec.bootstrap_node.allow_sentinels)
    path = "spec.sentinel.replicas"

    if count < 0:
        findings.error(ViolationCode.SENTINEL_REPLICAS_NEGATIVE, path, f"sentinel replicas must be >= 0, got {count}")
    elif count == 0:
        if not delegated:
            findings.error(
                ViolationCode.SENTINEL_QUORUM_TOO_SMALL,
                path,
                "no sentinels means no automatic failover; set replicas or delegate with bootstrapNode.allowSentinels",
            )
    elif count < defaults.min_sentinel_quorum:
        findings.warn(
            ViolationCode.SENTINEL_QUORUM_TOO_SMALL,
            path,
            f"{count} sentinel(s) cannot form a fault-tolerant majority; "
            f"use at least {defaults.min_sentinel_quorum}",
        )


def _check_command_renames(redis: RedisDocument, findings: _Findings) -> None:
    first_seen: dict[str, int] = {}
    reported: set[str] = set()

    for index, rename in enumerate(redis.custom_command_renames or ()):
        path = f"spec.redis.customCommandRenames[{index}].from"
        if _is_blank(rename.from_):
            findings.error(ViolationCode.EMPTY_COMMAND_RENAME_SOURCE, path, "command rename needs a source command")
            continue

        # Redis matches command names case-insensitively.
        key = rename.from_.strip().upper()  # type: ignore[union-attr]
        if key not in first_seen:
            first_seen[key] = index
        elif key not in reported:
            reported.add(key)
            findings.error(
                ViolationCode.DUPLICATE_COMMAND_RENAME_SOURCE,
                path,
                f"command {key} is already renamed by entry {first_seen[key]}",
            )


def _check_storage(redis: RedisDocument, findings: _Findings) -> None:
    storage = redis.storage
    if storage is not None and storage.empty_dir is not None and storage.persistent_volume_claim is not None:
        findings.error(
            ViolationCode.CONFLICTING_STORAGE_BACKENDS,
            "spec.redis.storage",
            "set either emptyDir or persistentVolumeClaim, not both",
        )


def _check_bootstrap(bootstrap: BootstrapDocument, findings: _Findings) -> None:
    if _is_blank(bootstrap.host):
        findings.error(ViolationCode.BOOTSTRAP_MISSING_ENDPOINT, "spec.bootstrapNode.host", "bootstrap host is empty")

    if _is_blank(bootstrap.port):
        findings.error(ViolationCode.BOOTSTRAP_MISSING_ENDPOINT, "spec.bootstrapNode.port", "bootstrap port is empty")
    elif _parse_port(bootstrap.port) is None:
        findings.error(
            ViolationCode.BOOTSTRAP_INVALID_PORT,
            "spec.bootstrapNode.port",
            f"bootstrap port must be an integer between 1 and 65535, got {bootstrap.port!r}",
        )


def _parse_port(value: str | int | None) -> int | None:
    try:
        port = int(str(value).strip())
    except ValueError:
        return None
    return port if 1 <= port <= 65535 else None


def _check_auth(auth: AuthDocument, findings: _Findings) -> None:
    if auth.disabled:
        return
    if _is_blank(auth.secret_path):
        findings.error(
            ViolationCode.INVALID_AUTH_REFERENCE,
            "spec.auth.secretPath",
            "secretPath is required unless auth.disabled is true",
        )


def _check_spec(spec: SpecDocument, defaults: TopologyDefaults, findings: _Findings) -> None:
    redis = spec.redis or RedisDocument()
    _check_replicas(spec, defaults, findings)
    _check_command_renames(redis, findings)
    _check_storage(redis, findings)
    if spec.bootstrap_node is not None:
        _check_bootstrap(spec.bootstrap_node, findings)
    _check_auth(spec.auth or AuthDocument(), findings)


# Defaulting


def _default_str(value: str | None, default: str, path: str, findings: _Findings) -> str:
    if _is_blank(value):
        findings.default(path, default)
        return default
    return value  # type: ignore[return-value]


def _default_int(value: int | None, default: int, path: str, findings: _Findings) -> int:
    if value is None:
        findings.default(path, default)
        return default
    return value


def _normalize_exporter(exporter: ExporterDocument | None, image: str, path: str, findings: _Findings) -> Exporter:
    exporter = exporter or ExporterDocument()
    return Exporter(
        enabled=bool(exporter.enabled),
        image=_default_str(exporter.image, image, f"{path}.image", findings),
        image_pull_policy=exporter.image_pull_policy,
        args=tuple(exporter.args or ()),
        env=tuple(exporter.env or ()),
    )


def _tier_fields(
    tier: TierDocument,
    path: str,
    *,
    image: str,
    replicas: int,
    exporter_image: str,
    defaults: TopologyDefaults,
    findings: _Findings,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        name: getattr(tier, name) for name in _PASSTHROUGH_FIELDS if getattr(tier, name) is not None
    }
    fields.update({name: tuple(getattr(tier, name)) for name in _SEQUENCE_FIELDS if getattr(tier, name) is not None})
    fields.update(
        image=_default_str(tier.image, image, f"{path}.image", findings),
        replicas=_default_int(tier.replicas, replicas, f"{path}.replicas", findings),
        exporter=_normalize_exporter(tier.exporter, exporter_image, f"{path}.exporter", findings),
        host_network=bool(tier.host_network),
        dns_policy=_default_str(tier.dns_policy, defaults.dns_policy, f"{path}.dnsPolicy", findings),
        termination_grace_period_seconds=_default_int(
            tier.termination_grace_period_seconds,
            defaults.termination_grace_period_seconds,
            f"{path}.terminationGracePeriod",
            findings,
        ),
    )
    return fields


def _normalize_storage(redis: RedisDocument, findings: _Findings) -> Storage:
    storage = redis.storage
    keep = bool(storage.keep_after_deletion) if storage is not None else False
    if storage is not None and storage.persistent_volume_claim is not None:
        return PersistentClaimStorage(keep_after_deletion=keep, persistent_volume_claim=storage.persistent_volume_claim)
    if storage is not None and storage.empty_dir is not None:
        return EphemeralStorage(keep_after_deletion=keep, empty_dir=storage.empty_dir)
    findings.default("spec.redis.storage.emptyDir", {})
    return EphemeralStorage(keep_after_deletion=keep)


def _normalize_redis(redis: RedisDocument, defaults: TopologyDefaults, findings: _Findings) -> RedisTier:
    fields = _tier_fields(
        redis,
        "spec.redis",
        image=defaults.redis_image,
        replicas=defaults.redis_replicas,
        exporter_image=defaults.redis_exporter_image,
        defaults=defaults,
        findings=findings,
    )
    return RedisTier(
        **fields,
        custom_command_renames=tuple(
            CommandRename(from_=rename.from_.strip(), to=rename.to or "")  # type: ignore[union-attr]
            for rename in redis.custom_command_renames or ()
        ),
        shutdown_config_map=redis.shutdown_config_map,
        storage=_normalize_storage(redis, findings),
    )


def _normalize_sentinel(sentinel: SentinelDocument, defaults: TopologyDefaults, findings: _Findings) -> SentinelTier:
    fields = _tier_fields(
        sentinel,
        "spec.sentinel",
        image=defaults.sentinel_image,
        replicas=defaults.sentinel_replicas,
        exporter_image=defaults.sentinel_exporter_image,
        defaults=defaults,
        findings=findings,
    )
    if sentinel.custom_config is None:
        fields["custom_config"] = defaults.sentinel_custom_config
        findings.default("spec.sentinel.customConfig", list(defaults.sentinel_custom_config))
    return SentinelTier(**fields)


def _normalize_spec(spec: SpecDocument, defaults: TopologyDefaults, findings: _Findings) -> TopologySpec:
    auth = spec.auth or AuthDocument()
    bootstrap = spec.bootstrap_node
    return TopologySpec(
        redis=_normalize_redis(spec.redis or RedisDocument(), defaults, findings),
        sentinel=_normalize_sentinel(spec.sentinel or SentinelDocument(), defaults, findings),
        auth=AuthRef(secret_path=auth.secret_path or "", disabled=bool(auth.disabled)),
        label_whitelist=tuple(dict.fromkeys(spec.label_whitelist or ())),
        bootstrap_node=(
            BootstrapRef(
                host=bootstrap.host.strip(),  # type: ignore[union-attr]
                port=_parse_port(bootstrap.port),
                allow_sentinels=bool(bootstrap.allow_sentinels),
            )
            if bootstrap is not None
            else None
        ),
    )


# Entry points


def _finish(
    spec_doc: SpecDocument | None,
    defaults: TopologyDefaults,
    findings: _Findings,
    identity: ObjectIdentity | None = None,
) -> ValidationResult:
    if spec_doc is not None:
        _check_spec(spec_doc, defaults, findings)

    if spec_doc is None or findings.has_errors:
        logger.info(
            "Topology descriptor rejected",
            violations=[str(v.code) for v in findings.violations],
        )
        return ValidationResult(violations=tuple(findings.violations))

    spec = _normalize_spec(spec_doc, defaults, findings)

    for warning in findings.violations:
        logger.warning("Degraded topology configuration", code=str(warning.code), path=warning.path)
    if spec.auth.disabled:
        logger.warning("Authentication disabled for topology; Redis will accept unauthenticated clients")

    logger.info(
        "Topology descriptor accepted",
        mode=str(spec.reconciliation_mode),
        defaults_applied=len(findings.defaults),
        warnings=len(findings.violations),
    )
    return ValidationResult(
        spec=spec,
        descriptor=TopologyDescriptor(identity=identity, spec=spec) if identity is not None else None,
        violations=tuple(findings.violations),
        defaults_applied=tuple(findings.defaults),
    )


def validate_spec(raw: Mapping[str, Any] | None, defaults: TopologyDefaults | None = None) -> ValidationResult:
    """Validate and normalize a raw ``spec`` mapping.

    Parameters
    ----------
    raw : Mapping[str, Any] | None
        The ``spec`` section of a descriptor, in the camelCase wire schema.
    defaults : TopologyDefaults | None
        Values substituted for unset fields. Built-in defaults when omitted.

    Returns
    -------
    ValidationResult
        Normalized spec plus warnings, or the full list of violations.

    Examples
    --------
    >>> result = validate_spec({"auth": {"secretPath": "redis-auth"}})
    >>> result.ok
    True
    >>> result.spec.sentinel.replicas
    3
    """
    actual = defaults if defaults is not None else TopologyDefaults()
    findings = _Findings()
    logger.debug("Validating topology spec")
    return _finish(_parse(SpecDocument, raw, "spec", findings), actual, findings)


def validate_descriptor(
    document: Mapping[str, Any],
    defaults: TopologyDefaults | None = None,
) -> ValidationResult:
    """Validate a whole descriptor document (``metadata`` plus ``spec``).

    Adds the identity checks on top of :func:`validate_spec` and, on success,
    returns a :class:`TopologyDescriptor` in ``result.descriptor``. Keys the
    hosting platform adds (``status``, ``managedFields`` and the like) are
    ignored.
    """
    actual = defaults if defaults is not None else TopologyDefaults()
    findings = _Findings()

    parsed = _parse(DescriptorDocument, document, "", findings)
    if parsed is None:
        return _finish(None, actual, findings)

    metadata = parsed.metadata or MetadataDocument()
    name = metadata.name or ""
    logger.debug("Validating topology descriptor", name=name, namespace=metadata.namespace)

    identity: ObjectIdentity | None = None
    if _is_blank(name):
        findings.malformed_field("metadata.name", "descriptor name is required")
    elif len(name) > actual.max_name_length:
        findings.error(
            ViolationCode.NAME_TOO_LONG,
            "metadata.name",
            f"name must be at most {actual.max_name_length} characters, got {len(name)}",
        )
    else:
        identity = ObjectIdentity(
            name=name,
            namespace=metadata.namespace or "",
            revision=metadata.resource_version or "",
            generation=metadata.generation,
            labels=metadata.labels or {},
        )

    return _finish(parsed.spec or SpecDocument(), actual, findings, identity)
