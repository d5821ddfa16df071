"""Normalized topology models handed to the reconciler.

Instances are only produced by :func:`~redisfailover.topology.validation.validate_spec`
and :func:`~redisfailover.topology.validation.validate_descriptor`, so every
invariant already holds: defaults are filled in, sequences are tuples, and the
storage backend is exactly one of the two union members.

Serialized with ``by_alias=True`` the models render the same camelCase wire
schema they were parsed from, which keeps validation idempotent.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from ..core.enums import ReconciliationMode
from .documents import PlatformObject


class NormalizedModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class CommandRename(NormalizedModel):
    from_: str = Field(alias="from", min_length=1)
    to: str = Field(default="")

    @property
    def disables_command(self) -> bool:
        return self.to == ""

    def to_config_line(self) -> str:
        """Render as a ``rename-command`` directive for redis.conf."""
        target = self.to if self.to else '""'
        return f"rename-command {self.from_} {target}"


class Exporter(NormalizedModel):
    enabled: bool = False
    image: str = Field(min_length=1)
    image_pull_policy: str | None = None
    args: tuple[str, ...] = ()
    env: tuple[PlatformObject, ...] = ()


class EphemeralStorage(NormalizedModel):
    kind: Literal["ephemeral"] = Field(default="ephemeral", exclude=True)
    keep_after_deletion: bool = False
    empty_dir: PlatformObject = Field(default_factory=dict)


class PersistentClaimStorage(NormalizedModel):
    kind: Literal["persistentClaim"] = Field(default="persistentClaim", exclude=True)
    keep_after_deletion: bool = False
    persistent_volume_claim: PlatformObject


Storage = Annotated[EphemeralStorage | PersistentClaimStorage, Field(discriminator="kind")]


class Tier(NormalizedModel):
    image: str = Field(min_length=1)
    image_pull_policy: str | None = None
    replicas: int = Field(ge=0)
    resources: PlatformObject | None = None
    custom_config: tuple[str, ...] = ()
    command: tuple[str, ...] = ()
    exporter: Exporter
    affinity: PlatformObject | None = None
    security_context: PlatformObject | None = None
    image_pull_secrets: tuple[PlatformObject, ...] = ()
    tolerations: tuple[PlatformObject, ...] = ()
    node_selector: dict[str, str] | None = None
    pod_annotations: dict[str, str] | None = None
    service_annotations: dict[str, str] | None = None
    host_network: bool = False
    dns_policy: str = Field(min_length=1)
    priority_class_name: str | None = None
    service_account_name: str | None = None
    termination_grace_period_seconds: int = Field(alias="terminationGracePeriod", ge=0)


class RedisTier(Tier):
    custom_command_renames: tuple[CommandRename, ...] = ()
    shutdown_config_map: str | None = None
    storage: Storage = Field(default_factory=EphemeralStorage)

    @property
    def persistent(self) -> bool:
        return isinstance(self.storage, PersistentClaimStorage)


class SentinelTier(Tier):
    pass


class AuthRef(NormalizedModel):
    secret_path: str = ""
    disabled: bool = False

    @property
    def required(self) -> bool:
        return not self.disabled


class BootstrapRef(NormalizedModel):
    host: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    allow_sentinels: bool = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class TopologySpec(NormalizedModel):
    redis: RedisTier
    sentinel: SentinelTier
    auth: AuthRef = Field(default_factory=AuthRef)
    label_whitelist: tuple[str, ...] = ()
    bootstrap_node: BootstrapRef | None = Field(default=None, alias="bootstrapNode")

    @property
    def reconciliation_mode(self) -> ReconciliationMode:
        return ReconciliationMode.ADOPT if self.bootstrap_node is not None else ReconciliationMode.FRESH

    @property
    def delegates_sentinels(self) -> bool:
        return self.bootstrap_node is not None and self.bootstrap_node.allow_sentinels

    def propagated_labels(self, labels: dict[str, str]) -> dict[str, str]:
        """Select the whitelisted subset of ``labels`` for generated resources."""
        return {key: labels[key] for key in self.label_whitelist if key in labels}

    def to_document(self) -> dict[str, Any]:
        """Render back to the wire schema.

        Feeding the result to ``validate_spec`` again yields an equal spec.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ObjectIdentity(NormalizedModel):
    name: str
    namespace: str = ""
    revision: str = ""
    generation: int | None = None
    labels: dict[str, str] = Field(default_factory=dict)


class TopologyDescriptor(NormalizedModel):
    identity: ObjectIdentity
    spec: TopologySpec

    @computed_field  # type: ignore[prop-decorator]
    @property
    def namespaced_name(self) -> str:
        return f"{self.identity.namespace}/{self.identity.name}" if self.identity.namespace else self.identity.name

    @property
    def propagated_labels(self) -> dict[str, str]:
        return self.spec.propagated_labels(self.identity.labels)
