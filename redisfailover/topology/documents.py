"""Wire-schema models for the RedisFailover resource.

These mirror the camelCase document the hosting platform stores. Every field
is optional and defaults to ``None`` so the normalizer can tell a field the
author left out from one explicitly set to a zero value. Nothing here applies
defaults or enforces semantic rules; see :mod:`.validation` for that.

Platform objects (resources, affinity, tolerations, volume sources, env vars)
are kept as plain JSON values and passed through untouched.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

type PlatformObject = dict[str, Any]


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
    )


class CommandRenameDocument(WireModel):
    from_: str | None = Field(default=None, alias="from", description="Command to rename")
    to: str | None = Field(default=None, description="New command name; empty disables the command")


class ExporterDocument(WireModel):
    enabled: bool | None = Field(default=None, description="Run the metrics exporter sidecar")
    image: str | None = Field(default=None, description="Exporter image")
    image_pull_policy: str | None = Field(default=None, description="Exporter image pull policy")
    args: list[str] | None = Field(default=None, description="Extra exporter arguments")
    env: list[PlatformObject] | None = Field(default=None, description="Extra exporter environment variables")


class StorageDocument(WireModel):
    keep_after_deletion: bool | None = Field(
        default=None,
        description="Keep the persistent volume claim after the descriptor is deleted",
    )
    empty_dir: PlatformObject | None = Field(default=None, description="Ephemeral volume source")
    persistent_volume_claim: PlatformObject | None = Field(default=None, description="Persistent volume claim template")


class TierDocument(WireModel):
    """Fields shared by the Redis and Sentinel tiers."""

    image: str | None = Field(default=None, description="Container image")
    image_pull_policy: str | None = Field(default=None, description="Container image pull policy")
    replicas: int | None = Field(default=None, description="Number of pods")
    resources: PlatformObject | None = Field(default=None, description="Resource requests and limits")
    custom_config: list[str] | None = Field(default=None, description="Extra configuration file lines")
    command: list[str] | None = Field(default=None, description="Container command override")
    exporter: ExporterDocument | None = Field(default=None, description="Metrics exporter sidecar")
    affinity: PlatformObject | None = None
    security_context: PlatformObject | None = None
    image_pull_secrets: list[PlatformObject] | None = None
    tolerations: list[PlatformObject] | None = None
    node_selector: dict[str, str] | None = None
    pod_annotations: dict[str, str] | None = None
    service_annotations: dict[str, str] | None = None
    host_network: bool | None = None
    dns_policy: str | None = None
    priority_class_name: str | None = None
    service_account_name: str | None = None
    termination_grace_period_seconds: int | None = Field(
        default=None,
        alias="terminationGracePeriod",
        ge=0,
        description="Seconds a pod is given to shut down",
    )


class RedisDocument(TierDocument):
    custom_command_renames: list[CommandRenameDocument] | None = Field(
        default=None,
        description="rename-command directives",
    )
    shutdown_config_map: str | None = Field(default=None, description="ConfigMap holding the shutdown hook")
    storage: StorageDocument | None = Field(default=None, description="Data volume backend")


class SentinelDocument(TierDocument):
    pass


class AuthDocument(WireModel):
    secret_path: str | None = Field(default=None, description="Secret holding the Redis AUTH password")
    disabled: bool | None = Field(default=None, description="Run without authentication (discouraged)")


class BootstrapDocument(WireModel):
    host: str | None = Field(default=None, description="Host of the endpoint to adopt")
    port: str | int | None = Field(default=None, description="Port of the endpoint to adopt")
    allow_sentinels: bool | None = Field(
        default=None,
        description="Sentinel duties are delegated to the external endpoint",
    )


class SpecDocument(WireModel):
    redis: RedisDocument | None = None
    sentinel: SentinelDocument | None = None
    auth: AuthDocument | None = None
    label_whitelist: list[str] | None = Field(default=None, description="Label keys copied onto generated resources")
    bootstrap_node: BootstrapDocument | None = Field(
        default=None,
        validation_alias=AliasChoices("bootstrapNode", "bootstrap"),
        serialization_alias="bootstrapNode",
        description="Existing endpoint to adopt instead of bootstrapping fresh",
    )


class MetadataDocument(WireModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    namespace: str | None = None
    resource_version: str | None = None
    generation: int | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None


class DescriptorDocument(WireModel):
    model_config = ConfigDict(extra="ignore")

    api_version: str | None = None
    kind: str | None = None
    metadata: MetadataDocument | None = None
    spec: SpecDocument | None = None
