from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_REDIS_IMAGE = "redis:6.2.6-alpine"
DEFAULT_EXPORTER_IMAGE = "quay.io/oliver006/redis_exporter:v1.43.0"


class TopologyDefaults(BaseModel):
    """Built-in values substituted for fields a descriptor leaves unset.

    Image pins are a deployment-time concern: the reconciler that hosts the
    validation core builds one of these from its own configuration source and
    passes it in. Nothing here is read from the environment.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Images
    redis_image: str = Field(
        default=DEFAULT_REDIS_IMAGE,
        min_length=1,
        description="Image for Redis server pods",
    )
    sentinel_image: str = Field(
        default=DEFAULT_REDIS_IMAGE,
        min_length=1,
        description="Image for Sentinel pods",
    )
    redis_exporter_image: str = Field(
        default=DEFAULT_EXPORTER_IMAGE,
        min_length=1,
        description="Image for the Redis metrics exporter sidecar",
    )
    sentinel_exporter_image: str = Field(
        default=DEFAULT_EXPORTER_IMAGE,
        min_length=1,
        description="Image for the Sentinel metrics exporter sidecar",
    )

    # Replica counts used only when the field is absent
    redis_replicas: int = Field(default=3, ge=0, description="Redis replicas when unset")
    sentinel_replicas: int = Field(default=3, ge=0, description="Sentinel replicas when unset")
    sentinel_custom_config: tuple[str, ...] = Field(
        default=("down-after-milliseconds 5000", "failover-timeout 10000"),
        description="Sentinel config lines when customConfig is unset",
    )

    # Pod scheduling
    dns_policy: str = Field(default="ClusterFirst", min_length=1, description="Pod DNS policy when unset")
    termination_grace_period_seconds: int = Field(
        default=30,
        ge=1,
        description="Pod termination grace period; must outlast Sentinel down-after detection",
    )

    # Limits
    min_sentinel_quorum: int = Field(
        default=3,
        ge=1,
        description="Sentinel count below which the topology is reported as degraded",
    )
    max_name_length: int = Field(
        default=48,
        ge=1,
        le=253,
        description="Maximum descriptor name length so derived resource names stay valid",
    )
