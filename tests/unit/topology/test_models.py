"""Unit tests for the normalized topology models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from redisfailover import ReconciliationMode
from redisfailover.topology import (
    AuthRef,
    BootstrapRef,
    CommandRename,
    EphemeralStorage,
    Exporter,
    PersistentClaimStorage,
    RedisTier,
    SentinelTier,
    TopologySpec,
)


def _tier_kwargs() -> dict[str, object]:
    return {
        "image": "redis:6.2.6-alpine",
        "replicas": 3,
        "exporter": Exporter(image="quay.io/oliver006/redis_exporter:v1.43.0"),
        "dns_policy": "ClusterFirst",
        "termination_grace_period_seconds": 30,
    }


@pytest.fixture
def topology() -> TopologySpec:
    return TopologySpec(
        redis=RedisTier(**_tier_kwargs()),
        sentinel=SentinelTier(**_tier_kwargs()),
        auth=AuthRef(secret_path="redis-auth"),
    )


class TestStorageUnion:
    """Tests for the single-backend storage union."""

    def test_default_storage_is_ephemeral(self, topology: TopologySpec) -> None:
        """Test a tier built without storage uses an empty ephemeral volume."""
        assert isinstance(topology.redis.storage, EphemeralStorage)
        assert topology.redis.storage.empty_dir == {}
        assert not topology.redis.persistent

    def test_persistent_claim_requires_template(self) -> None:
        """Test a persistent backend cannot be built without a claim template."""
        with pytest.raises(ValidationError):
            PersistentClaimStorage()  # type: ignore[call-arg]

    def test_storage_renders_only_its_own_backend(self) -> None:
        """Test the rendered document never carries both backends."""
        tier = RedisTier(
            **_tier_kwargs(),
            storage=PersistentClaimStorage(persistent_volume_claim={"spec": {}}, keep_after_deletion=True),
        )

        rendered = tier.model_dump(mode="json", by_alias=True)["storage"]

        assert rendered == {"keepAfterDeletion": True, "persistentVolumeClaim": {"spec": {}}}


class TestImmutability:
    """Tests for frozen model behavior."""

    def test_spec_is_frozen(self, topology: TopologySpec) -> None:
        """Test a normalized spec cannot be modified after creation."""
        with pytest.raises(ValidationError):
            topology.label_whitelist = ("app",)  # type: ignore[misc]

    def test_extra_fields_forbidden(self) -> None:
        """Test extra fields are rejected."""
        with pytest.raises(ValidationError):
            AuthRef(secret_path="redis-auth", password="hunter2")  # type: ignore[call-arg]

    def test_negative_replicas_unrepresentable(self) -> None:
        """Test the normalized tier rejects negative replica counts outright."""
        kwargs = {**_tier_kwargs(), "replicas": -1}
        with pytest.raises(ValidationError):
            SentinelTier(**kwargs)


class TestHelpers:
    """Tests for model convenience methods."""

    def test_reconciliation_mode(self, topology: TopologySpec) -> None:
        """Test the mode follows the presence of a bootstrap node."""
        assert topology.reconciliation_mode is ReconciliationMode.FRESH

        adopted = topology.model_copy(update={"bootstrap_node": BootstrapRef(host="10.0.0.5", port=6379)})

        assert adopted.reconciliation_mode is ReconciliationMode.ADOPT
        assert not adopted.delegates_sentinels

    @pytest.mark.parametrize(
        ("source", "target", "expected"),
        [
            ("FLUSHALL", "", 'rename-command FLUSHALL ""'),
            ("CONFIG", "SECRETCONFIG", "rename-command CONFIG SECRETCONFIG"),
        ],
    )
    def test_rename_config_line(self, source: str, target: str, expected: str) -> None:
        """Test renames render as redis.conf directives."""
        assert CommandRename(from_=source, to=target).to_config_line() == expected

    def test_rename_serializes_with_wire_key(self) -> None:
        """Test the Python-side from_ field renders as 'from'."""
        rename = CommandRename(from_="KEYS", to="")

        assert rename.model_dump(by_alias=True) == {"from": "KEYS", "to": ""}

    def test_to_document_uses_wire_names(self, topology: TopologySpec) -> None:
        """Test the rendered document uses camelCase keys and omits unset fields."""
        document = topology.to_document()

        assert document["auth"] == {"secretPath": "redis-auth", "disabled": False}
        assert document["redis"]["terminationGracePeriod"] == 30
        assert document["redis"]["dnsPolicy"] == "ClusterFirst"
        assert "affinity" not in document["redis"]
        assert "bootstrapNode" not in document

    def test_propagated_labels(self, topology: TopologySpec) -> None:
        """Test only whitelisted keys are selected."""
        spec = topology.model_copy(update={"label_whitelist": ("app", "tier")})

        assert spec.propagated_labels({"app": "cache", "owner": "me"}) == {"app": "cache"}
