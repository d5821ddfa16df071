"""CustomResourceDefinition generation for the RedisFailover resource.

The OpenAPI schema is derived from the wire models in :mod:`.documents`, then
rewritten into the structural form the API server accepts: ``$ref``s are
inlined, nullable unions collapse to their single concrete type, and opaque
platform objects are marked ``x-kubernetes-preserve-unknown-fields``.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import CRDGenerationError
from ..logger import get_logger
from .documents import SpecDocument

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

logger: BoundLogger = get_logger(__name__)

CRD_API_VERSION = "apiextensions.k8s.io/v1"
CRD_KIND = "CustomResourceDefinition"
API_VERSION_SCHEMA = {
    "description": "APIVersion defines the versioned schema of this representation of an object.",
    "type": "string",
}
KIND_SCHEMA = {
    "description": "Kind is a string value representing the REST resource this object represents.",
    "type": "string",
}
_DROPPED_KEYS = frozenset({"title", "$defs"})


class PrinterColumn(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str
    type: Literal["string", "integer", "date", "boolean", "number"]
    json_path: str = Field(alias="jsonPath")


class CRDSettings(BaseModel):
    """Naming and versioning of the generated CustomResourceDefinition."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    group: str = Field(default="databases.spotahome.com", min_length=1)
    version: str = Field(default="v1", min_length=1)
    kind: str = Field(default="RedisFailover", min_length=1)
    singular: str = Field(default="redisfailover", min_length=1)
    plural: str = Field(default="redisfailovers", min_length=1)
    short_names: tuple[str, ...] = Field(default=("rf",))
    scope: Literal["Namespaced", "Cluster"] = Field(default="Namespaced")
    status_subresource: bool = Field(default=False)
    printer_columns: tuple[PrinterColumn, ...] = Field(
        default=(
            PrinterColumn(name="NAME", type="string", json_path=".metadata.name"),
            PrinterColumn(name="REDIS", type="integer", json_path=".spec.redis.replicas"),
            PrinterColumn(name="SENTINELS", type="integer", json_path=".spec.sentinel.replicas"),
            PrinterColumn(name="AGE", type="date", json_path=".metadata.creationTimestamp"),
        )
    )

    @property
    def name(self) -> str:
        return f"{self.plural}.{self.group}"


def _resolve_ref(ref: str, defs: dict[str, Any]) -> dict[str, Any]:
    prefix = "#/$defs/"
    if not ref.startswith(prefix) or ref[len(prefix) :] not in defs:
        raise CRDGenerationError(f"cannot resolve schema reference {ref!r}")
    return copy.deepcopy(defs[ref[len(prefix) :]])


def _structural(node: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    node = {k: v for k, v in node.items() if k not in _DROPPED_KEYS}
    if node.get("default", ...) is None:
        del node["default"]

    if "$ref" in node:
        target = _resolve_ref(node.pop("$ref"), defs)
        return _structural({**target, **node}, defs)

    if "anyOf" in node:
        options = [opt for opt in node.pop("anyOf") if opt.get("type") != "null"]
        if len(options) == 1:
            return _structural({**options[0], **node}, defs)
        if {opt.get("type") for opt in options} == {"string", "integer"}:
            return {**node, "x-kubernetes-int-or-string": True}
        node["anyOf"] = [_structural(opt, defs) for opt in options]
        return node

    if node.get("type") == "object":
        if "properties" in node:
            node["properties"] = {key: _structural(value, defs) for key, value in node["properties"].items()}
            node.pop("additionalProperties", None)
        elif isinstance(node.get("additionalProperties"), dict):
            node["additionalProperties"] = _structural(node["additionalProperties"], defs)
        else:
            node.pop("additionalProperties", None)
            node["x-kubernetes-preserve-unknown-fields"] = True

    if node.get("type") == "array" and "items" in node:
        node["items"] = _structural(node["items"], defs)

    return node


def spec_schema() -> dict[str, Any]:
    """Return the structural OpenAPI v3 schema of the ``spec`` section."""
    raw = SpecDocument.model_json_schema(by_alias=True, mode="validation")
    schema = _structural(raw, raw.get("$defs", {}))
    schema["description"] = "RedisFailoverSpec describes the desired Redis and Sentinel topology"
    return schema


def generate_crd(settings: CRDSettings | None = None) -> dict[str, Any]:
    actual = settings if settings is not None else CRDSettings()
    logger.debug("Generating CRD", name=actual.name, version=actual.version)

    version: dict[str, Any] = {
        "name": actual.version,
        "served": True,
        "storage": True,
        "additionalPrinterColumns": [col.model_dump(by_alias=True) for col in actual.printer_columns],
        "schema": {
            "openAPIV3Schema": {
                "description": f"{actual.kind} is the Schema for the {actual.plural} API",
                "type": "object",
                "properties": {
                    "apiVersion": API_VERSION_SCHEMA,
                    "kind": KIND_SCHEMA,
                    "metadata": {"type": "object"},
                    "spec": spec_schema(),
                    "status": {"type": "object", "x-kubernetes-preserve-unknown-fields": True},
                },
                "required": ["spec"],
            }
        },
    }
    if actual.status_subresource:
        version["subresources"] = {"status": {}}

    return {
        "apiVersion": CRD_API_VERSION,
        "kind": CRD_KIND,
        "metadata": {"name": actual.name},
        "spec": {
            "group": actual.group,
            "names": {
                "kind": actual.kind,
                "listKind": f"{actual.kind}List",
                "plural": actual.plural,
                "singular": actual.singular,
                "shortNames": list(actual.short_names),
            },
            "scope": actual.scope,
            "versions": [version],
        },
    }


def render_crd(settings: CRDSettings | None = None) -> str:
    """Render the CRD as a YAML document ready for ``kubectl apply``."""
    return yaml.safe_dump(generate_crd(settings), sort_keys=True)
