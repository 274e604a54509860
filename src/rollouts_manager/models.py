"""Typed views of the RolloutManager custom resource."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PluginSpec:
    """A traffic-management or metric plugin the controller should load."""

    name: str
    location: str
    sha256: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PluginSpec":
        return cls(
            name=data.get("name", ""),
            location=data.get("location", ""),
            sha256=data.get("sha256", ""),
        )

    def to_dict(self) -> dict[str, str]:
        item = {"name": self.name, "location": self.location}
        if self.sha256:
            item["sha256"] = self.sha256
        return item


@dataclass(frozen=True)
class RolloutManagerSpec:
    """Parsed ``spec`` of a RolloutManager.

    Mapping-valued fields are deep copies of the custom resource's content
    and must not be mutated by callers.
    """

    namespace_scoped: bool = False
    image: str = ""
    version: str = ""
    extra_command_args: tuple[str, ...] = ()
    env: tuple[dict[str, Any], ...] = ()
    controller_resources: dict[str, Any] | None = None
    node_selector: dict[str, str] = field(default_factory=dict)
    tolerations: tuple[dict[str, Any], ...] = ()
    ha_enabled: bool = False
    additional_labels: dict[str, str] = field(default_factory=dict)
    additional_annotations: dict[str, str] = field(default_factory=dict)
    traffic_management_plugins: tuple[PluginSpec, ...] = ()
    metric_plugins: tuple[PluginSpec, ...] = ()
    skip_notification_secret: bool = False

    @classmethod
    def from_dict(cls, spec: dict[str, Any] | None) -> "RolloutManagerSpec":
        """Build from the raw ``spec`` dict of the custom resource."""
        spec = copy.deepcopy(spec or {})
        node_placement = spec.get("nodePlacement") or {}
        ha = spec.get("ha") or {}
        metadata = spec.get("additionalMetadata") or {}
        plugins = spec.get("plugins") or {}
        return cls(
            namespace_scoped=bool(spec.get("namespaceScoped", False)),
            image=spec.get("image") or "",
            version=spec.get("version") or "",
            extra_command_args=tuple(spec.get("extraCommandArgs") or ()),
            env=tuple(spec.get("env") or ()),
            controller_resources=spec.get("controllerResources") or None,
            node_selector=dict(node_placement.get("nodeSelector") or {}),
            tolerations=tuple(node_placement.get("tolerations") or ()),
            ha_enabled=bool(ha.get("enabled", False)),
            additional_labels=dict(metadata.get("labels") or {}),
            additional_annotations=dict(metadata.get("annotations") or {}),
            traffic_management_plugins=tuple(
                PluginSpec.from_dict(p) for p in plugins.get("trafficManagement") or ()
            ),
            metric_plugins=tuple(PluginSpec.from_dict(p) for p in plugins.get("metric") or ()),
            skip_notification_secret=bool(spec.get("skipNotificationSecretDeployment", False)),
        )


@dataclass(frozen=True)
class RolloutManager:
    """A RolloutManager instance as read from the object store."""

    name: str
    namespace: str
    uid: str
    spec: RolloutManagerSpec
    status: dict[str, Any] = field(default_factory=dict)
    resource_version: str = ""

    @classmethod
    def from_dict(cls, body: dict[str, Any]) -> "RolloutManager":
        meta = body.get("metadata") or {}
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", ""),
            uid=meta.get("uid", ""),
            spec=RolloutManagerSpec.from_dict(body.get("spec")),
            status=copy.deepcopy(body.get("status") or {}),
            resource_version=meta.get("resourceVersion", ""),
        )

    @property
    def namespace_scoped(self) -> bool:
        return self.spec.namespace_scoped
