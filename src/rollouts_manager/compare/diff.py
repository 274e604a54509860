"""Field-by-field comparison of normalized desired and live objects."""

from __future__ import annotations

from typing import Any, Callable

from ..constants import (
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_SECRET,
    KIND_SERVICE,
    KIND_SERVICE_ACCOUNT,
    KIND_SERVICE_MONITOR,
)

Getter = Callable[[dict[str, Any]], Any]
Comparator = Callable[[Any, Any], bool]


def path(*keys: str) -> Getter:
    """Getter following nested dict keys; a missing key yields None."""
    def getter(obj: dict[str, Any]) -> Any:
        value: Any = obj
        for key in keys:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value

    return getter


def equal(a: Any, b: Any) -> bool:
    return a == b


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def same_set(a: list[Any] | None, b: list[Any] | None) -> bool:
    """Compare two lists of dicts ignoring order and duplicates."""
    return {_freeze(item) for item in a or []} == {_freeze(item) for item in b or []}


class Differ:
    """Ordered list of (field name, getter, comparator) for one kind.

    ``diff`` reports the first field that differs, or None when the two
    objects agree on every compared field.
    """

    fields: list[tuple[str, Getter, Comparator]] = []

    def diff(self, desired: dict[str, Any], live: dict[str, Any]) -> str | None:
        for name, getter, comparator in self.fields:
            if not comparator(getter(desired), getter(live)):
                return name
        return None

    def differs(self, name: str, desired: dict[str, Any], live: dict[str, Any]) -> bool:
        """Whether the named field differs, regardless of its position."""
        for field_name, getter, comparator in self.fields:
            if field_name == name:
                return not comparator(getter(desired), getter(live))
        raise KeyError(name)


_METADATA_FIELDS: list[tuple[str, Getter, Comparator]] = [
    ("labels", path("metadata", "labels"), equal),
    ("annotations", path("metadata", "annotations"), equal),
]


class ServiceAccountDiffer(Differ):
    fields = list(_METADATA_FIELDS)


class RoleDiffer(Differ):
    fields = [
        ("rules", path("rules"), same_set),
        *_METADATA_FIELDS,
    ]


class RoleBindingDiffer(Differ):
    fields = [
        ("roleRef", path("roleRef"), equal),
        ("subjects", path("subjects"), same_set),
        *_METADATA_FIELDS,
    ]


def _pod_path(*keys: str) -> Getter:
    pod_spec = path("spec", "template", "spec")
    return lambda obj: path(*keys)(pod_spec(obj) or {})


class DeploymentDiffer(Differ):
    fields = [
        ("containers", _pod_path("containers"), equal),
        ("serviceAccountName", _pod_path("serviceAccountName"), equal),
        ("strategy", path("spec", "strategy"), equal),
        ("labels", path("metadata", "labels"), equal),
        ("annotations", path("metadata", "annotations"), equal),
        ("template.labels", path("spec", "template", "metadata", "labels"), equal),
        ("template.annotations", path("spec", "template", "metadata", "annotations"), equal),
        ("selector", path("spec", "selector"), equal),
        ("nodeSelector", _pod_path("nodeSelector"), equal),
        ("tolerations", _pod_path("tolerations"), equal),
        ("affinity", _pod_path("affinity"), equal),
        ("securityContext", _pod_path("securityContext"), equal),
        ("volumes", _pod_path("volumes"), equal),
        ("replicas", path("spec", "replicas"), equal),
    ]


class ServiceDiffer(Differ):
    fields = [
        ("ports", path("spec", "ports"), equal),
        ("selector", path("spec", "selector"), equal),
        *_METADATA_FIELDS,
    ]


class SecretDiffer(Differ):
    fields = [
        ("type", path("type"), equal),
        *_METADATA_FIELDS,
    ]


class ConfigMapDiffer(Differ):
    fields = [
        ("data", path("data"), equal),
        *_METADATA_FIELDS,
    ]


class ServiceMonitorDiffer(Differ):
    fields = [
        ("selector", path("spec", "selector"), equal),
        ("endpoints", path("spec", "endpoints"), equal),
        *_METADATA_FIELDS,
    ]


DIFFERS: dict[str, Differ] = {
    KIND_SERVICE_ACCOUNT: ServiceAccountDiffer(),
    KIND_ROLE: RoleDiffer(),
    KIND_CLUSTER_ROLE: RoleDiffer(),
    KIND_ROLE_BINDING: RoleBindingDiffer(),
    KIND_CLUSTER_ROLE_BINDING: RoleBindingDiffer(),
    KIND_DEPLOYMENT: DeploymentDiffer(),
    KIND_SERVICE: ServiceDiffer(),
    KIND_SECRET: SecretDiffer(),
    KIND_CONFIG_MAP: ConfigMapDiffer(),
    KIND_SERVICE_MONITOR: ServiceMonitorDiffer(),
}


def diff(desired: dict[str, Any], live: dict[str, Any]) -> str | None:
    """First differing field between two normalized objects of the same kind."""
    return DIFFERS[desired["kind"]].diff(desired, live)


def field_differs(name: str, desired: dict[str, Any], live: dict[str, Any]) -> bool:
    return DIFFERS[desired["kind"]].differs(name, desired, live)
