"""Project live objects onto the fields the builders produce.

The API server adds defaults (rolling-update parameters, port protocols,
probe schemes, status, bookkeeping metadata) that the builders never set.
``normalize`` strips or defaults those so a live object can be compared with
a desired one field for field. A builder's own output is already in normal
form: ``normalize(desired) == desired``.
"""

from __future__ import annotations

import copy
from typing import Any, Callable

from ..builders.rbac import canonical_rules
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
    METRIC_PLUGINS_KEY,
    TRAFFIC_ROUTER_PLUGINS_KEY,
)
from ..utils.errors import NormalizationError

_DEFAULT_ROLLING_UPDATE = {"maxSurge": "25%", "maxUnavailable": "25%"}
_PROBE_FIELDS = ("initialDelaySeconds", "periodSeconds", "timeoutSeconds", "successThreshold", "failureThreshold")


def _pick(source: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: copy.deepcopy(source[key]) for key in keys if source.get(key) is not None}


def normalize_metadata(obj: dict[str, Any]) -> dict[str, Any]:
    meta = obj.get("metadata") or {}
    result: dict[str, Any] = {"name": meta.get("name", "")}
    if meta.get("namespace"):
        result["namespace"] = meta["namespace"]
    result["labels"] = dict(meta.get("labels") or {})
    result["annotations"] = dict(meta.get("annotations") or {})
    return result


def _header(obj: dict[str, Any], api_version: str) -> dict[str, Any]:
    return {
        "apiVersion": obj.get("apiVersion") or api_version,
        "kind": obj["kind"],
        "metadata": normalize_metadata(obj),
    }


def normalize_service_account(obj: dict[str, Any]) -> dict[str, Any]:
    return _header(obj, "v1")


def normalize_role(obj: dict[str, Any]) -> dict[str, Any]:
    result = _header(obj, "rbac.authorization.k8s.io/v1")
    result["rules"] = canonical_rules(obj.get("rules") or [])
    return result


def normalize_role_binding(obj: dict[str, Any]) -> dict[str, Any]:
    result = _header(obj, "rbac.authorization.k8s.io/v1")
    role_ref = obj.get("roleRef")
    if not role_ref:
        raise NormalizationError(obj["kind"], "missing roleRef")
    result["roleRef"] = _pick(role_ref, ("apiGroup", "kind", "name"))
    result["subjects"] = [
        _pick(subject, ("apiGroup", "kind", "name", "namespace"))
        for subject in obj.get("subjects") or []
    ]
    # The server stores an empty apiGroup for ServiceAccount subjects
    for subject in result["subjects"]:
        if not subject.get("apiGroup"):
            subject.pop("apiGroup", None)
    return result


def _normalize_probe(probe: dict[str, Any] | None) -> dict[str, Any] | None:
    if probe is None:
        return None
    result: dict[str, Any] = {}
    http_get = probe.get("httpGet")
    if http_get is not None:
        result["httpGet"] = _pick(http_get, ("path", "port"))
    result.update(_pick(probe, _PROBE_FIELDS))
    return result


def _normalize_container(container: dict[str, Any]) -> dict[str, Any]:
    ports = container.get("ports") or []
    if len(ports) != 2:
        raise NormalizationError(KIND_DEPLOYMENT, f"expected 2 container ports, found {len(ports)}")

    result: dict[str, Any] = {
        "name": container.get("name", ""),
        "image": container.get("image", ""),
        "imagePullPolicy": container.get("imagePullPolicy", ""),
        "args": list(container.get("args") or []),
        "env": copy.deepcopy(container.get("env") or []),
        "ports": [{"name": p.get("name", ""), "containerPort": p.get("containerPort")} for p in ports],
    }
    for probe_key in ("livenessProbe", "readinessProbe"):
        probe = _normalize_probe(container.get(probe_key))
        if probe is not None:
            result[probe_key] = probe
    result["resources"] = copy.deepcopy(container.get("resources") or {})
    if container.get("securityContext") is not None:
        result["securityContext"] = copy.deepcopy(container["securityContext"])
    result["volumeMounts"] = [
        _pick(mount, ("name", "mountPath")) for mount in container.get("volumeMounts") or []
    ]
    return result


def _normalize_strategy(strategy: dict[str, Any] | None) -> dict[str, Any]:
    if not strategy:
        return {"type": "RollingUpdate"}
    result = {"type": strategy.get("type") or "RollingUpdate"}
    rolling_update = strategy.get("rollingUpdate")
    if rolling_update and _pick(rolling_update, ("maxSurge", "maxUnavailable")) != _DEFAULT_ROLLING_UPDATE:
        result["rollingUpdate"] = copy.deepcopy(rolling_update)
    return result


def normalize_deployment(obj: dict[str, Any]) -> dict[str, Any]:
    """Normalize a Deployment.

    Raises:
        NormalizationError: If the selector or pod security context is
            missing, or the container/port/volume counts are unexpected
    """
    spec = obj.get("spec") or {}
    selector = spec.get("selector")
    if not selector:
        raise NormalizationError(KIND_DEPLOYMENT, "missing .spec.selector")

    template = spec.get("template") or {}
    template_meta = template.get("metadata") or {}
    pod_spec = template.get("spec") or {}

    containers = pod_spec.get("containers") or []
    if len(containers) != 1:
        raise NormalizationError(KIND_DEPLOYMENT, f"expected 1 container, found {len(containers)}")
    if pod_spec.get("securityContext") is None:
        raise NormalizationError(KIND_DEPLOYMENT, "missing pod security context")
    volumes = pod_spec.get("volumes") or []
    if len(volumes) != 2:
        raise NormalizationError(KIND_DEPLOYMENT, f"expected 2 volumes, found {len(volumes)}")

    result_pod_spec: dict[str, Any] = {
        "serviceAccountName": pod_spec.get("serviceAccountName", ""),
        "containers": [_normalize_container(containers[0])],
        "nodeSelector": dict(pod_spec.get("nodeSelector") or {}),
        "tolerations": copy.deepcopy(pod_spec.get("tolerations") or []),
        "securityContext": copy.deepcopy(pod_spec["securityContext"]),
        "volumes": copy.deepcopy(volumes),
    }
    if pod_spec.get("affinity"):
        result_pod_spec["affinity"] = copy.deepcopy(pod_spec["affinity"])

    result = _header(obj, "apps/v1")
    result["spec"] = {
        "replicas": spec.get("replicas", 1),
        "selector": _pick(selector, ("matchLabels", "matchExpressions")),
        "strategy": _normalize_strategy(spec.get("strategy")),
        "template": {
            "metadata": {
                "labels": dict(template_meta.get("labels") or {}),
                "annotations": dict(template_meta.get("annotations") or {}),
            },
            "spec": result_pod_spec,
        },
    }
    return result


def _normalize_service_port(port: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": port.get("name", ""),
        "port": port.get("port"),
        "protocol": port.get("protocol") or "TCP",
        "targetPort": port.get("targetPort") or port.get("port"),
    }


def normalize_service(obj: dict[str, Any]) -> dict[str, Any]:
    spec = obj.get("spec") or {}
    result = _header(obj, "v1")
    result["spec"] = {
        "ports": [_normalize_service_port(port) for port in spec.get("ports") or []],
        "selector": dict(spec.get("selector") or {}),
    }
    return result


def normalize_secret(obj: dict[str, Any]) -> dict[str, Any]:
    result = _header(obj, "v1")
    result["type"] = obj.get("type") or "Opaque"
    return result


def normalize_config_map(obj: dict[str, Any]) -> dict[str, Any]:
    data = obj.get("data") or {}
    result = _header(obj, "v1")
    result["data"] = {
        key: data.get(key, "")
        for key in (TRAFFIC_ROUTER_PLUGINS_KEY, METRIC_PLUGINS_KEY)
    }
    return result


def normalize_service_monitor(obj: dict[str, Any]) -> dict[str, Any]:
    spec = obj.get("spec") or {}
    result = _header(obj, "monitoring.coreos.com/v1")
    result["spec"] = {
        "selector": _pick(spec.get("selector") or {}, ("matchLabels", "matchExpressions")),
        "endpoints": [_pick(endpoint, ("port",)) for endpoint in spec.get("endpoints") or []],
    }
    return result


NORMALIZERS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    KIND_SERVICE_ACCOUNT: normalize_service_account,
    KIND_ROLE: normalize_role,
    KIND_CLUSTER_ROLE: normalize_role,
    KIND_ROLE_BINDING: normalize_role_binding,
    KIND_CLUSTER_ROLE_BINDING: normalize_role_binding,
    KIND_DEPLOYMENT: normalize_deployment,
    KIND_SERVICE: normalize_service,
    KIND_SECRET: normalize_secret,
    KIND_CONFIG_MAP: normalize_config_map,
    KIND_SERVICE_MONITOR: normalize_service_monitor,
}


def normalize(obj: dict[str, Any]) -> dict[str, Any]:
    """Normalize any supported owned object.

    Raises:
        NormalizationError: If the object is structurally unexpected
    """
    kind = obj.get("kind")
    if kind not in NORMALIZERS:
        raise NormalizationError(str(kind), "unsupported kind")
    return NORMALIZERS[kind](obj)
