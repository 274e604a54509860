"""Builder for the rollouts controller Deployment."""

from __future__ import annotations

import copy
from typing import Any, Iterable

from ..config import OperatorConfig
from ..constants import (
    ARG_LEADER_ELECT,
    ARG_NAMESPACED,
    CONTAINER_NAME,
    DEFAULT_IMAGE,
    DEFAULT_RESOURCE_NAME,
    DEFAULT_VERSION,
    HEALTHZ_PORT,
    HOSTNAME_LABEL,
    KIND_DEPLOYMENT,
    LABEL_OS,
    METRICS_PORT,
    PLUGIN_BIN_MOUNT_PATH,
    PLUGIN_BIN_VOLUME,
    SELECTOR_KEY,
    TMP_MOUNT_PATH,
    TMP_VOLUME,
    TOPOLOGY_ZONE_LABEL,
)
from ..models import RolloutManager
from ..utils.errors import DuplicateArgumentError
from .metadata import build_labels, build_metadata


def combine_image_tag(image: str, tag: str) -> str:
    """Join image and tag; a tag containing ':' is a digest (``image@sha256:...``)."""
    if ":" in tag:
        return f"{image}@{tag}"
    if tag:
        return f"{image}:{tag}"
    return image


def resolve_image(cr: RolloutManager, config: OperatorConfig) -> str:
    """Container image for the controller.

    Precedence is spec image/version, then the operator's image override
    (only when the spec leaves both unset), then the built-in default.
    """
    image = cr.spec.image or DEFAULT_IMAGE
    tag = cr.spec.version or DEFAULT_VERSION
    if config.image_override and not cr.spec.image and not cr.spec.version:
        return config.image_override
    return combine_image_tag(image, tag)


def build_args(cr: RolloutManager) -> list[str]:
    """Command-line arguments for the controller container.

    Raises:
        DuplicateArgumentError: If an extra ``--flag`` repeats an implied one
    """
    args: list[str] = []
    if cr.spec.namespace_scoped:
        args.append(ARG_NAMESPACED)
    if cr.spec.ha_enabled:
        args.extend([ARG_LEADER_ELECT, "true"])

    for arg in cr.spec.extra_command_args:
        if len(arg) > 2 and arg.startswith("--") and arg in args:
            raise DuplicateArgumentError(arg)

    args.extend(cr.spec.extra_command_args)
    return args


def merge_env(user_env: Iterable[dict[str, Any]], defaults: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Merge default env vars underneath the user's, sorted by name."""
    merged: dict[str, dict[str, Any]] = {}
    for var in user_env:
        merged[var["name"]] = copy.deepcopy(var)
    for var in defaults:
        merged.setdefault(var["name"], copy.deepcopy(var))
    return [merged[name] for name in sorted(merged)]


def build_env(cr: RolloutManager, config: OperatorConfig) -> list[dict[str, Any]]:
    proxy_env = [{"name": name, "value": value} for name, value in config.proxy_env]
    return merge_env(cr.spec.env, proxy_env)


def selector_labels() -> dict[str, str]:
    return {SELECTOR_KEY: DEFAULT_RESOURCE_NAME}


def _http_probe(path: str, port: str, initial_delay: int, period: int, timeout: int, failure: int) -> dict[str, Any]:
    return {
        "httpGet": {"path": path, "port": port},
        "initialDelaySeconds": initial_delay,
        "periodSeconds": period,
        "timeoutSeconds": timeout,
        "successThreshold": 1,
        "failureThreshold": failure,
    }


def build_container(cr: RolloutManager, config: OperatorConfig) -> dict[str, Any]:
    return {
        "name": CONTAINER_NAME,
        "image": resolve_image(cr, config),
        "imagePullPolicy": "Always",
        "args": build_args(cr),
        "env": build_env(cr, config),
        "ports": [
            {"name": "healthz", "containerPort": HEALTHZ_PORT},
            {"name": "metrics", "containerPort": METRICS_PORT},
        ],
        "livenessProbe": _http_probe("/healthz", "healthz", initial_delay=30, period=20, timeout=10, failure=3),
        "readinessProbe": _http_probe("/metrics", "metrics", initial_delay=10, period=5, timeout=4, failure=5),
        "resources": copy.deepcopy(cr.spec.controller_resources) or {},
        "securityContext": {
            "allowPrivilegeEscalation": False,
            "capabilities": {"drop": ["ALL"]},
            "readOnlyRootFilesystem": True,
            "runAsNonRoot": True,
            "seccompProfile": {"type": "RuntimeDefault"},
        },
        "volumeMounts": [
            {"name": PLUGIN_BIN_VOLUME, "mountPath": PLUGIN_BIN_MOUNT_PATH},
            {"name": TMP_VOLUME, "mountPath": TMP_MOUNT_PATH},
        ],
    }


def build_anti_affinity() -> dict[str, Any]:
    """Spread HA replicas across zones (preferred) and hosts (required)."""
    label_selector = {"matchLabels": selector_labels()}
    return {
        "podAntiAffinity": {
            "preferredDuringSchedulingIgnoredDuringExecution": [
                {
                    "weight": 100,
                    "podAffinityTerm": {
                        "labelSelector": copy.deepcopy(label_selector),
                        "topologyKey": TOPOLOGY_ZONE_LABEL,
                    },
                }
            ],
            "requiredDuringSchedulingIgnoredDuringExecution": [
                {
                    "labelSelector": copy.deepcopy(label_selector),
                    "topologyKey": HOSTNAME_LABEL,
                }
            ],
        }
    }


def build_deployment(cr: RolloutManager, config: OperatorConfig) -> dict[str, Any]:
    """Desired Deployment for the rollouts controller.

    Raises:
        DuplicateArgumentError: If the extra command arguments clash
    """
    node_selector = {LABEL_OS: "linux"}
    node_selector.update(cr.spec.node_selector)

    pod_spec: dict[str, Any] = {
        "serviceAccountName": DEFAULT_RESOURCE_NAME,
        "containers": [build_container(cr, config)],
        "nodeSelector": node_selector,
        "tolerations": copy.deepcopy(list(cr.spec.tolerations)),
        "securityContext": {"runAsNonRoot": True},
        "volumes": [
            {"name": PLUGIN_BIN_VOLUME, "emptyDir": {}},
            {"name": TMP_VOLUME, "emptyDir": {}},
        ],
    }
    if cr.spec.ha_enabled:
        pod_spec["affinity"] = build_anti_affinity()

    return {
        "apiVersion": "apps/v1",
        "kind": KIND_DEPLOYMENT,
        "metadata": build_metadata(cr, DEFAULT_RESOURCE_NAME),
        "spec": {
            "replicas": 2 if cr.spec.ha_enabled else 1,
            "selector": {"matchLabels": selector_labels()},
            "strategy": {"type": "RollingUpdate"},
            "template": {
                "metadata": {
                    "labels": build_labels(cr),
                    "annotations": dict(cr.spec.additional_annotations),
                },
                "spec": pod_spec,
            },
        },
    }
