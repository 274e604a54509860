"""Builders for ServiceAccount, Role/ClusterRole and their bindings."""

from __future__ import annotations

from typing import Any

from ..constants import (
    AGGREGATION_TYPES,
    DEFAULT_RESOURCE_NAME,
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_SERVICE_ACCOUNT,
    LABEL_AGGREGATE_PREFIX,
    RBAC_API_GROUP,
    RBAC_API_VERSION,
)
from ..models import RolloutManager
from .metadata import build_metadata

_ALL_VERBS = ["create", "delete", "get", "list", "patch", "update", "watch"]
_ROLLOUT_VERBS = ["create", "delete", "deletecollection", "get", "list", "patch", "update", "watch"]


def _rule(api_groups: list[str], resources: list[str], verbs: list[str]) -> dict[str, Any]:
    return {
        "apiGroups": api_groups,
        "resources": resources,
        "verbs": verbs,
    }


def canonical_rules(rules: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort policy rules (and the lists inside them) into a stable order.

    Only apiGroups, resources, verbs, resourceNames and nonResourceURLs are
    kept, and empty lists are dropped.
    """
    result = []
    for rule in rules:
        item = {}
        for key in ("apiGroups", "nonResourceURLs", "resourceNames", "resources", "verbs"):
            values = rule.get(key)
            if values:
                item[key] = sorted(values)
        result.append(item)
    return sorted(result, key=_rule_sort_key)


def _rule_sort_key(rule: dict[str, Any]) -> tuple:
    return tuple(tuple(rule.get(key, ())) for key in ("apiGroups", "resources", "verbs", "resourceNames", "nonResourceURLs"))


def controller_policy_rules() -> list[dict[str, Any]]:
    """Rules granted to the rollouts controller itself."""
    return canonical_rules([
        _rule(["argoproj.io"], [
            "rollouts", "rollouts/finalizers", "rollouts/status", "rollouts/scale",
        ], _ROLLOUT_VERBS),
        _rule(["argoproj.io"], [
            "analysisruns", "analysisruns/finalizers", "experiments", "experiments/finalizers",
        ], _ROLLOUT_VERBS),
        _rule(["argoproj.io"], ["analysistemplates", "clusteranalysistemplates"], _ROLLOUT_VERBS),
        _rule(["apps"], ["deployments", "podtemplates", "replicasets"], _ALL_VERBS),
        _rule([""], ["services"], ["create", "delete", "get", "list", "patch", "update", "watch"]),
        _rule([""], ["pods", "configmaps", "secrets", "endpoints"], ["get", "list", "watch"]),
        _rule([""], ["pods"], ["delete", "update"]),
        _rule([""], ["pods/eviction"], ["create"]),
        _rule([""], ["podtemplates"], ["get", "list", "watch"]),
        _rule([""], ["events"], ["create", "list", "patch", "update", "watch"]),
        _rule(["batch"], ["jobs"], ["create", "delete", "get", "list", "patch", "update", "watch"]),
        _rule(["coordination.k8s.io"], ["leases"], ["create", "get", "update"]),
        _rule(["extensions", "networking.k8s.io"], ["ingresses"], ["create", "get", "list", "patch", "update", "watch"]),
        _rule(["networking.istio.io"], ["destinationrules", "virtualservices"], ["get", "list", "patch", "update", "watch"]),
        _rule(["split.smi-spec.io"], ["trafficsplits"], ["create", "get", "patch", "update", "watch"]),
        _rule(["getambassador.io", "x.getambassador.io"], ["ambassadormappings", "mappings"], [
            "create", "delete", "get", "list", "update", "watch",
        ]),
        _rule(["appmesh.k8s.aws"], ["virtualnodes", "virtualrouters"], ["get", "list", "patch", "update", "watch"]),
        _rule(["appmesh.k8s.aws"], ["virtualservices"], ["get", "list", "watch"]),
        _rule(["elbv2.k8s.aws"], ["targetgroupbindings"], ["get", "list"]),
        _rule(["traefik.containo.us", "traefik.io"], ["traefikservices"], ["get", "update", "watch"]),
        _rule(["route.openshift.io"], ["routes"], ["create", "get", "list", "patch", "update", "watch"]),
    ])


_AGGREGATE_RESOURCES = [
    "analysisruns",
    "analysisruns/finalizers",
    "analysistemplates",
    "clusteranalysistemplates",
    "experiments",
    "experiments/finalizers",
    "rollouts",
    "rollouts/finalizers",
    "rollouts/scale",
    "rollouts/status",
]


def aggregate_policy_rules(aggregation_type: str) -> list[dict[str, Any]]:
    """Rules folded into the built-in admin, edit or view ClusterRoles."""
    if aggregation_type == "aggregate-to-view":
        verbs = ["get", "list", "watch"]
    else:
        verbs = ["create", "delete", "deletecollection", "get", "list", "patch", "update", "watch"]
    return canonical_rules([_rule(["argoproj.io"], _AGGREGATE_RESOURCES, verbs)])


def build_service_account(cr: RolloutManager) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE_ACCOUNT,
        "metadata": build_metadata(cr, DEFAULT_RESOURCE_NAME),
    }


def build_role(cr: RolloutManager) -> dict[str, Any]:
    """Role for a namespace-scoped instance, ClusterRole for a cluster-scoped one."""
    namespaced = cr.namespace_scoped
    return {
        "apiVersion": RBAC_API_VERSION,
        "kind": KIND_ROLE if namespaced else KIND_CLUSTER_ROLE,
        "metadata": build_metadata(cr, DEFAULT_RESOURCE_NAME, namespaced=namespaced),
        "rules": controller_policy_rules(),
    }


def build_role_binding(cr: RolloutManager) -> dict[str, Any]:
    """RoleBinding or ClusterRoleBinding granting the role to the ServiceAccount."""
    namespaced = cr.namespace_scoped
    return {
        "apiVersion": RBAC_API_VERSION,
        "kind": KIND_ROLE_BINDING if namespaced else KIND_CLUSTER_ROLE_BINDING,
        "metadata": build_metadata(cr, DEFAULT_RESOURCE_NAME, namespaced=namespaced),
        "roleRef": {
            "apiGroup": RBAC_API_GROUP,
            "kind": KIND_ROLE if namespaced else KIND_CLUSTER_ROLE,
            "name": DEFAULT_RESOURCE_NAME,
        },
        "subjects": [
            {
                "kind": KIND_SERVICE_ACCOUNT,
                "name": DEFAULT_RESOURCE_NAME,
                "namespace": cr.namespace,
            }
        ],
    }


def aggregate_cluster_role_name(aggregation_type: str) -> str:
    return f"{DEFAULT_RESOURCE_NAME}-{aggregation_type}"


def build_aggregate_cluster_role(cr: RolloutManager, aggregation_type: str) -> dict[str, Any]:
    """One of the three fixed ClusterRoles picked up by RBAC aggregation."""
    if aggregation_type not in AGGREGATION_TYPES:
        raise ValueError(f"unknown aggregation type {aggregation_type}")
    return {
        "apiVersion": RBAC_API_VERSION,
        "kind": KIND_CLUSTER_ROLE,
        "metadata": build_metadata(
            cr,
            aggregate_cluster_role_name(aggregation_type),
            namespaced=False,
            labels={f"{LABEL_AGGREGATE_PREFIX}{aggregation_type}": "true"},
        ),
        "rules": aggregate_policy_rules(aggregation_type),
    }
